"""HTTP API for the content ingestion pipeline."""
