"""
Observability module.

Provides structured logging and correlation ID tracking.
"""

from content_ingestion.observability.correlation import (
    get_correlation_id,
    set_correlation_id,
)
from content_ingestion.observability.logger import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "get_correlation_id",
    "set_correlation_id",
]
