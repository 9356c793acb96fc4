"""
Document processing pipeline for ingestion.

Sanitizes, validates, chunks and embeds source material, then writes chunk
rows and vectors for retrieval.

Dependencies: httpx, beautifulsoup4, pypdf, tiktoken, tenacity, langchain_google_genai, pydantic
System role: Document ingestion pipeline entrypoint
"""

from .container import ServiceContainer
from .entrypoint import IngestionOrchestrator
from .models import DeletionResult, DocumentRecord, IngestionResult, SourceSubmission

__all__ = [
    "IngestionOrchestrator",
    "ServiceContainer",
    "DeletionResult",
    "DocumentRecord",
    "IngestionResult",
    "SourceSubmission",
]
