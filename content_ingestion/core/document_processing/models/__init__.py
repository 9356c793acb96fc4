"""Document processing models."""

from .chunk import TextChunk
from .embedding import EmbeddingResult, EmbeddingUsage
from .extraction import ExtractedContent, FetchedPage
from .pipeline_result import DeletionResult, DocumentRecord, IngestionResult
from .submission import SourceSubmission

__all__ = [
    "DeletionResult",
    "DocumentRecord",
    "EmbeddingResult",
    "EmbeddingUsage",
    "ExtractedContent",
    "FetchedPage",
    "IngestionResult",
    "SourceSubmission",
    "TextChunk",
]
