"""
Task modules for document processing pipeline.

Exports: ExtractionTask, SecureFetcher, ParsingTask, ChunkingTask, EmbeddingTask, VectorStoreTask
"""

from .chunking_task import ChunkingTask
from .embedding_task import EmbeddingTask
from .extraction_task import ExtractionTask
from .fetching_task import SecureFetcher
from .network_guard import ValidatedTarget, is_public_address, validate_url
from .parsing_task import ParsingTask
from .vector_store_task import VectorStoreTask

__all__ = [
    "ChunkingTask",
    "EmbeddingTask",
    "ExtractionTask",
    "ParsingTask",
    "SecureFetcher",
    "ValidatedTarget",
    "VectorStoreTask",
    "is_public_address",
    "validate_url",
]
