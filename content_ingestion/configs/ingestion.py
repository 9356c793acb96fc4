"""
Configuration settings for the content ingestion pipeline.

Provides environment-based configuration for validation, fetching,
chunking, embedding and quota enforcement.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_ingestion.configs.base import BaseSettings


class IngestionSettings(BaseSettings):
    """Settings for the document ingestion pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    # Quota
    max_documents_per_owner: int = Field(
        default=50,
        description="Maximum number of documents one owner may hold",
    )

    # Raw text bounds (measured after sanitization)
    min_text_length: int = Field(default=100, description="Minimum sanitized characters")
    max_text_length: int = Field(default=100_000, description="Maximum sanitized characters")
    max_title_length: int = Field(default=200, description="Maximum document title length")

    # Binary documents
    max_document_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum uploaded PDF size in bytes",
    )

    # Remote fetches
    fetch_timeout_seconds: float = Field(default=10.0, description="Whole-transfer timeout")
    fetch_max_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum response body size, enforced while streaming",
    )
    fetch_max_redirects: int = Field(
        default=0,
        description="Redirects to follow after re-validation (0 = never follow)",
    )
    fetch_user_agent: str = Field(
        default="content-ingestion/0.1 (+https://example.invalid/bot)",
        description="User-Agent header sent with remote fetches",
    )

    # Tokenization
    tokenizer_encoding: str = Field(
        default="cl100k_base",
        description="tiktoken encoding used for exact token counts",
    )
    tokenizer_enabled: bool = Field(
        default=True,
        description="Disable to always use the character-ratio estimate",
    )
    chars_per_token: int = Field(default=4, description="Fallback characters per token")

    # Chunking
    chunk_target_tokens: int = Field(default=500, description="Maximum tokens per chunk")
    chunk_overlap_tokens: int = Field(default=50, description="Tokens repeated between chunks")
    max_chunks_per_document: int = Field(
        default=50,
        description="Documents producing more chunks are rejected",
    )

    # Embedding
    embedding_batch_size: int = Field(default=16, description="Texts per provider call")
    embedding_min_interval_seconds: float = Field(
        default=31.0,
        description="Seconds per rate-limit token (2 requests/minute ceiling)",
    )
    embedding_burst: int = Field(default=1, description="Rate-limit bucket capacity")
    embedding_retry_max_elapsed_seconds: float = Field(
        default=300.0,
        description="Stop retrying transient provider errors after this long",
    )
    embedding_retry_initial_seconds: float = Field(default=1.0, description="First backoff")
    embedding_retry_max_seconds: float = Field(default=60.0, description="Backoff ceiling")

    # Deletion saga
    deletion_attempts: int = Field(default=3, description="Attempts per deletion step")
    deletion_retry_initial_seconds: float = Field(
        default=1.0,
        description="First backoff between deletion attempts",
    )

    # Recovery
    orphan_after_seconds: int = Field(
        default=3600,
        description="Processing documents untouched for this long are considered orphaned",
    )
