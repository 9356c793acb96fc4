"""
Vector store configuration settings.

Manages S3 Vectors configuration for chunk vector storage.
The in-process memory store is selected for local development and tests.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for ingestion writes
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_ingestion.configs.base import BaseSettings


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (memory for dev, S3 Vectors for prod)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="memory",
        description="Vector store type: 'memory' for local dev, 's3' for production",
    )
    aws_region: str = Field(default="us-east-1", description="AWS region for S3 Vectors")
    vectors_bucket: str = Field(
        default="content-ingestion-vectors",
        description="S3 Vectors bucket name",
    )
    index_name: str = Field(default="content-chunks", description="S3 Vectors index name")
    namespace: str = Field(
        default="content",
        description="Content namespace stamped on every vector and every filter",
    )
    dimension: int = Field(
        default=1024,
        description="Embedding vector dimension expected by the index",
    )
    write_batch_size: int = Field(
        default=500,
        description="Maximum vectors per put/delete request",
    )
