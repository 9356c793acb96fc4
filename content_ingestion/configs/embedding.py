"""
Embedding provider configuration.

Dependencies: pydantic, pydantic_settings
System role: Embedding model configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_ingestion.configs.base import BaseSettings


class EmbeddingSettings(BaseSettings):
    """Google Generative AI embedding configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(
        default="models/gemini-embedding-001",
        description="Google embedding model ID (gemini-embedding-001 supports 1024-dim)",
    )
    dimension: int = Field(
        default=1024,
        description="Fixed output dimension for every embedding call",
    )
    google_api_key: str = Field(
        default="",
        description="Google API key; empty falls back to GOOGLE_API_KEY in the environment",
    )
