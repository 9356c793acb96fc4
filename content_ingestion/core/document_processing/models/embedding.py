"""
Embedding result models.

Dependencies: pydantic
System role: Provider response contract
"""

from pydantic import BaseModel, Field


class EmbeddingUsage(BaseModel):
    """Usage counters for one provider call."""

    input_tokens: int = Field(default=0, description="Tokens sent to the provider")
    text_count: int = Field(default=0, description="Texts embedded")


class EmbeddingResult(BaseModel):
    """Vectors for a batch of texts, in input order."""

    embeddings: list[list[float]] = Field(description="One vector per input text")
    usage: EmbeddingUsage = Field(default_factory=EmbeddingUsage)
