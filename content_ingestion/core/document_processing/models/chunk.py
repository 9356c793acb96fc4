"""
Chunk domain model for document processing pipeline.

Represents one chunk with its position, source offsets and overlap prefix.

Dependencies: pydantic
System role: Data structure for document chunks in ingestion pipeline
"""

from pydantic import BaseModel, Field


class TextChunk(BaseModel):
    """Text chunk produced by the chunker."""

    text: str = Field(description="Chunk text, overlap prefix included")
    position: int = Field(description="Zero-based chunk position")
    start_offset: int = Field(description="Start of the chunk body in the source text")
    end_offset: int = Field(description="End (exclusive) of the chunk body in the source text")
    overlap_length: int = Field(default=0, description="Characters of leading overlap")
    token_count: int = Field(description="Tokens in text")

    @property
    def body(self) -> str:
        """Chunk text without the overlap copied from the previous chunk."""
        return self.text[self.overlap_length:]
