"""
Extraction result models.

Dependencies: pydantic
System role: Outputs of the fetching and extraction stages
"""

from pydantic import BaseModel, Field


class FetchedPage(BaseModel):
    """Readable content of a fetched web page."""

    url: str = Field(description="Requested URL")
    final_url: str = Field(description="URL the content was served from")
    title: str | None = Field(default=None, description="Page title")
    text: str = Field(description="Extracted readable text (unsanitized)")
    content_type: str = Field(description="Response media type")


class ExtractedContent(BaseModel):
    """Sanitized text and derived title for one source item."""

    text: str = Field(description="Sanitized plain text")
    title: str = Field(description="Derived or supplied title")
