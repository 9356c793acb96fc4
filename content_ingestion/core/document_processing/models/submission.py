"""
Source submission model.

One submitted item of source material, tagged with its kind.

Dependencies: pydantic
System role: Input type for the ingestion orchestrator
"""

from pydantic import BaseModel, Field

from content_ingestion.boundary.db.models.document_model import SourceKind


class SourceSubmission(BaseModel):
    """Source material submitted for ingestion."""

    kind: SourceKind = Field(description="Kind of source material")
    title: str | None = Field(default=None, description="Caller-supplied title")
    text: str | None = Field(default=None, description="Raw text payload")
    url: str | None = Field(default=None, description="Remote page URL")
    data: bytes | None = Field(default=None, description="Binary document bytes", repr=False)
    filename: str | None = Field(default=None, description="Original filename")

    @classmethod
    def from_text(cls, text: str, title: str | None = None) -> "SourceSubmission":
        return cls(kind=SourceKind.RAW_TEXT, text=text, title=title)

    @classmethod
    def from_url(cls, url: str, title: str | None = None) -> "SourceSubmission":
        return cls(kind=SourceKind.REMOTE_URL, url=url, title=title)

    @classmethod
    def from_document(
        cls,
        data: bytes,
        filename: str | None = None,
        title: str | None = None,
    ) -> "SourceSubmission":
        return cls(kind=SourceKind.BINARY_DOCUMENT, data=data, filename=filename, title=title)
