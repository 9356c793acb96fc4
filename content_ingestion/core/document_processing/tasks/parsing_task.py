"""
PDF parsing task using pypdf.

Validates uploaded PDF bytes and extracts their text layer page by page.
Parsing runs in a worker thread; the reader's buffer is released when the
task finishes, whether it succeeds or fails.

Dependencies: pypdf
System role: Binary document source for the extraction stage
"""

import asyncio
import io
import logging
import re

from pypdf import PasswordType, PdfReader
from pypdf.errors import DependencyError, FileNotDecryptedError

from content_ingestion.core.exceptions import (
    ExtractionError,
    ExtractionReason,
    ValidationError,
)

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
PDF_HEADER = re.compile(rb"^%PDF-\d\.\d")
EOF_MARKER = b"%%EOF"
EOF_WINDOW = 1024
SNIFF_WINDOW = 1024
# Signatures of markup disguised with a PDF header
MARKUP_SIGNATURES = (b"<html", b"<!doctype", b"<script", b"<body", b"<svg", b"<?xml")


class ParsedDocument:
    """Text and metadata extracted from a PDF."""

    def __init__(self, text: str, page_count: int, title: str | None = None) -> None:
        self.text = text
        self.page_count = page_count
        self.title = title


class ParsingTask:
    """Validate and parse PDF documents."""

    def __init__(self, max_bytes: int = 10 * 1024 * 1024) -> None:
        """
        Initialize parsing task.

        Args:
            max_bytes: Maximum accepted document size
        """
        self._max_bytes = max_bytes

    def validate(self, data: bytes) -> None:
        """
        Run the byte-level checks that need no parsing.

        Args:
            data: Uploaded document bytes

        Raises:
            ValidationError: When size, header, content sniff or trailer checks fail
        """
        if not data:
            raise ValidationError("Document is empty", field="file")
        if len(data) > self._max_bytes:
            raise ValidationError(
                f"Document exceeds maximum size of {self._max_bytes // (1024 * 1024)} MB",
                field="file",
                details={"size": len(data)},
            )
        if not data.startswith(PDF_MAGIC):
            raise ValidationError("File is not a PDF document", field="file")
        if not PDF_HEADER.match(data):
            raise ValidationError("PDF header is malformed", field="file")

        head = data[:SNIFF_WINDOW].lower()
        if any(signature in head for signature in MARKUP_SIGNATURES):
            raise ValidationError("File content does not match a PDF document", field="file")

        if EOF_MARKER not in data[-EOF_WINDOW:]:
            raise ValidationError("PDF is truncated (missing end-of-file marker)", field="file")

    async def parse(self, data: bytes) -> ParsedDocument:
        """
        Validate and extract text from a PDF.

        Args:
            data: Uploaded document bytes

        Returns:
            ParsedDocument: Page text joined by blank lines, page count and metadata title

        Raises:
            ValidationError: When byte-level checks fail
            ExtractionError: When the PDF is malformed, password protected or has no text layer
        """
        self.validate(data)
        return await asyncio.to_thread(self._parse_sync, data)

    def _parse_sync(self, data: bytes) -> ParsedDocument:
        buffer = io.BytesIO(data)
        try:
            try:
                reader = PdfReader(buffer)
                encrypted = reader.is_encrypted
            except Exception as e:
                raise ExtractionError(
                    f"PDF could not be parsed: {type(e).__name__}",
                    reason=ExtractionReason.MALFORMED_DOCUMENT,
                ) from e

            if encrypted:
                self._open_encrypted(reader)

            try:
                pages = [page.extract_text() or "" for page in reader.pages]
                title = self._metadata_title(reader)
            except FileNotDecryptedError as e:
                raise ExtractionError(
                    "PDF is password protected",
                    reason=ExtractionReason.PASSWORD_PROTECTED,
                ) from e
            except Exception as e:
                raise ExtractionError(
                    f"PDF text extraction failed: {type(e).__name__}",
                    reason=ExtractionReason.MALFORMED_DOCUMENT,
                ) from e

            text = "\n\n".join(page.strip() for page in pages if page.strip())
            if not text:
                raise ExtractionError(
                    "PDF has no extractable text layer (scanned or image-only)",
                    reason=ExtractionReason.NO_TEXT_LAYER,
                    details={"page_count": len(pages)},
                )

            logger.info(
                f"{__name__}:_parse_sync - Parsed PDF",
                extra={"page_count": len(pages), "char_count": len(text)},
            )
            return ParsedDocument(text=text, page_count=len(pages), title=title)
        finally:
            buffer.close()

    def _open_encrypted(self, reader: PdfReader) -> None:
        try:
            result = reader.decrypt("")
        except (DependencyError, NotImplementedError) as e:
            raise ExtractionError(
                "PDF uses unsupported encryption",
                reason=ExtractionReason.PASSWORD_PROTECTED,
            ) from e
        except Exception as e:
            raise ExtractionError(
                "PDF is password protected",
                reason=ExtractionReason.PASSWORD_PROTECTED,
            ) from e
        if result == PasswordType.NOT_DECRYPTED:
            raise ExtractionError(
                "PDF is password protected",
                reason=ExtractionReason.PASSWORD_PROTECTED,
            )

    @staticmethod
    def _metadata_title(reader: PdfReader) -> str | None:
        metadata = reader.metadata
        if not metadata or not metadata.title:
            return None
        title = str(metadata.title).strip()
        return title or None
