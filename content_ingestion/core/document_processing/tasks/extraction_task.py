"""
Content extraction task.

Turns one source submission into sanitized plain text and a title,
dispatching on the source kind. Cheap input checks are exposed separately
so they can run before any document row or external call exists.

Dependencies: content_ingestion.core.text, fetching_task, parsing_task
System role: First stage of the ingestion pipeline
"""

import logging
from pathlib import PurePath

from content_ingestion.boundary.db.models.document_model import SourceKind
from content_ingestion.core.document_processing.models import (
    ExtractedContent,
    SourceSubmission,
)
from content_ingestion.core.document_processing.tasks.fetching_task import SecureFetcher
from content_ingestion.core.document_processing.tasks.network_guard import parse_target
from content_ingestion.core.document_processing.tasks.parsing_task import ParsingTask
from content_ingestion.core.exceptions import (
    ExtractionError,
    ExtractionReason,
    ValidationError,
)
from content_ingestion.core.text.sanitizer import sanitize

logger = logging.getLogger(__name__)


class ExtractionTask:
    """Extract sanitized text from raw text, web pages and PDF documents."""

    def __init__(
        self,
        fetcher: SecureFetcher,
        parser: ParsingTask,
        min_text_length: int = 100,
        max_text_length: int = 100_000,
        max_title_length: int = 200,
    ) -> None:
        """
        Initialize extraction task.

        Args:
            fetcher: Secure fetcher for remote URLs
            parser: PDF parsing task
            min_text_length: Minimum sanitized characters for any source
            max_text_length: Maximum sanitized characters for raw text
            max_title_length: Maximum title length
        """
        self._fetcher = fetcher
        self._parser = parser
        self._min_text_length = min_text_length
        self._max_text_length = max_text_length
        self._max_title_length = max_title_length

    def prevalidate(self, submission: SourceSubmission) -> None:
        """
        Run network-free checks on a submission.

        Args:
            submission: Source submission

        Raises:
            ValidationError: When the payload is missing or out of bounds
            SecurityBlockedError: When a URL fails the syntactic SSRF checks
        """
        if submission.title is not None:
            title = sanitize(submission.title)
            if len(title) > self._max_title_length:
                raise ValidationError(
                    f"Title must be at most {self._max_title_length} characters",
                    field="title",
                )

        if submission.kind == SourceKind.RAW_TEXT:
            if submission.text is None:
                raise ValidationError("Text content is required", field="content")
            length = len(sanitize(submission.text))
            if length < self._min_text_length:
                raise ValidationError(
                    f"Content must be at least {self._min_text_length} characters",
                    field="content",
                    details={"length": length},
                )
            if length > self._max_text_length:
                raise ValidationError(
                    f"Content must be at most {self._max_text_length} characters",
                    field="content",
                    details={"length": length},
                )
        elif submission.kind == SourceKind.REMOTE_URL:
            if not submission.url:
                raise ValidationError("URL is required", field="url")
            parse_target(submission.url)
        elif submission.kind == SourceKind.BINARY_DOCUMENT:
            if submission.data is None:
                raise ValidationError("Document file is required", field="file")
            self._parser.validate(submission.data)
        else:
            raise ValidationError(f"Unsupported source kind: {submission.kind}", field="kind")

    async def extract(self, submission: SourceSubmission) -> ExtractedContent:
        """
        Extract sanitized text and a title from a submission.

        Args:
            submission: Source submission (already prevalidated)

        Returns:
            ExtractedContent: Sanitized text of at least min_text_length characters

        Raises:
            ValidationError: When the payload is invalid
            SecurityBlockedError: When the fetch target is disallowed
            ExtractionError: When no usable text can be produced
        """
        self.prevalidate(submission)

        source_title: str | None = None
        if submission.kind == SourceKind.RAW_TEXT:
            text = sanitize(submission.text or "")
        elif submission.kind == SourceKind.REMOTE_URL:
            page = await self._fetcher.fetch_text(submission.url or "")
            text = sanitize(page.text)
            source_title = page.title
        else:
            parsed = await self._parser.parse(submission.data or b"")
            text = sanitize(parsed.text)
            source_title = parsed.title

        if len(text) < self._min_text_length:
            raise ExtractionError(
                f"Not enough readable content: {len(text)} characters "
                f"(minimum {self._min_text_length})",
                reason=ExtractionReason.INSUFFICIENT_CONTENT,
                details={"length": len(text)},
            )

        title = self._derive_title(submission, source_title, text)
        logger.info(
            f"{__name__}:extract - Extracted content",
            extra={"source_kind": submission.kind.value, "char_count": len(text)},
        )
        return ExtractedContent(text=text, title=title)

    def _derive_title(
        self,
        submission: SourceSubmission,
        source_title: str | None,
        text: str,
    ) -> str:
        candidates = [submission.title, source_title]
        if submission.filename:
            candidates.append(PurePath(submission.filename).stem)
        candidates.append(text.split("\n", 1)[0])

        for candidate in candidates:
            cleaned = " ".join(sanitize(candidate or "").split())
            if cleaned:
                return cleaned[: self._max_title_length]
        return "Untitled"
