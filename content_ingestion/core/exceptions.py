"""
Exception hierarchy for the content ingestion pipeline.

Provides a layered exception structure for domain-specific errors.
Every exception is tagged with an ErrorKind so the orchestrator can decide
between surfacing, retrying and writing a terminal failure status.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification attached to every pipeline failure."""

    VALIDATION = "validation"
    QUOTA_EXCEEDED = "quota_exceeded"
    SECURITY_BLOCKED = "security_blocked"
    EXTRACTION = "extraction"
    EXTERNAL_SERVICE = "external_service"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class ExtractionReason(str, Enum):
    """Distinguishable causes of an extraction failure."""

    PASSWORD_PROTECTED = "password_protected"
    NO_TEXT_LAYER = "no_text_layer"
    INSUFFICIENT_CONTENT = "insufficient_content"
    UNSUPPORTED_CONTENT = "unsupported_content"
    MALFORMED_DOCUMENT = "malformed_document"
    FETCH_FAILED = "fetch_failed"
    TOO_LARGE = "too_large"


class IngestionError(Exception):
    """Base exception for all content ingestion errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(IngestionError):
    """Raised when input validation fails."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class QuotaExceededError(IngestionError):
    """Raised when an owner already holds the maximum number of documents."""

    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, owner_id: str, limit: int) -> None:
        super().__init__(
            f"Document limit reached ({limit}). Delete a document before adding another.",
            {"owner_id": owner_id, "limit": limit},
        )


class SecurityBlockedError(IngestionError):
    """Raised when a fetch target or redirect is disallowed."""

    kind = ErrorKind.SECURITY_BLOCKED

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize security error.

        Args:
            message: Error message
            url: URL that was blocked
            details: Additional context
        """
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)


class ExtractionError(IngestionError):
    """Raised when content cannot be turned into usable text."""

    kind = ErrorKind.EXTRACTION

    def __init__(
        self,
        message: str,
        reason: ExtractionReason,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize extraction error.

        Args:
            message: Error message
            reason: Distinguishable failure cause
            details: Additional context
        """
        self.reason = reason
        details = details or {}
        details["reason"] = reason.value
        super().__init__(message, details)


class ExternalServiceError(IngestionError):
    """Raised when an external provider or network call fails."""

    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(
        self,
        message: str,
        service: str | None = None,
        transient: bool = True,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize external service error.

        Args:
            message: Error message
            service: Name of the failing service
            transient: Whether a retry may succeed
            details: Additional context
        """
        self.transient = transient
        details = details or {}
        if service:
            details["service"] = service
        super().__init__(message, details)


class VectorStoreError(ExternalServiceError):
    """Raised when vector store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (upsert, query, delete)
            details: Additional context
        """
        self.operation = operation
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, service="vector_store", details=details)


class CapacityError(IngestionError):
    """Raised when a document produces more chunks than allowed."""

    kind = ErrorKind.CAPACITY

    def __init__(self, chunk_count: int, max_chunks: int) -> None:
        super().__init__(
            f"Document too large: {chunk_count} chunks exceeds the limit of {max_chunks}",
            {"chunk_count": chunk_count, "max_chunks": max_chunks},
        )


class DocumentNotFoundError(IngestionError):
    """Raised when a document cannot be found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, document_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize document not found error.

        Args:
            document_id: ID of the missing document
            details: Additional context
        """
        details = details or {}
        details["document_id"] = document_id
        super().__init__(f"Document not found: {document_id}", details)


class InvalidStatusTransitionError(IngestionError):
    """Raised when a document is not in a status that allows the requested change."""

    kind = ErrorKind.VALIDATION

    def __init__(self, document_id: str, current: str, target: str) -> None:
        """
        Initialize transition error.

        Args:
            document_id: Document UUID
            current: Status the document is in
            target: Status that was requested
        """
        super().__init__(
            f"Document {document_id} cannot move from {current} to {target}",
            {"document_id": document_id, "current": current, "target": target},
        )
