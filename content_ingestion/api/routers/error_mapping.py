"""
Mapping from pipeline errors to HTTP responses.

Dependencies: fastapi, content_ingestion.core.exceptions
System role: Error translation for routers
"""

from fastapi import HTTPException

from content_ingestion.core.exceptions import (
    ErrorKind,
    IngestionError,
    InvalidStatusTransitionError,
)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.SECURITY_BLOCKED: 400,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXTRACTION: 422,
    ErrorKind.CAPACITY: 422,
    ErrorKind.EXTERNAL_SERVICE: 502,
    ErrorKind.INTERNAL: 500,
}


def to_http_exception(error: IngestionError) -> HTTPException:
    """
    Convert a pipeline error into an HTTPException.

    Args:
        error: Pipeline error raised before or outside a document run

    Returns:
        HTTPException: Exception carrying error kind, message and details
    """
    status_code = STATUS_BY_KIND.get(error.kind, 500)
    if isinstance(error, InvalidStatusTransitionError):
        status_code = 409
    return HTTPException(
        status_code=status_code,
        detail={
            "error_kind": error.kind.value,
            "detail": error.message,
            "details": error.details,
        },
    )
