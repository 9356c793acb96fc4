"""
Text utilities shared by every ingestion stage.
"""

from content_ingestion.core.text.sanitizer import (
    SanitizedText,
    is_empty,
    sanitize,
    sanitize_and_validate,
)
from content_ingestion.core.text.token_estimator import TokenEstimator

__all__ = [
    "SanitizedText",
    "TokenEstimator",
    "is_empty",
    "sanitize",
    "sanitize_and_validate",
]
