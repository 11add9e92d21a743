"""Profile extraction: the external API client and error classification."""
from profile_batch_core.extract.errors import (
    CAPTCHA,
    NOT_FOUND,
    ACCESS_RESTRICTED,
    RATE_LIMIT,
    UNKNOWN,
    NON_RETRYABLE,
    ExtractionError,
    classify_error,
    is_retryable,
)
from profile_batch_core.extract.client import ProfileApiClient, ProfileExtractor, ProfileRecord

__all__ = [
    "CAPTCHA",
    "NOT_FOUND",
    "ACCESS_RESTRICTED",
    "RATE_LIMIT",
    "UNKNOWN",
    "NON_RETRYABLE",
    "ExtractionError",
    "classify_error",
    "is_retryable",
    "ProfileApiClient",
    "ProfileExtractor",
    "ProfileRecord",
]
