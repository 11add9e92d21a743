"""Extraction error kinds and classification."""

CAPTCHA = "captcha"
NOT_FOUND = "not_found"
ACCESS_RESTRICTED = "access_restricted"
RATE_LIMIT = "rate_limit"
UNKNOWN = "unknown"

ERROR_KINDS = (CAPTCHA, NOT_FOUND, ACCESS_RESTRICTED, RATE_LIMIT, UNKNOWN)

# Failures of these kinds are final.
NON_RETRYABLE = frozenset({NOT_FOUND, ACCESS_RESTRICTED})

# Checked in order; first match wins.
_MESSAGE_MARKERS = (
    (CAPTCHA, ("captcha", "challenge")),
    (NOT_FOUND, ("not_found", "404")),
    (ACCESS_RESTRICTED, ("access_restricted", "403")),
    (RATE_LIMIT, ("rate_limit", "429")),
)


class ExtractionError(Exception):
    """A failed extraction attempt with a known kind."""

    def __init__(self, kind: str, message: str):
        if kind not in ERROR_KINDS:
            kind = UNKNOWN
        super().__init__(message)
        self.kind = kind
        self.message = message


def classify_error(error: BaseException) -> str:
    """Map an error to one of ERROR_KINDS.

    Structured ExtractionErrors carry their kind; anything else is
    classified from its message text.
    """
    if isinstance(error, ExtractionError):
        return error.kind
    message = str(error).lower()
    for kind, markers in _MESSAGE_MARKERS:
        if any(m in message for m in markers):
            return kind
    return UNKNOWN


def is_retryable(kind: str) -> bool:
    return kind not in NON_RETRYABLE
