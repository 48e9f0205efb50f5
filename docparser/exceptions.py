"""
Custom exceptions for the Documentation Map Parser.

Error philosophy:
  - FetchError and subclasses -> FAIL HARD: raised to the caller, never retried here.
    Retry/backoff policy belongs to whoever called the fetcher.
  - StrategyError -> NON-FATAL: the orchestrator logs it and moves on to the next strategy.
"""
from typing import Optional


class DocParserError(Exception):
    """Base exception for all Documentation Map Parser errors."""

    code = "PARSE_FAILED"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to the error body returned by the HTTP surface."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# --- FAIL HARD: fetch layer ---

class FetchError(DocParserError):
    """Raised when documentation cannot be retrieved."""

    code = "FETCH_FAILED"


class InvalidUrlError(FetchError):
    """URL is malformed, not HTTPS, or points at a blocked/private host."""

    code = "INVALID_URL"


class NotDocumentationUrlError(InvalidUrlError):
    """URL does not look like a documentation site (browser path only)."""


class NotFoundError(FetchError):
    """Server answered 404."""


class ForbiddenError(FetchError):
    """Server answered 403."""


class RateLimitedError(FetchError):
    """Server answered 429."""

    code = "RATE_LIMIT_EXCEEDED"


class HTTPStatusError(FetchError):
    """Server answered with any other non-2xx status."""

    def __init__(self, message: str, status_code: int, details: Optional[dict] = None):
        super().__init__(message, details)
        self.status_code = status_code


class FetchTimeoutError(FetchError):
    """Request or page load exceeded its timeout."""

    code = "TIMEOUT"


class NetworkError(FetchError):
    """DNS failure, refused connection or other transport problem."""


class RedirectError(FetchError):
    """Redirect without a Location header, or to a URL that fails validation."""


class TooManyRedirectsError(RedirectError):
    """More redirect hops than allowed."""


class BrowserLaunchError(FetchError):
    """Headless browser could not be started."""


# --- NON-FATAL: strategy layer ---

class StrategyError(DocParserError):
    """Raised when a parsing strategy cannot process its input."""

    def __init__(self, message: str, strategy: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.strategy = strategy
