"""Exception hierarchy for the GitHub storage adapter."""

from typing import Dict, Optional


class GitHubStorageError(Exception):
    """Base exception for all adapter errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(GitHubStorageError):
    """Raised when the resolved configuration is missing required values."""


class GitHubAPIError(GitHubStorageError):
    """Raised when the contents API answers with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        method: str,
        url: str,
        details: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.method = method
        self.url = url

    def __str__(self) -> str:
        return f"{self.method} {self.url} failed with {self.status_code}: {self.message}"


class ContentNotFoundError(GitHubAPIError):
    """Raised when the requested path does not exist on the branch."""


class RateLimitError(GitHubAPIError):
    """Base class for rate-limit signals sent by the API."""

    def __init__(self, *args, retry_after: float = 0.0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.retry_after = retry_after


class QuotaExhaustedError(RateLimitError):
    """Request quota exhausted and the retry budget is spent."""


class AbuseDetectedError(RateLimitError):
    """Secondary (abuse) rate limit hit. Never retried automatically."""


class UnsupportedURLSchemeError(GitHubStorageError, ValueError):
    """Raised when `read` is given a URL that is not http or https."""


class OperationNotSupportedError(GitHubStorageError, NotImplementedError):
    """Raised by capabilities this adapter does not implement."""
