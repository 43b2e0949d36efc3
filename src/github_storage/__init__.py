"""
GitHub-backed storage for content-management uploads.

Uploads are committed to a repository through the GitHub contents API and
returned as public URLs, by default on raw.githubusercontent.com.
"""

from github_storage.adapters.github import GitHubClient, RateLimitPolicy
from github_storage.config.settings import StorageConfig, resolve_config
from github_storage.exceptions import (
    AbuseDetectedError,
    ConfigurationError,
    ContentNotFoundError,
    GitHubAPIError,
    GitHubStorageError,
    OperationNotSupportedError,
    QuotaExhaustedError,
    RateLimitError,
    UnsupportedURLSchemeError,
)
from github_storage.host import DatedUploadHost, StorageHost
from github_storage.schemas import ContentProbe, ContentWriteResult, UploadedFile
from github_storage.storage_adapter import GitHubStorage

__all__ = [
    "GitHubStorage",
    "GitHubClient",
    "RateLimitPolicy",
    "StorageConfig",
    "resolve_config",
    "StorageHost",
    "DatedUploadHost",
    "UploadedFile",
    "ContentProbe",
    "ContentWriteResult",
    "GitHubStorageError",
    "ConfigurationError",
    "GitHubAPIError",
    "ContentNotFoundError",
    "RateLimitError",
    "QuotaExhaustedError",
    "AbuseDetectedError",
    "UnsupportedURLSchemeError",
    "OperationNotSupportedError",
]
