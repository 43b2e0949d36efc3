"""
GitHub contents API client with retry and rate-limit handling.

Transient failures (connection errors, 5xx) are retried by the transport
through a urllib3 ``Retry`` policy mounted on the requests session. Rate-limit
responses are classified here and handed to a :class:`RateLimitPolicy`, which
decides whether a quota-exhausted request is re-issued. Abuse detection is
never retried.
"""

import asyncio
import logging
import math
import time
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from github_storage.config.settings import StorageConfig
from github_storage.exceptions import (
    AbuseDetectedError,
    ContentNotFoundError,
    GitHubAPIError,
    QuotaExhaustedError,
)
from github_storage.schemas import ContentProbe, ContentWriteResult

logger = logging.getLogger(__name__)

GITHUB_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = "github-storage-adapter"

TRANSIENT_STATUSES = (500, 502, 503, 504)
TRANSIENT_RETRIES = 3
TRANSIENT_BACKOFF_FACTOR = 0.5
MAX_QUOTA_RETRIES = 3
# Used when a secondary rate limit response carries no retry-after header
FALLBACK_ABUSE_RETRY_AFTER = 60.0
DEFAULT_TIMEOUT = 30.0


class RateLimitSignal(str, Enum):
    QUOTA_EXHAUSTED = "quota_exhausted"
    ABUSE_DETECTED = "abuse_detected"


def build_transient_retry(
    total: int = TRANSIENT_RETRIES,
    backoff_factor: float = TRANSIENT_BACKOFF_FACTOR,
) -> Retry:
    """Retry policy for network errors and 5xx responses.

    Writes are idempotent by path, so PUT is retried alongside reads. The last
    response is returned instead of raising once retries are spent, letting the
    client turn it into a :class:`GitHubAPIError`.

    ``Retry-After`` is ignored here: urllib3 would otherwise re-issue 429
    responses carrying it, and rate-limit answers belong to
    :class:`RateLimitPolicy` alone.
    """
    return Retry(
        total=total,
        connect=total,
        read=total,
        status=total,
        backoff_factor=backoff_factor,
        status_forcelist=TRANSIENT_STATUSES,
        allowed_methods=frozenset({"HEAD", "GET", "PUT"}),
        raise_on_status=False,
        respect_retry_after_header=False,
    )


class RateLimitPolicy:
    """Decides how rate-limit signals are handled.

    Subclass and override the hooks to change logging or the retry budget.
    """

    def __init__(self, max_retries: int = MAX_QUOTA_RETRIES) -> None:
        self.max_retries = max_retries

    def on_quota_exhausted(self, retry_after: float, method: str, url: str, retry_count: int) -> bool:
        """Return True to re-issue the request after `retry_after` seconds."""
        logger.warning(f"Request quota exhausted for {method} {url}")
        return retry_count < self.max_retries

    def on_abuse_detected(self, retry_after: float, method: str, url: str) -> None:
        logger.warning(f"Abuse detected for {method} {url}")


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if isinstance(data, dict):
        return str(data.get("message", ""))
    return ""


def classify_rate_limit(response: requests.Response) -> Optional[RateLimitSignal]:
    """Return the rate-limit signal carried by `response`, if any."""
    if response.status_code not in (403, 429):
        return None
    message = _error_message(response).lower()
    if "secondary rate" in message or "abuse" in message:
        return RateLimitSignal.ABUSE_DETECTED
    if response.headers.get("x-ratelimit-remaining") == "0" or response.status_code == 429:
        return RateLimitSignal.QUOTA_EXHAUSTED
    if "retry-after" in response.headers:
        return RateLimitSignal.ABUSE_DETECTED
    return None


def retry_after_seconds(response: requests.Response, signal: RateLimitSignal) -> float:
    """Seconds to wait before the request may be re-issued."""
    header = response.headers.get("retry-after")
    if header is not None:
        try:
            return max(float(header), 0.0)
        except ValueError:
            pass
    if signal is RateLimitSignal.ABUSE_DETECTED:
        return FALLBACK_ABUSE_RETRY_AFTER
    reset = response.headers.get("x-ratelimit-reset")
    if reset is None:
        return 0.0
    try:
        return float(max(math.ceil(float(reset) - time.time()) + 1, 0))
    except ValueError:
        return 0.0


class GitHubClient:
    """Async client for the two contents API calls the adapter needs."""

    def __init__(
        self,
        config: StorageConfig,
        rate_limit_policy: Optional[RateLimitPolicy] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transient_retry: Optional[Retry] = None,
    ):
        """Initialize the client.

        Args:
            config: Resolved storage configuration
            rate_limit_policy: Hooks for rate-limit signals (default: log and retry quota 3 times)
            session: Pre-built requests session; when omitted one is created with the transient retry policy mounted
            timeout: Per-request timeout in seconds
            transient_retry: Retry policy for the default session
        """
        self.owner = config.owner
        self.repo = config.repo
        self.api_url = config.api_url
        self.timeout = timeout
        self.rate_limit_policy = rate_limit_policy or RateLimitPolicy()
        self.session = session or self._build_session(transient_retry or build_transient_retry())
        self._headers = {
            "Accept": GITHUB_MEDIA_TYPE,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": USER_AGENT,
        }
        if config.token:
            self._headers["Authorization"] = f"Bearer {config.token}"
        else:
            logger.warning("No GitHub token configured, requests will be unauthenticated")

    @staticmethod
    def _build_session(retry: Retry) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def contents_url(self, path: str) -> str:
        return (
            f"{self.api_url}/repos/{quote(self.owner, safe='')}/{quote(self.repo, safe='')}"
            f"/contents/{quote(path, safe='/')}"
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(
                method,
                url,
                headers=self._headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            logger.debug(f"{method} {url} failed after transport retries: {e}")
            raise

    async def _request(
        self,
        method: str,
        url: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> requests.Response:
        """Issue a request, cooperating with rate limits.

        Returns the response on success (or on 404 when `allow_not_found`).
        Raises a :class:`GitHubAPIError` subclass for anything else.
        """
        retry_count = 0
        while True:
            response = await asyncio.to_thread(self._send, method, url, **kwargs)
            if response.ok or (allow_not_found and response.status_code == 404):
                return response

            signal = classify_rate_limit(response)
            if signal is RateLimitSignal.ABUSE_DETECTED:
                retry_after = retry_after_seconds(response, signal)
                self.rate_limit_policy.on_abuse_detected(retry_after, method, url)
                raise AbuseDetectedError(
                    _error_message(response) or "Secondary rate limit triggered",
                    response.status_code,
                    method,
                    url,
                    retry_after=retry_after,
                )
            if signal is RateLimitSignal.QUOTA_EXHAUSTED:
                retry_after = retry_after_seconds(response, signal)
                if self.rate_limit_policy.on_quota_exhausted(retry_after, method, url, retry_count):
                    retry_count += 1
                    logger.info(f"Retrying {method} {url} in {retry_after:.0f}s (retry {retry_count})")
                    await asyncio.sleep(retry_after)
                    continue
                raise QuotaExhaustedError(
                    _error_message(response) or "API rate limit exceeded",
                    response.status_code,
                    method,
                    url,
                    retry_after=retry_after,
                )

            error_cls = ContentNotFoundError if response.status_code == 404 else GitHubAPIError
            error = error_cls(
                _error_message(response) or response.reason or "Request failed",
                response.status_code,
                method,
                url,
            )
            logger.debug(f"GitHub API call failed: {error}")
            raise error

    async def probe_content(self, path: str, ref: str) -> ContentProbe:
        """Check whether `path` exists on `ref` without downloading it."""
        response = await self._request(
            "HEAD",
            self.contents_url(path),
            allow_not_found=True,
            params={"ref": ref},
        )
        if response.status_code == 404:
            return ContentProbe.NOT_FOUND
        return ContentProbe.FOUND

    async def create_or_update_content(
        self,
        path: str,
        branch: str,
        message: str,
        content: str,
    ) -> ContentWriteResult:
        """Commit base64 `content` at `path` on `branch`.

        Returns:
            ContentWriteResult: The stored object; its ``path`` is the
            canonical path the API settled on.
        """
        payload: Dict[str, str] = {"message": message, "content": content, "branch": branch}
        response = await self._request("PUT", self.contents_url(path), json=payload)
        data = response.json()
        result = ContentWriteResult.model_validate(data.get("content") or {})
        logger.info(f"Committed {result.path} to {self.owner}/{self.repo}@{branch}")
        return result

    def close(self) -> None:
        self.session.close()
