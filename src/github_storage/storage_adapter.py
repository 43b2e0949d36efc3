"""
Storage adapter persisting uploads to a GitHub repository.

Implements the host capability set ``exists``, ``save``, ``read``, ``serve``
and ``delete``. Files are committed through the contents API and handed back
as public URLs (raw.githubusercontent.com by default), so this process never
serves file bytes itself.
"""

import asyncio
import base64
import logging
from typing import Any, Mapping, NoReturn, Optional, Union
from urllib.parse import urlparse

import requests

from github_storage.adapters.github import DEFAULT_TIMEOUT, GitHubClient, RateLimitPolicy
from github_storage.config.settings import StorageConfig, resolve_config
from github_storage.exceptions import OperationNotSupportedError, UnsupportedURLSchemeError
from github_storage.host import DatedUploadHost, StorageHost
from github_storage.paths import filepath, public_url, relative_url
from github_storage.schemas import ContentProbe, UploadedFile
from github_storage.utils.decorators import async_log_execution_time

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_READ_SCHEMES = ("http", "https")


def _read_base64(local_path: str) -> str:
    # The contents API only accepts base64 encoded file bodies
    with open(local_path, "rb") as file_data:
        return base64.b64encode(file_data.read()).decode("ascii")


def _display_name(file: Any) -> Any:
    if isinstance(file, Mapping):
        return file.get("name")
    return getattr(file, "name", file)


def _read_target(options: Any) -> Optional[str]:
    if isinstance(options, str):
        return options
    if isinstance(options, Mapping):
        return options.get("path")
    return getattr(options, "path", None)


class GitHubStorage:
    """Host storage backend committing files to ``owner/repo@branch``."""

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        host: Optional[StorageHost] = None,
        client: Optional[GitHubClient] = None,
        session: Optional[requests.Session] = None,
        http_session: Optional[requests.Session] = None,
        rate_limit_policy: Optional[RateLimitPolicy] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Resolve configuration and wire collaborators.

        Args:
            config: Raw adapter configuration; environment variables override it
            host: Target directory and unique-name strategy (default: dated directories)
            client: Contents API client (default: built from the resolved config)
            session: Session for contents API calls made by the default client
            http_session: Session used by ``read`` for plain URL fetches
            rate_limit_policy: Rate-limit hooks for the default client
            timeout: Request timeout in seconds for ``read`` and the default client
        """
        self.config: StorageConfig = resolve_config(config)
        self.client = client or GitHubClient(
            self.config,
            rate_limit_policy=rate_limit_policy,
            session=session,
            timeout=timeout,
        )
        self.host: StorageHost = host or DatedUploadHost(self.exists)
        self.timeout = timeout
        self._http = http_session or requests.Session()

    def get_filepath(self, filename: str) -> str:
        return filepath(self.config.destination, filename)

    def get_url(self, remote_path: str) -> str:
        return public_url(self.config.base_url, remote_path)

    @async_log_execution_time(logger_name=__name__)
    async def exists(self, filename: str, target_dir: Optional[str] = None) -> bool:
        """Return whether `filename` is already stored in `target_dir`.

        Falls back to the host's current target directory when `target_dir`
        is empty. Only a not-found answer maps to False; other failures are
        raised.
        """
        directory = target_dir or self.host.target_dir()
        remote_path = self.get_filepath(f"{directory}/{filename}")
        probe = await self.client.probe_content(remote_path, self.config.branch)
        return probe is ContentProbe.FOUND

    @async_log_execution_time(logger_name=__name__)
    async def save(
        self,
        file: Union[UploadedFile, Mapping[str, Any]],
        target_dir: Optional[str] = None,
    ) -> str:
        """Commit a local upload and return where it can be fetched.

        Args:
            file: Uploaded file descriptor (local ``path`` and display ``name``)
            target_dir: Directory to store under (default: host target directory)

        Returns:
            str: Root-relative path when ``use_relative_urls`` is set, otherwise
            the absolute public URL. Both are built from the canonical path the
            API reported.
        """
        try:
            upload = file if isinstance(file, UploadedFile) else UploadedFile.model_validate(file)
            directory = target_dir or self.host.target_dir()
            filename = await self.host.unique_file_name(upload, directory)
            content = await asyncio.to_thread(_read_base64, upload.path)
            result = await self.client.create_or_update_content(
                path=self.get_filepath(filename),
                branch=self.config.branch,
                message=f"Create {filename}",
                content=content,
            )
        except Exception as e:
            logger.error(f"Failed to save file {_display_name(file)}: {e}")
            raise

        if self.config.use_relative_urls:
            return relative_url(result.path)
        return self.get_url(result.path)

    async def read(self, options: Any) -> bytes:
        """Download the bytes behind an already resolved public URL.

        `options` is the URL itself or anything carrying it as ``path``. The
        contents API is not involved.

        Raises:
            UnsupportedURLSchemeError: The URL is not http or https.
            requests.HTTPError: The server answered with a 4xx/5xx status. The
                error page is never returned as file bytes, so hosts expecting
                a body for every status must catch this.
            requests.RequestException: Transport failures.
        """
        url = _read_target(options)
        if not url:
            raise UnsupportedURLSchemeError("read requires a fully qualified URL")
        scheme = urlparse(url).scheme
        if scheme not in _READ_SCHEMES:
            raise UnsupportedURLSchemeError(
                f"Cannot read '{url}': unsupported scheme '{scheme}'",
                details={"url": url},
            )
        return await asyncio.to_thread(self._fetch, url)

    def _fetch(self, url: str) -> bytes:
        try:
            with self._http.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                return b"".join(response.iter_content(chunk_size=_CHUNK_SIZE))
        except requests.RequestException as e:
            logger.error(f"Failed to read {url}: {e}")
            raise

    def serve(self):
        """Return a pass-through HTTP middleware.

        Files are served from the URLs returned by ``save``, never by the host.
        """
        async def passthrough(request, call_next):
            return await call_next(request)

        return passthrough

    async def delete(self, *args: Any, **kwargs: Any) -> NoReturn:
        raise OperationNotSupportedError("Not implemented: files stored on GitHub cannot be deleted")

    def close(self) -> None:
        self.client.close()
        self._http.close()

    async def __aenter__(self) -> "GitHubStorage":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()
