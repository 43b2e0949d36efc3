"""Host-side collaborators the adapter calls but does not own.

A content-management host decides where uploads go and how name collisions
are avoided. :class:`StorageHost` is that contract; :class:`DatedUploadHost`
is a ready-made implementation storing uploads under ``YYYY/MM`` directories.
"""
import posixpath
import re
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol

from github_storage.schemas import UploadedFile

ExistsCheck = Callable[[str, Optional[str]], Awaitable[bool]]

_UNSAFE_CHARS = re.compile(r"[^\w@.]", re.ASCII)


class StorageHost(Protocol):
    def target_dir(self) -> str:
        ...

    async def unique_file_name(self, file: UploadedFile, target_dir: str) -> str:
        ...


def sanitize_file_name(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_@.]`` with ``-``."""
    return _UNSAFE_CHARS.sub("-", name)


class DatedUploadHost:
    """Year/month upload directories with ``-N`` de-duplication."""

    def __init__(
        self,
        exists: ExistsCheck,
        base_dir: str = "",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._exists = exists
        self.base_dir = base_dir
        self._clock = clock

    def target_dir(self) -> str:
        now = self._clock()
        return posixpath.join(self.base_dir, f"{now:%Y}", f"{now:%m}")

    async def unique_file_name(self, file: UploadedFile, target_dir: str) -> str:
        """Return the first ``<stem>[-N]<ext>`` not yet stored in `target_dir`."""
        stem, ext = posixpath.splitext(posixpath.basename(file.name))
        stem = sanitize_file_name(stem)
        attempt = 0
        while True:
            candidate = f"{stem}-{attempt}{ext}" if attempt else f"{stem}{ext}"
            if not await self._exists(candidate, target_dir):
                return posixpath.join(target_dir, candidate)
            attempt += 1
