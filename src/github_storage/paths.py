"""Repository path and public URL construction.

Everything here is pure: the same inputs always produce the same output and
nothing touches the network.
"""
import posixpath
from urllib.parse import quote, urljoin

from github_storage.utils.urls import remove_leading_slashes


def filepath(destination: str, logical_name: str) -> str:
    """Join `destination` and `logical_name` into a repository-relative path.

    Redundant separators and ``.``/``..`` segments are normalised away and all
    leading slashes are stripped, since the contents API only accepts paths
    relative to the repository root. A `logical_name` starting with ``/``
    still lands under `destination`. Traversal segments are not rejected.

    Args:
        destination: Directory inside the repository, e.g. ``/images``.
        logical_name: File name, possibly prefixed by a target directory.

    Returns:
        str: Path such as ``images/2024/05/cat.png``.
    """
    joined = posixpath.normpath(f"/{destination or ''}/{logical_name}")
    return remove_leading_slashes(joined)


def public_url(base_url: str, remote_path: str) -> str:
    """Resolve `remote_path` against `base_url`.

    The base is treated as a directory so its last segment (usually the
    branch) survives resolution. An absolute `remote_path` resolves to itself.
    Characters not allowed in a URL path are percent-encoded; existing escapes
    are kept as they are.
    """
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return urljoin(base, quote(remove_leading_slashes(remote_path), safe="/:%@"))


def relative_url(remote_path: str) -> str:
    return f"/{remove_leading_slashes(remote_path)}"
