# src/github_storage/config/settings.py
import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_storage.exceptions import ConfigurationError
from github_storage.utils.urls import is_valid_url, remove_trailing_slashes

logger = logging.getLogger(__name__)

ENV_PREFIX = "GHOST_STORAGE_GITHUB_"
RAW_GITHUB_URL = "https://raw.githubusercontent.com"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_BRANCH = "master"
DEFAULT_DESTINATION = "/"


class EnvOverrides(BaseSettings):
    """
    Environment overrides for the adapter configuration.

    Every field maps to ``GHOST_STORAGE_GITHUB_<FIELD>``. Values are kept as
    raw strings; merging with caller-supplied values happens in
    :func:`resolve_config`.
    """

    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: Optional[str] = None
    destination: Optional[str] = None
    base_url: Optional[str] = None
    use_relative_urls: Optional[str] = None
    token: Optional[str] = None
    api_url: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )


class StorageConfig(BaseModel):
    """
    Resolved adapter configuration. Immutable for the adapter's lifetime.

    Build it with :func:`resolve_config` rather than directly, so that
    environment precedence and the base URL fallback are applied.
    """

    owner: str = Field(min_length=1, description="Repository owner (user or organisation)")
    repo: str = Field(min_length=1, description="Repository name")
    branch: str = Field(default=DEFAULT_BRANCH, description="Branch files are committed to")
    destination: str = Field(
        default=DEFAULT_DESTINATION,
        description="Directory inside the repository all files are stored under",
    )
    base_url: str = Field(description="Base for public URL construction")
    use_relative_urls: bool = Field(
        default=False,
        description="Return root-relative paths from save instead of absolute URLs",
    )
    token: Optional[str] = Field(default=None, repr=False, description="GitHub access token")
    api_url: str = Field(default=DEFAULT_API_URL, description="GitHub REST API root")

    model_config = ConfigDict(frozen=True)

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first value present in `raw` under any of `keys`."""
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def default_base_url(owner: str, repo: str, branch: str) -> str:
    return f"{RAW_GITHUB_URL}/{owner}/{repo}/{branch}"


def resolve_config(raw: Optional[Mapping[str, Any]] = None) -> StorageConfig:
    """
    Merge caller configuration with environment overrides.

    Precedence per field:
    1. ``GHOST_STORAGE_GITHUB_*`` environment variable, when set and non-empty
    2. Value supplied in `raw` (snake_case or the host's camelCase key)
    3. Computed default

    The token is taken from the environment first and otherwise from the
    ``token`` key of `raw`. ``use_relative_urls`` is only switched on by the
    environment when the variable is exactly ``"true"``.

    Args:
        raw: Caller-supplied configuration mapping.

    Returns:
        StorageConfig: The frozen, resolved configuration.

    Raises:
        ConfigurationError: If owner or repo is empty after resolution.
    """
    raw = dict(raw or {})
    env = EnvOverrides()

    token = env.token or raw.get("token")

    owner = env.owner or _pick(raw, "owner")
    repo = env.repo or _pick(raw, "repo")
    branch = env.branch or _pick(raw, "branch") or DEFAULT_BRANCH

    missing = [name for name, value in (("owner", owner), ("repo", repo)) if not value]
    if missing:
        raise ConfigurationError(
            f"GitHub storage is missing required configuration: {', '.join(missing)}",
            details={name: f"set '{name}' or {ENV_PREFIX}{name.upper()}" for name in missing},
        )

    base_url = remove_trailing_slashes(env.base_url or _pick(raw, "base_url", "baseUrl") or "")
    if not is_valid_url(base_url):
        if base_url:
            logger.warning(f"Ignoring invalid base URL '{base_url}', using raw content URL")
        base_url = default_base_url(owner, repo, branch)

    destination = env.destination or _pick(raw, "destination") or DEFAULT_DESTINATION
    use_relative_urls = env.use_relative_urls == "true" or bool(
        _pick(raw, "use_relative_urls", "useRelativeUrls")
    )
    api_url = remove_trailing_slashes(env.api_url or _pick(raw, "api_url", "apiUrl") or DEFAULT_API_URL)

    config = StorageConfig(
        owner=owner,
        repo=repo,
        branch=branch,
        destination=destination,
        base_url=base_url,
        use_relative_urls=use_relative_urls,
        token=token,
        api_url=api_url,
    )
    logger.info(f"GitHub storage configured for {config.repository}@{config.branch}")
    return config
