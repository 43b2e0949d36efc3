"""String and URL helpers shared by the config and path layers."""
import re

from pydantic import AnyUrl, TypeAdapter, ValidationError

_URL_ADAPTER = TypeAdapter(AnyUrl)

_LEADING_SLASHES = re.compile(r"^/+")
_TRAILING_SLASHES = re.compile(r"/+$")


def is_valid_url(value: str) -> bool:
    """Return True when `value` parses as an absolute URL."""
    if not value:
        return False
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def remove_leading_slashes(value: str) -> str:
    return _LEADING_SLASHES.sub("", value)


def remove_trailing_slashes(value: str) -> str:
    return _TRAILING_SLASHES.sub("", value)
