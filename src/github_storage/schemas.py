####################################
# --- Adapter data models --- #
####################################

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadedFile(BaseModel):
    """Local temporary file handed over by the host for one `save` call."""
    path: str = Field(description="Path of the temporary file on local disk.")
    name: str = Field(
        description="Original display name of the upload.",
        json_schema_extra={"example": "cat.png"},
    )

    model_config = ConfigDict(frozen=True)


class ContentProbe(str, Enum):
    """Tagged result of an existence probe against the contents API."""
    FOUND = "found"
    NOT_FOUND = "not_found"


class ContentWriteResult(BaseModel):
    """Stored object as reported by a create-or-update call."""
    path: str = Field(description="Canonical repository-relative path.")
    sha: Optional[str] = None
    html_url: Optional[str] = None
    download_url: Optional[str] = None

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "path": "images/cat.png",
                "sha": "95b966ae1c166bd92f8ae7d1c313e738c731dfc3",
                "html_url": "https://github.com/acme/blog/blob/main/images/cat.png",
                "download_url": "https://raw.githubusercontent.com/acme/blog/main/images/cat.png",
            }
        },
    )
