"""
Pydantic models for the POST /dl request body and its JSON response.
"""

import re

from pathvalidate import ValidationError as PathValidationError
from pathvalidate import validate_filename
from pydantic import BaseModel, field_validator, model_validator

_HASH_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class DownloadRequest(BaseModel):
    """A validated download request."""

    url: str
    title: str
    hash: str
    token: str

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        """
        The hash becomes a directory name under the cache root, so anything
        that could escape it (separators, dots, reserved names) is rejected.
        """
        if not _HASH_PATTERN.match(v):
            raise ValueError(
                "Hash must be 1-128 characters of letters, digits, '_' or '-'."
            )
        try:
            validate_filename(v, platform="universal")
        except PathValidationError as e:
            raise ValueError(f"Hash is not a safe directory name: {e}") from e
        return v

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("Token cannot be empty.")
        return v

    @model_validator(mode="after")
    def validate_track_source(self) -> "DownloadRequest":
        """Either a link or a title is needed to find the track."""
        if not self.url and not self.title:
            raise ValueError("Either 'url' or 'title' must be provided.")
        return self

    def __repr__(self) -> str:
        return (
            f"DownloadRequest(url={self.url!r}, title={self.title!r}, "
            f"hash={self.hash!r}, token='***')"
        )


class DownloadResponse(BaseModel):
    """The JSON body returned for every request."""

    ok: bool
    error: str | None = None
    outcome: str | None = None
    saved: list[str] | None = None
    failed: list[str] | None = None

    def to_json(self) -> dict:
        return self.model_dump(exclude_none=True)
