"""
Pydantic model for service configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_PORT = 3500
DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_MAX_BODY_SIZE = 1024 * 1024
DEFAULT_API_BASE_URL = "https://api.spotify.com"


class ServiceConfig(BaseModel):
    """A validated, immutable configuration model for the service."""

    # Storage
    cache_dir: Path = Field(default_factory=lambda: Path.cwd() / "TRICACHE")

    # HTTP listener
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    verbose_errors: bool = True

    # External collaborators
    api_base_url: str = DEFAULT_API_BASE_URL
    backend: str = ""

    # Request handling
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_workers: int = 8

    # Optional JSON event log
    log_dir: Path | None = None

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of persistence workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Request timeout must be a positive number of seconds.")
        return v

    @field_validator("max_body_size")
    @classmethod
    def validate_body_size(cls, v: int) -> int:
        if v < 1024:
            raise ValueError("Max body size must be at least 1 KiB.")
        return v

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://.")
        return v.rstrip("/")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """An empty value is allowed here; serving requires one."""
        if v and ":" not in v:
            raise ValueError(
                "Backend must be an import path of the form 'package.module:factory'."
            )
        return v
