"""
Builds the service configuration from environment variables and CLI overrides.
"""

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from tri_spotify.exceptions import ConfigurationError
from tri_spotify.models.config import DEFAULT_PORT, ServiceConfig

log = logging.getLogger(__name__)

# Config field -> environment variable
ENV_VARS = {
    "cache_dir": "TRI_CACHE",
    "host": "TRI_SPOTIFY_HOST",
    "port": "TRI_SPOTIFY_PORT",
    "api_base_url": "TRI_SPOTIFY_API_URL",
    "backend": "TRI_SPOTIFY_BACKEND",
    "request_timeout": "TRI_SPOTIFY_TIMEOUT",
    "max_workers": "TRI_SPOTIFY_WORKERS",
    "verbose_errors": "TRI_SPOTIFY_VERBOSE_ERRORS",
    "log_dir": "TRI_SPOTIFY_LOG_DIR",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigManager:
    """Handles reading the service configuration from the process environment."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ServiceConfig:
        """
        Loads configuration from the environment, applies CLI overrides, and
        validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ServiceConfig object.

        Raises:
            ConfigurationError: If validation fails.
        """
        config_from_env = self._get_config_as_dict()

        if cli_options:
            config_from_env.update(
                {k: v for k, v in cli_options.items() if v is not None}
            )

        try:
            return ServiceConfig(**config_from_env)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads every known variable that is set and non-empty."""
        values: dict[str, Any] = {}
        for key, env_name in ENV_VARS.items():
            raw = self._environ.get(env_name, "").strip()
            if not raw:
                continue
            if key == "port":
                values[key] = self._parse_port(raw)
            elif key == "verbose_errors":
                values[key] = self._parse_bool(env_name, raw)
            else:
                values[key] = raw
        return values

    @staticmethod
    def _parse_port(raw: str) -> int:
        """A value that is not a number falls back to the default port."""
        try:
            return int(raw)
        except ValueError:
            log.warning(
                f"[yellow]Ignoring invalid port '{raw}', using {DEFAULT_PORT}.[/yellow]"
            )
            return DEFAULT_PORT

    @staticmethod
    def _parse_bool(env_name: str, raw: str) -> bool:
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{env_name} must be a boolean, got '{raw}'.")
