"""
Contract for the streaming backend and the adapter that turns whatever it
returns into a validated variant set.

The backend itself (session setup, credentials, decryption) is supplied by
the deployment as an import path ``package.module:factory``; the factory is
called with the ServiceConfig and must return a VariantSource.
"""

import asyncio
import importlib
import logging
from collections.abc import Iterable, Mapping
from contextlib import suppress
from typing import Any, Protocol, Union

import aiohttp
from rich.markup import escape

from tri_spotify.exceptions import BackendError, ConfigurationError
from tri_spotify.models.config import ServiceConfig
from tri_spotify.models.formats import FormatLabel
from tri_spotify.models.track import ByteSource, TrackReference

log = logging.getLogger(__name__)

RawVariants = Union[
    Mapping[Any, ByteSource], Iterable[tuple[Any, ByteSource]]
]


class VariantSource(Protocol):
    """
    Anything that can open a session with a caller-supplied access token and
    hand back one decrypted byte stream per available format.
    """

    async def load_variants(self, track: TrackReference, token: str) -> RawVariants:
        """
        Returns either a mapping of format label to stream or an iterable of
        (label, stream) pairs. Labels may be FormatLabel members or their names.
        """
        ...  # pragma: no cover


def load_backend(import_path: str, config: ServiceConfig) -> VariantSource:
    """
    Imports ``package.module:factory`` and calls the factory with the config.

    Raises:
        ConfigurationError: If the path is malformed, cannot be imported, or the
        factory does not produce an object with ``load_variants``.
    """
    if not import_path or ":" not in import_path:
        raise ConfigurationError(
            "No streaming backend configured. Set TRI_SPOTIFY_BACKEND to "
            "'package.module:factory'."
        )

    module_name, _, attr = import_path.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            f"Could not import backend module '{module_name}': {e}"
        ) from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigurationError(f"Backend factory '{import_path}' is not callable.")

    backend = factory(config)
    if not callable(getattr(backend, "load_variants", None)):
        raise ConfigurationError(
            f"Backend '{import_path}' does not provide a load_variants() method."
        )
    log.info(f"Using streaming backend [cyan]{import_path}[/cyan]")
    return backend


async def close_backend(backend: VariantSource) -> None:
    """Awaits the backend's optional close() hook."""
    close = getattr(backend, "close", None)
    if close is None:
        return
    result = close()
    if asyncio.iscoroutine(result):
        await result


def _discard(source: ByteSource) -> None:
    close = getattr(source, "close", None)
    if callable(close):
        with suppress(OSError):
            close()


def build_variant_set(raw: RawVariants) -> dict[FormatLabel, ByteSource]:
    """
    Normalises a backend result into a FormatLabel -> stream mapping.

    Labels this service does not know are kept under the OTHER5 catch-all; only
    the first of them is kept, later ones are closed and dropped.

    Raises:
        BackendError: For duplicate known labels or streams that cannot be
        read.
    """
    pairs = raw.items() if isinstance(raw, Mapping) else raw

    variants: dict[FormatLabel, ByteSource] = {}
    for label, source in pairs:
        if not callable(getattr(source, "read", None)):
            raise BackendError(f"Stream for {label} is not readable.")
        try:
            fmt = FormatLabel.parse(label)
        except ValueError:
            log.warning(
                f"[yellow]Unknown format {escape(repr(label))} from backend, "
                f"treating it as {FormatLabel.OTHER5.value}[/yellow]"
            )
            fmt = FormatLabel.OTHER5
        if fmt is FormatLabel.OTHER5 and fmt in variants:
            _discard(source)
            continue
        if fmt in variants:
            raise BackendError(f"Backend reported format {fmt.value} twice.")
        variants[fmt] = source
    return variants


class VariantFetcher:
    """Fetches and validates the variant set for one track."""

    def __init__(self, backend: VariantSource):
        self.backend = backend

    async def fetch(
        self, track: TrackReference, token: str
    ) -> dict[FormatLabel, ByteSource]:
        """
        Loads every available variant of a track.

        Raises:
            BackendError: On session, network, or empty-result failures.
        """
        log.debug(f"Loading variants for {track.uri}")
        try:
            raw = await self.backend.load_variants(track, token)
        except BackendError:
            raise
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            ConnectionError,
            PermissionError,
        ) as e:
            raise BackendError(f"Streaming backend failed: {e}") from e

        if raw is None:
            raise BackendError(f"Streaming backend returned nothing for {track.uri}.")

        variants = build_variant_set(raw)
        if not variants:
            raise BackendError(f"No audio files available for {track.uri}.")

        log.debug(
            f"{track.uri} has {len(variants)} variants: "
            f"{', '.join(f.value for f in variants)}"
        )
        return variants
