"""Shared pytest fixtures and fakes for the tri-spotify test suite.

Guidelines
----------
* No internet access in any test.
* The streaming backend and the search API are faked at their contracts.
* Files are only ever written below ``tmp_path``.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from tri_spotify.models.config import ServiceConfig
from tri_spotify.models.formats import FormatLabel
from tri_spotify.models.track import TrackReference

TRACK_ID = "4uLU6hMCjMI75M1A2tKUQC"
TRACK_URL = f"https://open.spotify.com/track/{TRACK_ID}"


class TrackingStream(io.BytesIO):
    """A BytesIO that remembers whether it was read to the end."""

    def __init__(self, payload: bytes):
        super().__init__(payload)
        self.drained = False

    def read(self, size: int | None = -1) -> bytes:
        chunk = super().read(size)
        if not chunk:
            self.drained = True
        return chunk


class BrokenStream:
    """A stream whose decryption fails on the first read."""

    def read(self, size: int = -1) -> bytes:
        raise OSError("decrypt failed")


def make_variants(*labels: FormatLabel) -> dict[FormatLabel, TrackingStream]:
    return {label: TrackingStream(f"audio:{label.value}".encode()) for label in labels}


class FakeBackend:
    """
    A VariantSource whose answer is computed per call, so one backend can
    serve well-behaved and misbehaving tracks side by side.
    """

    def __init__(self, responder: Callable[[TrackReference, str], Any]):
        self.responder = responder
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def load_variants(self, track: TrackReference, token: str) -> Any:
        self.calls.append((track.track_id, token))
        result = self.responder(track, token)
        if asyncio.iscoroutine(result):
            return await result
        return result

    async def close(self) -> None:
        self.closed = True


async def hang_forever(*_args: Any) -> None:
    await asyncio.Event().wait()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def make_config(cache_dir: Path) -> Callable[..., ServiceConfig]:
    def _make(**overrides: Any) -> ServiceConfig:
        values: dict[str, Any] = {
            "cache_dir": cache_dir,
            "api_base_url": "http://127.0.0.1:9",
            "request_timeout": 5.0,
            "max_workers": 4,
        }
        values.update(overrides)
        return ServiceConfig(**values)

    return _make


@pytest.fixture
def payload() -> dict[str, str]:
    return {"url": TRACK_URL, "title": "", "hash": "abc123", "token": "tok-123"}
