"""Tests for the size and uptime formatters."""

from __future__ import annotations

import pytest

from tri_spotify.utils.formatting import format_size, format_uptime


@pytest.mark.parametrize(
    ("num_bytes", "expected"),
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KiB"),
        (3 * 1024 * 1024 + 512 * 1024, "3.5 MiB"),
        (5 * 1024**4, "5120.0 GiB"),
    ],
)
def test_format_size(num_bytes: int, expected: str) -> None:
    assert format_size(num_bytes) == expected


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "00:00:00"),
        (59.9, "00:00:59"),
        (3 * 3600 + 7 * 60 + 5, "03:07:05"),
        (2 * 86400 + 61, "2d 00:01:01"),
    ],
)
def test_format_uptime(seconds: float, expected: str) -> None:
    assert format_uptime(seconds) == expected
