"""
Value objects passed between the resolver, selector and persistence worker.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .formats import BEST_FORMATS, LOW_FORMATS, MEDIUM_FORMATS, FormatLabel

# Base62 ids as used in open.spotify.com links and spotify: URIs
_TRACK_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{1,64}$")


class ByteSource(Protocol):
    """A single-consumption readable stream of decrypted audio bytes."""

    def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class TrackReference:
    """A canonical track identifier plus its item kind."""

    track_id: str
    kind: str = "track"

    def __post_init__(self):
        if self.kind != "track":
            raise ValueError(f"Only tracks can be stored, got item kind '{self.kind}'.")
        if not _TRACK_ID_PATTERN.match(self.track_id):
            raise ValueError(f"Invalid track id: {self.track_id!r}")

    @property
    def uri(self) -> str:
        return f"spotify:{self.kind}:{self.track_id}"


class Tier(str, Enum):
    """Target output qualities, in selection order."""

    BEST = "best"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class TierPolicy:
    """
    A tier together with its scan sequence: its own primary list first, then
    the fallback lists it may borrow from.
    """

    tier: Tier
    preferences: tuple[tuple[FormatLabel, ...], ...]

    def scan_order(self):
        """Yields every format label of the preference lists in priority order."""
        for group in self.preferences:
            yield from group


DEFAULT_TIER_POLICIES = (
    TierPolicy(Tier.BEST, (BEST_FORMATS, MEDIUM_FORMATS, LOW_FORMATS)),
    TierPolicy(Tier.MEDIUM, (MEDIUM_FORMATS, LOW_FORMATS, BEST_FORMATS)),
    TierPolicy(Tier.LOW, (LOW_FORMATS, MEDIUM_FORMATS, BEST_FORMATS)),
)


@dataclass
class TierAssignment:
    """A tier that has claimed one format and now owns its byte source."""

    tier: Tier
    format: FormatLabel
    source: ByteSource

    @property
    def filename(self) -> str:
        return f"{self.tier.value}.{self.format.extension}"
