"""
Dataclass for tracking service statistics across requests.
"""

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class ServiceStats:
    """Tracks request outcomes and bytes written since the service started."""

    requests_ok: int = 0
    requests_partial: int = 0
    requests_failed: int = 0
    requests_timed_out: int = 0
    tiers_saved: int = 0
    tiers_failed: int = 0
    total_size_written: int = 0
    started_at: float = field(default_factory=time.monotonic)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def total_requests(self) -> int:
        return (
            self.requests_ok
            + self.requests_partial
            + self.requests_failed
            + self.requests_timed_out
        )

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    async def record_tier(self, saved: bool, size_bytes: int = 0) -> None:
        async with self._lock:
            if saved:
                self.tiers_saved += 1
                self.total_size_written += size_bytes
            else:
                self.tiers_failed += 1

    async def record_outcome(self, outcome: str) -> None:
        """Counts one finished request by its outcome value."""
        async with self._lock:
            if outcome == "ok":
                self.requests_ok += 1
            elif outcome == "partial":
                self.requests_partial += 1
            elif outcome == "timed_out":
                self.requests_timed_out += 1
            else:
                self.requests_failed += 1
