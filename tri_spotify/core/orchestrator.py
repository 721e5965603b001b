"""
Runs one download request end to end: resolve, fetch, select, persist.

The whole span is bounded by a wall-clock timeout and wrapped in a
containment boundary, so a hung or misbehaving backend only ever fails the
request that hit it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from rich.markup import escape

from tri_spotify.api.backend import VariantFetcher
from tri_spotify.core.resolver import IdentifierResolver
from tri_spotify.core.selector import release_unclaimed, select_tiers
from tri_spotify.exceptions import (
    PersistenceError,
    SelectionExhaustedError,
    TriSpotifyError,
)
from tri_spotify.media.writer import ArtifactWriter
from tri_spotify.models.request import DownloadRequest, DownloadResponse
from tri_spotify.models.stats import ServiceStats
from tri_spotify.models.track import (
    DEFAULT_TIER_POLICIES,
    Tier,
    TierAssignment,
    TierPolicy,
    TrackReference,
)
from tri_spotify.utils.structured_logger import RequestEventLogger

log = logging.getLogger(__name__)


class RequestState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    SELECTING_PERSISTING = "selecting_persisting"
    COMPLETED_OK = "completed_ok"
    COMPLETED_ERR = "completed_err"
    TIMED_OUT = "timed_out"


class Outcome(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class DownloadResult:
    """The terminal state of one request."""

    state: RequestState = RequestState.IDLE
    outcome: Outcome = Outcome.FAILED
    error: Optional[str] = None
    track: Optional[TrackReference] = None
    saved: dict[Tier, str] = field(default_factory=dict)
    failed: dict[Tier, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.OK, Outcome.PARTIAL)

    def to_response(self, verbose_errors: bool = True) -> DownloadResponse:
        """
        Builds the JSON response. With verbose errors off, the body carries
        only the ok flag.
        """
        if not verbose_errors:
            return DownloadResponse(ok=self.ok)

        error = self.error
        if self.outcome is Outcome.PARTIAL:
            error = "; ".join(f"{t.value}: {e}" for t, e in self.failed.items())
        return DownloadResponse(
            ok=self.ok,
            error=error,
            outcome=self.outcome.value,
            saved=[t.value for t in self.saved] if self.saved else None,
            failed=[t.value for t in self.failed] if self.failed else None,
        )


class RequestOrchestrator:
    """Coordinates the resolver, fetcher, selector and writer for one request."""

    def __init__(
        self,
        resolver: IdentifierResolver,
        fetcher: VariantFetcher,
        writer: ArtifactWriter,
        stats: ServiceStats,
        events: RequestEventLogger,
        timeout: float = 300.0,
        policies: tuple[TierPolicy, ...] = DEFAULT_TIER_POLICIES,
    ):
        self.resolver = resolver
        self.fetcher = fetcher
        self.writer = writer
        self.stats = stats
        self.events = events
        self.timeout = timeout
        self.policies = policies

    async def handle(self, request: DownloadRequest) -> DownloadResult:
        """
        Executes a request and always returns a result; failures are reported
        in it rather than raised.
        """
        result = DownloadResult()
        start_time = time.monotonic()
        self.events.request_started(request.hash, request.url, request.title)

        try:
            await asyncio.wait_for(self._run(request, result), timeout=self.timeout)
        except asyncio.TimeoutError:
            result.state = RequestState.TIMED_OUT
            result.outcome = Outcome.TIMED_OUT
            result.error = f"timeout: request exceeded {self.timeout:g}s"
            log.error(
                f"[red]✗ Timed out[/red] while {escape(self._describe(result))} "
                f"(hash {escape(request.hash)})"
            )
        except TriSpotifyError as e:
            self._fail(result, str(e))
            log.error(f"[red]✗ Failed:[/red] {escape(str(e))} (hash {escape(request.hash)})")
        except Exception as e:
            self._fail(result, f"internal error: {type(e).__name__}: {e}")
            log.error(
                f"[red]✗ Unexpected error[/red] while {escape(self._describe(result))}: "
                f"{escape(repr(e))}",
                exc_info=True,
            )

        await self.stats.record_outcome(result.outcome.value)
        self.events.request_completed(
            request.hash,
            result.outcome.value,
            time.monotonic() - start_time,
            [t.value for t in result.saved],
            result.error,
        )
        return result

    @staticmethod
    def _fail(result: DownloadResult, message: str) -> None:
        result.state = RequestState.COMPLETED_ERR
        result.outcome = Outcome.FAILED
        result.error = message

    @staticmethod
    def _describe(result: DownloadResult) -> str:
        target = result.track.uri if result.track else "request"
        return f"{result.state.value.replace('_', ' ')} {target}"

    async def _run(self, request: DownloadRequest, result: DownloadResult) -> None:
        result.state = RequestState.RESOLVING
        result.track = await self.resolver.resolve(
            request.url, request.title, request.token
        )

        result.state = RequestState.FETCHING
        variants = await self.fetcher.fetch(result.track, request.token)

        result.state = RequestState.SELECTING_PERSISTING
        assignments = select_tiers(variants, self.policies)
        if variants:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                self.writer.executor, release_unclaimed, variants
            )
        if not assignments:
            raise SelectionExhaustedError("Track can't be saved: no files available")

        outcomes = await asyncio.gather(
            *(self._persist(a, request.hash) for a in assignments),
            return_exceptions=True,
        )
        for assignment, outcome in zip(assignments, outcomes):
            if isinstance(outcome, BaseException):
                result.failed[assignment.tier] = (
                    outcome.detail
                    if isinstance(outcome, PersistenceError)
                    else f"{type(outcome).__name__}: {outcome}"
                )
            else:
                result.saved[assignment.tier] = assignment.format.value

        if not result.saved:
            raise PersistenceError("Track can't be saved: every tier failed to persist")

        result.state = RequestState.COMPLETED_OK
        result.outcome = Outcome.PARTIAL if result.failed else Outcome.OK

    async def _persist(self, assignment: TierAssignment, content_hash: str) -> int:
        """Writes one tier; failures are logged here and re-raised to the gather."""
        tier = assignment.tier.value
        try:
            _, size = await self.writer.persist(assignment, content_hash)
        except PersistenceError as e:
            log.warning(f"[yellow]⚠ Could not save {tier}:[/yellow] {escape(str(e))}")
            await self.stats.record_tier(saved=False)
            self.events.tier_failed(content_hash, tier, str(e))
            raise
        except Exception as e:
            log.error(
                f"[red]✗ Unexpected error saving {tier}:[/red] {escape(repr(e))}",
                exc_info=True,
            )
            await self.stats.record_tier(saved=False)
            self.events.tier_failed(content_hash, tier, repr(e))
            raise

        await self.stats.record_tier(saved=True, size_bytes=size)
        self.events.tier_saved(content_hash, tier, assignment.format.value, size)
        return size
