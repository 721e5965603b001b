"""
Tiered variant selection.

Each tier scans its preference lists in order and claims the first format
that is still available. A claimed format is removed from the variant set so
no other tier can read the same single-use stream.
"""

import logging
from collections.abc import Iterable, MutableMapping
from contextlib import suppress

from tri_spotify.models.formats import FormatLabel
from tri_spotify.models.track import (
    DEFAULT_TIER_POLICIES,
    ByteSource,
    TierAssignment,
    TierPolicy,
)

log = logging.getLogger(__name__)


def select_tiers(
    variants: MutableMapping[FormatLabel, ByteSource],
    policies: Iterable[TierPolicy] = DEFAULT_TIER_POLICIES,
) -> list[TierAssignment]:
    """
    Assigns at most one format to each tier, in policy order.

    The variant set is consumed: every claimed format is popped from it, so
    what is left afterwards are the unclaimed streams.
    """
    used: set[FormatLabel] = set()
    assignments: list[TierAssignment] = []

    for policy in policies:
        assignment = _claim(policy, variants, used)
        if assignment is None:
            log.info(f"No available format found for [bold]{policy.tier.value}[/bold]")
            continue
        log.debug(f"Tier {policy.tier.value} claimed {assignment.format.value}")
        assignments.append(assignment)

    return assignments


def _claim(
    policy: TierPolicy,
    variants: MutableMapping[FormatLabel, ByteSource],
    used: set[FormatLabel],
) -> TierAssignment | None:
    for fmt in policy.scan_order():
        if fmt in used:
            continue
        source = variants.pop(fmt, None)
        if source is not None:
            used.add(fmt)
            return TierAssignment(policy.tier, fmt, source)
    return None


def release_unclaimed(variants: MutableMapping[FormatLabel, ByteSource]) -> int:
    """Closes and drops every stream no tier claimed. Returns how many."""
    count = len(variants)
    for source in variants.values():
        close = getattr(source, "close", None)
        if callable(close):
            with suppress(OSError):
                close()
    variants.clear()
    return count
