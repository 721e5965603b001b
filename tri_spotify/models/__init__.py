"""
Data Models Layer.

This package contains the Pydantic models and value objects that define the
core data structures used throughout the service, such as configuration,
format labels, tier assignments and statistics.
"""

from .config import ServiceConfig
from .formats import FormatLabel
from .stats import ServiceStats
from .track import Tier, TierAssignment, TierPolicy, TrackReference

__all__ = [
    "FormatLabel",
    "ServiceConfig",
    "ServiceStats",
    "Tier",
    "TierAssignment",
    "TierPolicy",
    "TrackReference",
]
