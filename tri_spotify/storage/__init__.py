"""
Storage Layer.

This package handles configuration loading and the content-addressed
artifact cache on local disk.
"""

from .artifacts import ArtifactStore
from .config_manager import ConfigManager

__all__ = ["ArtifactStore", "ConfigManager"]
