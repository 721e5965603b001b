"""
External API Layer.

This package handles communication with the collaborators outside the
service: the Spotify Web API search endpoint and the streaming backend.
"""

from .backend import VariantFetcher, VariantSource, load_backend
from .search import SpotifySearchClient

__all__ = ["SpotifySearchClient", "VariantFetcher", "VariantSource", "load_backend"]
