"""
Media Processing Layer.

This package is responsible for draining decrypted audio streams and
writing them into the artifact cache.
"""

from .writer import ArtifactWriter

__all__ = ["ArtifactWriter"]
