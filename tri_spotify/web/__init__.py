"""
HTTP Ingress Layer.

This package exposes the orchestrator through a single aiohttp endpoint.
"""

from .server import create_app

__all__ = ["create_app"]
