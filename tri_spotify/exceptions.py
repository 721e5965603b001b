"""
Defines custom exceptions for the service to allow for more specific error handling.
"""


class TriSpotifyError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(TriSpotifyError):
    """Raised for issues related to configuration loading or validation."""


class InvalidRequestError(TriSpotifyError):
    """Raised when an inbound request body is malformed or unsafe."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status


class ResolutionError(TriSpotifyError):
    """
    Raised when a request cannot be turned into a track reference
    (no recognisable link, invalid identifier, or no search result).
    """


class BackendError(TriSpotifyError):
    """
    Raised when the streaming backend rejects the session, fails over the
    network, or reports no usable variants for a track.
    """


class SelectionExhaustedError(TriSpotifyError):
    """Raised when no tier could claim any of the available formats."""


class PersistenceError(TriSpotifyError):
    """Raised when a selected variant cannot be written to the cache directory."""

    def __init__(self, message: str, tier: str | None = None):
        super().__init__(f"{tier}: {message}" if tier else message)
        self.detail = message
        self.tier = tier
