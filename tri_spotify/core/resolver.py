"""
Turns the url/title fields of a request into a canonical track reference.
"""

import logging

from tri_spotify.api.search import SpotifySearchClient
from tri_spotify.exceptions import ResolutionError
from tri_spotify.models.track import TrackReference
from tri_spotify.utils.path import parse_spotify_track_url

log = logging.getLogger(__name__)


class IdentifierResolver:
    """Resolves a link directly, or a title through the search API."""

    def __init__(self, search_client: SpotifySearchClient):
        self.search_client = search_client

    async def resolve(self, url: str, title: str, token: str) -> TrackReference:
        """
        Raises:
            ResolutionError: If no track id can be found or it is malformed.
        """
        if url:
            track_id = parse_spotify_track_url(url)
            if track_id is None:
                raise ResolutionError(f"No Spotify track link found in '{url}'.")
        else:
            if not title:
                raise ResolutionError("Neither a link nor a title was provided.")
            track_id = await self.search_client.search_track_id(title, token)

        try:
            track = TrackReference(track_id)
        except ValueError as e:
            raise ResolutionError(f"Invalid Spotify id: {e}") from e

        log.debug(f"Resolved request to {track.uri}")
        return track
