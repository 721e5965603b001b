"""
Utilities for handling file paths and Spotify link parsing.
"""

import re
from pathlib import Path
from typing import Optional

_TRACK_LINK_PATTERN = re.compile(
    r"(?:spotify:track:|https://open\.spotify\.com/track/)(?P<id>[a-zA-Z0-9]+)"
)


def parse_spotify_track_url(url: str) -> Optional[str]:
    """
    Extracts the track id from the first 'spotify:track:<id>' URI or
    'https://open.spotify.com/track/<id>' link found in the string.
    """
    match = _TRACK_LINK_PATTERN.search(url)
    if match:
        return match.group("id")
    return None


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)
