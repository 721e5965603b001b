"""
Layout of the content-addressed artifact cache:

    <cache_dir>/<hash>/spotify/<tier>.<ext>

There is no manifest or index; a directory listing is the only state.
"""

import logging
from pathlib import Path

log = logging.getLogger(__name__)

SOURCE_DIR_NAME = "spotify"


class ArtifactStore:
    """Resolves and lists artifact paths below a cache root."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    def track_dir(self, content_hash: str) -> Path:
        """The directory holding every tier stored under a content hash."""
        path = (self.cache_dir / content_hash / SOURCE_DIR_NAME).resolve()
        if self.cache_dir.resolve() not in path.parents:
            raise ValueError(f"Hash '{content_hash}' escapes the cache directory.")
        return path

    def artifact_path(self, content_hash: str, filename: str) -> Path:
        return self.track_dir(content_hash) / filename

    def list_artifacts(self, content_hash: str) -> list[Path]:
        """Returns the stored tier files for a hash, sorted by name."""
        directory = self.track_dir(content_hash)
        if not directory.is_dir():
            return []
        try:
            return sorted(p for p in directory.iterdir() if p.is_file())
        except OSError as e:
            log.warning(f"Could not list artifacts in '{directory}': {e}")
            return []
