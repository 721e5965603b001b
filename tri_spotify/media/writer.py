"""
Persists claimed variants into the artifact cache.

Draining a decrypted stream and writing the file are blocking operations, so
both run on the service's dedicated thread pool, never on the event loop.
"""

import asyncio
import logging
import os
import uuid
from concurrent.futures import Executor
from contextlib import suppress
from pathlib import Path

import aiofiles

from tri_spotify.exceptions import PersistenceError
from tri_spotify.models.track import ByteSource, TierAssignment
from tri_spotify.storage.artifacts import ArtifactStore
from tri_spotify.utils.formatting import format_size
from tri_spotify.utils.path import create_dir

log = logging.getLogger(__name__)


def drain_source(source: ByteSource, chunk_size: int = 1048576) -> bytes:
    """Reads a stream to its end, then closes it if it can be closed."""
    buffer = bytearray()
    try:
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            buffer.extend(chunk)
    finally:
        close = getattr(source, "close", None)
        if callable(close):
            with suppress(OSError):
                close()
    return bytes(buffer)


class ArtifactWriter:
    """Writes one tier assignment to ``<cache>/<hash>/spotify/<tier>.<ext>``."""

    CHUNK_SIZE = 1048576  # 1 MB

    def __init__(self, store: ArtifactStore, executor: Executor):
        self.store = store
        self.executor = executor

    async def _run_blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, func, *args)

    async def persist(self, assignment: TierAssignment, content_hash: str) -> tuple[Path, int]:
        """
        Drains the assignment's stream into memory and writes it, overwriting
        any earlier artifact for the same tier and hash.

        Returns:
            The final path and the number of bytes written.

        Raises:
            PersistenceError: If the stream cannot be read or the file written.
        """
        tier = assignment.tier.value
        try:
            final_path = self.store.artifact_path(content_hash, assignment.filename)
        except ValueError as e:
            raise PersistenceError(str(e), tier) from e

        try:
            buffer = await self._run_blocking(
                drain_source, assignment.source, self.CHUNK_SIZE
            )
        except OSError as e:
            raise PersistenceError(f"could not read stream: {e}", tier) from e

        # Concurrent requests may write the same hash and tier
        temp_name = f".{final_path.name}.{uuid.uuid4().hex}.part"
        temp_path = final_path.with_name(temp_name)
        try:
            await self._run_blocking(create_dir, final_path.parent)
            async with aiofiles.open(temp_path, "wb", executor=self.executor) as f:
                await f.write(buffer)
            await self._run_blocking(os.replace, temp_path, final_path)
        except OSError as e:
            raise PersistenceError(f"could not write '{final_path}': {e}", tier) from e
        finally:
            if await self._run_blocking(temp_path.exists):
                with suppress(OSError):
                    await self._run_blocking(temp_path.unlink)

        log.info(
            f"Saved [bold]{tier}[/bold] as {assignment.format.value} -> "
            f"[dim]{final_path}[/dim] ({format_size(len(buffer))})"
        )
        return final_path, len(buffer)
