"""Tests for the persistence worker and the artifact store layout."""

from __future__ import annotations

import asyncio
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from conftest import BrokenStream, TrackingStream
from tri_spotify.exceptions import PersistenceError
from tri_spotify.media.writer import ArtifactWriter, drain_source
from tri_spotify.models.formats import FormatLabel
from tri_spotify.models.track import Tier, TierAssignment
from tri_spotify.storage.artifacts import ArtifactStore


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def writer(cache_dir: Path, executor: ThreadPoolExecutor) -> ArtifactWriter:
    return ArtifactWriter(ArtifactStore(cache_dir), executor)


def _assignment(tier: Tier, fmt: FormatLabel, payload: bytes) -> TierAssignment:
    return TierAssignment(tier, fmt, TrackingStream(payload))


class TestArtifactStore:
    def test_layout(self, cache_dir: Path) -> None:
        store = ArtifactStore(cache_dir)
        path = store.artifact_path("abc", "best.flac")
        assert path == (cache_dir / "abc" / "spotify" / "best.flac").resolve()

    def test_hash_cannot_escape_the_root(self, cache_dir: Path) -> None:
        with pytest.raises(ValueError, match="escapes"):
            ArtifactStore(cache_dir).track_dir("../outside")

    def test_listing_missing_hash_is_empty(self, cache_dir: Path) -> None:
        assert ArtifactStore(cache_dir).list_artifacts("nothing") == []

    def test_listing_is_sorted(self, cache_dir: Path) -> None:
        store = ArtifactStore(cache_dir)
        directory = store.track_dir("h")
        directory.mkdir(parents=True)
        for name in ("medium.mp3", "best.flac", "low.aac"):
            (directory / name).write_bytes(b"x")

        assert [p.name for p in store.list_artifacts("h")] == [
            "best.flac",
            "low.aac",
            "medium.mp3",
        ]


class TestDrainSource:
    def test_reads_everything_and_closes(self) -> None:
        stream = TrackingStream(b"a" * 5000)
        assert drain_source(stream, chunk_size=1024) == b"a" * 5000
        assert stream.closed

    def test_empty_stream(self) -> None:
        assert drain_source(TrackingStream(b"")) == b""


class TestArtifactWriter:
    def test_writes_tier_file(self, writer: ArtifactWriter, cache_dir: Path) -> None:
        assignment = _assignment(Tier.BEST, FormatLabel.FLAC_FLAC, b"flac-bytes")
        path, size = asyncio.run(writer.persist(assignment, "abc"))

        assert path.name == "best.flac"
        assert path.parent == (cache_dir / "abc" / "spotify").resolve()
        assert path.read_bytes() == b"flac-bytes"
        assert size == len(b"flac-bytes")

    def test_no_partial_file_is_left_behind(self, writer: ArtifactWriter) -> None:
        assignment = _assignment(Tier.LOW, FormatLabel.OGG_VORBIS_96, b"ogg")
        path, _ = asyncio.run(writer.persist(assignment, "abc"))

        assert sorted(p.name for p in path.parent.iterdir()) == ["low.ogg"]

    def test_second_write_overwrites(self, writer: ArtifactWriter) -> None:
        first = _assignment(Tier.MEDIUM, FormatLabel.MP3_160, b"first")
        second = _assignment(Tier.MEDIUM, FormatLabel.MP3_160_ENC, b"second")

        path1, _ = asyncio.run(writer.persist(first, "same"))
        path2, _ = asyncio.run(writer.persist(second, "same"))

        assert path1 == path2
        assert path2.read_bytes() == b"second"

    def test_write_does_not_require_an_earlier_one(
        self, writer: ArtifactWriter, cache_dir: Path
    ) -> None:
        # The target directory exists already but holds no file
        (cache_dir / "fresh" / "spotify").mkdir(parents=True)
        path, _ = asyncio.run(
            writer.persist(_assignment(Tier.BEST, FormatLabel.MP3_320, b"x"), "fresh")
        )
        assert path.read_bytes() == b"x"

    def test_unwritable_cache_raises_persistence_error(
        self, tmp_path: Path, executor: ThreadPoolExecutor
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("occupied")
        writer = ArtifactWriter(ArtifactStore(blocker), executor)

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(
                writer.persist(_assignment(Tier.BEST, FormatLabel.MP3_320, b"x"), "h")
            )
        assert exc_info.value.tier == "best"
        assert "could not write" in exc_info.value.detail

    def test_unreadable_stream_raises_persistence_error(
        self, writer: ArtifactWriter
    ) -> None:
        assignment = TierAssignment(Tier.LOW, FormatLabel.MP3_96, BrokenStream())
        with pytest.raises(PersistenceError, match="could not read stream"):
            asyncio.run(writer.persist(assignment, "h"))

    def test_concurrent_writes_to_one_tier_both_succeed(
        self, writer: ArtifactWriter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Hold both writers just before the rename so their writes overlap
        barrier = threading.Barrier(2, timeout=5)
        real_replace = os.replace

        def replace_after_both_wrote(src, dst):
            barrier.wait()
            return real_replace(src, dst)

        monkeypatch.setattr(os, "replace", replace_after_both_wrote)

        first = _assignment(Tier.BEST, FormatLabel.MP3_320, b"first-payload")
        second = _assignment(Tier.BEST, FormatLabel.MP3_320, b"second")

        async def _both():
            return await asyncio.gather(
                writer.persist(first, "same"), writer.persist(second, "same")
            )

        (path1, size1), (path2, size2) = asyncio.run(_both())

        assert path1 == path2
        assert (size1, size2) == (len(b"first-payload"), len(b"second"))
        assert path1.read_bytes() in (b"first-payload", b"second")
        assert [p.name for p in path1.parent.iterdir()] == ["best.mp3"]
