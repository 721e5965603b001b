"""Tests for tiered variant selection and the format tables behind it."""

from __future__ import annotations

import random

import pytest

from conftest import TrackingStream, make_variants
from tri_spotify.core.selector import release_unclaimed, select_tiers
from tri_spotify.models.formats import BEST_FORMATS, FormatLabel
from tri_spotify.models.track import Tier, TierAssignment, TierPolicy


def _by_tier(assignments: list[TierAssignment]) -> dict[Tier, FormatLabel]:
    return {a.tier: a.format for a in assignments}


# ---------------------------------------------------------------------------
# Format labels
# ---------------------------------------------------------------------------

class TestFormatLabel:
    @pytest.mark.parametrize(
        ("label", "ext"),
        [
            (FormatLabel.FLAC_FLAC_24BIT, "flac"),
            (FormatLabel.FLAC_FLAC, "flac"),
            (FormatLabel.MP3_160_ENC, "mp3"),
            (FormatLabel.XHE_AAC_12, "aac"),
            (FormatLabel.AAC_320, "aac"),
            (FormatLabel.OGG_VORBIS_96, "ogg"),
            (FormatLabel.MP4_128, "mp4"),
            (FormatLabel.OTHER5, "dat"),
        ],
    )
    def test_extension(self, label: FormatLabel, ext: str) -> None:
        assert label.extension == ext

    def test_every_label_has_an_extension(self) -> None:
        assert all(label.extension for label in FormatLabel)

    def test_parse_accepts_names_case_insensitively(self) -> None:
        assert FormatLabel.parse("mp3_320") is FormatLabel.MP3_320
        assert FormatLabel.parse(FormatLabel.AAC_24) is FormatLabel.AAC_24

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            FormatLabel.parse("WAV_1411")
        with pytest.raises(ValueError):
            FormatLabel.parse(42)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelectTiers:
    def test_full_catalogue_fills_every_tier(self) -> None:
        variants = make_variants(*FormatLabel)
        result = _by_tier(select_tiers(variants))

        assert result == {
            Tier.BEST: FormatLabel.FLAC_FLAC_24BIT,
            Tier.MEDIUM: FormatLabel.MP3_160,
            Tier.LOW: FormatLabel.AAC_24,
        }

    def test_claimed_formats_are_removed_from_the_set(self) -> None:
        variants = make_variants(
            FormatLabel.FLAC_FLAC, FormatLabel.MP3_160, FormatLabel.OGG_VORBIS_96
        )
        select_tiers(variants)
        assert variants == {}

    def test_assignment_owns_the_claimed_stream(self) -> None:
        variants = make_variants(FormatLabel.MP3_320)
        stream = variants[FormatLabel.MP3_320]

        (assignment,) = select_tiers(variants)

        assert assignment.source is stream
        assert assignment.filename == "best.mp3"

    def test_best_prefers_highest_priority_present(self) -> None:
        variants = make_variants(
            FormatLabel.MP3_256, FormatLabel.FLAC_FLAC, FormatLabel.MP3_320
        )
        result = _by_tier(select_tiers(variants))

        assert result[Tier.BEST] is FormatLabel.FLAC_FLAC

    def test_single_low_quality_variant_goes_to_best(self) -> None:
        variants = make_variants(FormatLabel.MP3_160)
        assignments = select_tiers(variants)

        assert _by_tier(assignments) == {Tier.BEST: FormatLabel.MP3_160}

    def test_single_vorbis_160_goes_to_best(self) -> None:
        variants = make_variants(FormatLabel.OGG_VORBIS_160)
        assert _by_tier(select_tiers(variants)) == {
            Tier.BEST: FormatLabel.OGG_VORBIS_160
        }

    def test_medium_borrows_from_best_list_when_needed(self) -> None:
        variants = make_variants(FormatLabel.FLAC_FLAC_24BIT, FormatLabel.FLAC_FLAC)
        result = _by_tier(select_tiers(variants))

        assert result == {
            Tier.BEST: FormatLabel.FLAC_FLAC_24BIT,
            Tier.MEDIUM: FormatLabel.FLAC_FLAC,
        }

    def test_shared_format_is_claimed_once(self) -> None:
        # OGG_VORBIS_320 appears in both the best and the medium list
        variants = make_variants(FormatLabel.OGG_VORBIS_320, FormatLabel.OGG_VORBIS_96)
        result = _by_tier(select_tiers(variants))

        assert result == {
            Tier.BEST: FormatLabel.OGG_VORBIS_320,
            Tier.MEDIUM: FormatLabel.OGG_VORBIS_96,
        }

    def test_unlisted_formats_are_never_selected(self) -> None:
        variants = make_variants(FormatLabel.OTHER5, FormatLabel.AAC_160)
        assert select_tiers(variants) == []
        assert set(variants) == {FormatLabel.OTHER5, FormatLabel.AAC_160}

    def test_empty_set_selects_nothing(self) -> None:
        assert select_tiers({}) == []

    def test_custom_policies_are_honoured_in_order(self) -> None:
        policies = (
            TierPolicy(Tier.LOW, ((FormatLabel.MP3_96, FormatLabel.MP3_320),)),
            TierPolicy(Tier.BEST, ((FormatLabel.MP3_96, FormatLabel.MP3_320),)),
        )
        variants = make_variants(FormatLabel.MP3_96, FormatLabel.MP3_320)
        assignments = select_tiers(variants, policies)

        assert [(a.tier, a.format) for a in assignments] == [
            (Tier.LOW, FormatLabel.MP3_96),
            (Tier.BEST, FormatLabel.MP3_320),
        ]


class TestSelectionProperties:
    """Checks the selection invariants over many random variant sets."""

    LISTED = [f for f in FormatLabel if f not in (FormatLabel.OTHER5, FormatLabel.AAC_160)]

    @pytest.fixture
    def samples(self) -> list[list[FormatLabel]]:
        rng = random.Random(1337)
        return [
            rng.sample(list(FormatLabel), rng.randint(0, len(FormatLabel)))
            for _ in range(400)
        ]

    def test_formats_are_pairwise_distinct(self, samples) -> None:
        for labels in samples:
            formats = [a.format for a in select_tiers(make_variants(*labels))]
            assert len(formats) == len(set(formats))

    def test_any_listed_format_yields_an_assignment(self, samples) -> None:
        for labels in samples:
            assignments = select_tiers(make_variants(*labels))
            if any(label in self.LISTED for label in labels):
                assert assignments

    def test_best_never_skips_a_present_primary_format(self, samples) -> None:
        for labels in samples:
            present = [f for f in BEST_FORMATS if f in labels]
            if not present:
                continue
            result = _by_tier(select_tiers(make_variants(*labels)))
            assert result[Tier.BEST] is present[0]

    def test_tiers_are_produced_in_order(self, samples) -> None:
        order = [Tier.BEST, Tier.MEDIUM, Tier.LOW]
        for labels in samples:
            tiers = [a.tier for a in select_tiers(make_variants(*labels))]
            assert tiers == [t for t in order if t in tiers]


class TestReleaseUnclaimed:
    def test_closes_and_clears_leftovers(self) -> None:
        leftover = TrackingStream(b"x")
        variants = {FormatLabel.OTHER5: leftover}

        assert release_unclaimed(variants) == 1
        assert variants == {}
        assert leftover.closed

    def test_tolerates_streams_without_close(self) -> None:
        class NoClose:
            def read(self, size: int = -1) -> bytes:
                return b""

        variants = {FormatLabel.OTHER5: NoClose()}
        assert release_unclaimed(variants) == 1
