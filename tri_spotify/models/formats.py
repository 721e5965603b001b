"""
Audio format labels reported by the streaming backend, plus the file
extension each one is stored under.
"""

from enum import Enum


class FormatLabel(str, Enum):
    """A single codec/bitrate encoding the backend can serve for a track."""

    FLAC_FLAC = "FLAC_FLAC"
    FLAC_FLAC_24BIT = "FLAC_FLAC_24BIT"
    MP3_96 = "MP3_96"
    MP3_160 = "MP3_160"
    MP3_160_ENC = "MP3_160_ENC"
    MP3_256 = "MP3_256"
    MP3_320 = "MP3_320"
    AAC_24 = "AAC_24"
    AAC_48 = "AAC_48"
    AAC_160 = "AAC_160"
    AAC_320 = "AAC_320"
    XHE_AAC_24 = "XHE_AAC_24"
    XHE_AAC_16 = "XHE_AAC_16"
    XHE_AAC_12 = "XHE_AAC_12"
    OGG_VORBIS_96 = "OGG_VORBIS_96"
    OGG_VORBIS_160 = "OGG_VORBIS_160"
    OGG_VORBIS_320 = "OGG_VORBIS_320"
    MP4_128 = "MP4_128"
    OTHER5 = "OTHER5"

    @property
    def extension(self) -> str:
        return FORMAT_EXTENSIONS[self]

    @classmethod
    def parse(cls, value: "FormatLabel | str") -> "FormatLabel":
        """Accepts a member or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.strip().upper())
        raise ValueError(f"Unsupported format label: {value!r}")


FORMAT_EXTENSIONS = {
    FormatLabel.FLAC_FLAC: "flac",
    FormatLabel.FLAC_FLAC_24BIT: "flac",
    FormatLabel.MP3_96: "mp3",
    FormatLabel.MP3_160: "mp3",
    FormatLabel.MP3_160_ENC: "mp3",
    FormatLabel.MP3_256: "mp3",
    FormatLabel.MP3_320: "mp3",
    FormatLabel.AAC_24: "aac",
    FormatLabel.AAC_48: "aac",
    FormatLabel.AAC_160: "aac",
    FormatLabel.AAC_320: "aac",
    FormatLabel.XHE_AAC_24: "aac",
    FormatLabel.XHE_AAC_16: "aac",
    FormatLabel.XHE_AAC_12: "aac",
    FormatLabel.OGG_VORBIS_96: "ogg",
    FormatLabel.OGG_VORBIS_160: "ogg",
    FormatLabel.OGG_VORBIS_320: "ogg",
    FormatLabel.MP4_128: "mp4",
    FormatLabel.OTHER5: "dat",
}


# Preference lists, highest priority first
BEST_FORMATS = (
    FormatLabel.FLAC_FLAC_24BIT,
    FormatLabel.FLAC_FLAC,
    FormatLabel.MP3_320,
    FormatLabel.AAC_320,
    FormatLabel.MP3_256,
    FormatLabel.OGG_VORBIS_320,
)

MEDIUM_FORMATS = (
    FormatLabel.MP3_160,
    FormatLabel.MP3_160_ENC,
    FormatLabel.AAC_48,
    FormatLabel.AAC_24,
    FormatLabel.XHE_AAC_24,
    FormatLabel.OGG_VORBIS_320,
    FormatLabel.MP4_128,
)

LOW_FORMATS = (
    FormatLabel.AAC_24,
    FormatLabel.XHE_AAC_24,
    FormatLabel.XHE_AAC_16,
    FormatLabel.XHE_AAC_12,
    FormatLabel.OGG_VORBIS_160,
    FormatLabel.MP3_96,
    FormatLabel.OGG_VORBIS_96,
)
