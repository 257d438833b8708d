"""
Music library domain models.

Contains data structures for representing playable tracks.
"""

from typing import NamedTuple


class AudioQuality(NamedTuple):
    """Audio format and quality of a source file as found on disk."""

    bitrate: int  # kbps
    sample_rate: int  # Hz
    channel_mode: str  # 'mono' | 'stereo'
    format: str  # Container extension without the dot, e.g. 'flac'


class Track(NamedTuple):
    """Represents one probed audio file in the source directory.

    Created by the metadata reader once a file was read successfully and
    never modified afterwards.
    """

    filename: str
    path: str  # Absolute path
    duration: int  # in whole seconds
    quality: AudioQuality

    @property
    def duration_minutes(self) -> int:
        return self.duration // 60
