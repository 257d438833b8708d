"""
Music library domain.

Track model, metadata probing and source directory listing.
"""

from .exceptions import DirectoryError, LibraryError, MetadataError
from .metadata import format_duration, probe_track, read_audio_file
from .models import AudioQuality, Track
from .scanner import is_supported_format, list_directory

__all__ = [
    "AudioQuality",
    "DirectoryError",
    "LibraryError",
    "MetadataError",
    "Track",
    "format_duration",
    "is_supported_format",
    "list_directory",
    "probe_track",
    "read_audio_file",
]
