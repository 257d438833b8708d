"""
Audio metadata extraction.

Reads duration and quality information from audio files using Mutagen.
The result is advisory: it is logged before streaming and decides whether
a file is playable at all, but never changes how it is transcoded.
"""

from pathlib import Path
from typing import Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from .exceptions import MetadataError
from .models import AudioQuality, Track


def probe_track(local_path: str) -> Track:
    """Extract duration and quality info from an audio file.

    Args:
        local_path: Path to the audio file

    Returns:
        Track describing the file

    Raises:
        MetadataError: If mutagen cannot identify or parse the file
    """
    path = Path(local_path)
    try:
        audio_file = MutagenFile(str(path))
    except (MutagenError, OSError) as e:
        raise MetadataError(str(path), str(e)) from e

    if audio_file is None or getattr(audio_file, "info", None) is None:
        raise MetadataError(str(path), "unrecognized audio format")

    info = audio_file.info

    bitrate = int(getattr(info, "bitrate", 0) or 0) // 1000  # bps -> kbps
    duration = int(getattr(info, "length", 0) or 0)
    sample_rate = int(getattr(info, "sample_rate", 0) or 0)
    channels = getattr(info, "channels", 1)
    channel_mode = "stereo" if channels == 2 else "mono"

    return Track(
        filename=path.name,
        path=str(path.absolute()),
        duration=duration,
        quality=AudioQuality(
            bitrate=bitrate,
            sample_rate=sample_rate,
            channel_mode=channel_mode,
            format=path.suffix.lower().lstrip("."),
        ),
    )


def read_audio_file(local_path: str) -> Optional[Track]:
    """Probe an audio file, returning None instead of raising on failure."""
    try:
        return probe_track(local_path)
    except MetadataError as e:
        logger.warning(str(e))
        return None


def format_duration(seconds: float) -> str:
    """Format duration in seconds to MM:SS format."""
    minutes = int(seconds // 60)
    seconds = int(seconds % 60)
    return f"{minutes}:{seconds:02d}"
