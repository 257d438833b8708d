"""
Transcode domain.

Wraps the external ffmpeg process that turns a source file into the fixed
128 kbps MP3 stream sent to the server.
"""

from .exceptions import TranscoderUnavailableError
from .pipeline import (
    TARGET_BITRATE,
    TARGET_CODEC,
    TARGET_FORMAT,
    PipelineResult,
    TranscodePipeline,
    build_ffmpeg_command,
    check_ffmpeg_available,
)

__all__ = [
    "TARGET_BITRATE",
    "TARGET_CODEC",
    "TARGET_FORMAT",
    "PipelineResult",
    "TranscodePipeline",
    "TranscoderUnavailableError",
    "build_ffmpeg_command",
    "check_ffmpeg_available",
]
