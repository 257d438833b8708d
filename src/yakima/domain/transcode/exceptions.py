"""Transcoder exceptions."""


class TranscoderUnavailableError(Exception):
    """Raised when the ffmpeg executable cannot be found or started."""

    def __init__(self, ffmpeg_bin: str, reason: str = ""):
        self.ffmpeg_bin = ffmpeg_bin
        message = f"Transcoder '{ffmpeg_bin}' is not available"
        if reason:
            message += f": {reason}"
        super().__init__(message)
