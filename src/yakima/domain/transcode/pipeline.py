"""
Per-track ffmpeg transcode pipeline.

Spawns ffmpeg for one source file, re-encoding it to the fixed streaming
format, and pumps its stdout into a byte sink until the process exits.
"""

import subprocess
import tempfile
from typing import IO, Callable, Literal, NamedTuple, Optional

from loguru import logger

from yakima.core.config import TranscoderConfig

# Fixed streaming target: constant 128 kbps MP3
TARGET_FORMAT = "mp3"
TARGET_CODEC = "mp3"
TARGET_BITRATE = "128k"

# Seconds to wait for ffmpeg to exit after SIGTERM before killing it
TERMINATE_TIMEOUT = 2.0

PipelineOutcome = Literal["success", "process_error", "killed"]


class PipelineResult(NamedTuple):
    """How a transcode pipeline ended."""

    outcome: PipelineOutcome
    returncode: Optional[int]  # None when ffmpeg could not be started
    bytes_written: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome == "success"

    @property
    def signal(self) -> Optional[int]:
        """Signal number that killed the process, if any."""
        if self.outcome == "killed" and self.returncode is not None:
            return -self.returncode
        return None

    @classmethod
    def from_returncode(cls, returncode: int, bytes_written: int) -> "PipelineResult":
        if returncode == 0:
            return cls("success", returncode, bytes_written)
        if returncode < 0:
            return cls("killed", returncode, bytes_written)
        return cls("process_error", returncode, bytes_written)


def build_ffmpeg_command(source_path: str, ffmpeg_bin: str = "ffmpeg") -> list[str]:
    """Build the ffmpeg invocation for one track.

    Reads the input at its native rate (-re) so the server receives audio in
    real time, and writes the encoded stream to stdout.
    """
    return [
        ffmpeg_bin,
        "-re",
        "-i",
        source_path,
        "-f",
        TARGET_FORMAT,
        "-c:a",
        TARGET_CODEC,
        "-b:a",
        TARGET_BITRATE,
        "-",
    ]


def check_ffmpeg_available(ffmpeg_bin: str = "ffmpeg") -> bool:
    """Check if ffmpeg is available on the system."""
    try:
        result = subprocess.run(
            [ffmpeg_bin, "-version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


class TranscodePipeline:
    """One ffmpeg process plus its output stream.

    ``run`` blocks until ffmpeg exits. If the sink raises (connection lost,
    shutdown requested) the process is terminated before the error
    propagates, so no ffmpeg is left running.
    """

    def __init__(self, source_path: str, config: TranscoderConfig):
        self.source_path = source_path
        self.read_size = config.read_size
        self.command = build_ffmpeg_command(source_path, config.ffmpeg_bin)
        self.process: Optional[subprocess.Popen] = None

    def run(self, sink: Callable[[bytes], int]) -> PipelineResult:
        """Stream ffmpeg's output into ``sink`` until the process exits.

        Args:
            sink: Called with each block of encoded audio, in order

        Returns:
            PipelineResult describing how ffmpeg exited
        """
        with tempfile.TemporaryFile() as stderr_file:
            try:
                self.process = subprocess.Popen(
                    self.command,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                )
            except OSError as e:
                logger.error(f"Failed to start transcoder for {self.source_path}: {e}")
                return PipelineResult("process_error", None, 0)

            logger.debug(f"Transcoder started (PID: {self.process.pid})")
            bytes_written = self._pump(sink)
            returncode = self.process.wait()

            result = PipelineResult.from_returncode(returncode, bytes_written)
            if not result.ok:
                tail = _read_tail(stderr_file)
                if tail:
                    logger.warning(f"Transcoder stderr for {self.source_path}:\n{tail}")
            return result

    def _pump(self, sink: Callable[[bytes], int]) -> int:
        assert self.process is not None and self.process.stdout is not None
        stdout = self.process.stdout
        bytes_written = 0
        try:
            while True:
                data = stdout.read1(self.read_size)
                if not data:
                    break
                bytes_written += sink(data)
        except BaseException:
            self.terminate()
            raise
        finally:
            stdout.close()
        return bytes_written

    def terminate(self) -> None:
        """Stop the ffmpeg process if it is still running."""
        if self.process is None or self.process.poll() is not None:
            return

        logger.debug(f"Terminating transcoder (PID: {self.process.pid})")
        self.process.terminate()
        try:
            self.process.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()


def _read_tail(stream: IO[bytes], lines: int = 5) -> str:
    stream.seek(0)
    text = stream.read().decode("utf-8", errors="replace").strip()
    return "\n".join(text.splitlines()[-lines:])
