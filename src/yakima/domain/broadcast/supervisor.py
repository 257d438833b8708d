"""
Session supervisor: the streaming main loop.

Builds the playback queue, opens the broadcast session and then plays the
queue one track at a time, piping each transcode pipeline into the session
so the server sees one uninterrupted stream.

States: INIT -> HANDSHAKE -> STREAMING -> DONE, with FAILED reachable from
any state. Only one pipeline writes to the session at a time; track N+1 is
not started until track N's ffmpeg has exited.
"""

import time
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from yakima.core.config import Config, IcecastConfig, LibraryConfig, TranscoderConfig
from yakima.core.output import log
from yakima.domain.library.exceptions import DirectoryError
from yakima.domain.library.metadata import read_audio_file
from yakima.domain.library.models import Track
from yakima.domain.playback.queue import PlaybackQueue, build_playback_queue
from yakima.domain.transcode.pipeline import PipelineResult, TranscodePipeline

from .exceptions import (
    BroadcastError,
    DialError,
    ExitCode,
    HandshakeRejectedError,
    NothingPlayableError,
    ShutdownRequested,
    StreamConnectionError,
)
from .session import BroadcastSession

SessionOpener = Callable[[IcecastConfig], BroadcastSession]
PipelineFactory = Callable[[str, TranscoderConfig], TranscodePipeline]
Probe = Callable[[str], Optional[Track]]
QueueBuilder = Callable[[LibraryConfig], PlaybackQueue]

# Most recent started tracks kept in SessionSupervisor.history
HISTORY_SIZE = 100

# Checked in order; first match wins
_EXIT_CODES: list[tuple[type[Exception], ExitCode]] = [
    (DirectoryError, ExitCode.DIRECTORY_UNREADABLE),
    (DialError, ExitCode.DIAL_FAILED),
    (HandshakeRejectedError, ExitCode.HANDSHAKE_REJECTED),
    (NothingPlayableError, ExitCode.NOTHING_PLAYABLE),
    (BroadcastError, ExitCode.CONNECTION_LOST),
]


class SupervisorState(Enum):
    INIT = "init"
    HANDSHAKE = "handshake"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


def exit_code_for(error: Exception) -> ExitCode:
    """Map a fatal error to the process exit status for its category."""
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    raise TypeError(f"No exit status for {type(error).__name__}")


class SessionSupervisor:
    """Owns the broadcast session and the lifecycle of every pipeline.

    Collaborators are injectable so the loop can be driven with fake
    sessions and pipelines.
    """

    def __init__(
        self,
        config: Config,
        open_session: SessionOpener = BroadcastSession.open,
        pipeline_factory: PipelineFactory = TranscodePipeline,
        probe: Probe = read_audio_file,
        queue_builder: QueueBuilder = build_playback_queue,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.open_session = open_session
        self.pipeline_factory = pipeline_factory
        self.probe = probe
        self.queue_builder = queue_builder
        self.sleep = sleep

        self.state = SupervisorState.INIT
        self.queue: Optional[PlaybackQueue] = None
        self.session: Optional[BroadcastSession] = None
        self.pipeline: Optional[TranscodePipeline] = None
        self.history: deque[Track] = deque(maxlen=HISTORY_SIZE)
        self.error: Optional[Exception] = None
        self.exit_code: int = ExitCode.OK
        self.tracks_streamed = 0
        self.tracks_failed = 0
        self.reconnects_used = 0

    def run(self) -> int:
        """Run until the queue is exhausted, a fatal error or a shutdown signal.

        Returns:
            Process exit status
        """
        try:
            self._build_queue()
            self._open_session()
            self._stream()
            self._transition(SupervisorState.DONE)
        except (DirectoryError, BroadcastError) as e:
            self._fail(e)
        except ShutdownRequested as e:
            log(f"Received signal {e.signum}, stopping stream", "warning")
            self.exit_code = e.exit_code
            self._transition(SupervisorState.DONE)
        except KeyboardInterrupt:
            log("Interrupted, stopping stream", "warning")
            self.exit_code = 130
            self._transition(SupervisorState.DONE)
        finally:
            self.shutdown()

        return self.exit_code

    def shutdown(self) -> None:
        """Stop any running pipeline and close the session."""
        if self.pipeline is not None:
            self.pipeline.terminate()
            self.pipeline = None

        if self.session is not None:
            self.session.close(graceful=self.state is not SupervisorState.FAILED)
            self.session = None

        logger.info(
            f"Supervisor finished in state {self.state.value}: "
            f"{self.tracks_streamed} streamed, {self.tracks_failed} failed"
        )

    def _transition(self, state: SupervisorState) -> None:
        if state is not self.state:
            logger.debug(f"Supervisor state: {self.state.value} -> {state.value}")
            self.state = state

    def _fail(self, error: Exception) -> None:
        self.error = error
        self.exit_code = exit_code_for(error)
        logger.error(str(error))
        self._transition(SupervisorState.FAILED)

    def _build_queue(self) -> None:
        self._transition(SupervisorState.INIT)
        self.queue = self.queue_builder(self.config.library)

        if self.queue.loop and len(self.queue) == 0:
            raise NothingPlayableError(
                f"Nothing to loop over in {self.config.library.directory}"
            )

    def _open_session(self) -> None:
        self._transition(SupervisorState.HANDSHAKE)
        self.session = self.open_session(self.config.icecast)

    def _stream(self) -> None:
        assert self.queue is not None
        self._transition(SupervisorState.STREAMING)

        current_pass = self.queue.passes
        streamed_at_pass_start = self.tracks_streamed

        while True:
            entry = self.queue.advance()
            if entry is None:
                logger.info("Reached end of playback queue")
                return

            if self.queue.passes != current_pass:
                # Fail a full pass that streamed nothing instead of looping on it
                if self.tracks_streamed == streamed_at_pass_start:
                    raise NothingPlayableError(
                        f"No file in {self.config.library.directory} could be streamed"
                    )
                current_pass = self.queue.passes
                streamed_at_pass_start = self.tracks_streamed

            self.play_entry(entry)

    def play_entry(self, entry: Path) -> Optional[PipelineResult]:
        """Probe and stream one queue entry.

        Returns:
            The pipeline result, or None if the entry was skipped
        """
        if not entry.is_file():
            logger.debug(f"Skipping non-file entry: {entry}")
            return None

        track = self.probe(str(entry))
        if track is None:
            log(f"Error reading {entry.name}", "warning")
            self.tracks_failed += 1
            return None

        log(f"Read {track.filename} (~{track.duration_minutes} min)")
        logger.debug(
            f"Source quality: {track.quality.format}, {track.quality.bitrate} kbps, "
            f"{track.quality.sample_rate} Hz, {track.quality.channel_mode}"
        )
        self.history.append(track)

        result = self._stream_track(track)
        if result.ok:
            self.tracks_streamed += 1
            self.reconnects_used = 0
            logger.info(f"Finished {track.filename} ({result.bytes_written} bytes)")
        else:
            self.tracks_failed += 1
            log(
                f"Transcoder failed for {track.filename} "
                f"({result.outcome}, exit code {result.returncode}), skipping",
                "warning",
            )
        return result

    def _stream_track(self, track: Track) -> PipelineResult:
        """Run one pipeline into the session, reconnecting if policy allows."""
        while True:
            assert self.session is not None
            pipeline = self.pipeline_factory(track.path, self.config.transcoder)
            self.pipeline = pipeline
            logger.info(" ".join(pipeline.command))
            try:
                result = pipeline.run(self.session.write)
            except StreamConnectionError as e:
                self.pipeline = None
                self._reconnect(e)
                log(f"Restarting {track.filename} on the new connection")
                continue

            # Left set on any other exception so shutdown() can still reap it
            self.pipeline = None
            return result

    def _reconnect(self, error: StreamConnectionError) -> None:
        """Replace a broken session with a freshly handshaked one.

        Raises:
            StreamConnectionError: When no reconnect attempts remain
        """
        assert self.session is not None
        self.session.close(graceful=False)
        self.session = None

        attempts = self.config.session.reconnect_attempts
        if attempts == 0:
            raise error

        last_error: Exception = error
        while self.reconnects_used < attempts:
            self.reconnects_used += 1
            delay = self.config.session.reconnect_delay
            log(
                f"{last_error}; reconnecting in {delay:g}s "
                f"(attempt {self.reconnects_used}/{attempts})",
                "warning",
            )
            self.sleep(delay)

            self._transition(SupervisorState.HANDSHAKE)
            try:
                self.session = self.open_session(self.config.icecast)
            except (DialError, HandshakeRejectedError) as e:
                last_error = e
                continue

            self._transition(SupervisorState.STREAMING)
            return

        raise StreamConnectionError(
            f"Giving up after {attempts} reconnect attempts: {last_error}"
        ) from last_error
