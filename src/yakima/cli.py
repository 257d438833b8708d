"""
Yakima CLI - Entry point

Streams a local music directory to an Icecast server, and offers small
utilities for inspecting files and creating the configuration.
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.table import Table

from yakima import __version__
from yakima.core.config import (
    Config,
    ConfigError,
    create_default_config,
    get_config_path,
    load_config,
)
from yakima.core.console import get_console, safe_print
from yakima.core.output import setup_loguru
from yakima.domain.broadcast import (
    ExitCode,
    HandshakeRejectedError,
    SessionSupervisor,
    ShutdownRequested,
    SupervisorState,
)
from yakima.domain.library import MetadataError, format_duration, probe_track
from yakima.domain.transcode import TranscoderUnavailableError, check_ffmpeg_available


def apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Apply command line options on top of the loaded configuration."""
    if args.directory is not None:
        config.library.directory = str(Path(args.directory).expanduser())
    if args.loop is not None:
        config.library.loop = args.loop
    if args.shuffle is not None:
        config.library.shuffle = args.shuffle
    if args.host is not None:
        config.icecast.host = args.host
    if args.port is not None:
        config.icecast.port = args.port
    if args.mount is not None:
        config.icecast.mount = args.mount


def install_signal_handlers() -> dict:
    """Turn SIGINT/SIGTERM into ShutdownRequested.

    Further signals are ignored once shutdown started so cleanup can finish.

    Returns:
        Previous handlers, for restore_signal_handlers()
    """
    previous = {}

    def _request_shutdown(signum, frame):
        for sig in previous:
            signal.signal(sig, signal.SIG_IGN)
        raise ShutdownRequested(signum)

    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _request_shutdown)
    return previous


def restore_signal_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def run_stream(args: argparse.Namespace) -> int:
    """Run the streaming supervisor.

    Returns:
        Exit code (see ExitCode)
    """
    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as e:
        safe_print(str(e), style="bold red")
        return ExitCode.CONFIG_INVALID

    apply_overrides(config, args)
    try:
        config.icecast.validate()
    except ValueError as e:
        safe_print(f"Invalid icecast option: {e}", style="bold red")
        return ExitCode.CONFIG_INVALID

    setup_loguru(config.logging)

    if not check_ffmpeg_available(config.transcoder.ffmpeg_bin):
        error = TranscoderUnavailableError(config.transcoder.ffmpeg_bin)
        logger.error(str(error))
        safe_print(str(error), style="bold red")
        return ExitCode.TRANSCODER_UNAVAILABLE

    supervisor = SessionSupervisor(config)
    previous = install_signal_handlers()
    try:
        exit_code = supervisor.run()
    finally:
        restore_signal_handlers(previous)

    if supervisor.state is SupervisorState.FAILED and supervisor.error is not None:
        safe_print(str(supervisor.error), style="bold red")
        if isinstance(supervisor.error, HandshakeRejectedError):
            safe_print(supervisor.error.reply or "(no reply)")

    return exit_code


def run_probe(file_path: str) -> int:
    """Print the metadata the streamer would log for one file.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        track = probe_track(file_path)
    except MetadataError as e:
        safe_print(str(e), style="bold red")
        return 1

    table = Table(title=track.filename, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Path", track.path)
    table.add_row("Duration", format_duration(track.duration))
    table.add_row("Format", track.quality.format)
    table.add_row("Bitrate", f"{track.quality.bitrate} kbps")
    table.add_row("Sample rate", f"{track.quality.sample_rate} Hz")
    table.add_row("Channels", track.quality.channel_mode)
    get_console().print(table)
    return 0


def run_init_config(config_path: Optional[str], force: bool = False) -> int:
    """Write the default configuration file.

    Returns:
        Exit code (0 for success, 1 if the file exists and force is not set)
    """
    path = Path(config_path) if config_path else get_config_path()
    if path.exists() and not force:
        safe_print(f"Config already exists: {path} (use --force to overwrite)", style="yellow")
        return 1

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(create_default_config() + "\n", encoding="utf-8")
    safe_print(f"Wrote default configuration to: {path}", style="green")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yakima",
        description="Yakima - stream a music directory to an Icecast server",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    stream_parser = subparsers.add_parser("stream", help="Stream the music directory")
    stream_parser.add_argument("--config", help="Path to config.toml")
    stream_parser.add_argument("--directory", help="Music directory to stream")
    stream_parser.add_argument(
        "--loop",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Start over after the last file",
    )
    stream_parser.add_argument(
        "--shuffle",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Shuffle files before streaming",
    )
    stream_parser.add_argument("--host", help="Icecast server address")
    stream_parser.add_argument("--port", type=int, help="Icecast server port")
    stream_parser.add_argument("--mount", help="Mount point, e.g. /stream.mp3")

    probe_parser = subparsers.add_parser("probe", help="Show audio metadata for a file")
    probe_parser.add_argument("file", help="Audio file to inspect")

    init_parser = subparsers.add_parser("init-config", help="Write the default config file")
    init_parser.add_argument("--config", help="Where to write config.toml")
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing file"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the yakima command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.subcommand == "stream":
        sys.exit(run_stream(args))

    elif args.subcommand == "probe":
        sys.exit(run_probe(args.file))

    elif args.subcommand == "init-config":
        sys.exit(run_init_config(args.config, force=args.force))

    parser.print_help()
    sys.exit(2)


if __name__ == "__main__":
    main()
