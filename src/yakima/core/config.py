"""
Configuration management for Yakima
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""

    pass


@dataclass
class LibraryConfig:
    """Configuration for the source music directory and playlist order."""

    directory: str = str(Path.home() / "Music")
    loop: bool = True  # Start over when every file was streamed
    shuffle: bool = False
    shuffle_seed: Optional[int] = None
    supported_formats: List[str] = field(default_factory=list)  # Empty = any file
    scan_recursive: bool = False


@dataclass
class IcecastConfig:
    """Configuration for the Icecast source connection."""

    host: str = "127.0.0.1"
    port: int = 8999
    username: str = "source"
    password: str = "1234"
    mount: str = "/stream.mp3"
    genre: str = "Yakima"
    user_agent: str = "Yakima/1.0"
    public: bool = True
    connect_timeout: float = 10.0

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def validate(self) -> None:
        """Validate Icecast configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}")
        if not self.mount.startswith("/"):
            raise ValueError(f"Mount must start with '/': {self.mount}")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive: {self.connect_timeout}")


@dataclass
class TranscoderConfig:
    """Configuration for the ffmpeg transcode pipeline."""

    ffmpeg_bin: str = "ffmpeg"
    read_size: int = 4096  # Bytes read from ffmpeg per chunk


@dataclass
class SessionConfig:
    """Configuration for mid-stream connection failure policy."""

    reconnect_attempts: int = 0  # 0 = a write failure ends the session
    reconnect_delay: float = 5.0

    def validate(self) -> None:
        """Validate session configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.reconnect_attempts < 0:
            raise ValueError(
                f"reconnect_attempts cannot be negative: {self.reconnect_attempts}"
            )
        if self.reconnect_delay < 0:
            raise ValueError(
                f"reconnect_delay cannot be negative: {self.reconnect_delay}"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/yakima/yakima.log)
    )
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = True


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    icecast: IcecastConfig = field(default_factory=IcecastConfig)
    transcoder: TranscoderConfig = field(default_factory=TranscoderConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "yakima"
    return Path.home() / ".config" / "yakima"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/yakima (or ~/.config/yakima)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "yakima"
    return Path.home() / ".local" / "share" / "yakima"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Yakima Configuration

[library]
# Directory containing the music to stream
directory = "~/Music"

# Start over when all files were streamed
loop = true

# Shuffle files before streaming (once, at startup)
shuffle = false

# Fixed seed for a reproducible shuffle order
# shuffle_seed = 42

# Only queue files with these extensions (empty = every file)
supported_formats = []

# Include files in subdirectories
scan_recursive = false

[icecast]
host = "127.0.0.1"
port = 8999

# Source credentials (YAKIMA_ICECAST_USER / YAKIMA_ICECAST_PASSWORD override these)
username = "source"
password = "1234"

# Mount point published on the server
mount = "/stream.mp3"

# Advertised stream details
genre = "Yakima"
user_agent = "Yakima/1.0"
public = true

# Seconds to wait for the connection and the 100-continue reply
connect_timeout = 10.0

[transcoder]
# ffmpeg executable used to re-encode every track
ffmpeg_bin = "ffmpeg"

# Bytes read from ffmpeg per chunk sent to the server
read_size = 4096

[session]
# Reconnect attempts after the connection drops mid-stream (0 = stop streaming)
reconnect_attempts = 0

# Seconds to wait before each reconnect attempt
reconnect_delay = 5.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/yakima/yakima.log)
# log_file = "/path/to/custom/yakima.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to the console
console_output = true
""".strip()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - YAKIMA_ICECAST_USER
    - YAKIMA_ICECAST_PASSWORD

    Args:
        config_path: Explicit config file; must exist when given

    Raises:
        ConfigError: If the explicit file is missing or the TOML is invalid
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = get_config_path()
        if not config_path.exists():
            # Create config directory and default file
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            print(f"Created default configuration at: {config_path}")
            config = Config()
            _apply_env_overrides(config)
            return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e

    # Parse configuration sections
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        config.library = LibraryConfig(
            directory=str(
                Path(library_data.get("directory", config.library.directory)).expanduser()
            ),
            loop=library_data.get("loop", config.library.loop),
            shuffle=library_data.get("shuffle", config.library.shuffle),
            shuffle_seed=library_data.get("shuffle_seed"),
            supported_formats=[
                ext.lower()
                for ext in library_data.get(
                    "supported_formats", config.library.supported_formats
                )
            ],
            scan_recursive=library_data.get(
                "scan_recursive", config.library.scan_recursive
            ),
        )

    if "icecast" in toml_data:
        icecast_data = toml_data["icecast"]
        config.icecast = IcecastConfig(
            host=icecast_data.get("host", config.icecast.host),
            port=icecast_data.get("port", config.icecast.port),
            username=icecast_data.get("username", config.icecast.username),
            password=icecast_data.get("password", config.icecast.password),
            mount=icecast_data.get("mount", config.icecast.mount),
            genre=icecast_data.get("genre", config.icecast.genre),
            user_agent=icecast_data.get("user_agent", config.icecast.user_agent),
            public=icecast_data.get("public", config.icecast.public),
            connect_timeout=float(
                icecast_data.get("connect_timeout", config.icecast.connect_timeout)
            ),
        )
        try:
            config.icecast.validate()
        except ValueError as e:
            print(f"Warning: Invalid icecast configuration: {e}")
            print("Using default icecast configuration.")
            config.icecast = IcecastConfig()

    if "transcoder" in toml_data:
        transcoder_data = toml_data["transcoder"]
        config.transcoder = TranscoderConfig(
            ffmpeg_bin=transcoder_data.get("ffmpeg_bin", config.transcoder.ffmpeg_bin),
            read_size=transcoder_data.get("read_size", config.transcoder.read_size),
        )

    if "session" in toml_data:
        session_data = toml_data["session"]
        config.session = SessionConfig(
            reconnect_attempts=session_data.get(
                "reconnect_attempts", config.session.reconnect_attempts
            ),
            reconnect_delay=float(
                session_data.get("reconnect_delay", config.session.reconnect_delay)
            ),
        )
        try:
            config.session.validate()
        except ValueError as e:
            print(f"Warning: Invalid session configuration: {e}")
            print("Using default session configuration.")
            config.session = SessionConfig()

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level),
            log_file=logging_data.get("log_file"),
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get(
                "backup_count", config.logging.backup_count
            ),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: Config) -> None:
    """Let environment variables replace the source credentials."""
    username = os.environ.get("YAKIMA_ICECAST_USER")
    if username:
        config.icecast.username = username

    password = os.environ.get("YAKIMA_ICECAST_PASSWORD")
    if password:
        config.icecast.password = password
