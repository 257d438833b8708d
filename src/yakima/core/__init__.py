"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging (Loguru)
- Console management (Rich)
"""

from .config import (
    Config,
    ConfigError,
    IcecastConfig,
    LibraryConfig,
    LoggingConfig,
    SessionConfig,
    TranscoderConfig,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)
from .console import get_console, safe_print
from .output import log, set_console_echo, setup_loguru

__all__ = [
    "Config",
    "ConfigError",
    "IcecastConfig",
    "LibraryConfig",
    "LoggingConfig",
    "SessionConfig",
    "TranscoderConfig",
    "create_default_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_console",
    "load_config",
    "log",
    "safe_print",
    "set_console_echo",
    "setup_loguru",
]
