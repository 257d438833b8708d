"""
Source directory scanning.

Lists the configured directory into the ordered entries the playback queue
is built from.
"""

from pathlib import Path

from loguru import logger

from yakima.core.config import LibraryConfig

from .exceptions import DirectoryError


def is_supported_format(local_path: Path, supported_formats: list[str]) -> bool:
    """Check if file format is supported (an empty list accepts everything)."""
    if not supported_formats:
        return True
    return local_path.suffix.lower() in supported_formats


def list_directory(directory: Path, library_config: LibraryConfig) -> list[Path]:
    """List the entries of the source directory sorted by file name.

    Directories are kept in the listing (only the top level when not
    recursive); the supervisor skips every non-file entry when it reaches it.

    Args:
        directory: Directory to scan
        library_config: Library section of the configuration

    Returns:
        Sorted list of entry paths

    Raises:
        DirectoryError: If the directory does not exist or cannot be read
    """
    if not directory.is_dir():
        raise DirectoryError(str(directory), "not an existing directory")

    try:
        if library_config.scan_recursive:
            entries = [p for p in directory.rglob("*") if p.is_file()]
        else:
            entries = list(directory.iterdir())
    except OSError as e:
        raise DirectoryError(str(directory), e.strerror or str(e)) from e

    entries = [
        entry
        for entry in entries
        if entry.is_dir()
        or is_supported_format(entry, library_config.supported_formats)
    ]
    entries.sort(key=lambda p: str(p.relative_to(directory)))

    logger.debug(f"Listed {len(entries)} entries in {directory}")
    return entries
