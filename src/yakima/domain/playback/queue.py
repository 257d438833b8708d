"""
Playback queue with a wrapping cursor.

The queue is built once from the source directory and never changes while
streaming; only the cursor moves.
"""

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from yakima.core.config import LibraryConfig
from yakima.domain.library.scanner import list_directory


@dataclass
class PlaybackQueue:
    """Ordered candidate paths plus the cursor that walks them.

    ``passes`` counts completed wraps so callers can tell when a full
    round over the queue has finished.
    """

    entries: tuple[Path, ...]
    loop: bool = False
    position: int = -1
    passes: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def advance(self) -> Optional[Path]:
        """Move the cursor to the next candidate.

        Returns:
            The next entry, or None when the end is reached without looping
            (or the queue is empty)
        """
        if not self.entries:
            return None

        self.position += 1
        if self.position >= len(self.entries):
            if not self.loop:
                self.position = len(self.entries)
                return None
            self.position = 0
            self.passes += 1
            logger.debug(f"Queue wrapped to start (pass {self.passes + 1})")

        return self.entries[self.position]


def shuffle_entries(
    entries: list[Path], seed: Optional[int] = None
) -> list[Path]:
    """Return a shuffled copy of the entries (deterministic for a given seed)."""
    shuffled = list(entries)
    random.Random(seed).shuffle(shuffled)
    return shuffled


def build_playback_queue(library_config: LibraryConfig) -> PlaybackQueue:
    """Build the playback queue from the configured source directory.

    Raises:
        DirectoryError: If the directory cannot be listed
    """
    directory = Path(library_config.directory).expanduser()
    entries = list_directory(directory, library_config)

    if library_config.shuffle:
        entries = shuffle_entries(entries, library_config.shuffle_seed)

    logger.info(
        f"Playback queue built from {directory}: {len(entries)} entries "
        f"(loop={library_config.loop}, shuffle={library_config.shuffle})"
    )
    return PlaybackQueue(entries=tuple(entries), loop=library_config.loop)
