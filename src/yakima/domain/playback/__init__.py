"""
Playback domain.

Provides the playlist driver: an ordered or shuffled, optionally looping
queue of candidate files.
"""

from .queue import PlaybackQueue, build_playback_queue, shuffle_entries

__all__ = ["PlaybackQueue", "build_playback_queue", "shuffle_entries"]
