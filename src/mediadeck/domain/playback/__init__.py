"""Playback domain - play statistics and history."""

from .history import (
    load_recently_added,
    load_recently_played,
    mark_as_played,
    update_play_stats,
)

__all__ = [
    "load_recently_added",
    "load_recently_played",
    "mark_as_played",
    "update_play_stats",
]
