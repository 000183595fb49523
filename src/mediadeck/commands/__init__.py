"""Command handlers for the mediadeck CLI.

Every handler takes (ctx, args) and returns a process exit code.
"""

from .library import (
    handle_channels_command,
    handle_facets_command,
    handle_folders_command,
    handle_recent_command,
    handle_search_command,
)
from .playlist import handle_playlist_command
from .queue import handle_queue_command
from .scan import handle_scan_command, rescan_quietly

__all__ = [
    "handle_channels_command",
    "handle_facets_command",
    "handle_folders_command",
    "handle_playlist_command",
    "handle_queue_command",
    "handle_recent_command",
    "handle_scan_command",
    "handle_search_command",
    "rescan_quietly",
]
