"""Playlists domain - ordered collections.

This domain handles:
- The playback queue and playlists (position-ordered entries)
- Drag-and-drop reordering
- Playlist CRUD
"""

from .collections import CollectionManager, OrderedCollection, Playlist, Queue
from .crud import (
    PlaylistInfo,
    create_playlist,
    delete_playlist,
    find_playlist,
    get_playlist,
    get_playlist_by_name,
    list_playlists,
    rename_playlist,
)
from .reorder import compute_drag_order, move_items

__all__ = [
    # Collections
    "CollectionManager",
    "OrderedCollection",
    "Playlist",
    "Queue",
    # CRUD
    "PlaylistInfo",
    "create_playlist",
    "delete_playlist",
    "find_playlist",
    "get_playlist",
    "get_playlist_by_name",
    "list_playlists",
    "rename_playlist",
    # Reorder
    "compute_drag_order",
    "move_items",
]
