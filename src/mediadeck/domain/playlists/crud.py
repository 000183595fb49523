"""
Playlist management: create, rename, delete and look up playlists.
Entries themselves are handled by collections.Playlist.
"""

import sqlite3
from datetime import datetime
from typing import NamedTuple, Optional

from loguru import logger

from mediadeck.core.database import Database
from mediadeck.domain.library.models import parse_timestamp
from mediadeck.exceptions import (
    DuplicatePlaylistError,
    PlaylistError,
    PlaylistNotFoundError,
)


class PlaylistInfo(NamedTuple):
    id: int
    name: str
    created_at: Optional[datetime] = None
    item_count: int = 0


_SELECT_PLAYLISTS = """
    SELECT p.id, p.name, p.created_at, COUNT(pt.id) AS item_count
    FROM playlists p
    LEFT JOIN playlist_tracks pt ON pt.playlist_id = p.id
"""


def _info_from_row(row: sqlite3.Row) -> PlaylistInfo:
    return PlaylistInfo(
        id=row["id"],
        name=row["name"],
        created_at=parse_timestamp(row["created_at"]),
        item_count=row["item_count"] or 0,
    )


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise PlaylistError("Playlist name cannot be empty")
    return name


def _name_taken(conn: sqlite3.Connection, name: str, exclude_id: Optional[int] = None) -> bool:
    row = conn.execute(
        "SELECT id FROM playlists WHERE name = ? AND id IS NOT ?", (name, exclude_id)
    ).fetchone()
    return row is not None


def create_playlist(db: Database, name: str) -> int:
    """
    Create a new, empty playlist.

    Args:
        db: Catalog handle
        name: Playlist name (must be unique)

    Returns:
        Playlist ID

    Raises:
        PlaylistError: If the name is empty
        DuplicatePlaylistError: If a playlist with this name already exists
    """
    name = _clean_name(name)

    with db.connection() as conn:
        if _name_taken(conn, name):
            raise DuplicatePlaylistError(f"Playlist '{name}' already exists")
        cursor = conn.execute("INSERT INTO playlists (name) VALUES (?)", (name,))
        conn.commit()
        playlist_id = cursor.lastrowid

    logger.info(f"Created playlist '{name}' (id={playlist_id})")
    return playlist_id


def list_playlists(db: Database) -> list[PlaylistInfo]:
    """All playlists sorted by name."""
    with db.connection() as conn:
        rows = conn.execute(
            _SELECT_PLAYLISTS + " GROUP BY p.id ORDER BY p.name COLLATE NOCASE, p.id"
        ).fetchall()
    return [_info_from_row(row) for row in rows]


def get_playlist(db: Database, playlist_id: int) -> Optional[PlaylistInfo]:
    with db.connection() as conn:
        row = conn.execute(
            _SELECT_PLAYLISTS + " WHERE p.id = ? GROUP BY p.id", (playlist_id,)
        ).fetchone()
    return _info_from_row(row) if row else None


def get_playlist_by_name(db: Database, name: str) -> Optional[PlaylistInfo]:
    with db.connection() as conn:
        row = conn.execute(
            _SELECT_PLAYLISTS + " WHERE p.name = ? GROUP BY p.id", (name,)
        ).fetchone()
    return _info_from_row(row) if row else None


def find_playlist(db: Database, name_or_id: str) -> PlaylistInfo:
    """
    Resolve a playlist given by name or numeric id (name wins).

    Raises:
        PlaylistNotFoundError: If nothing matches
    """
    playlist = get_playlist_by_name(db, name_or_id)
    if playlist is None and name_or_id.isdigit():
        playlist = get_playlist(db, int(name_or_id))
    if playlist is None:
        raise PlaylistNotFoundError(f"Playlist '{name_or_id}' not found")
    return playlist


def rename_playlist(db: Database, playlist_id: int, new_name: str) -> None:
    """
    Rename a playlist.

    Raises:
        PlaylistError: If the new name is empty
        PlaylistNotFoundError: If the playlist does not exist
        DuplicatePlaylistError: If another playlist already has the name
    """
    new_name = _clean_name(new_name)

    with db.connection() as conn:
        if _name_taken(conn, new_name, exclude_id=playlist_id):
            raise DuplicatePlaylistError(f"Playlist '{new_name}' already exists")
        cursor = conn.execute(
            "UPDATE playlists SET name = ? WHERE id = ?", (new_name, playlist_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")

    logger.info(f"Renamed playlist {playlist_id} to '{new_name}'")


def delete_playlist(db: Database, playlist_id: int) -> None:
    """
    Delete a playlist and all of its entries.

    Raises:
        PlaylistNotFoundError: If the playlist does not exist
    """
    with db.connection() as conn:
        cursor = conn.execute("DELETE FROM playlists WHERE id = ?", (playlist_id,))
        conn.commit()
        if cursor.rowcount == 0:
            raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")

    logger.info(f"Deleted playlist {playlist_id}")
