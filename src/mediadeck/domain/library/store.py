"""
Library Store: the persistence contract shared by the scanner and the
ordered collections, plus its SQLite implementation.

Queue and playlist rows keep their item reference in two nullable columns.
This module is the only place that sees that encoding: rows are turned into
a TrackRef or VideoRef here, and rows with zero or two references set are
rejected.
"""

import sqlite3
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from loguru import logger

from mediadeck.core.database import Database
from mediadeck.exceptions import InvalidEntryError, StoreError

from .models import (
    CollectionEntry,
    ItemRef,
    Track,
    TrackRef,
    Video,
    VideoRef,
    parse_timestamp,
)


@dataclass(frozen=True)
class Scope:
    """One ordering context: the queue (playlist_id None) or one playlist."""

    playlist_id: Optional[int] = None

    @property
    def is_queue(self) -> bool:
        return self.playlist_id is None

    def __str__(self) -> str:
        return "queue" if self.is_queue else f"playlist#{self.playlist_id}"


QUEUE = Scope()


class LibraryStore(Protocol):
    """Operations the synchronizer and the collection engine need."""

    # Tracks
    def lookup_by_filename(self, filename: str) -> Optional[Track]: ...
    def insert_track(self, track: Track) -> None: ...
    def update_duration(self, filename: str, duration_seconds: Optional[int]) -> bool: ...
    def delete_by_filenames(self, filenames: Iterable[str]) -> int: ...
    def list_all_filenames(self) -> list[str]: ...
    def load_tracks(self) -> list[Track]: ...

    # Videos
    def lookup_video(self, video_db_id: int) -> Optional[Video]: ...

    # Queue / playlist entries
    def list_entries(self, scope: Scope) -> list[CollectionEntry]: ...
    def max_position(self, scope: Scope) -> Optional[int]: ...
    def insert_entry(self, scope: Scope, ref: ItemRef, position: int) -> int: ...
    def delete_entry(self, scope: Scope, entry_id: int) -> bool: ...
    def delete_entries(self, scope: Scope, ref: ItemRef) -> int: ...
    def set_position(self, scope: Scope, ref: ItemRef, position: int) -> int: ...
    def set_entry_positions(self, scope: Scope, positions: list[tuple[int, int]]) -> None: ...
    def clear_entries(self, scope: Scope) -> int: ...
    def count_entries(self, scope: Scope) -> int: ...


TRACK_COLUMNS = (
    "filename, title, artist, album, album_artist, genre, track, "
    "duration_seconds, play_count, last_played, added"
)

VIDEO_COLUMNS = (
    "id, video_id, channel_id, title, duration_seconds, thumbnail_url, "
    "published_at, fetched_at, play_count, last_played, added"
)

# sqlite3 encodes text as UTF-8; surrogate-escaped filenames fail before reaching SQLite
WRITE_ERRORS = (sqlite3.Error, UnicodeEncodeError)


def track_from_row(row: sqlite3.Row) -> Track:
    """Convert a tracks row into a Track."""
    return Track(
        filename=row["filename"],
        title=row["title"],
        artist=row["artist"],
        album=row["album"],
        album_artist=row["album_artist"],
        genre=row["genre"],
        track_number=row["track"],
        duration_seconds=row["duration_seconds"],
        play_count=row["play_count"] or 0,
        last_played=parse_timestamp(row["last_played"]),
        added=parse_timestamp(row["added"]),
    )


def video_from_row(row: sqlite3.Row) -> Video:
    """Convert a youtube_videos row into a Video."""
    return Video(
        id=row["id"],
        video_id=row["video_id"],
        channel_id=row["channel_id"],
        title=row["title"],
        duration_seconds=row["duration_seconds"],
        thumbnail_url=row["thumbnail_url"],
        published_at=parse_timestamp(row["published_at"]),
        fetched_at=parse_timestamp(row["fetched_at"]),
        play_count=row["play_count"] or 0,
        last_played=parse_timestamp(row["last_played"]),
        added=parse_timestamp(row["added"]),
    )


def entry_from_row(row: sqlite3.Row) -> CollectionEntry:
    """Convert a queue/playlist row into a CollectionEntry.

    Raises:
        InvalidEntryError: If the row references no item or both kinds of item
    """
    filename = row["track_filename"]
    video_db_id = row["youtube_video_id"]

    if (filename is None) == (video_db_id is None):
        raise InvalidEntryError(row["id"])

    ref: ItemRef = TrackRef(filename) if filename is not None else VideoRef(video_db_id)
    return CollectionEntry(
        id=row["id"],
        position=row["position"],
        ref=ref,
        added_at=parse_timestamp(row["added_at"]),
    )


def ref_columns(ref: ItemRef) -> tuple[Optional[str], Optional[int]]:
    """Encode a reference as the (track_filename, youtube_video_id) pair."""
    if isinstance(ref, TrackRef):
        return ref.filename, None
    if isinstance(ref, VideoRef):
        return None, ref.video_db_id
    raise TypeError(f"Not an item reference: {ref!r}")


def _scope_filter(scope: Scope) -> tuple[str, str, tuple]:
    """Table name, WHERE fragment and params selecting a scope's rows."""
    if scope.is_queue:
        return "playback_queue", "1 = 1", ()
    return "playlist_tracks", "playlist_id = ?", (scope.playlist_id,)


def _ref_filter(ref: ItemRef) -> tuple[str, tuple]:
    filename, video_db_id = ref_columns(ref)
    if filename is not None:
        return "track_filename = ?", (filename,)
    return "youtube_video_id = ?", (video_db_id,)


class SqliteLibraryStore:
    """LibraryStore backed by a mediadeck SQLite catalog."""

    def __init__(self, db: Database):
        self.db = db

    # -- tracks -------------------------------------------------------------

    def lookup_by_filename(self, filename: str) -> Optional[Track]:
        with self.db.connection() as conn:
            row = conn.execute(
                f"SELECT {TRACK_COLUMNS} FROM tracks WHERE filename = ?", (filename,)
            ).fetchone()
        return track_from_row(row) if row else None

    def insert_track(self, track: Track) -> None:
        """Insert a new catalog row.

        Raises:
            StoreError: On constraint violation or I/O failure
        """
        try:
            with self.db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO tracks
                        (filename, title, artist, album, album_artist, genre, track, duration_seconds)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        track.filename,
                        track.title,
                        track.artist,
                        track.album,
                        track.album_artist,
                        track.genre,
                        track.track_number,
                        track.duration_seconds,
                    ),
                )
                conn.commit()
        except WRITE_ERRORS as e:
            raise StoreError(f"Failed to insert {track.filename}: {e}") from e

    def update_duration(self, filename: str, duration_seconds: Optional[int]) -> bool:
        """Back-fill the duration of an existing row.

        Returns:
            True if a row was updated

        Raises:
            StoreError: On I/O failure
        """
        try:
            with self.db.connection() as conn:
                cursor = conn.execute(
                    "UPDATE tracks SET duration_seconds = ? WHERE filename = ?",
                    (duration_seconds, filename),
                )
                conn.commit()
                return cursor.rowcount > 0
        except WRITE_ERRORS as e:
            raise StoreError(f"Failed to update duration of {filename}: {e}") from e

    def delete_by_filenames(self, filenames: Iterable[str]) -> int:
        """Delete tracks (their queue/playlist entries cascade).

        Returns:
            Number of rows removed
        """
        filenames = list(filenames)
        if not filenames:
            return 0

        try:
            with self.db.connection() as conn:
                cursor = conn.executemany(
                    "DELETE FROM tracks WHERE filename = ?",
                    [(f,) for f in filenames],
                )
                conn.commit()
                deleted = cursor.rowcount
        except WRITE_ERRORS as e:
            raise StoreError(f"Failed to delete tracks: {e}") from e

        logger.info(f"Deleted {deleted} tracks from catalog")
        return deleted

    def list_all_filenames(self) -> list[str]:
        with self.db.connection() as conn:
            rows = conn.execute("SELECT filename FROM tracks").fetchall()
        return [row["filename"] for row in rows]

    def load_tracks(self) -> list[Track]:
        with self.db.connection() as conn:
            rows = conn.execute(f"SELECT {TRACK_COLUMNS} FROM tracks").fetchall()
        return [track_from_row(row) for row in rows]

    # -- videos -------------------------------------------------------------

    def lookup_video(self, video_db_id: int) -> Optional[Video]:
        with self.db.connection() as conn:
            row = conn.execute(
                f"SELECT {VIDEO_COLUMNS} FROM youtube_videos WHERE id = ?",
                (video_db_id,),
            ).fetchone()
        return video_from_row(row) if row else None

    # -- queue / playlist entries --------------------------------------------

    def list_entries(self, scope: Scope) -> list[CollectionEntry]:
        """Entries of a scope in ascending position order.

        Rows violating the single-reference invariant are logged and skipped.
        """
        table, where, params = _scope_filter(scope)
        with self.db.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT id, position, track_filename, youtube_video_id, added_at
                FROM {table}
                WHERE {where}
                ORDER BY position, id
                """,
                params,
            ).fetchall()

        entries = []
        for row in rows:
            try:
                entries.append(entry_from_row(row))
            except InvalidEntryError as e:
                logger.warning(f"Ignoring {scope} row: {e}")
        return entries

    def max_position(self, scope: Scope) -> Optional[int]:
        table, where, params = _scope_filter(scope)
        with self.db.connection() as conn:
            row = conn.execute(
                f"SELECT MAX(position) AS max_position FROM {table} WHERE {where}",
                params,
            ).fetchone()
        return row["max_position"]

    def insert_entry(self, scope: Scope, ref: ItemRef, position: int) -> int:
        """Add an entry at ``position``.

        Returns:
            The new row id

        Raises:
            StoreError: If the referenced item or playlist does not exist
        """
        filename, video_db_id = ref_columns(ref)
        try:
            with self.db.connection() as conn:
                if scope.is_queue:
                    cursor = conn.execute(
                        """
                        INSERT INTO playback_queue (position, track_filename, youtube_video_id)
                        VALUES (?, ?, ?)
                        """,
                        (position, filename, video_db_id),
                    )
                else:
                    cursor = conn.execute(
                        """
                        INSERT INTO playlist_tracks
                            (playlist_id, track_filename, youtube_video_id, position)
                        VALUES (?, ?, ?, ?)
                        """,
                        (scope.playlist_id, filename, video_db_id, position),
                    )
                conn.commit()
                return cursor.lastrowid
        except WRITE_ERRORS as e:
            raise StoreError(f"Failed to add {ref} to {scope}: {e}") from e

    def delete_entry(self, scope: Scope, entry_id: int) -> bool:
        table, where, params = _scope_filter(scope)
        with self.db.connection() as conn:
            cursor = conn.execute(
                f"DELETE FROM {table} WHERE id = ? AND {where}", (entry_id, *params)
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_entries(self, scope: Scope, ref: ItemRef) -> int:
        table, where, params = _scope_filter(scope)
        ref_where, ref_params = _ref_filter(ref)
        with self.db.connection() as conn:
            cursor = conn.execute(
                f"DELETE FROM {table} WHERE {where} AND {ref_where}",
                (*params, *ref_params),
            )
            conn.commit()
            return cursor.rowcount

    def set_position(self, scope: Scope, ref: ItemRef, position: int) -> int:
        table, where, params = _scope_filter(scope)
        ref_where, ref_params = _ref_filter(ref)
        with self.db.connection() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET position = ? WHERE {where} AND {ref_where}",
                (position, *params, *ref_params),
            )
            conn.commit()
            return cursor.rowcount

    def set_entry_positions(self, scope: Scope, positions: list[tuple[int, int]]) -> None:
        """Apply (entry_id, position) pairs in one transaction."""
        table, where, params = _scope_filter(scope)
        try:
            with self.db.connection() as conn:
                conn.executemany(
                    f"UPDATE {table} SET position = ? WHERE id = ? AND {where}",
                    [(position, entry_id, *params) for entry_id, position in positions],
                )
                conn.commit()
        except WRITE_ERRORS as e:
            raise StoreError(f"Failed to reorder {scope}: {e}") from e

    def clear_entries(self, scope: Scope) -> int:
        table, where, params = _scope_filter(scope)
        with self.db.connection() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE {where}", params)
            conn.commit()
            return cursor.rowcount

    def count_entries(self, scope: Scope) -> int:
        table, where, params = _scope_filter(scope)
        with self.db.connection() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS count FROM {table} WHERE {where}", params
            ).fetchone()
        return row["count"]
