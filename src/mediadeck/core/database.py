"""
SQLite database handle and schema for mediadeck
"""

import queue
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from loguru import logger

from .config import get_data_dir

# Database schema version for migrations
SCHEMA_VERSION = 3


def get_database_path() -> Path:
    """Get the default path to the SQLite database file."""
    return get_data_dir() / "library.db"


class Database:
    """Explicit handle on one SQLite catalog.

    Keeps up to ``pool_size`` idle connections around so callers do not pay a
    reconnect per operation. Connections are created with
    ``check_same_thread=False`` and may be used by whichever thread currently
    holds them; a connection is never shared by two holders at once.
    """

    def __init__(self, path: Union[str, Path], pool_size: int = 4):
        self.path = Path(path)
        self._idle: "queue.LifoQueue[sqlite3.Connection]" = queue.LifoQueue(
            maxsize=pool_size
        )
        self._closed = False
        self._lock = threading.Lock()

    def _open(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Timeout 30s: a scan writes while the UI reads
        conn = sqlite3.connect(self.path, timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a pooled connection; it is returned (or closed) afterwards."""
        if self._closed:
            raise sqlite3.ProgrammingError(f"Database {self.path} is closed")

        try:
            conn = self._idle.get_nowait()
        except queue.Empty:
            conn = self._open()

        try:
            yield conn
        finally:
            # Uncommitted work never leaks into the next borrower
            if conn.in_transaction:
                conn.rollback()
            with self._lock:
                returned = False
                if not self._closed:
                    try:
                        self._idle.put_nowait(conn)
                        returned = True
                    except queue.Full:
                        pass
                if not returned:
                    conn.close()

    def close(self) -> None:
        """Close every idle connection and refuse new borrows."""
        with self._lock:
            self._closed = True
            while True:
                try:
                    self._idle.get_nowait().close()
                except queue.Empty:
                    break


def open_database(path: Optional[Union[str, Path]] = None) -> Database:
    """Open (and migrate) the catalog at ``path`` or the default location."""
    db = Database(path or get_database_path())
    init_database(db)
    return db


def migrate_database(conn: sqlite3.Connection, current_version: int) -> None:
    """Migrate database from current_version to latest schema."""
    if current_version < 1:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS tracks (
                filename TEXT PRIMARY KEY NOT NULL,
                title TEXT,
                artist TEXT,
                track TEXT,
                album TEXT,
                genre TEXT,
                album_artist TEXT,
                added TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                duration_seconds INTEGER,
                play_count INTEGER NOT NULL DEFAULT 0,
                last_played TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS youtube_channels (
                id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
                channel_id TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                handle TEXT,
                url TEXT NOT NULL,
                thumbnail_url TEXT,
                last_fetched TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS youtube_videos (
                id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
                video_id TEXT NOT NULL UNIQUE,
                channel_id INTEGER NOT NULL REFERENCES youtube_channels(id) ON DELETE CASCADE,
                title TEXT NOT NULL,
                duration_seconds INTEGER,
                thumbnail_url TEXT,
                published_at TIMESTAMP,
                fetched_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_youtube_videos_channel ON youtube_videos(channel_id)"
        )
        conn.commit()

    if current_version < 2:
        # Playlists: each entry references exactly one track or one video
        conn.execute("""
            CREATE TABLE IF NOT EXISTS playlists (
                id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
                name TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS playlist_tracks (
                id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
                playlist_id INTEGER NOT NULL REFERENCES playlists(id) ON DELETE CASCADE,
                track_filename TEXT REFERENCES tracks(filename) ON DELETE CASCADE,
                youtube_video_id INTEGER REFERENCES youtube_videos(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL,
                CHECK (
                    (track_filename IS NOT NULL AND youtube_video_id IS NULL) OR
                    (track_filename IS NULL AND youtube_video_id IS NOT NULL)
                )
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_playlist_tracks_playlist ON playlist_tracks(playlist_id, position)"
        )
        conn.commit()

    if current_version < 3:
        # Playback queue plus play statistics / added date on videos
        conn.execute("""
            CREATE TABLE IF NOT EXISTS playback_queue (
                id INTEGER PRIMARY KEY NOT NULL,
                position INTEGER NOT NULL,
                track_filename TEXT REFERENCES tracks(filename) ON DELETE CASCADE,
                youtube_video_id INTEGER REFERENCES youtube_videos(id) ON DELETE CASCADE,
                added_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                CHECK (
                    (track_filename IS NOT NULL AND youtube_video_id IS NULL) OR
                    (track_filename IS NULL AND youtube_video_id IS NOT NULL)
                )
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_playback_queue_position ON playback_queue(position)"
        )

        for column in (
            "play_count INTEGER NOT NULL DEFAULT 0",
            "last_played TIMESTAMP",
            "added TIMESTAMP",
        ):
            try:
                conn.execute(f"ALTER TABLE youtube_videos ADD COLUMN {column}")
            except sqlite3.OperationalError as e:
                if "duplicate column name" not in str(e).lower():
                    raise

        conn.execute("UPDATE youtube_videos SET added = fetched_at WHERE added IS NULL")
        conn.commit()


def init_database(db: Database) -> None:
    """Create the schema or migrate an existing catalog to SCHEMA_VERSION."""
    with db.connection() as conn:
        current_version = conn.execute("PRAGMA user_version").fetchone()[0]

        if current_version < SCHEMA_VERSION:
            logger.info(
                f"Migrating database {db.path} from v{current_version} to v{SCHEMA_VERSION}"
            )
            migrate_database(conn, current_version)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.commit()
