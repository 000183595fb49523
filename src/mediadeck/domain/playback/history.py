"""
Play statistics and history views.

Timestamps are stored as UTC "YYYY-MM-DD HH:MM:SS" strings, the same format
SQLite's CURRENT_TIMESTAMP produces for the ``added`` columns.
"""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from mediadeck.core.database import Database
from mediadeck.domain.library.models import MediaItem, Track, Video
from mediadeck.domain.library.store import (
    TRACK_COLUMNS,
    VIDEO_COLUMNS,
    track_from_row,
    video_from_row,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def _format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def update_play_stats(db: Database, item: MediaItem, now: Optional[datetime] = None) -> None:
    """
    Record a playback: increment play_count and set last_played.

    Args:
        db: Catalog handle
        item: Track or Video that started playing
        now: Playback time (default: current UTC time)
    """
    played_at = _format_timestamp(now or _utc_now())

    with db.connection() as conn:
        if isinstance(item, Track):
            conn.execute(
                "UPDATE tracks SET play_count = play_count + 1, last_played = ? WHERE filename = ?",
                (played_at, item.filename),
            )
        else:
            conn.execute(
                "UPDATE youtube_videos SET play_count = play_count + 1, last_played = ? WHERE id = ?",
                (played_at, item.id),
            )
        conn.commit()

    logger.debug(f"Play recorded for {item.ref} at {played_at}")


def mark_as_played(db: Database, item: MediaItem, now: Optional[datetime] = None) -> None:
    """Set last_played without counting a play. Videos are left alone."""
    if not isinstance(item, Track):
        return

    with db.connection() as conn:
        conn.execute(
            "UPDATE tracks SET last_played = ? WHERE filename = ?",
            (_format_timestamp(now or _utc_now()), item.filename),
        )
        conn.commit()


def _newest_first(dated: list[tuple[MediaItem, datetime]], limit: int) -> list[MediaItem]:
    dated.sort(key=lambda pair: pair[1], reverse=True)
    if limit > 0:
        dated = dated[:limit]
    return [item for item, _ in dated]


def load_recently_played(db: Database, limit: int = 50) -> list[MediaItem]:
    """
    Tracks and videos that have been played, most recent first.

    Args:
        db: Catalog handle
        limit: Maximum number of items (0 or less for no limit)
    """
    with db.connection() as conn:
        track_rows = conn.execute(
            f"SELECT {TRACK_COLUMNS} FROM tracks WHERE last_played IS NOT NULL"
        ).fetchall()
        video_rows = conn.execute(
            f"SELECT {VIDEO_COLUMNS} FROM youtube_videos WHERE last_played IS NOT NULL"
        ).fetchall()

    dated: list[tuple[MediaItem, datetime]] = []
    for item in [track_from_row(r) for r in track_rows] + [video_from_row(r) for r in video_rows]:
        if item.last_played is not None:
            dated.append((item, item.last_played))

    return _newest_first(dated, limit)


def load_recently_added(db: Database, limit: int = 50) -> list[MediaItem]:
    """
    Every track and video by date added, newest first.

    Videos without an added date use their fetch date; items with neither
    sort last.

    Args:
        db: Catalog handle
        limit: Maximum number of items (0 or less for no limit)
    """
    with db.connection() as conn:
        track_rows = conn.execute(f"SELECT {TRACK_COLUMNS} FROM tracks").fetchall()
        video_rows = conn.execute(f"SELECT {VIDEO_COLUMNS} FROM youtube_videos").fetchall()

    dated: list[tuple[MediaItem, datetime]] = []
    for row in track_rows:
        track = track_from_row(row)
        dated.append((track, track.added or datetime.min))
    for row in video_rows:
        video: Video = video_from_row(row)
        dated.append((video, video.added or video.fetched_at or datetime.min))

    return _newest_first(dated, limit)
