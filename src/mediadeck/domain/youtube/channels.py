"""
YouTube channel and video catalog.

Videos are fetched by an external client; this module only stores what it
returns and parses the URLs users paste.
"""

import re
import sqlite3
from datetime import datetime
from typing import Iterable, NamedTuple, Optional
from urllib.parse import parse_qs, urlparse

from loguru import logger

from mediadeck.core.database import Database
from mediadeck.domain.library.models import Video, YouTubeChannel, parse_timestamp
from mediadeck.domain.library.store import VIDEO_COLUMNS, video_from_row
from mediadeck.exceptions import InvalidYouTubeURLError, StoreError

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Path prefixes whose next segment is the video id
_ID_PATH_PREFIXES = ("embed", "shorts", "live", "v")


class NewVideo(NamedTuple):
    """A video as returned by the channel fetch."""

    video_id: str
    title: str
    duration_seconds: Optional[int] = None
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None


def extract_video_id(url: str) -> str:
    """Extract the 11-character video ID from a YouTube URL.

    Handles:
    - Standard: youtube.com/watch?v=ID (also m./music.)
    - Short: youtu.be/ID
    - Embed/Shorts/Live: youtube.com/embed/ID, /shorts/ID, /live/ID
    - A bare video ID

    Raises:
        InvalidYouTubeURLError: If no video ID can be found
    """
    text = (url or "").strip()
    if VIDEO_ID_PATTERN.match(text):
        return text

    parsed = urlparse(text if "://" in text else f"https://{text}")
    host = (parsed.hostname or "").lower()
    segments = [s for s in parsed.path.split("/") if s]

    candidate = None
    if host == "youtu.be" or host.endswith(".youtu.be"):
        candidate = segments[0] if segments else None
    elif host == "youtube.com" or host.endswith(".youtube.com"):
        if segments[:1] == ["watch"]:
            candidate = parse_qs(parsed.query).get("v", [None])[0]
        elif len(segments) >= 2 and segments[0] in _ID_PATH_PREFIXES:
            candidate = segments[1]

    if candidate and VIDEO_ID_PATTERN.match(candidate):
        return candidate
    raise InvalidYouTubeURLError(f"Could not extract video ID from URL: {url}")


def parse_channel_url(value: str) -> str:
    """Normalise what a user typed into a channel videos URL.

    Accepts a full youtube.com/youtu.be URL, an @handle or a UC... channel id.

    Raises:
        InvalidYouTubeURLError: If the value is none of these
    """
    value = (value or "").strip()
    if "youtube.com" in value or "youtu.be" in value:
        return value
    if value.startswith("@"):
        return f"https://www.youtube.com/{value}/videos"
    if value.startswith("UC") and len(value) > 20:
        return f"https://www.youtube.com/channel/{value}/videos"
    raise InvalidYouTubeURLError(f"Not a YouTube channel: {value}")


def extract_handle(url: str) -> Optional[str]:
    """The @handle part of a channel URL, if any."""
    match = re.search(r"/(@[^/?#]+)", url)
    return match.group(1) if match else None


def get_video_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def _channel_from_row(row: sqlite3.Row) -> YouTubeChannel:
    return YouTubeChannel(
        id=row["id"],
        channel_id=row["channel_id"],
        name=row["name"],
        url=row["url"],
        handle=row["handle"],
        thumbnail_url=row["thumbnail_url"],
        last_fetched=parse_timestamp(row["last_fetched"]),
        created_at=parse_timestamp(row["created_at"]),
    )


def add_channel(
    db: Database,
    channel_id: str,
    name: str,
    url: str,
    handle: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
) -> int:
    """
    Follow a channel.

    Returns:
        Catalog id of the channel

    Raises:
        StoreError: If the channel is already followed
    """
    try:
        with db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO youtube_channels (channel_id, name, handle, url, thumbnail_url)
                VALUES (?, ?, ?, ?, ?)
                """,
                (channel_id, name, handle, url, thumbnail_url),
            )
            conn.commit()
            db_id = cursor.lastrowid
    except sqlite3.IntegrityError as e:
        raise StoreError(f"Channel {channel_id} is already followed") from e

    logger.info(f"Added YouTube channel '{name}' ({channel_id})")
    return db_id


def list_channels(db: Database) -> list[YouTubeChannel]:
    with db.connection() as conn:
        rows = conn.execute(
            "SELECT * FROM youtube_channels ORDER BY name COLLATE NOCASE"
        ).fetchall()
    return [_channel_from_row(row) for row in rows]


def delete_channel(db: Database, db_channel_id: int) -> bool:
    """Unfollow a channel; its videos (and their queue/playlist entries) go too."""
    with db.connection() as conn:
        cursor = conn.execute("DELETE FROM youtube_channels WHERE id = ?", (db_channel_id,))
        conn.commit()
        deleted = cursor.rowcount > 0

    if deleted:
        logger.info(f"Deleted YouTube channel {db_channel_id}")
    return deleted


def add_videos(db: Database, db_channel_id: int, videos: Iterable[NewVideo]) -> int:
    """
    Store fetched videos, ignoring ones already in the catalog.

    Returns:
        Number of videos inserted
    """
    inserted = 0
    with db.connection() as conn:
        for video in videos:
            published_at = video.published_at
            if isinstance(published_at, datetime):
                published_at = published_at.strftime("%Y-%m-%d %H:%M:%S")
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO youtube_videos
                    (video_id, channel_id, title, duration_seconds, thumbnail_url,
                     published_at, added)
                VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (
                    video.video_id,
                    db_channel_id,
                    video.title,
                    video.duration_seconds,
                    video.thumbnail_url,
                    published_at,
                ),
            )
            inserted += cursor.rowcount
        conn.commit()

    logger.info(f"Stored {inserted} new videos for channel {db_channel_id}")
    return inserted


def videos_for_channel(db: Database, db_channel_id: int) -> list[Video]:
    """A channel's videos, most recently published first."""
    with db.connection() as conn:
        rows = conn.execute(
            f"""
            SELECT {VIDEO_COLUMNS} FROM youtube_videos
            WHERE channel_id = ?
            ORDER BY published_at IS NULL, published_at DESC, id DESC
            """,
            (db_channel_id,),
        ).fetchall()
    return [video_from_row(row) for row in rows]


def video_count_for_channel(db: Database, db_channel_id: int) -> int:
    with db.connection() as conn:
        row = conn.execute(
            "SELECT COUNT(*) AS count FROM youtube_videos WHERE channel_id = ?",
            (db_channel_id,),
        ).fetchone()
    return row["count"]


def video_ids_for_channel(db: Database, db_channel_id: int) -> set[str]:
    """Provider video ids already stored (used to skip known videos when fetching)."""
    with db.connection() as conn:
        rows = conn.execute(
            "SELECT video_id FROM youtube_videos WHERE channel_id = ?", (db_channel_id,)
        ).fetchall()
    return {row["video_id"] for row in rows}


def update_channel_last_fetched(db: Database, db_channel_id: int) -> None:
    with db.connection() as conn:
        conn.execute(
            "UPDATE youtube_channels SET last_fetched = CURRENT_TIMESTAMP WHERE id = ?",
            (db_channel_id,),
        )
        conn.commit()


def lookup_video_by_provider_id(db: Database, video_id: str) -> Optional[Video]:
    with db.connection() as conn:
        row = conn.execute(
            f"SELECT {VIDEO_COLUMNS} FROM youtube_videos WHERE video_id = ?", (video_id,)
        ).fetchone()
    return video_from_row(row) if row else None
