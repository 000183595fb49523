"""
Library domain models.

Tracks (local files) and Videos (YouTube) are the two kinds of MediaItem.
Queue and playlist entries refer to them through a TrackRef or VideoRef.
"""

from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional, Union


def _format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return "?:??"
    return f"{seconds // 60}:{seconds % 60:02d}"


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


class Track(NamedTuple):
    """A local audio file in the catalog.

    ``filename`` is the absolute path and the primary key: renaming the file
    on disk makes it a new Track. A missing ``duration_seconds`` marks the
    row for a metadata refresh on the next scan.
    """

    filename: str
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    album_artist: Optional[str] = None
    genre: Optional[str] = None
    track_number: Optional[str] = None  # free text, e.g. "3/12" or "A1"
    duration_seconds: Optional[int] = None
    play_count: int = 0
    last_played: Optional[datetime] = None
    added: Optional[datetime] = None

    @property
    def ref(self) -> "TrackRef":
        return TrackRef(self.filename)

    @property
    def album_artist_or_artist(self) -> Optional[str]:
        return self.album_artist if self.album_artist is not None else self.artist

    @property
    def display_title(self) -> str:
        return self.title or "Unknown"

    @property
    def display_artist(self) -> str:
        return self.artist or "Unknown"

    @property
    def display_album(self) -> str:
        return self.album or "Unknown"

    @property
    def duration_str(self) -> str:
        return _format_duration(self.duration_seconds)

    @property
    def last_played_str(self) -> str:
        return _format_date(self.last_played)

    @property
    def added_str(self) -> str:
        return _format_date(self.added)

    @property
    def stem(self) -> str:
        return Path(self.filename).stem


class Video(NamedTuple):
    """A YouTube video fetched from a followed channel.

    ``id`` is the catalog's surrogate key (what queue/playlist entries store),
    ``video_id`` the provider's id.
    """

    id: int
    video_id: str
    channel_id: int
    title: str
    duration_seconds: Optional[int] = None
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None
    fetched_at: Optional[datetime] = None
    play_count: int = 0
    last_played: Optional[datetime] = None
    added: Optional[datetime] = None

    @property
    def ref(self) -> "VideoRef":
        return VideoRef(self.id)

    @property
    def display_title(self) -> str:
        return self.title

    @property
    def display_artist(self) -> str:
        return "YouTube"

    @property
    def display_album(self) -> str:
        return ""

    @property
    def duration_str(self) -> str:
        return _format_duration(self.duration_seconds)

    @property
    def last_played_str(self) -> str:
        return _format_date(self.last_played)

    @property
    def added_str(self) -> str:
        return _format_date(self.added or self.fetched_at)


class YouTubeChannel(NamedTuple):
    """A followed YouTube channel."""

    id: int
    channel_id: str
    name: str
    url: str
    handle: Optional[str] = None
    thumbnail_url: Optional[str] = None
    last_fetched: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TrackRef(NamedTuple):
    """Reference to a Track by filename."""

    filename: str

    def __str__(self) -> str:
        return self.filename


class VideoRef(NamedTuple):
    """Reference to a Video by its catalog id."""

    video_db_id: int

    def __str__(self) -> str:
        return f"video#{self.video_db_id}"


MediaItem = Union[Track, Video]
ItemRef = Union[TrackRef, VideoRef]


def item_ref(item: MediaItem) -> ItemRef:
    """Get the reference that queue/playlist entries store for an item."""
    return item.ref


class CollectionEntry(NamedTuple):
    """One row of the queue or of a playlist."""

    id: int
    position: int
    ref: ItemRef
    added_at: Optional[datetime] = None


class Facet(NamedTuple):
    """Grouping key used to filter the catalog.

    Exactly one facet has ``all=True``: the "show everything" sentinel.
    """

    album_artist_or_artist: Optional[str] = None
    album: Optional[str] = None
    all: bool = False

    @classmethod
    def everything(cls) -> "Facet":
        return cls(None, None, True)

    @property
    def label(self) -> str:
        if self.all:
            return "(All)"
        return f"{self.album_artist_or_artist or 'Unknown'} - {self.album or 'Unknown'}"


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a SQLite TIMESTAMP column into a datetime (None stays None)."""
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None
