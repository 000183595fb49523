"""Shared fixtures: a temporary catalog and a fake tag probe."""

from pathlib import Path
from typing import Optional

import pytest

from mediadeck.core.database import Database, init_database
from mediadeck.domain.library.metadata import TagInfo
from mediadeck.domain.library.models import Track
from mediadeck.domain.library.store import SqliteLibraryStore
from mediadeck.domain.playlists.collections import CollectionManager
from mediadeck.domain.youtube.channels import NewVideo, add_channel, add_videos
from mediadeck.exceptions import ProbeError


class FakeProbe:
    """Tag probe that never opens files.

    Every file gets a title from its stem and a 180 second duration unless
    listed in ``tags`` or ``failing``.
    """

    def __init__(self) -> None:
        self.tags: dict[str, TagInfo] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []
        self.duration_calls: list[str] = []

    def probe(self, path: str) -> TagInfo:
        self.calls.append(path)
        if path in self.failing:
            raise ProbeError(path, "corrupt file")
        return self.tags.get(path, TagInfo(title=Path(path).stem, duration_seconds=180))

    def duration(self, path: str) -> Optional[int]:
        self.duration_calls.append(path)
        if path in self.failing:
            raise ProbeError(path, "corrupt file")
        return self.tags.get(path, TagInfo(duration_seconds=180)).duration_seconds


@pytest.fixture
def db(tmp_path):
    """Initialised catalog in a temporary directory."""
    database = Database(tmp_path / "library.db")
    init_database(database)
    yield database
    database.close()


@pytest.fixture
def store(db):
    return SqliteLibraryStore(db)


@pytest.fixture
def collections(store):
    return CollectionManager(store)


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest.fixture
def music_dir(tmp_path):
    """Empty library folder."""
    path = tmp_path / "music"
    path.mkdir()
    return path


@pytest.fixture
def touch():
    """Create an (empty) file and its parents; return the path as a string."""

    def _touch(path: Path) -> str:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
        return str(path)

    return _touch


@pytest.fixture
def add_tracks(store):
    """Insert catalog rows directly: add_tracks("/a.mp3", ("/b.mp3", None))."""

    def _add(*entries):
        tracks = []
        for entry in entries:
            if isinstance(entry, Track):
                track = entry
            elif isinstance(entry, tuple):
                filename, duration = entry
                track = Track(filename=filename, title=Path(filename).stem, duration_seconds=duration)
            else:
                track = Track(filename=entry, title=Path(entry).stem, duration_seconds=200)
            store.insert_track(track)
            tracks.append(store.lookup_by_filename(track.filename))
        return tracks

    return _add


@pytest.fixture
def video(db, store):
    """One cataloged YouTube video."""
    channel_id = add_channel(db, "UCtestchannel000000000", "Test Channel", "https://www.youtube.com/@test")
    add_videos(db, channel_id, [NewVideo("dQw4w9WgXcQ", "Test Video", 212)])
    with db.connection() as conn:
        row = conn.execute("SELECT id FROM youtube_videos WHERE video_id = 'dQw4w9WgXcQ'").fetchone()
    return store.lookup_video(row["id"])
