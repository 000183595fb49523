"""Library domain - catalog scanning and views.

This domain handles:
- Track/Video data models and item references
- Tag probing and directory walking
- Library synchronisation with streamed progress
- The catalog store (SQLite)
- Facet grouping and search
"""

# Models
from .models import (
    Track,
    Video,
    YouTubeChannel,
    TrackRef,
    VideoRef,
    MediaItem,
    ItemRef,
    CollectionEntry,
    Facet,
    item_ref,
)

# Tag probing and walking
from .metadata import TagInfo, get_tag_value, probe_tags, probe_duration
from .walker import walk_files, walk_audio_files, has_audio_extension

# Synchronisation
from .progress import (
    StartingFolder,
    FoundFile,
    ScannedFile,
    Complete,
    ProgressEvent,
    ProgressChannel,
)
from .scanner import (
    Classification,
    classify,
    partition_catalog,
    find_stale,
    sync_library,
    start_sync,
    ScanHandle,
    ScanCoordinator,
)

# Store
from .store import LibraryStore, SqliteLibraryStore, Scope, QUEUE

# Views
from .facets import build_facets, filter_by_facets, search_items

__all__ = [
    # Models
    "Track",
    "Video",
    "YouTubeChannel",
    "TrackRef",
    "VideoRef",
    "MediaItem",
    "ItemRef",
    "CollectionEntry",
    "Facet",
    "item_ref",
    # Probing / walking
    "TagInfo",
    "get_tag_value",
    "probe_tags",
    "probe_duration",
    "walk_files",
    "walk_audio_files",
    "has_audio_extension",
    # Progress
    "StartingFolder",
    "FoundFile",
    "ScannedFile",
    "Complete",
    "ProgressEvent",
    "ProgressChannel",
    # Scanner
    "Classification",
    "classify",
    "partition_catalog",
    "find_stale",
    "sync_library",
    "start_sync",
    "ScanHandle",
    "ScanCoordinator",
    # Store
    "LibraryStore",
    "SqliteLibraryStore",
    "Scope",
    "QUEUE",
    # Views
    "build_facets",
    "filter_by_facets",
    "search_items",
]
