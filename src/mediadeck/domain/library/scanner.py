"""
Library synchronisation.

Reconciles the configured library folders against the catalog in one pass:
every audio file is classified as already complete, needing a duration
refresh, or new, and catalog rows under a scanned folder whose file has
disappeared are reported as stale. Progress is streamed as events (see
progress.py); the scan itself never deletes anything.
"""

import os
import threading
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

from loguru import logger

from mediadeck.core.config import DEFAULT_AUDIO_EXTENSIONS
from mediadeck.core.output import mark_silent
from mediadeck.exceptions import (
    ConfigurationError,
    ProbeError,
    ScanInProgressError,
    StoreError,
)

from .metadata import TagInfo, probe_duration, probe_tags
from .models import Track
from .progress import (
    Complete,
    FoundFile,
    ProgressChannel,
    ProgressEvent,
    ScannedFile,
    StartingFolder,
)
from .store import LibraryStore
from .walker import walk_audio_files

TagProbe = Callable[[str], TagInfo]
DurationProbe = Callable[[str], Optional[int]]


class Classification(Enum):
    SKIP = "skip"
    REFRESH = "refresh"
    INSERT = "insert"


def classify(path: str, complete: set[str], incomplete: set[str]) -> Classification:
    """Decide what a scan does with one discovered file.

    Args:
        path: Absolute file path as produced by the walker
        complete: Cataloged filenames that have a duration
        incomplete: Cataloged filenames missing a duration

    Returns:
        SKIP if already complete, REFRESH if cataloged but incomplete,
        INSERT otherwise
    """
    if path in complete:
        return Classification.SKIP
    if path in incomplete:
        return Classification.REFRESH
    return Classification.INSERT


def partition_catalog(tracks: Iterable[Track]) -> tuple[set[str], set[str]]:
    """Split cataloged filenames by whether their duration is known.

    Returns:
        (complete, incomplete) - disjoint sets of filenames
    """
    complete: set[str] = set()
    incomplete: set[str] = set()
    for track in tracks:
        if track.duration_seconds is None:
            incomplete.add(track.filename)
        else:
            complete.add(track.filename)
    return complete, incomplete


def normalize_root(root: str) -> str:
    """Absolute, user-expanded form of a library folder (no trailing separator)."""
    return os.path.abspath(os.path.expanduser(root))


def is_under_root(path: str, root: str) -> bool:
    """Check whether ``path`` is ``root`` itself or lies below it.

    A plain string prefix is not enough: /music2/a.mp3 is not under /music.
    """
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def find_stale(
    filenames: Iterable[str],
    roots: list[str],
    exists: Callable[[str], bool] = os.path.exists,
) -> list[str]:
    """Cataloged files under one of ``roots`` that no longer exist on disk.

    Files outside every root are never reported, missing or not.

    Returns:
        Sorted list of stale filenames
    """
    stale = [
        filename
        for filename in filenames
        if any(is_under_root(filename, root) for root in roots) and not exists(filename)
    ]
    return sorted(stale)


def _track_from_tags(path: str, tags: TagInfo) -> Track:
    return Track(
        filename=path,
        title=tags.title,
        artist=tags.artist,
        album=tags.album,
        album_artist=tags.album_artist,
        genre=tags.genre,
        track_number=tags.track_number,
        duration_seconds=tags.duration_seconds,
    )


def sync_library(
    roots: list[str],
    store: LibraryStore,
    probe: TagProbe = probe_tags,
    duration_probe: DurationProbe = probe_duration,
    extensions: Iterable[str] = DEFAULT_AUDIO_EXTENSIONS,
) -> Iterator[ProgressEvent]:
    """Scan ``roots`` against the catalog, yielding progress events.

    Catalog writes happen as the iterator is consumed. The last event is
    always Complete; its ``stale`` list is for the caller to confirm and
    delete.

    Args:
        roots: Library folders, scanned in the given order
        store: Catalog to reconcile
        probe: Full tag reader used for new files
        duration_probe: Duration-only reader used for incomplete rows
        extensions: Recognised audio extensions (no dot, any case)

    Raises:
        ConfigurationError: If ``roots`` is empty (raised on call, before
            any event is produced)
    """
    if not roots:
        raise ConfigurationError("No library folders configured")

    normalized = [normalize_root(root) for root in roots]
    return _sync(normalized, store, probe, duration_probe, list(extensions))


def _sync(
    roots: list[str],
    store: LibraryStore,
    probe: TagProbe,
    duration_probe: DurationProbe,
    extensions: list[str],
) -> Iterator[ProgressEvent]:
    complete, incomplete = partition_catalog(store.load_tracks())
    logger.info(
        f"Scanning {len(roots)} folder(s); catalog has {len(complete)} complete "
        f"and {len(incomplete)} incomplete tracks"
    )

    found = skipped = added = updated = 0

    for root in roots:
        logger.info(f"Scanning folder: {root}")
        yield StartingFolder(root)

        for path in walk_audio_files(root, extensions):
            found += 1
            yield FoundFile(found, skipped, path)

            decision = classify(path, complete, incomplete)
            logger.debug(f"{decision.value}: {path}")

            if decision is Classification.SKIP:
                skipped += 1
                continue

            if decision is Classification.REFRESH:
                if _refresh(path, store, duration_probe):
                    updated += 1
                    incomplete.discard(path)
                    complete.add(path)
            elif _insert(path, store, probe):
                added += 1
                # A file reachable from two roots is only inserted once
                complete.add(path)

            yield ScannedFile(found, skipped, added, updated, path)

    stale = find_stale(store.list_all_filenames(), roots)
    logger.info(
        f"Scan complete - found: {found}, skipped: {skipped}, added: {added}, "
        f"updated: {updated}, stale: {len(stale)}"
    )
    yield Complete(found, skipped, added, updated, stale)


def _refresh(path: str, store: LibraryStore, duration_probe: DurationProbe) -> bool:
    """Back-fill the duration of a cataloged file. Returns True if updated."""
    try:
        duration = duration_probe(path)
    except ProbeError as e:
        logger.warning(f"{e} (will retry on next scan)")
        return False
    except Exception:
        logger.exception(f"Duration probe crashed on {path} (will retry on next scan)")
        return False

    if duration is None:
        logger.warning(f"No duration available for {path} (will retry on next scan)")
        return False

    try:
        return store.update_duration(path, duration)
    except StoreError as e:
        logger.error(f"Failed to update {path}: {e}")
        return False


def _insert(path: str, store: LibraryStore, probe: TagProbe) -> bool:
    """Catalog a new file. Unreadable files are still cataloged without tags."""
    try:
        track = _track_from_tags(path, probe(path))
    except ProbeError as e:
        logger.warning(f"{e} (cataloging without metadata)")
        track = Track(filename=path)
    except Exception:
        logger.exception(f"Tag probe crashed on {path} (cataloging without metadata)")
        track = Track(filename=path)

    try:
        store.insert_track(track)
    except StoreError as e:
        logger.error(f"Failed to catalog {path}: {e}")
        return False
    return True


class ScanHandle:
    """A scan running on a background thread.

    The consumer either iterates ``events()`` (blocking) or calls ``poll()``
    from a UI loop; both end with the Complete event.
    """

    def __init__(self, events: Iterator[ProgressEvent]):
        self.channel = ProgressChannel()
        self._events = events
        self.error: Optional[BaseException] = None
        self.thread = threading.Thread(
            target=self._run, daemon=True, name="LibraryScanThread"
        )
        mark_silent(self.thread)

    def start(self) -> "ScanHandle":
        self.thread.start()
        return self

    def _run(self) -> None:
        found = skipped = added = updated = 0
        try:
            for event in self._events:
                if isinstance(event, FoundFile):
                    found, skipped = event.found, event.skipped
                elif isinstance(event, ScannedFile):
                    found, skipped, added, updated = event[:4]
                self.channel.send(event)
        except Exception as e:
            self.error = e
            logger.exception("Library scan failed")

        if not self.channel.closed:
            # Stream always terminates, carrying the counts reached so far;
            # after a failure the stale list was never computed
            self.channel.send(Complete(found, skipped, added, updated, []))

    @property
    def running(self) -> bool:
        return self.thread.is_alive()

    @property
    def failed(self) -> bool:
        """True if the scan stopped early; its Complete event is partial."""
        return self.error is not None

    @property
    def result(self) -> Optional[Complete]:
        """The Complete event once the consumer has received it."""
        return self.channel.result

    def events(self) -> Iterator[ProgressEvent]:
        return iter(self.channel)

    def poll(self) -> list[ProgressEvent]:
        return self.channel.drain()

    def join(self, timeout: Optional[float] = None) -> Optional[Complete]:
        """Wait for the worker, consume remaining events and return Complete."""
        self.thread.join(timeout)
        if self.thread.is_alive():
            return None
        self.channel.drain()
        return self.channel.result


def start_sync(
    roots: list[str],
    store: LibraryStore,
    probe: TagProbe = probe_tags,
    duration_probe: DurationProbe = probe_duration,
    extensions: Iterable[str] = DEFAULT_AUDIO_EXTENSIONS,
) -> ScanHandle:
    """Run sync_library() on a background thread.

    Raises:
        ConfigurationError: If ``roots`` is empty (nothing is started)
    """
    events = sync_library(roots, store, probe, duration_probe, extensions)
    return ScanHandle(events).start()


class ScanCoordinator:
    """Allows one scan at a time against a catalog."""

    def __init__(self, store: LibraryStore):
        self.store = store
        self._lock = threading.Lock()
        self._current: Optional[ScanHandle] = None

    @property
    def running(self) -> bool:
        return self._current is not None and self._current.running

    def start(self, roots: list[str], **kwargs) -> ScanHandle:
        """Start a background scan.

        Raises:
            ScanInProgressError: If a previous scan is still running
            ConfigurationError: If ``roots`` is empty
        """
        with self._lock:
            if self.running:
                raise ScanInProgressError("A library scan is already running")
            self._current = start_sync(roots, self.store, **kwargs)
            return self._current
