"""
Ordered collections: the playback queue and playlists.

Both are position-ordered lists of item references. Appends take the
current maximum position plus one, so every mutation of a scope runs under
that scope's lock. Entries whose track or video has disappeared are dropped
when reading, never reported as errors.
"""

import threading
from collections import Counter, defaultdict, deque
from typing import Iterable, Optional, Union

from loguru import logger

from mediadeck.domain.library.models import (
    CollectionEntry,
    ItemRef,
    MediaItem,
    Track,
    TrackRef,
    Video,
    VideoRef,
)
from mediadeck.domain.library.store import QUEUE, LibraryStore, Scope
from mediadeck.exceptions import ReorderMismatchError


def _as_ref(item: Union[MediaItem, ItemRef]) -> ItemRef:
    if isinstance(item, (Track, Video)):
        return item.ref
    if isinstance(item, (TrackRef, VideoRef)):
        return item
    raise TypeError(f"Expected a track, video or item reference, got {item!r}")


class OrderedCollection:
    """A position-ordered scope of item references."""

    def __init__(self, store: LibraryStore, scope: Scope, lock: threading.RLock):
        self.store = store
        self.scope = scope
        self.lock = lock

    def resolve(self, ref: ItemRef) -> Optional[MediaItem]:
        """Look up the track or video a reference points to (None if gone)."""
        if isinstance(ref, TrackRef):
            return self.store.lookup_by_filename(ref.filename)
        return self.store.lookup_video(ref.video_db_id)

    def append(self, item: Union[MediaItem, ItemRef]) -> int:
        """Add an item after every existing entry.

        Returns:
            The new entry's position

        Raises:
            StoreError: If the item is not in the catalog
        """
        ref = _as_ref(item)
        with self.lock:
            max_position = self.store.max_position(self.scope)
            position = (max_position if max_position is not None else -1) + 1
            self.store.insert_entry(self.scope, ref, position)

        logger.debug(f"Appended {ref} to {self.scope} at position {position}")
        return position

    def extend(self, items: Iterable[Union[MediaItem, ItemRef]]) -> list[int]:
        with self.lock:
            return [self.append(item) for item in items]

    def remove(self, item: Union[MediaItem, ItemRef]) -> int:
        """Remove every entry referring to ``item``. Positions are kept.

        Returns:
            Number of entries removed
        """
        ref = _as_ref(item)
        with self.lock:
            removed = self.store.delete_entries(self.scope, ref)
        logger.debug(f"Removed {removed} entries of {ref} from {self.scope}")
        return removed

    def reorder(self, refs: Iterable[Union[MediaItem, ItemRef]], strict: bool = False) -> None:
        """Renumber entries to follow ``refs``: the entry at index i gets position i.

        An item listed twice matches its entries in their current order.

        Args:
            refs: The complete new order
            strict: Raise instead of applying an order that omits entries or
                names items that are not in the collection. When not strict,
                unknown items are ignored and unnamed entries keep their position.

        Raises:
            ReorderMismatchError: In strict mode, if ``refs`` and the current
                entries differ
        """
        refs = [_as_ref(item) for item in refs]

        with self.lock:
            entries = self.store.list_entries(self.scope)

            if strict:
                wanted = Counter(refs)
                current = Counter(entry.ref for entry in entries)
                if wanted != current:
                    raise ReorderMismatchError(
                        missing=list((current - wanted).elements()),
                        unexpected=list((wanted - current).elements()),
                    )

            pending: dict[ItemRef, deque[int]] = defaultdict(deque)
            for entry in entries:
                pending[entry.ref].append(entry.id)

            positions = []
            for position, ref in enumerate(refs):
                if pending[ref]:
                    positions.append((pending[ref].popleft(), position))
                else:
                    logger.warning(f"Reorder of {self.scope} names unknown item {ref}")

            self.store.set_entry_positions(self.scope, positions)

        logger.debug(f"Reordered {len(positions)} entries of {self.scope}")

    def entries(self) -> list[CollectionEntry]:
        """Raw entries in position order (including dangling ones)."""
        with self.lock:
            return self.store.list_entries(self.scope)

    def resolved_entries(self) -> list[tuple[CollectionEntry, MediaItem]]:
        """Entries paired with their items; dangling entries are dropped."""
        resolved = []
        for entry in self.entries():
            item = self.resolve(entry.ref)
            if item is None:
                logger.debug(f"Dropping dangling {self.scope} entry #{entry.id} ({entry.ref})")
                continue
            resolved.append((entry, item))
        return resolved

    def list(self) -> list[MediaItem]:
        """Items in position order; entries whose item is gone are left out."""
        return [item for _, item in self.resolved_entries()]

    def clear(self) -> int:
        with self.lock:
            removed = self.store.clear_entries(self.scope)
        logger.info(f"Cleared {removed} entries from {self.scope}")
        return removed

    def __len__(self) -> int:
        return self.store.count_entries(self.scope)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.scope})"


class Queue(OrderedCollection):
    """The playback queue (first in, first out)."""

    def pop_front(self) -> Optional[MediaItem]:
        """Remove and return the item with the lowest position.

        Entries whose item no longer exists are removed and skipped. The
        remaining entries are not renumbered.

        Returns:
            The next item, or None if the queue is empty
        """
        with self.lock:
            for entry in self.store.list_entries(self.scope):
                self.store.delete_entry(self.scope, entry.id)
                item = self.resolve(entry.ref)
                if item is not None:
                    return item
                logger.warning(f"Skipping queue entry for missing item {entry.ref}")
        return None


class Playlist(OrderedCollection):
    """A user playlist."""

    @property
    def playlist_id(self) -> int:
        return self.scope.playlist_id


class CollectionManager:
    """Hands out collections that share one lock per scope.

    Every consumer of a catalog (CLI command, UI, background job) should get
    its queue and playlists from the same manager so their mutations are
    serialised.
    """

    def __init__(self, store: LibraryStore):
        self.store = store
        self._locks: dict[Scope, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, scope: Scope) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(scope)
            if lock is None:
                lock = self._locks[scope] = threading.RLock()
            return lock

    def queue(self) -> Queue:
        return Queue(self.store, QUEUE, self._lock_for(QUEUE))

    def playlist(self, playlist_id: int) -> Playlist:
        scope = Scope(playlist_id)
        return Playlist(self.store, scope, self._lock_for(scope))
