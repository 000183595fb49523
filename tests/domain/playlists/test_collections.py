"""Tests for the queue and playlist collections."""

import threading

import pytest

from mediadeck.domain.library.models import TrackRef, VideoRef
from mediadeck.domain.playlists.crud import create_playlist
from mediadeck.exceptions import ReorderMismatchError, StoreError


def positions(collection):
    return [(entry.position, entry.ref) for entry in collection.entries()]


class TestQueue:
    """Tests for the playback queue."""

    def test_append_positions_are_sequential(self, collections, add_tracks) -> None:
        tracks = add_tracks("/m/c.mp3", "/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()

        assert [queue.append(t) for t in tracks] == [0, 1, 2]
        assert [item.filename for item in queue.list()] == ["/m/c.mp3", "/m/a.mp3", "/m/b.mp3"]

    def test_pop_front_does_not_renumber(self, collections, add_tracks, video) -> None:
        (track,) = add_tracks("/m/x.mp3")
        queue = collections.queue()
        queue.append(track)
        queue.append(video)

        popped = queue.pop_front()

        assert popped == track
        assert positions(queue) == [(1, VideoRef(video.id))]

    def test_pop_front_empty(self, collections) -> None:
        assert collections.queue().pop_front() is None

    def test_pop_front_skips_dangling(self, db, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        queue.append(a)
        queue.append(b)
        with db.connection() as conn:
            # Without foreign keys the entry outlives its track
            conn.execute("PRAGMA foreign_keys = OFF")
            conn.execute("DELETE FROM tracks WHERE filename = '/m/a.mp3'")
            conn.commit()
            conn.execute("PRAGMA foreign_keys = ON")

        assert queue.pop_front() == b
        assert len(queue) == 0

    def test_append_after_pop_continues_from_max(self, collections, add_tracks) -> None:
        a, b, c = add_tracks("/m/a.mp3", "/m/b.mp3", "/m/c.mp3")
        queue = collections.queue()
        queue.append(a)
        queue.append(b)
        queue.pop_front()

        assert queue.append(c) == 2

    def test_list_drops_dangling_entries(self, db, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        queue.append(a)
        queue.append(b)
        with db.connection() as conn:
            conn.execute("PRAGMA foreign_keys = OFF")
            conn.execute("DELETE FROM tracks WHERE filename = '/m/a.mp3'")
            conn.commit()
            conn.execute("PRAGMA foreign_keys = ON")

        assert queue.list() == [b]
        assert len(queue.entries()) == 2

    def test_deleted_track_disappears_from_queue(self, store, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        queue.append(a)
        queue.append(b)

        store.delete_by_filenames(["/m/a.mp3"])

        assert queue.list() == [b]

    def test_remove_all_matching(self, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        for item in (a, b, a):
            queue.append(item)

        assert queue.remove(TrackRef("/m/a.mp3")) == 2
        assert positions(queue) == [(1, TrackRef("/m/b.mp3"))]

    def test_clear_and_len(self, collections, add_tracks) -> None:
        queue = collections.queue()
        queue.extend(add_tracks("/m/a.mp3", "/m/b.mp3"))
        assert len(queue) == 2

        assert queue.clear() == 2
        assert len(queue) == 0

    def test_append_unknown_item_fails(self, collections) -> None:
        with pytest.raises(StoreError):
            collections.queue().append(TrackRef("/m/missing.mp3"))

    def test_concurrent_appends_get_distinct_positions(self, collections, add_tracks) -> None:
        tracks = add_tracks(*[f"/m/{i:02d}.mp3" for i in range(20)])
        queue = collections.queue()

        threads = [
            threading.Thread(target=collections.queue().append, args=(t,)) for t in tracks
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(e.position for e in queue.entries()) == list(range(20))


class TestReorder:
    """Tests for reorder()."""

    def test_positions_dense_in_given_order(self, collections, add_tracks) -> None:
        a, b, c = add_tracks("/m/a.mp3", "/m/b.mp3", "/m/c.mp3")
        queue = collections.queue()
        queue.extend([a, b, c])
        queue.pop_front()
        queue.append(a)  # positions now 1, 2, 3

        queue.reorder([TrackRef("/m/a.mp3"), TrackRef("/m/c.mp3"), TrackRef("/m/b.mp3")])

        assert positions(queue) == [
            (0, TrackRef("/m/a.mp3")),
            (1, TrackRef("/m/c.mp3")),
            (2, TrackRef("/m/b.mp3")),
        ]

    def test_accepts_items(self, collections, add_tracks, video) -> None:
        (a,) = add_tracks("/m/a.mp3")
        queue = collections.queue()
        queue.extend([a, video])

        queue.reorder([video, a])

        assert queue.list() == [video, a]

    def test_duplicates_keep_separate_entries(self, db, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        playlist = collections.playlist(create_playlist(db, "dupes"))
        playlist.extend([a, b, a])

        playlist.reorder([a, a, b])

        assert [p for p, _ in positions(playlist)] == [0, 1, 2]
        assert [ref for _, ref in positions(playlist)] == [a.ref, a.ref, b.ref]

    def test_permissive_ignores_unknown_refs(self, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        queue.extend([a, b])

        queue.reorder([b.ref, TrackRef("/m/stranger.mp3")])

        # b takes position 0, a is untouched
        assert sorted((p, r.filename) for p, r in positions(queue)) == [
            (0, "/m/a.mp3"),
            (0, "/m/b.mp3"),
        ]

    def test_strict_rejects_incomplete_list(self, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        queue.extend([a, b])

        with pytest.raises(ReorderMismatchError) as exc_info:
            queue.reorder([b.ref, TrackRef("/m/stranger.mp3")], strict=True)

        assert exc_info.value.missing == [a.ref]
        assert exc_info.value.unexpected == [TrackRef("/m/stranger.mp3")]
        assert positions(queue) == [(0, a.ref), (1, b.ref)]

    def test_strict_accepts_exact_list(self, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        queue = collections.queue()
        queue.extend([a, b])

        queue.reorder([b, a], strict=True)

        assert queue.list() == [b, a]


class TestPlaylists:
    """Tests for playlist scopes."""

    def test_playlists_are_independent(self, db, collections, add_tracks) -> None:
        a, b = add_tracks("/m/a.mp3", "/m/b.mp3")
        first = collections.playlist(create_playlist(db, "first"))
        second = collections.playlist(create_playlist(db, "second"))

        first.append(a)
        assert second.append(b) == 0
        assert first.append(b) == 1

        assert first.list() == [a, b]
        assert second.list() == [b]
        assert len(collections.queue()) == 0

    def test_same_scope_shares_lock(self, db, collections) -> None:
        playlist_id = create_playlist(db, "p")
        assert collections.playlist(playlist_id).lock is collections.playlist(playlist_id).lock
        assert collections.queue().lock is not collections.playlist(playlist_id).lock
