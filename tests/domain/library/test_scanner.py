"""Tests for library synchronisation."""

import os
from unittest.mock import patch

import pytest

from mediadeck.domain.library.metadata import TagInfo
from mediadeck.domain.library.progress import (
    Complete,
    FoundFile,
    ScannedFile,
    StartingFolder,
)
from mediadeck.domain.library.scanner import (
    Classification,
    ScanCoordinator,
    classify,
    find_stale,
    is_under_root,
    partition_catalog,
    start_sync,
    sync_library,
)
from mediadeck.domain.library.models import Track
from mediadeck.exceptions import ConfigurationError, ScanInProgressError, StoreError


def run_sync(roots, store, fake_probe, **kwargs):
    """Consume a scan and return its events."""
    return list(
        sync_library(
            [str(r) for r in roots],
            store,
            probe=fake_probe.probe,
            duration_probe=fake_probe.duration,
            **kwargs,
        )
    )


class TestClassify:
    """Tests for the per-file classification."""

    def test_complete_file_is_skipped(self) -> None:
        assert classify("/m/a.mp3", {"/m/a.mp3"}, set()) is Classification.SKIP

    def test_incomplete_file_is_refreshed(self) -> None:
        assert classify("/m/a.mp3", set(), {"/m/a.mp3"}) is Classification.REFRESH

    def test_unknown_file_is_inserted(self) -> None:
        assert classify("/m/new.mp3", {"/m/a.mp3"}, {"/m/b.mp3"}) is Classification.INSERT

    def test_partition_is_disjoint(self) -> None:
        """Catalog rows split by whether a duration is known."""
        tracks = [
            Track("/m/a.mp3", duration_seconds=100),
            Track("/m/b.mp3"),
            Track("/m/c.mp3", duration_seconds=0),
        ]
        complete, incomplete = partition_catalog(tracks)
        assert complete == {"/m/a.mp3", "/m/c.mp3"}
        assert incomplete == {"/m/b.mp3"}
        assert not complete & incomplete


class TestStaleDetection:
    """Tests for stale path scoping."""

    def test_path_boundary(self) -> None:
        """A sibling folder sharing a prefix is not under the root."""
        assert is_under_root("/music/a.mp3", "/music")
        assert is_under_root("/music/sub/a.mp3", "/music")
        assert not is_under_root("/music2/a.mp3", "/music")

    def test_only_scanned_roots_are_considered(self) -> None:
        filenames = ["/music/gone.mp3", "/other/gone.mp3", "/music/here.mp3"]
        stale = find_stale(filenames, ["/music"], exists=lambda f: f == "/music/here.mp3")
        assert stale == ["/music/gone.mp3"]


class TestSyncLibrary:
    """Tests for sync_library()."""

    def test_empty_roots_raise_before_any_event(self, store) -> None:
        with pytest.raises(ConfigurationError):
            sync_library([], store)

    def test_first_scan_inserts_audio_files(self, store, fake_probe, music_dir, touch) -> None:
        a = touch(music_dir / "a.mp3")
        b = touch(music_dir / "sub" / "b.FLAC")
        touch(music_dir / "cover.jpg")

        events = run_sync([music_dir], store, fake_probe)

        assert events[0] == StartingFolder(str(music_dir))
        assert isinstance(events[-1], Complete)
        complete = events[-1]
        assert (complete.found, complete.skipped, complete.added, complete.updated) == (2, 0, 2, 0)
        assert complete.stale == []
        assert sorted(store.list_all_filenames()) == sorted([a, b])
        assert store.lookup_by_filename(a).title == "a"

    def test_event_sequence(self, store, fake_probe, music_dir, touch) -> None:
        """Each file produces FoundFile then ScannedFile; Complete is last and unique."""
        path = touch(music_dir / "a.mp3")

        events = run_sync([music_dir], store, fake_probe)

        assert events == [
            StartingFolder(str(music_dir)),
            FoundFile(1, 0, path),
            ScannedFile(1, 0, 1, 0, path),
            Complete(1, 0, 1, 0, []),
        ]

    def test_skipped_files_emit_no_scanned_event(self, store, fake_probe, music_dir, touch, add_tracks) -> None:
        path = touch(music_dir / "a.mp3")
        add_tracks(path)

        events = run_sync([music_dir], store, fake_probe)

        assert events[1:] == [FoundFile(1, 0, path), Complete(1, 1, 0, 0, [])]
        assert fake_probe.calls == []

    def test_second_scan_is_idempotent(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")
        touch(music_dir / "b.ogg")

        first = run_sync([music_dir], store, fake_probe)[-1]
        second = run_sync([music_dir], store, fake_probe)[-1]

        assert first.added == 2
        assert (second.added, second.updated, second.skipped) == (0, 0, 2)
        assert second.stale == first.stale

    def test_complete_and_incomplete_tracks(self, store, fake_probe, music_dir, touch, add_tracks) -> None:
        """A complete and an incomplete track: one skipped, one refreshed."""
        a = touch(music_dir / "A.mp3")
        b = touch(music_dir / "B.mp3")
        add_tracks((a, 240), (b, None))

        complete = run_sync([music_dir], store, fake_probe)[-1]

        assert (complete.skipped, complete.updated, complete.added) == (1, 1, 0)
        assert store.lookup_by_filename(b).duration_seconds == 180
        # Refresh reads the duration only
        assert fake_probe.calls == []
        assert fake_probe.duration_calls == [b]

    def test_deleted_file_is_reported_stale(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "A.mp3")
        c = touch(music_dir / "C.mp3")
        run_sync([music_dir], store, fake_probe)

        os.remove(c)
        complete = run_sync([music_dir], store, fake_probe)[-1]

        assert complete.stale == [c]
        # The scan reports; it does not delete
        assert store.lookup_by_filename(c) is not None

    def test_missing_file_under_unscanned_root_is_not_stale(self, store, fake_probe, tmp_path, touch, add_tracks) -> None:
        scanned = tmp_path / "scanned"
        other = tmp_path / "other"
        touch(scanned / "a.mp3")
        add_tracks(str(other / "gone.mp3"))

        complete = run_sync([scanned], store, fake_probe)[-1]

        assert complete.stale == []

    def test_probe_failure_on_insert_catalogs_without_metadata(self, store, fake_probe, music_dir, touch) -> None:
        bad = touch(music_dir / "bad.mp3")
        fake_probe.failing.add(bad)

        complete = run_sync([music_dir], store, fake_probe)[-1]

        assert complete.added == 1
        track = store.lookup_by_filename(bad)
        assert track is not None
        assert (track.title, track.artist, track.duration_seconds) == (None, None, None)

    def test_probe_failure_on_refresh_leaves_row(self, store, fake_probe, music_dir, touch, add_tracks) -> None:
        path = touch(music_dir / "a.mp3")
        add_tracks((path, None))
        fake_probe.failing.add(path)

        complete = run_sync([music_dir], store, fake_probe)[-1]

        assert complete.updated == 0
        assert store.lookup_by_filename(path).duration_seconds is None

    def test_store_error_is_not_counted(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")
        touch(music_dir / "b.mp3")

        original_insert = store.insert_track

        def flaky_insert(track):
            if track.filename.endswith("a.mp3"):
                raise StoreError("disk full")
            original_insert(track)

        with patch.object(store, "insert_track", side_effect=flaky_insert):
            complete = run_sync([music_dir], store, fake_probe)[-1]

        assert (complete.found, complete.added) == (2, 1)

    def test_tags_are_stored(self, store, fake_probe, music_dir, touch) -> None:
        path = touch(music_dir / "song.mp3")
        fake_probe.tags[path] = TagInfo(
            title="Song",
            artist="Artist",
            album="Album",
            album_artist="Various",
            track_number="3/12",
            genre="Jazz",
            duration_seconds=321,
        )

        run_sync([music_dir], store, fake_probe)

        track = store.lookup_by_filename(path)
        assert track.title == "Song"
        assert track.album_artist_or_artist == "Various"
        assert track.track_number == "3/12"
        assert track.duration_seconds == 321

    def test_roots_are_scanned_in_order(self, store, fake_probe, tmp_path, touch) -> None:
        first = tmp_path / "z_first"
        second = tmp_path / "a_second"
        touch(first / "1.mp3")
        touch(second / "2.mp3")

        events = run_sync([first, second], store, fake_probe)

        starts = [e.root for e in events if isinstance(e, StartingFolder)]
        assert starts == [str(first), str(second)]

    def test_custom_extensions(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")
        touch(music_dir / "b.xyz")

        complete = run_sync([music_dir], store, fake_probe, extensions=["xyz"])[-1]

        assert complete.found == 1

    def test_missing_root_completes(self, store, fake_probe, tmp_path) -> None:
        complete = run_sync([tmp_path / "nope"], store, fake_probe)[-1]
        assert complete == Complete(0, 0, 0, 0, [])

    def test_crashing_probe_does_not_end_scan(self, store, fake_probe, music_dir, touch, add_tracks) -> None:
        bad = touch(music_dir / "a.mp3")
        later = touch(music_dir / "b.mp3")
        gone = str(music_dir / "gone.mp3")
        add_tracks(gone)

        def crashing_probe(path):
            if path == bad:
                raise ValueError("unexpected atom")
            return fake_probe.probe(path)

        complete = list(
            sync_library([str(music_dir)], store, probe=crashing_probe, duration_probe=fake_probe.duration)
        )[-1]

        assert (complete.found, complete.added) == (2, 2)
        assert complete.stale == [gone]
        assert store.lookup_by_filename(bad).title is None
        assert store.lookup_by_filename(later).title == "b"

    def test_crashing_duration_probe_does_not_end_scan(self, store, music_dir, touch, add_tracks) -> None:
        first = touch(music_dir / "a.mp3")
        second = touch(music_dir / "b.mp3")
        add_tracks((first, None), (second, None))

        def crashing_duration(path):
            if path == first:
                raise IndexError("list index out of range")
            return 99

        complete = list(
            sync_library([str(music_dir)], store, duration_probe=crashing_duration)
        )[-1]

        assert (complete.found, complete.updated) == (2, 1)
        assert store.lookup_by_filename(first).duration_seconds is None
        assert store.lookup_by_filename(second).duration_seconds == 99

    def test_undecodable_filename_is_skipped(self, store, fake_probe, music_dir, touch, add_tracks) -> None:
        raw_dir = os.path.join(os.fsencode(str(music_dir)), b"sub")
        os.mkdir(raw_dir)
        try:
            os.close(os.open(os.path.join(raw_dir, b"\xff.mp3"), os.O_CREAT | os.O_WRONLY))
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        later = touch(music_dir / "sub2" / "later.mp3")
        gone = str(music_dir / "gone.mp3")
        add_tracks(gone)

        complete = run_sync([music_dir], store, fake_probe)[-1]

        assert (complete.found, complete.added) == (2, 1)
        assert complete.stale == [gone]
        assert store.lookup_by_filename(later) is not None


class TestBackgroundScan:
    """Tests for start_sync() and ScanCoordinator."""

    def test_events_end_with_complete(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")

        handle = start_sync(
            [str(music_dir)], store, probe=fake_probe.probe, duration_probe=fake_probe.duration
        )
        events = list(handle.events())
        handle.join(timeout=5)

        assert isinstance(events[-1], Complete)
        assert handle.result == events[-1]
        assert handle.result.added == 1

    def test_empty_roots_start_nothing(self, store) -> None:
        with pytest.raises(ConfigurationError):
            start_sync([], store)

    def test_unexpected_failure_is_flagged(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")

        with patch.object(store, "list_all_filenames", side_effect=RuntimeError("boom")):
            handle = start_sync(
                [str(music_dir)], store, probe=fake_probe.probe, duration_probe=fake_probe.duration
            )
            result = handle.join(timeout=5)

        # The stream still terminates, but the result is marked partial
        assert handle.failed
        assert isinstance(handle.error, RuntimeError)
        assert result == Complete(1, 0, 1, 0, [])

    def test_per_file_failures_are_not_scan_failures(self, store, fake_probe, music_dir, touch, add_tracks) -> None:
        bad = touch(music_dir / "a.mp3")
        touch(music_dir / "b.mp3")
        gone = str(music_dir / "gone.mp3")
        add_tracks(gone)

        def crashing_probe(path):
            if path == bad:
                raise ValueError("unexpected atom")
            return fake_probe.probe(path)

        handle = start_sync(
            [str(music_dir)], store, probe=crashing_probe, duration_probe=fake_probe.duration
        )
        result = handle.join(timeout=5)

        assert not handle.failed
        assert (result.found, result.added) == (2, 2)
        assert result.stale == [gone]

    def test_poll_drains_without_blocking(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")

        handle = start_sync(
            [str(music_dir)], store, probe=fake_probe.probe, duration_probe=fake_probe.duration
        )
        handle.thread.join(timeout=5)
        events = handle.poll()

        assert isinstance(events[-1], Complete)
        assert handle.poll() == []

    def test_second_scan_is_rejected_while_running(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")
        coordinator = ScanCoordinator(store)

        with patch("mediadeck.domain.library.scanner.ScanHandle.running", new=True):
            coordinator.start(
                [str(music_dir)], probe=fake_probe.probe, duration_probe=fake_probe.duration
            )
            with pytest.raises(ScanInProgressError):
                coordinator.start([str(music_dir)])

    def test_scan_allowed_after_previous_finished(self, store, fake_probe, music_dir, touch) -> None:
        touch(music_dir / "a.mp3")
        coordinator = ScanCoordinator(store)

        first = coordinator.start(
            [str(music_dir)], probe=fake_probe.probe, duration_probe=fake_probe.duration
        )
        first.join(timeout=5)
        second = coordinator.start(
            [str(music_dir)], probe=fake_probe.probe, duration_probe=fake_probe.duration
        )

        assert second.join(timeout=5).skipped == 1
