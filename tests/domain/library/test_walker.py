"""Tests for directory walking."""

import os

import pytest

from mediadeck.domain.library.walker import has_audio_extension, walk_audio_files, walk_files


class TestWalkFiles:
    """Tests for walk_files()."""

    def test_yields_each_regular_file_once(self, music_dir, touch) -> None:
        expected = {
            touch(music_dir / "a.mp3"),
            touch(music_dir / "x" / "b.mp3"),
            touch(music_dir / "x" / "y" / "c.txt"),
        }

        found = list(walk_files(str(music_dir)))

        assert len(found) == len(expected)
        assert set(found) == expected

    def test_order_is_deterministic(self, music_dir, touch) -> None:
        for name in ("c.mp3", "a.mp3", "b.mp3"):
            touch(music_dir / name)

        found = [os.path.basename(p) for p in walk_files(str(music_dir))]

        assert found == ["a.mp3", "b.mp3", "c.mp3"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_directories_are_not_followed(self, music_dir, touch) -> None:
        touch(music_dir / "real" / "a.mp3")
        # A cycle back to the root
        os.symlink(music_dir, music_dir / "loop")

        found = list(walk_files(str(music_dir)))

        assert found == [str(music_dir / "real" / "a.mp3")]

    def test_errors_are_reported_and_skipped(self, tmp_path) -> None:
        errors = []

        found = list(walk_files(str(tmp_path / "missing"), on_error=errors.append))

        assert found == []
        assert len(errors) == 1
        assert isinstance(errors[0], OSError)


class TestAudioFilter:
    """Tests for the extension allowlist."""

    def test_case_insensitive(self) -> None:
        assert has_audio_extension("/m/a.MP3", {"mp3"})
        assert has_audio_extension("/m/a.Flac", {"flac"})

    def test_no_extension(self) -> None:
        assert not has_audio_extension("/m/README", {"mp3"})

    def test_walk_audio_files_filters(self, music_dir, touch) -> None:
        song = touch(music_dir / "song.opus")
        touch(music_dir / "notes.txt")
        touch(music_dir / "cover.jpg")

        assert list(walk_audio_files(str(music_dir), ["opus", ".MP3"])) == [song]
