"""
Tag probing for audio files.

Reads title/artist/album/album artist/track number/genre and duration with
Mutagen. Failures surface as ProbeError; the scanner decides what to do.
"""

from typing import Any, NamedTuple, Optional

from loguru import logger
from mutagen import File as MutagenFile

from mediadeck.exceptions import ProbeError


class TagInfo(NamedTuple):
    """Metadata read from one file. Every field may be missing."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    album_artist: Optional[str] = None
    track_number: Optional[str] = None
    genre: Optional[str] = None
    duration_seconds: Optional[int] = None


# ID3 (MP3/AIFF/WAV), MP4 atoms, Vorbis/FLAC/Opus comments, APEv2, ASF (WMA)
TITLE_TAGS = ["TIT2", "\xa9nam", "title", "Title"]
ARTIST_TAGS = ["TPE1", "\xa9ART", "artist", "Artist", "Author"]
ALBUM_TAGS = ["TALB", "\xa9alb", "album", "Album", "WM/AlbumTitle"]
ALBUM_ARTIST_TAGS = [
    "TPE2",
    "aART",
    "albumartist",
    "album artist",
    "Album Artist",
    "WM/AlbumArtist",
]
TRACK_TAGS = ["TRCK", "trkn", "tracknumber", "Track", "WM/TrackNumber"]
GENRE_TAGS = ["TCON", "\xa9gen", "genre", "Genre", "WM/Genre"]


def _tag_to_str(value: Any) -> Optional[str]:
    """Normalise the various Mutagen tag value shapes to a string."""
    if isinstance(value, list):
        if not value:
            return None
        value = value[0]

    # MP4 track numbers are (number, total) tuples
    if isinstance(value, tuple):
        number = value[0] if value else None
        return str(number) if number else None

    if hasattr(value, "text"):  # ID3 frame
        text = value.text
        if isinstance(text, list):
            return str(text[0]) if text else None
        return str(text) if text else None

    if hasattr(value, "value") and not isinstance(value, (str, bytes)):  # ASF/APE
        value = value.value

    text = str(value).strip()
    return text or None


def get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    tags = getattr(audio_file, "tags", None)
    if tags is None:
        return None

    for tag_name in tag_names:
        try:
            value = tags.get(tag_name)
        except (KeyError, ValueError):
            # Vorbis comments raise ValueError for some non-existent keys
            continue
        if value:
            text = _tag_to_str(value)
            if text:
                return text
    return None


def _open(path: str) -> Any:
    try:
        audio_file = MutagenFile(path)
    except Exception as e:
        # Corrupt files raise more than MutagenError (IndexError, struct.error, ...)
        raise ProbeError(path, f"{type(e).__name__}: {e}") from e

    if audio_file is None:
        raise ProbeError(path, "unsupported format")
    return audio_file


def _duration(audio_file: Any) -> Optional[int]:
    info = getattr(audio_file, "info", None)
    length = getattr(info, "length", None)
    if length is None:
        return None
    # Whole seconds, truncated
    return int(length)


def probe_tags(path: str) -> TagInfo:
    """Read the full set of catalog tags plus duration from a file.

    Raises:
        ProbeError: If the file cannot be parsed
    """
    audio_file = _open(path)

    try:
        info = TagInfo(
            title=get_tag_value(audio_file, TITLE_TAGS),
            artist=get_tag_value(audio_file, ARTIST_TAGS),
            album=get_tag_value(audio_file, ALBUM_TAGS),
            album_artist=get_tag_value(audio_file, ALBUM_ARTIST_TAGS),
            track_number=get_tag_value(audio_file, TRACK_TAGS),
            genre=get_tag_value(audio_file, GENRE_TAGS),
            duration_seconds=_duration(audio_file),
        )
    except Exception as e:
        raise ProbeError(path, f"unreadable tags: {e}") from e
    logger.debug(f"Probed {path}: {info}")
    return info


def probe_duration(path: str) -> Optional[int]:
    """Read only the duration of a file (whole seconds).

    Raises:
        ProbeError: If the file cannot be parsed
    """
    audio_file = _open(path)
    try:
        return _duration(audio_file)
    except Exception as e:
        raise ProbeError(path, f"unreadable stream info: {e}") from e
