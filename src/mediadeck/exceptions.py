"""Exceptions raised by mediadeck."""

from typing import Optional


class MediaDeckError(Exception):
    """Base exception for mediadeck operations."""

    pass


class ConfigurationError(MediaDeckError):
    """Raised when the configuration cannot be used (e.g. no library folders)."""

    pass


class ProbeError(MediaDeckError):
    """Raised when tags or duration cannot be read from an audio file."""

    def __init__(self, path: str, reason: str = "unreadable"):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not probe {path}: {reason}")


class StoreError(MediaDeckError):
    """Raised when a catalog write fails."""

    pass


class InvalidEntryError(StoreError):
    """Raised for a queue/playlist row with zero or two item references set."""

    def __init__(self, entry_id: int, message: Optional[str] = None):
        self.entry_id = entry_id
        super().__init__(
            message or f"Entry #{entry_id} must reference exactly one track or video"
        )


class PlaylistError(MediaDeckError):
    """Base exception for playlist operations."""

    pass


class PlaylistNotFoundError(PlaylistError):
    """Raised when a playlist id or name does not exist."""

    pass


class DuplicatePlaylistError(PlaylistError):
    """Raised when a playlist name is already taken."""

    pass


class ReorderMismatchError(MediaDeckError):
    """Raised by strict reorder when the supplied refs differ from the scope's entries."""

    def __init__(self, missing: list, unexpected: list):
        self.missing = missing
        self.unexpected = unexpected
        super().__init__(
            f"Reorder list does not match collection: "
            f"{len(missing)} missing, {len(unexpected)} unexpected"
        )


class ScanInProgressError(MediaDeckError):
    """Raised when a scan is started while another one is still running."""

    pass


class InvalidYouTubeURLError(MediaDeckError):
    """Raised when a URL is not a recognisable YouTube video URL."""

    pass
