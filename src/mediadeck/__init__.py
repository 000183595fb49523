"""
mediadeck: a personal media library manager.

Keeps a SQLite catalog of local audio files and YouTube videos in sync with
the filesystem, and manages the playback queue and playlists over it.
"""

__version__ = "0.3.0"
