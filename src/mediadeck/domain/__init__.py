"""Business domains: library, playlists, playback, youtube."""
