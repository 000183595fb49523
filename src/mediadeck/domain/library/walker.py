"""
Directory walking for library scans.

Yields every regular file under a root exactly once. Symlinks are never
followed (no cycles) and unreadable entries are logged and skipped.
"""

import os
from typing import Callable, Iterable, Iterator, Optional

from loguru import logger

WalkErrorHandler = Callable[[OSError], None]


def _log_walk_error(error: OSError) -> None:
    logger.warning(f"Skipping unreadable entry {error.filename}: {error.strerror or error}")


def walk_files(root: str, on_error: Optional[WalkErrorHandler] = None) -> Iterator[str]:
    """Lazily yield the paths of regular files below ``root`` (depth first).

    Args:
        root: Directory to walk
        on_error: Called with the OSError for each entry that cannot be read
            (default: log a warning)

    Yields:
        File paths as ``os.path.join(dirpath, name)`` strings
    """
    on_error = on_error or _log_walk_error
    pending = [root]

    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            on_error(e)
            continue

        subdirectories = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(entry.path)
                elif entry.is_file(follow_symlinks=False):
                    yield entry.path
            except OSError as e:
                on_error(e)

        # Reversed so the stack pops them in name order
        pending.extend(reversed(subdirectories))


def has_audio_extension(path: str, extensions: Iterable[str]) -> bool:
    """Check the file extension against the allowlist (case-insensitive)."""
    suffix = os.path.splitext(path)[1]
    if not suffix:
        return False
    return suffix[1:].lower() in extensions


def walk_audio_files(
    root: str,
    extensions: Iterable[str],
    on_error: Optional[WalkErrorHandler] = None,
) -> Iterator[str]:
    """Yield only the files under ``root`` whose extension is recognised."""
    allowed = {ext.lower().lstrip(".") for ext in extensions}
    for path in walk_files(root, on_error=on_error):
        if has_audio_extension(path, allowed):
            yield path
