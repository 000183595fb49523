"""Centralized Rich Console management."""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Get or create the shared Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console | None) -> None:
    """Replace the shared console (tests capture output this way)."""
    global _console
    _console = console
