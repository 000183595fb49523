"""
Helpers shared by command handlers: addressing items from the command line
and rendering item lists.
"""

import os
from typing import Iterable, Optional

from rich.table import Table

from mediadeck.context import AppContext
from mediadeck.domain.library.models import ItemRef, MediaItem, TrackRef, Video
from mediadeck.domain.youtube.channels import lookup_video_by_provider_id

VIDEO_PREFIX = "video:"


def resolve_item_arg(ctx: AppContext, arg: str) -> Optional[ItemRef]:
    """
    Turn a command-line item address into a reference.

    Tracks are addressed by file path, videos by ``video:<provider id>``.

    Returns:
        The reference, or None if the item is not in the catalog
    """
    if arg.startswith(VIDEO_PREFIX):
        video = lookup_video_by_provider_id(ctx.db, arg[len(VIDEO_PREFIX):])
        return video.ref if video else None

    filename = os.path.abspath(os.path.expanduser(arg))
    track = ctx.store.lookup_by_filename(filename)
    return TrackRef(track.filename) if track else None


def item_address(item: MediaItem) -> str:
    """Inverse of resolve_item_arg (for display)."""
    if isinstance(item, Video):
        return f"{VIDEO_PREFIX}{item.video_id}"
    return item.filename


def items_table(
    items: Iterable[MediaItem],
    title: Optional[str] = None,
    positions: Optional[Iterable[int]] = None,
) -> Table:
    """Build a rich table of items (one row each, in the given order)."""
    table = Table(title=title, show_lines=False, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Artist", style="cyan")
    table.add_column("Album", style="magenta")
    table.add_column("Time", justify="right")
    table.add_column("Address", style="dim", overflow="fold")

    items = list(items)
    numbers = list(positions) if positions is not None else list(range(len(items)))
    for number, item in zip(numbers, items):
        table.add_row(
            str(number),
            item.display_title,
            item.display_artist,
            item.display_album,
            item.duration_str,
            item_address(item),
        )
    return table
