"""
Library view command handlers.

Handles: facets, recent, channels, folders
"""

import argparse

from rich.markup import escape
from rich.table import Table

from mediadeck.context import AppContext
from mediadeck.core.config import remove_folder, save_config
from mediadeck.core.output import log
from mediadeck.domain.library.facets import build_facets, filter_by_facets, search_items
from mediadeck.domain.library.models import Facet
from mediadeck.domain.playback.history import load_recently_added, load_recently_played
from mediadeck.domain.youtube.channels import list_channels, video_count_for_channel
from mediadeck.helpers import items_table


def handle_facets_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """List facets, or the tracks of one facet with --artist/--album."""
    tracks = ctx.store.load_tracks()

    if args.artist is not None or args.album is not None:
        selected = [Facet(args.artist, args.album)]
        matching = filter_by_facets(tracks, selected)
        ctx.console.print(items_table(matching, title=selected[0].label))
        return 0

    table = Table(title="Facets", header_style="bold")
    table.add_column("Album artist / artist", style="cyan")
    table.add_column("Album", style="magenta")
    for facet in build_facets(tracks):
        if facet.all:
            table.add_row(f"[bold]{facet.label}[/bold]", f"{len(tracks)} tracks")
        else:
            table.add_row(
                escape(facet.album_artist_or_artist or "Unknown"),
                escape(facet.album or "Unknown"),
            )
    ctx.console.print(table)
    return 0


def handle_search_command(ctx: AppContext, args: argparse.Namespace) -> int:
    results = search_items(ctx.store.load_tracks(), " ".join(args.query))
    if not results:
        log("No matches")
        return 0
    ctx.console.print(items_table(results, title=f"{len(results)} matches"))
    return 0


def handle_recent_command(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.added:
        items = load_recently_added(ctx.db, args.limit)
        title = "Recently added"
    else:
        items = load_recently_played(ctx.db, args.limit)
        title = "Recently played"

    if not items:
        log(f"{title}: nothing yet")
        return 0
    ctx.console.print(items_table(items, title=title))
    return 0


def handle_channels_command(ctx: AppContext, args: argparse.Namespace) -> int:
    channels = list_channels(ctx.db)
    if not channels:
        log("No YouTube channels followed")
        return 0

    table = Table(title="YouTube channels", header_style="bold")
    table.add_column("Name")
    table.add_column("Handle", style="cyan")
    table.add_column("Videos", justify="right")
    table.add_column("Last fetched")
    for channel in channels:
        last_fetched = channel.last_fetched.strftime("%Y-%m-%d") if channel.last_fetched else "-"
        table.add_row(
            escape(channel.name),
            escape(channel.handle or ""),
            str(video_count_for_channel(ctx.db, channel.id)),
            last_fetched,
        )
    ctx.console.print(table)
    return 0


def handle_folders_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """List library folders, or remove one with --remove."""
    if args.remove:
        if not remove_folder(ctx.config, args.remove):
            log(f"❌ Not a library folder: {escape(args.remove)}", level="error")
            return 1
        save_config(ctx.config, ctx.config_path)
        log(f"Removed library folder: {escape(args.remove)}")
        return 0

    if not ctx.config.library.folders:
        log("No library folders configured")
        return 0
    for folder in ctx.config.library.folders:
        ctx.console.print(f"📁 {escape(folder)}", highlight=False)
    return 0
