"""
Playlist command handlers.

Handles: playlist list, playlist create, playlist show, playlist add,
         playlist remove, playlist rename, playlist delete, playlist move
"""

import argparse

from rich.markup import escape
from rich.table import Table

from mediadeck.context import AppContext
from mediadeck.core.output import log
from mediadeck.domain.playlists import crud
from mediadeck.domain.playlists.reorder import move_items
from mediadeck.exceptions import PlaylistError, StoreError
from mediadeck.helpers import items_table, resolve_item_arg


def handle_playlist_list(ctx: AppContext, args: argparse.Namespace) -> int:
    playlists = crud.list_playlists(ctx.db)
    if not playlists:
        log("No playlists found. Create one with: playlist create <name>")
        return 0

    table = Table(title="Playlists", header_style="bold")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Items", justify="right")
    table.add_column("Created")
    for playlist in playlists:
        created = playlist.created_at.strftime("%Y-%m-%d") if playlist.created_at else "-"
        table.add_row(str(playlist.id), playlist.name, str(playlist.item_count), created)
    ctx.console.print(table)
    return 0


def handle_playlist_create(ctx: AppContext, args: argparse.Namespace) -> int:
    playlist_id = crud.create_playlist(ctx.db, args.name)
    log(f"✅ Created playlist '{escape(args.name)}' (id {playlist_id})", level="success")
    return 0


def handle_playlist_show(ctx: AppContext, args: argparse.Namespace) -> int:
    info = crud.find_playlist(ctx.db, args.playlist)
    resolved = ctx.collections.playlist(info.id).resolved_entries()
    if not resolved:
        log(f"Playlist '{escape(info.name)}' is empty")
        return 0

    # Row numbers are what `playlist move` takes
    ctx.console.print(items_table([item for _, item in resolved], title=info.name))
    return 0


def handle_playlist_add(ctx: AppContext, args: argparse.Namespace) -> int:
    info = crud.find_playlist(ctx.db, args.playlist)
    playlist = ctx.collections.playlist(info.id)

    status = 0
    for arg in args.items:
        ref = resolve_item_arg(ctx, arg)
        if ref is None:
            log(f"❌ Not in library: {escape(arg)}", level="error")
            status = 1
            continue
        try:
            playlist.append(ref)
        except StoreError as e:
            log(f"❌ {e}", level="error")
            status = 1
            continue
        log(f"➕ Added {escape(str(ref))} to '{escape(info.name)}'")
    return status


def handle_playlist_remove(ctx: AppContext, args: argparse.Namespace) -> int:
    info = crud.find_playlist(ctx.db, args.playlist)
    ref = resolve_item_arg(ctx, args.item)
    if ref is None:
        log(f"❌ Not in library: {escape(args.item)}", level="error")
        return 1

    removed = ctx.collections.playlist(info.id).remove(ref)
    log(f"Removed {removed} entries from '{escape(info.name)}'")
    return 0


def handle_playlist_rename(ctx: AppContext, args: argparse.Namespace) -> int:
    info = crud.find_playlist(ctx.db, args.playlist)
    crud.rename_playlist(ctx.db, info.id, args.new_name)
    log(f"Renamed '{escape(info.name)}' to '{escape(args.new_name)}'", level="success")
    return 0


def handle_playlist_delete(ctx: AppContext, args: argparse.Namespace) -> int:
    info = crud.find_playlist(ctx.db, args.playlist)
    crud.delete_playlist(ctx.db, info.id)
    log(f"🗑️  Deleted playlist '{escape(info.name)}'", level="success")
    return 0


def handle_playlist_move(ctx: AppContext, args: argparse.Namespace) -> int:
    """Move rows (as numbered by `playlist show`) onto row ``--to``."""
    info = crud.find_playlist(ctx.db, args.playlist)
    playlist = ctx.collections.playlist(info.id)
    move_items(playlist, args.rows, args.to)
    ctx.console.print(items_table(playlist.list(), title=info.name))
    return 0


PLAYLIST_HANDLERS = {
    "list": handle_playlist_list,
    "create": handle_playlist_create,
    "show": handle_playlist_show,
    "add": handle_playlist_add,
    "remove": handle_playlist_remove,
    "rename": handle_playlist_rename,
    "delete": handle_playlist_delete,
    "move": handle_playlist_move,
}


def handle_playlist_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """Dispatch a playlist subcommand (default: list)."""
    handler = PLAYLIST_HANDLERS[args.playlist_command or "list"]
    try:
        return handler(ctx, args)
    except PlaylistError as e:
        log(f"❌ {e}", level="error")
        return 1
