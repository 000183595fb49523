"""
mediadeck CLI - entry point.

Parses arguments, loads configuration and logging, opens the catalog and
dispatches to the command handlers.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from mediadeck import __version__
from mediadeck import commands
from mediadeck.context import AppContext
from mediadeck.core.config import ensure_directories, get_data_dir, load_config
from mediadeck.core.database import open_database
from mediadeck.core.output import log, setup_logging
from mediadeck.exceptions import MediaDeckError

COMMANDS = {
    "scan": commands.handle_scan_command,
    "queue": commands.handle_queue_command,
    "playlist": commands.handle_playlist_command,
    "facets": commands.handle_facets_command,
    "search": commands.handle_search_command,
    "recent": commands.handle_recent_command,
    "channels": commands.handle_channels_command,
    "folders": commands.handle_folders_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediadeck",
        description="mediadeck - personal media library manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Tracks are addressed by file path, videos by video:<YouTube id>.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="Configuration file to use")
    parser.add_argument("--database", type=Path, help="Catalog database to use")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # scan
    scan_parser = subparsers.add_parser("scan", help="Sync the library with the filesystem")
    scan_parser.add_argument("folders", nargs="*", help="Folders to add to the library first")
    stale_group = scan_parser.add_mutually_exclusive_group()
    stale_group.add_argument(
        "-y", "--yes", action="store_true", help="Remove stale tracks without asking"
    )
    stale_group.add_argument(
        "--keep-stale", action="store_true", help="Never remove stale tracks"
    )

    # queue
    queue_parser = subparsers.add_parser("queue", help="Manage the playback queue")
    queue_sub = queue_parser.add_subparsers(dest="queue_command")
    queue_sub.add_parser("list", help="Show the queue")
    queue_add = queue_sub.add_parser("add", help="Append items to the queue")
    queue_add.add_argument("items", nargs="+", help="File paths or video:<id>")
    queue_sub.add_parser("next", help="Pop and play the next item")
    queue_remove = queue_sub.add_parser("remove", help="Remove an item from the queue")
    queue_remove.add_argument("item", help="File path or video:<id>")
    queue_sub.add_parser("clear", help="Empty the queue")

    # playlist
    playlist_parser = subparsers.add_parser("playlist", help="Manage playlists")
    playlist_sub = playlist_parser.add_subparsers(dest="playlist_command")
    playlist_sub.add_parser("list", help="List playlists")
    pl_create = playlist_sub.add_parser("create", help="Create a playlist")
    pl_create.add_argument("name")
    pl_show = playlist_sub.add_parser("show", help="Show a playlist's items")
    pl_show.add_argument("playlist", help="Playlist name or id")
    pl_add = playlist_sub.add_parser("add", help="Append items to a playlist")
    pl_add.add_argument("playlist", help="Playlist name or id")
    pl_add.add_argument("items", nargs="+", help="File paths or video:<id>")
    pl_remove = playlist_sub.add_parser("remove", help="Remove an item from a playlist")
    pl_remove.add_argument("playlist", help="Playlist name or id")
    pl_remove.add_argument("item", help="File path or video:<id>")
    pl_rename = playlist_sub.add_parser("rename", help="Rename a playlist")
    pl_rename.add_argument("playlist", help="Playlist name or id")
    pl_rename.add_argument("new_name")
    pl_delete = playlist_sub.add_parser("delete", help="Delete a playlist")
    pl_delete.add_argument("playlist", help="Playlist name or id")
    pl_move = playlist_sub.add_parser("move", help="Move rows as drag-and-drop would")
    pl_move.add_argument("playlist", help="Playlist name or id")
    pl_move.add_argument("rows", nargs="+", type=int, help="Row numbers from `playlist show`")
    pl_move.add_argument("--to", type=int, required=True, help="Row to drop onto")

    # views
    facets_parser = subparsers.add_parser("facets", help="Browse by artist and album")
    facets_parser.add_argument("--artist", help="Show tracks of this album artist / artist")
    facets_parser.add_argument("--album", help="Show tracks of this album")

    search_parser = subparsers.add_parser("search", help="Search tracks")
    search_parser.add_argument("query", nargs="+")

    recent_parser = subparsers.add_parser("recent", help="Recently played (or added) items")
    recent_parser.add_argument("--added", action="store_true", help="Recently added instead")
    recent_parser.add_argument("--limit", type=int, default=50, help="0 for no limit")

    subparsers.add_parser("channels", help="List followed YouTube channels")

    folders_parser = subparsers.add_parser("folders", help="List library folders")
    folders_parser.add_argument("--remove", metavar="FOLDER", help="Remove a library folder")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the mediadeck command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    ensure_directories()
    config = load_config(args.config)

    log_file = (
        Path(config.logging.log_file).expanduser()
        if config.logging.log_file
        else get_data_dir() / "mediadeck.log"
    )
    setup_logging(
        log_file,
        level=config.logging.level,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
        console_output=config.logging.console_output,
    )

    ctx = AppContext.create(
        config, db=open_database(args.database), config_path=args.config
    )
    try:
        if config.library.rescan_on_startup and args.command != "scan":
            result = commands.rescan_quietly(ctx)
            if result is not None and (result.added or result.updated):
                log(f"Library rescan: {result.added} added, {result.updated} updated")

        exit_code = COMMANDS[args.command](ctx, args)
    except KeyboardInterrupt:
        exit_code = 130
    except MediaDeckError as e:
        logger.exception(f"Command '{args.command}' failed")
        log(f"❌ {e}", level="error")
        exit_code = 1
    finally:
        ctx.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
