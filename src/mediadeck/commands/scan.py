"""
Scan command handler.

Handles: scan [FOLDER ...] [--yes] [--keep-stale]
"""

import argparse
import os
import sys
from typing import Optional

from rich.markup import escape

from mediadeck.context import AppContext
from mediadeck.core.config import add_folder, save_config
from mediadeck.core.output import log
from mediadeck.domain.library.progress import (
    Complete,
    FoundFile,
    ScannedFile,
    StartingFolder,
)
from mediadeck.domain.library.scanner import ScanHandle
from mediadeck.exceptions import ConfigurationError, ScanInProgressError


def _canonical_folder(folder: str) -> Optional[str]:
    """Absolute real path of an existing directory, or None."""
    path = os.path.realpath(os.path.expanduser(folder))
    return path if os.path.isdir(path) else None


def register_folders(ctx: AppContext, folders: list[str]) -> bool:
    """
    Validate folders and add them to the configuration (saved if changed).

    Returns:
        False if any folder does not exist (nothing is saved then)
    """
    canonical = []
    for folder in folders:
        path = _canonical_folder(folder)
        if path is None:
            log(f"❌ Not a directory: {escape(folder)}", level="error")
            return False
        canonical.append(path)

    changed = False
    for path in canonical:
        if add_folder(ctx.config, path):
            log(f"Added library folder: {escape(path)}")
            changed = True

    if changed and not save_config(ctx.config, ctx.config_path):
        log("⚠️  Could not save configuration; folders apply to this run only", level="warning")
    return True


def _prompt_for_folder(ctx: AppContext) -> Optional[str]:
    if not sys.stdin.isatty():
        return None
    answer = ctx.console.input("No library folders configured. Folder to scan: ").strip()
    return answer or None


def _display_name(path: str) -> str:
    """Basename safe to print even when the filename is not valid UTF-8."""
    return os.path.basename(path).encode("utf-8", "replace").decode("utf-8")


def _render_progress(ctx: AppContext, handle: ScanHandle) -> Complete:
    """Show a live status line until the scan completes."""
    with ctx.console.status("Starting scan...") as status:
        for event in handle.events():
            if isinstance(event, StartingFolder):
                ctx.console.print(f"📁 Scanning [bold]{escape(event.root)}[/bold]")
            elif isinstance(event, FoundFile):
                status.update(
                    f"Found {event.found} files ({event.skipped} unchanged): "
                    f"{escape(_display_name(event.path))}"
                )
            elif isinstance(event, ScannedFile):
                status.update(
                    f"Found {event.found} files - {event.added} added, "
                    f"{event.updated} updated: {escape(_display_name(event.path))}"
                )
    handle.join()
    return handle.result


def _confirm(ctx: AppContext, question: str) -> bool:
    if not sys.stdin.isatty():
        return False
    answer = ctx.console.input(f"{question} [y/N]: ").strip().lower()
    return answer in ("y", "yes")


def handle_stale(ctx: AppContext, stale: list[str], assume_yes: bool, keep: bool) -> int:
    """
    Offer to remove stale catalog entries.

    Returns:
        Number of tracks deleted
    """
    if not stale:
        return 0

    log(f"⚠️  {len(stale)} cataloged files no longer exist:", level="warning")
    for filename in stale:
        ctx.console.print(f"  - {escape(filename)}", highlight=False)

    if keep:
        log("Keeping stale entries (--keep-stale)")
        return 0

    if not assume_yes and not _confirm(ctx, "Remove them from the library?"):
        log("Stale entries kept")
        return 0

    deleted = ctx.store.delete_by_filenames(stale)
    log(f"🗑️  Removed {deleted} stale tracks", level="success")
    return deleted


def run_scan(ctx: AppContext, assume_yes: bool = False, keep_stale: bool = False) -> int:
    """
    Scan the configured folders with progress output.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        handle = ctx.scans.start(
            ctx.config.library.folders,
            extensions=ctx.config.library.audio_extensions,
        )
    except (ConfigurationError, ScanInProgressError) as e:
        log(f"❌ {e}", level="error")
        return 1

    complete = _render_progress(ctx, handle)

    if handle.failed:
        log(
            f"❌ Scan aborted after {complete.found} files "
            f"({complete.added} added, {complete.updated} updated): {escape(str(handle.error))}",
            level="error",
        )
        return 1

    log(
        f"✅ Scan complete: {complete.found} found, {complete.skipped} unchanged, "
        f"{complete.added} added, {complete.updated} updated",
        level="success",
    )
    handle_stale(ctx, complete.stale, assume_yes, keep_stale)
    return 0


def handle_scan_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """Handle: scan [FOLDER ...] [--yes] [--keep-stale]"""
    if args.folders and not register_folders(ctx, args.folders):
        return 1

    if not ctx.config.library.folders:
        folder = _prompt_for_folder(ctx)
        if folder is None or not register_folders(ctx, [folder]):
            log("❌ No library folders configured. Run: mediadeck scan <folder>", level="error")
            return 1

    return run_scan(ctx, assume_yes=args.yes, keep_stale=args.keep_stale)


def rescan_quietly(ctx: AppContext) -> Optional[Complete]:
    """Startup rescan: no progress output and stale entries are kept."""
    if not ctx.config.library.folders:
        return None
    try:
        handle = ctx.scans.start(
            ctx.config.library.folders,
            extensions=ctx.config.library.audio_extensions,
        )
    except (ConfigurationError, ScanInProgressError) as e:
        log(f"Startup rescan skipped: {e}", level="warning")
        return None
    result = handle.join()
    if handle.failed:
        log(f"Startup rescan aborted: {escape(str(handle.error))}", level="warning")
    return result
