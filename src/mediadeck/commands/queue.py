"""
Queue command handlers.

Handles: queue list, queue add, queue next, queue remove, queue clear
"""

import argparse

from rich.markup import escape

from mediadeck.context import AppContext
from mediadeck.core.output import log
from mediadeck.domain.playback.history import update_play_stats
from mediadeck.exceptions import StoreError
from mediadeck.helpers import items_table, resolve_item_arg


def handle_queue_list(ctx: AppContext, args: argparse.Namespace) -> int:
    resolved = ctx.collections.queue().resolved_entries()
    if not resolved:
        log("Queue is empty")
        return 0

    ctx.console.print(
        items_table(
            [item for _, item in resolved],
            title=f"Queue ({len(resolved)})",
            positions=[entry.position for entry, _ in resolved],
        )
    )
    return 0


def handle_queue_add(ctx: AppContext, args: argparse.Namespace) -> int:
    queue = ctx.collections.queue()
    status = 0
    for arg in args.items:
        ref = resolve_item_arg(ctx, arg)
        if ref is None:
            log(f"❌ Not in library: {escape(arg)}", level="error")
            status = 1
            continue
        try:
            position = queue.append(ref)
        except StoreError as e:
            log(f"❌ {e}", level="error")
            status = 1
            continue
        log(f"➕ Queued {escape(str(ref))} (position {position})")
    return status


def handle_queue_next(ctx: AppContext, args: argparse.Namespace) -> int:
    """Pop the next item and count it as played."""
    item = ctx.collections.queue().pop_front()
    if item is None:
        log("Queue is empty")
        return 0

    update_play_stats(ctx.db, item)
    log(f"▶️  {escape(item.display_artist)} - {escape(item.display_title)}")
    return 0


def handle_queue_remove(ctx: AppContext, args: argparse.Namespace) -> int:
    ref = resolve_item_arg(ctx, args.item)
    if ref is None:
        log(f"❌ Not in library: {escape(args.item)}", level="error")
        return 1

    removed = ctx.collections.queue().remove(ref)
    log(f"Removed {removed} queue entries")
    return 0


def handle_queue_clear(ctx: AppContext, args: argparse.Namespace) -> int:
    removed = ctx.collections.queue().clear()
    log(f"Cleared {removed} queue entries")
    return 0


QUEUE_HANDLERS = {
    "list": handle_queue_list,
    "add": handle_queue_add,
    "next": handle_queue_next,
    "remove": handle_queue_remove,
    "clear": handle_queue_clear,
}


def handle_queue_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """Dispatch a queue subcommand (default: list)."""
    handler = QUEUE_HANDLERS[args.queue_command or "list"]
    return handler(ctx, args)
