"""
Drag-and-drop reordering.

Computes the new order of a collection from the order currently on screen,
without touching storage, then applies it with a single reorder().
"""

from typing import TYPE_CHECKING, Iterable, Sequence, TypeVar

from loguru import logger

from mediadeck.domain.library.models import ItemRef, item_ref

if TYPE_CHECKING:
    from .collections import OrderedCollection

T = TypeVar("T")


def compute_drag_order(
    current: Sequence[T], dragged_indices: Iterable[int], drop_index: int
) -> list[T]:
    """Order resulting from dropping the dragged rows at ``drop_index``.

    The dragged rows are lifted out, then re-inserted (keeping their relative
    order) after every remaining row that was at or before ``drop_index``.
    Dropping on row 0 always inserts at the front.

    Args:
        current: Displayed order
        dragged_indices: Indices into ``current`` (any order, may be
            non-contiguous; out-of-range indices are ignored)
        drop_index: Row the selection was dropped on (clamped to the last row)

    Returns:
        New order; ``current`` itself when nothing valid was dragged
    """
    n = len(current)
    dragged = sorted({i for i in dragged_indices if 0 <= i < n})
    if not dragged:
        return list(current)

    drop_index = max(0, min(drop_index, n - 1))
    dragged_set = set(dragged)

    remaining = [item for i, item in enumerate(current) if i not in dragged_set]

    if drop_index == 0:
        insert_pos = 0
    else:
        insert_pos = sum(1 for i in range(drop_index + 1) if i not in dragged_set)

    moved = [current[i] for i in dragged]
    return remaining[:insert_pos] + moved + remaining[insert_pos:]


def move_items(
    collection: "OrderedCollection", dragged_indices: Iterable[int], drop_index: int
) -> list[ItemRef]:
    """Move rows of a queue or playlist as a drag-and-drop would.

    Indices refer to the collection's list() order.

    Returns:
        The applied order of references
    """
    with collection.lock:
        current = [item_ref(item) for item in collection.list()]
        new_order = compute_drag_order(current, dragged_indices, drop_index)
        if new_order != current:
            collection.reorder(new_order)
        else:
            logger.debug(f"Drag in {collection.scope} left the order unchanged")
    return new_order
