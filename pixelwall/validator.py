"""
validator.py - Rectangle Validation

Proves that a requested rectangle lies inside the grid and covers only
unsold blocks. Validation reads the wall through the WallView protocol and
never mutates it: the result is a local decision (the tuple of BlockIds to
claim) that the Wall commits afterwards in one step.
"""

from __future__ import annotations
from typing import List, Tuple

from .core import (
    BlockId, WallView,
    BlockAlreadySold, EmptyRectangle, OutOfBounds,
    to_block_id,
)


def _check_bounds(view: WallView, x: int, y: int, w: int, h: int) -> None:
    """
    Reject empty rectangles and rectangles extending past the grid edge.

    Uses the same exclusive bound as to_block_id(), so a rectangle that
    passes here never produces an out-of-range cell.
    """
    if w <= 0 or h <= 0:
        raise EmptyRectangle(f"Rectangle {w}x{h} covers no blocks")
    if x < 0 or y < 0:
        raise OutOfBounds(f"Rectangle origin ({x}, {y}) is negative")
    if x + w > view.width or y + h > view.height:
        raise OutOfBounds(
            f"Rectangle {w}x{h} at ({x}, {y}) exceeds {view.width}x{view.height} grid"
        )


def validate_rectangle(view: WallView, x: int, y: int, w: int, h: int) -> Tuple[BlockId, ...]:
    """
    Validate a purchase rectangle.

    Cells are checked in row-major order (rows outer, columns inner) and the
    first sold cell aborts validation.

    Args:
        view: Read-only wall access
        x, y: Top-left corner of the rectangle
        w, h: Rectangle size in blocks

    Returns:
        BlockIds of every cell, in row-major order, all currently free

    Raises:
        EmptyRectangle: If w or h is not positive
        OutOfBounds: If the rectangle does not fit inside the grid
        BlockAlreadySold: On the first cell that is already sold
    """
    _check_bounds(view, x, y, w, h)

    block_ids: List[BlockId] = []
    for i in range(h):
        for j in range(w):
            block_id = to_block_id(x + j, y + i, view.width, view.height)
            if view.is_sold(block_id):
                raise BlockAlreadySold(block_id, x + j, y + i)
            block_ids.append(block_id)
    return tuple(block_ids)


def find_conflicts(view: WallView, x: int, y: int, w: int, h: int) -> List[BlockId]:
    """
    Return every already-sold BlockId inside the rectangle, in row-major order.

    Used for reporting only; an empty result is not a substitute for
    validate_rectangle() under the wall's lock.
    """
    _check_bounds(view, x, y, w, h)
    conflicts: List[BlockId] = []
    for i in range(h):
        for j in range(w):
            block_id = to_block_id(x + j, y + i, view.width, view.height)
            if view.is_sold(block_id):
                conflicts.append(block_id)
    return conflicts
