"""
Core types and pure functions for the advertising wall engine.

This module provides the foundational data structures and protocols for the wall:
1. Protocols: WallView for read-only wall access, PaymentProcessor and EventSink
   for the external collaborators a purchase settles against
2. Immutable data structures: BlockInfo, PurchaseReceipt
3. Exceptions: WallError and domain-specific error types
4. Type aliases: BlockId, Occupancy, PriceRecords
5. Coordinate mapper: pure conversion between (x, y) and BlockId

All functions in this module are pure and operate on read-only views.
No function can mutate wall state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
import hashlib
from typing import (
    Dict, List, Optional, Protocol, Tuple, FrozenSet, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Default grid dimensions, in blocks.
GRID_WIDTH = 100
GRID_HEIGHT = 100

# Default base price of one block, in minor units of the payment currency.
DEFAULT_BASE_PRICE = 100_000_000

# Largest amount the settlement ledger can represent (unsigned 64-bit).
# Every pricing intermediate must stay at or below this value.
MAX_AMOUNT = 2**64 - 1

# Bulk discount tiers: (minimum rectangle area, percent of list price paid).
# Checked in order, first match wins.
DISCOUNT_TIERS: Tuple[Tuple[int, int], ...] = (
    (21, 90),
    (6, 95),
)
FULL_PRICE_PERCENT = 100

# Demand surcharge, in percent of base price per block already sold.
DEMAND_SURCHARGE_PERCENT = 105


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Integer encoding of one grid cell: y * width + x.
BlockId = int

# Mapping from BlockId to the record of the sold block.
Occupancy = Dict[BlockId, 'BlockInfo']

# Mapping from BlockId to the per-block price actually paid.
PriceRecords = Dict[BlockId, int]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class WallError(Exception):
    """Base exception for all wall-related errors."""
    pass


class OutOfBounds(WallError):
    """Raised when coordinates or a rectangle fall outside the grid."""
    pass


class EmptyRectangle(WallError):
    """Raised when a purchase request covers no blocks (zero or negative width/height)."""
    pass


class BlockAlreadySold(WallError):
    """Raised when a requested rectangle overlaps a block that has already been sold."""

    def __init__(self, block_id: BlockId, x: int, y: int):
        self.block_id = block_id
        self.x = x
        self.y = y
        super().__init__(f"Block {block_id} at ({x}, {y}) already sold")


class InsufficientPayment(WallError):
    """Raised when the offered payment is below the computed price."""

    def __init__(self, required: int, offered: int):
        self.required = required
        self.offered = offered
        super().__init__(f"Payment {offered} below required price {required}")


class ArithmeticOverflow(WallError):
    """Raised when a price computation exceeds MAX_AMOUNT."""
    pass


class PaymentError(WallError):
    """Base exception for failures reported by a payment collaborator."""
    pass


class InsufficientFunds(PaymentError):
    """Raised when a payer's balance cannot cover a charge."""
    pass


class WalletNotRegistered(PaymentError):
    """Raised when a charge names a wallet the payment collaborator does not know."""
    pass


# ============================================================================
# COORDINATE MAPPER
# ============================================================================

def to_block_id(x: int, y: int, width: int = GRID_WIDTH, height: int = GRID_HEIGHT) -> BlockId:
    """
    Convert grid coordinates to a BlockId.

    Raises:
        OutOfBounds: If (x, y) lies outside 0 <= x < width, 0 <= y < height.
    """
    if x < 0 or y < 0 or x >= width or y >= height:
        raise OutOfBounds(f"({x}, {y}) outside {width}x{height} grid")
    return y * width + x


def from_block_id(block_id: BlockId, width: int = GRID_WIDTH, height: int = GRID_HEIGHT) -> Tuple[int, int]:
    """
    Convert a BlockId back to (x, y).

    Raises:
        OutOfBounds: If block_id does not name a cell of the grid.
    """
    if block_id < 0 or block_id >= width * height:
        raise OutOfBounds(f"Block {block_id} outside {width}x{height} grid")
    y, x = divmod(block_id, width)
    return x, y


def rectangle_block_ids(
    x: int, y: int, w: int, h: int,
    width: int = GRID_WIDTH, height: int = GRID_HEIGHT,
) -> List[BlockId]:
    """BlockIds of a rectangle's cells in row-major order (rows outer, columns inner)."""
    return [
        to_block_id(x + j, y + i, width, height)
        for i in range(h)
        for j in range(w)
    ]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class WallView(Protocol):
    """
    Read-only interface to wall state.

    The validator and any reporting code query the wall through this
    protocol, so they can never mutate occupancy or prices. The Wall class
    implements it; tests use FakeView.
    """

    @property
    def width(self) -> int:
        """Grid width in blocks."""
        ...

    @property
    def height(self) -> int:
        """Grid height in blocks."""
        ...

    def is_sold(self, block_id: BlockId) -> bool:
        """Return True if the block has been sold."""
        ...


class PaymentProcessor(Protocol):
    """
    Funds custody collaborator.

    charge() must either move exactly `amount` from payer to payee or raise
    a PaymentError without any effect.
    """

    def charge(self, payer: str, payee: str, amount: int, reference: str) -> None:
        ...


class EventSink(Protocol):
    """Receives purchase receipts for external observers."""

    def publish(self, receipt: 'PurchaseReceipt') -> None:
        ...


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class BlockInfo:
    """
    Record of one sold block.

    Attributes:
        owner: Identity of the buyer.
        image_reference: Opaque reference to the advertisement shown on the block.
        width: Width of the rectangle the block belongs to.
        height: Height of the rectangle the block belongs to.
        is_anchor: True only for the top-left block of the rectangle.

    width/height are duplicated on every block of a rectangle. is_anchor is
    a marker for picking one representative block per rectangle; geometry
    is always read from width/height.
    """
    owner: str
    image_reference: bytes
    width: int
    height: int
    is_anchor: bool = False

    def __post_init__(self):
        if not self.owner or not self.owner.strip():
            raise ValueError("BlockInfo owner cannot be empty")
        if not isinstance(self.image_reference, bytes):
            raise ValueError(
                f"BlockInfo image_reference must be bytes, got {type(self.image_reference)}"
            )
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"BlockInfo rectangle must be positive, got {self.width}x{self.height}")

    @property
    def area(self) -> int:
        return self.width * self.height


def _compute_receipt_id(
    buyer: str,
    anchor_block_id: BlockId,
    width: int,
    height: int,
    image_reference: bytes,
    total_price: int,
    sequence_number: int,
) -> str:
    """
    Compute a deterministic content hash for a purchase.

    Same purchase content at the same position in the log always produces
    the same id, so a replayed wall reproduces its receipts exactly.
    """
    content = "|".join([
        f"buyer:{buyer}",
        f"anchor:{anchor_block_id}",
        f"size:{width}x{height}",
        f"image:{image_reference.hex()}",
        f"price:{total_price}",
        f"seq:{sequence_number}",
    ])
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PurchaseReceipt:
    """
    An executed, immutable record of one rectangle purchase.

    Emitted to the event sink and kept in the wall's purchase log.

    Attributes:
        buyer: Identity that now owns the rectangle
        anchor_block_id: BlockId of the top-left block
        x, y: Grid coordinates of the anchor block
        width, height: Rectangle size in blocks
        image_reference: Opaque advertisement reference
        total_price: Amount charged for the whole rectangle
        per_block_price: total_price // area, stored for every block
        blocks_sold_before: Wall counter at pricing time
        sequence_number: Monotonic position in the wall's purchase log
        timestamp: Wall time at execution
        receipt_id: Content hash (auto-computed)
    """
    buyer: str
    anchor_block_id: BlockId
    x: int
    y: int
    width: int
    height: int
    image_reference: bytes
    total_price: int
    per_block_price: int
    blocks_sold_before: int
    sequence_number: int
    timestamp: datetime
    receipt_id: str = field(default="")

    def __post_init__(self):
        if not self.receipt_id:
            object.__setattr__(self, 'receipt_id', _compute_receipt_id(
                self.buyer, self.anchor_block_id, self.width, self.height,
                self.image_reference, self.total_price, self.sequence_number,
            ))

    @property
    def num_blocks(self) -> int:
        return self.width * self.height

    @property
    def rounding_remainder(self) -> int:
        """Minor units charged but not attributed to any block by per-block truncation."""
        return self.total_price - self.per_block_price * self.num_blocks

    def block_ids(self, grid_width: int, grid_height: int) -> FrozenSet[BlockId]:
        """Cells covered by this purchase on a grid of the given dimensions."""
        return frozenset(rectangle_block_ids(
            self.x, self.y, self.width, self.height, grid_width, grid_height
        ))

    def __repr__(self) -> str:
        w = 80
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Purchase: ' + self.receipt_id)}│",
            f"├{bar}┤",
            f"│{pad('   buyer          : ' + self.buyer)}│",
            f"│{pad('   anchor         : ' + str(self.anchor_block_id) + f' ({self.x}, {self.y})')}│",
            f"│{pad('   size           : ' + f'{self.width}x{self.height}')}│",
            f"│{pad('   total_price    : ' + str(self.total_price))}│",
            f"│{pad('   per_block      : ' + str(self.per_block_price))}│",
            f"│{pad('   sold_before    : ' + str(self.blocks_sold_before))}│",
            f"│{pad('   sequence       : ' + str(self.sequence_number))}│",
            f"│{pad('   timestamp      : ' + str(self.timestamp))}│",
            f"└{bar}┘",
        ]
        return "\n".join(lines)
