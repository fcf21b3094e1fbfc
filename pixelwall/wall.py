"""
wall.py - Advertising Wall Aggregate

The Wall class owns the grid's sale state and is the only module that
mutates it.

Key responsibilities:
    - Implements WallView protocol for read-only access by the validator
    - Executes purchases atomically: validate, price, charge, then commit
    - Keeps occupancy and per-block prices in lockstep, never deleting either
    - Serialises purchases and reads behind one lock
    - Always logs: every purchase is recorded in the purchase log, enabling
      clone() and replay()
"""

from __future__ import annotations
from datetime import datetime
from threading import RLock
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from uuid import uuid4

import numpy as np

from . import pricing
from .core import (
    # Types
    BlockId, BlockInfo, PurchaseReceipt, Occupancy, PriceRecords,
    PaymentProcessor, EventSink,
    # Constants
    GRID_WIDTH, GRID_HEIGHT, DEFAULT_BASE_PRICE,
    # Exceptions
    WallError, EmptyRectangle, InsufficientPayment,
    # Helper functions
    from_block_id,
)
from .pricing import PriceQuote
from .validator import validate_rectangle, find_conflicts


class Wall:
    """
    Shared advertising wall sold in rectangles of unit blocks.

    Implements the WallView protocol, so it can be passed to the validator
    and other read-only functions.

    Design Principles:
        - All or nothing: a purchase that fails at any step leaves occupancy,
          prices and total_blocks_sold exactly as they were.
        - Sold once: blocks are never released, resold or updated.
        - Pricing is a pure function of (base_price, total_blocks_sold, area).

    Thread Safety:
        purchase() and every accessor hold the wall's lock, so concurrent
        purchases are linearised and cannot both claim the same block.

    Example:
        book = CashBook(verbose=False)
        book.register_wallet("alice")
        book.register_wallet("owner")
        book.execute(Transfer(10**10, SYSTEM_WALLET, "alice", "funding"))

        wall = Wall("owner", payments=book, verbose=False)
        receipt = wall.purchase("alice", 0, 0, 5, 1, b"ipfs://banner", 10**10)
        wall.owner_of(receipt.anchor_block_id)   # "alice"
    """

    def __init__(
        self,
        owner: str,
        name: str = "wall",
        base_price: int = DEFAULT_BASE_PRICE,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        payments: Optional[PaymentProcessor] = None,
        event_sink: Optional[EventSink] = None,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
    ):
        """
        Create an empty wall.

        Args:
            owner: Identity receiving all proceeds
            name: Wall identifier, prefixed to payment references
            base_price: Price of one block on an empty wall, in minor units
            width, height: Grid dimensions in blocks
            payments: Funds collaborator; None records sales without moving funds
            event_sink: Receives a receipt after every purchase
            initial_time: Starting logical time (default: 1970-01-01)
            verbose: Print purchase traces (default: True)

        Raises:
            ValueError: If owner is empty, base_price is negative or the grid is empty
        """
        if not owner or not owner.strip():
            raise ValueError("Wall owner cannot be empty")
        if isinstance(base_price, bool) or not isinstance(base_price, int) or base_price < 0:
            raise ValueError(f"base_price must be a non-negative int, got {base_price!r}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid must be non-empty, got {width}x{height}")

        self.owner = owner
        self.name = name
        # distinct per instance, clones included
        self._charge_prefix = f"{name}:{uuid4().hex}"
        self.base_price = base_price
        self._width = width
        self._height = height
        self.payments = payments
        self.event_sink = event_sink
        self.verbose = verbose

        self.occupancy: Occupancy = {}
        self.prices: PriceRecords = {}
        self.total_blocks_sold: int = 0
        self.purchase_log: List[PurchaseReceipt] = []
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self._lock = RLock()

    # ========================================================================
    # WallView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def is_sold(self, block_id: BlockId) -> bool:
        with self._lock:
            return block_id in self.occupancy

    # ========================================================================
    # READ ACCESSORS
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the wall."""
        return self._current_time

    def owner_of(self, block_id: BlockId) -> Optional[str]:
        """Buyer of a block, or None if unsold."""
        with self._lock:
            info = self.occupancy.get(block_id)
            return info.owner if info else None

    def image_of(self, block_id: BlockId) -> Optional[bytes]:
        """Image reference of a block, or None if unsold."""
        with self._lock:
            info = self.occupancy.get(block_id)
            return info.image_reference if info else None

    def info_of(self, block_id: BlockId) -> Optional[BlockInfo]:
        """Full record of a block, or None if unsold. BlockInfo is immutable."""
        with self._lock:
            return self.occupancy.get(block_id)

    def price_of(self, block_id: BlockId) -> int:
        """
        Per-block price paid for a sold block, else base_price.

        For an unsold block this is a static fallback, not a live quote;
        use quote() to price an intended rectangle.
        """
        with self._lock:
            return self.prices.get(block_id, self.base_price)

    def sold_block_ids(self) -> FrozenSet[BlockId]:
        with self._lock:
            return frozenset(self.occupancy)

    def free_blocks(self) -> int:
        """Number of blocks still for sale."""
        with self._lock:
            return self._width * self._height - len(self.occupancy)

    def anchors(self) -> Dict[BlockId, BlockInfo]:
        """Anchor block of every purchased rectangle, keyed by BlockId."""
        with self._lock:
            return {bid: info for bid, info in self.occupancy.items() if info.is_anchor}

    def get_purchases(self) -> List[PurchaseReceipt]:
        """Copy of the purchase log, in execution order."""
        with self._lock:
            return list(self.purchase_log)

    def total_proceeds(self) -> int:
        """Sum of total prices over every purchase."""
        with self._lock:
            return sum(r.total_price for r in self.purchase_log)

    def conflicts(self, x: int, y: int, w: int, h: int) -> List[BlockId]:
        """Sold BlockIds inside a rectangle, for reporting."""
        with self._lock:
            return find_conflicts(self, x, y, w, h)

    def quote(self, w: int, h: int) -> PriceQuote:
        """
        Live quote for a w x h rectangle at the wall's current sale count.

        Raises:
            EmptyRectangle: If the rectangle covers no blocks
            ArithmeticOverflow: If the price does not fit in MAX_AMOUNT
        """
        if w <= 0 or h <= 0:
            raise EmptyRectangle(f"Rectangle {w}x{h} covers no blocks")
        with self._lock:
            return pricing.quote(self.base_price, self.total_blocks_sold, w * h)

    def occupancy_grid(self) -> np.ndarray:
        """
        Boolean (height, width) snapshot of sold blocks, indexed [y, x].

        Built on demand from the sparse store; the wall never keeps it.
        """
        with self._lock:
            grid = np.zeros((self._height, self._width), dtype=bool)
            for block_id in self.occupancy:
                x, y = from_block_id(block_id, self._width, self._height)
                grid[y, x] = True
            return grid

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the wall's logical clock. Time can only move forward.

        Raises:
            ValueError: If new_time is before the current time
        """
        with self._lock:
            if new_time < self._current_time:
                raise ValueError(
                    f"Cannot move time backwards: {new_time} < {self._current_time}"
                )
            self._current_time = new_time

    # ========================================================================
    # PURCHASE (Mutating)
    # ========================================================================

    def purchase(
        self,
        buyer: str,
        x: int,
        y: int,
        w: int,
        h: int,
        image_reference: bytes,
        payment_amount: int,
    ) -> PurchaseReceipt:
        """
        Buy the w x h rectangle whose top-left block is (x, y).

        Steps, all under the wall's lock:
        1. Validate the rectangle (bounds, emptiness, every cell free)
        2. Price it from the current sale count
        3. Check the offered payment covers the price
        4. Charge exactly the price, buyer to wall owner
        5. Commit every block to occupancy and prices, bump the counter
        6. Log the receipt and publish it to the event sink

        A failure in steps 1-4 raises with the wall untouched. A failing
        event sink is reported and does not undo the purchase.

        Publishing happens after the lock is released, so under concurrent
        purchases a sink may see receipts out of sequence_number order.

        Args:
            buyer: Identity of the purchaser
            x, y: Top-left block of the rectangle
            w, h: Rectangle size in blocks
            image_reference: Opaque advertisement reference
            payment_amount: Funds offered; only the price is charged

        Returns:
            The PurchaseReceipt of the committed purchase

        Raises:
            ValueError: If buyer is empty or image_reference is not bytes
            EmptyRectangle, OutOfBounds, BlockAlreadySold: From validation
            ArithmeticOverflow: If the price does not fit in MAX_AMOUNT
            InsufficientPayment: If payment_amount is below the price
            PaymentError: If the payment collaborator refuses the charge
        """
        if not buyer or not buyer.strip():
            raise ValueError("Buyer cannot be empty")
        if not isinstance(image_reference, bytes):
            raise ValueError(f"image_reference must be bytes, got {type(image_reference)}")

        with self._lock:
            try:
                block_ids = validate_rectangle(self, x, y, w, h)
                num_blocks = len(block_ids)

                total = pricing.price(self.base_price, self.total_blocks_sold, num_blocks)
                if payment_amount < total:
                    raise InsufficientPayment(total, payment_amount)

                sequence = len(self.purchase_log)
                if self.payments is not None and total > 0:
                    self.payments.charge(buyer, self.owner, total, f"{self._charge_prefix}:purchase:{sequence}")
            except WallError as e:
                if self.verbose:
                    print(f"✗ REJECTED: {buyer} {w}x{h} at ({x}, {y}): {e}")
                raise

            receipt = PurchaseReceipt(
                buyer=buyer,
                anchor_block_id=block_ids[0],
                x=x,
                y=y,
                width=w,
                height=h,
                image_reference=image_reference,
                total_price=total,
                per_block_price=pricing.per_block_price(total, num_blocks),
                blocks_sold_before=self.total_blocks_sold,
                sequence_number=sequence,
                timestamp=self._current_time,
            )
            self._commit(receipt, block_ids)
            sold, free = self.total_blocks_sold, self.free_blocks()

        if self.verbose:
            self._print_receipt(receipt, sold, free)
        self._publish(receipt)
        return receipt

    def _commit(self, receipt: PurchaseReceipt, block_ids: Tuple[BlockId, ...]) -> None:
        """Write a validated, paid purchase. Caller holds the lock."""
        anchor = BlockInfo(
            owner=receipt.buyer,
            image_reference=receipt.image_reference,
            width=receipt.width,
            height=receipt.height,
            is_anchor=True,
        )
        body = BlockInfo(
            owner=receipt.buyer,
            image_reference=receipt.image_reference,
            width=receipt.width,
            height=receipt.height,
        )
        for block_id in block_ids:
            self.occupancy[block_id] = anchor if block_id == receipt.anchor_block_id else body
            self.prices[block_id] = receipt.per_block_price
        self.total_blocks_sold += len(block_ids)
        self.purchase_log.append(receipt)

    def _publish(self, receipt: PurchaseReceipt) -> None:
        """Deliver a receipt to the event sink. Delivery failures never undo the purchase."""
        if self.event_sink is None:
            return
        try:
            self.event_sink.publish(receipt)
        except Exception as e:
            if self.verbose:
                print(f"⚠️  EVENT NOT DELIVERED: receipt={receipt.receipt_id}: {e!r}")

    def _print_receipt(self, receipt: PurchaseReceipt, sold: int, free: int) -> None:
        """Print the receipt box with a result line in place of its closing line."""
        lines = repr(receipt).split('\n')
        w = 80
        bar = "─" * w
        result = f" ✓ APPLIED ({sold} sold, {free} free)"
        lines[-1] = f"├{bar}┤"
        lines.append(f"│{result.ljust(w)[:w]}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Check the wall's structural invariants.

        - occupancy and prices have identical key sets
        - total_blocks_sold equals the area sum of logged purchases
        - logged purchases are pairwise disjoint and all present in occupancy
        - exactly one anchor per logged purchase

        Returns:
            Dict with keys:
            - 'valid': bool - True if every invariant holds
            - 'violations': List[str] - Description of each failed check

        Example:
            result = wall.verify_invariants()
            assert result['valid'], result['violations']
        """
        with self._lock:
            violations: List[str] = []

            occupancy_keys = set(self.occupancy)
            price_keys = set(self.prices)
            if occupancy_keys != price_keys:
                violations.append(
                    f"key sets differ: {len(occupancy_keys - price_keys)} without price, "
                    f"{len(price_keys - occupancy_keys)} without occupancy"
                )

            logged_area = sum(r.num_blocks for r in self.purchase_log)
            if logged_area != self.total_blocks_sold:
                violations.append(
                    f"total_blocks_sold {self.total_blocks_sold} != logged area {logged_area}"
                )

            claimed: Dict[BlockId, int] = {}
            for receipt in self.purchase_log:
                for block_id in receipt.block_ids(self._width, self._height):
                    if block_id in claimed:
                        violations.append(
                            f"block {block_id} claimed by purchases "
                            f"{claimed[block_id]} and {receipt.sequence_number}"
                        )
                    claimed[block_id] = receipt.sequence_number
                    if block_id not in self.occupancy:
                        violations.append(
                            f"block {block_id} of purchase {receipt.sequence_number} missing"
                        )

            anchor_count = sum(1 for info in self.occupancy.values() if info.is_anchor)
            if anchor_count != len(self.purchase_log):
                violations.append(
                    f"{anchor_count} anchors for {len(self.purchase_log)} purchases"
                )

            return {
                'valid': len(violations) == 0,
                'violations': violations,
            }

    # ========================================================================
    # WALL OPERATIONS
    # ========================================================================

    def clone(self) -> Wall:
        """
        Create an independent copy of this wall.

        The clone shares no mutable state with the original. It is detached
        from the payment collaborator and event sink, so purchases on it move
        no funds and notify nobody.
        """
        with self._lock:
            cloned = Wall(
                owner=self.owner,
                name=self.name,
                base_price=self.base_price,
                width=self._width,
                height=self._height,
                initial_time=self._current_time,
                verbose=self.verbose,
            )
            # BlockInfo and PurchaseReceipt are frozen, shallow copies suffice
            cloned.occupancy = dict(self.occupancy)
            cloned.prices = dict(self.prices)
            cloned.total_blocks_sold = self.total_blocks_sold
            cloned.purchase_log = list(self.purchase_log)
            return cloned

    def replay(self) -> Wall:
        """
        Rebuild a wall by re-executing the purchase log on an empty wall.

        Prices are recomputed and must match the logged ones. No payments are
        charged and no events are published.

        Returns:
            New Wall with replayed state

        Raises:
            WallError: If a logged purchase no longer applies or reprices differently
        """
        with self._lock:
            log = list(self.purchase_log)
        new_wall = Wall(
            owner=self.owner,
            name=f"{self.name}_replayed",
            base_price=self.base_price,
            width=self._width,
            height=self._height,
            verbose=self.verbose,
        )
        for receipt in log:
            if receipt.timestamp > new_wall.current_time:
                new_wall.advance_time(receipt.timestamp)
            replayed = new_wall.purchase(
                receipt.buyer, receipt.x, receipt.y, receipt.width, receipt.height,
                receipt.image_reference, receipt.total_price,
            )
            if replayed.total_price != receipt.total_price:
                raise WallError(
                    f"Replay repriced purchase {receipt.sequence_number}: "
                    f"{replayed.total_price} != {receipt.total_price}"
                )
        return new_wall
