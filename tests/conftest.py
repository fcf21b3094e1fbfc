"""
conftest.py - Shared pytest fixtures for wall tests

Provides common fixtures used across unit and conformance tests:
- Basic walls (empty, small grid)
- Funded cash books and walls wired to payments and events
- Snapshot and comparison utilities
"""

import pytest
from datetime import datetime
from typing import Any, Dict

from pixelwall import (
    Wall, CashBook, Transfer, EventLog, SYSTEM_WALLET,
    DEFAULT_BASE_PRICE,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def wall_snapshot(wall: Wall) -> Dict[str, Any]:
    """Capture every piece of mutable wall state for before/after comparison."""
    return {
        "occupancy": dict(wall.occupancy),
        "prices": dict(wall.prices),
        "total_blocks_sold": wall.total_blocks_sold,
        "purchase_log": list(wall.purchase_log),
    }


def fund(book: CashBook, wallet: str, amount: int) -> None:
    """Register (if needed) and fund a wallet through SYSTEM_WALLET issuance."""
    if not book.is_registered(wallet):
        book.register_wallet(wallet)
    book.execute(Transfer(amount, SYSTEM_WALLET, wallet, f"fund:{wallet}:{len(book.transfer_log)}"))


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_wall():
    """Fresh 100x100 wall with default base price and no collaborators."""
    return Wall("owner", verbose=False)


@pytest.fixture
def small_wall():
    """Fresh 10x10 wall with base price 1_000."""
    return Wall("owner", base_price=1_000, width=10, height=10, verbose=False)


@pytest.fixture
def book():
    """Cash book with alice and bob funded and the wall owner registered."""
    book = CashBook("MIST", verbose=False, test_mode=True)
    book.register_wallet("owner")
    fund(book, "alice", 100 * DEFAULT_BASE_PRICE * 100)
    fund(book, "bob", 100 * DEFAULT_BASE_PRICE * 100)
    return book


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def paid_wall(book, events):
    """Default wall charging through `book` and publishing to `events`."""
    return Wall(
        "owner",
        payments=book,
        event_sink=events,
        initial_time=datetime(2025, 1, 1),
        verbose=False,
    )
