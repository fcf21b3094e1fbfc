"""
pixelwall - Shared Advertising Wall Engine

A fixed grid of unit blocks sold in rectangles, exclusively and permanently,
at a price that rises with cumulative demand.

Usage:
    from pixelwall import Wall, CashBook, Transfer, EventLog, SYSTEM_WALLET

    book = CashBook("MIST")
    book.register_wallet("alice")
    book.register_wallet("owner")

    # Fund wallets via SYSTEM_WALLET (proper issuance)
    book.execute(Transfer(10_000_000_000, SYSTEM_WALLET, "alice", "initial_balance"))

    events = EventLog()
    wall = Wall("owner", payments=book, event_sink=events)

    # Buy a 5x1 banner in the top-left corner
    receipt = wall.purchase("alice", 0, 0, 5, 1, b"ipfs://banner", 500_000_000)
"""

# Core types
from .core import (
    WallView,
    PaymentProcessor,
    EventSink,
    BlockId,
    BlockInfo,
    PurchaseReceipt,
    WallError,
    OutOfBounds,
    EmptyRectangle,
    BlockAlreadySold,
    InsufficientPayment,
    ArithmeticOverflow,
    PaymentError,
    InsufficientFunds,
    WalletNotRegistered,
    to_block_id,
    from_block_id,
    rectangle_block_ids,
    GRID_WIDTH,
    GRID_HEIGHT,
    DEFAULT_BASE_PRICE,
    MAX_AMOUNT,
)

# Pricing engine
from .pricing import (
    price,
    dynamic_factor,
    discount_percent,
    per_block_price,
    rounding_remainder,
    quote,
    PriceQuote,
)

# Rectangle validation
from .validator import validate_rectangle, find_conflicts

# Wall aggregate
from .wall import Wall

# Collaborators
from .payments import CashBook, Transfer, ExecuteResult, SYSTEM_WALLET
from .events import EventLog, CallbackSink, PurchaseHandler


__all__ = [
    # Core
    'WallView', 'PaymentProcessor', 'EventSink',
    'BlockId', 'BlockInfo', 'PurchaseReceipt',
    'to_block_id', 'from_block_id', 'rectangle_block_ids',
    'GRID_WIDTH', 'GRID_HEIGHT', 'DEFAULT_BASE_PRICE', 'MAX_AMOUNT',
    # Exceptions
    'WallError', 'OutOfBounds', 'EmptyRectangle', 'BlockAlreadySold',
    'InsufficientPayment', 'ArithmeticOverflow',
    'PaymentError', 'InsufficientFunds', 'WalletNotRegistered',
    # Pricing
    'price', 'dynamic_factor', 'discount_percent',
    'per_block_price', 'rounding_remainder', 'quote', 'PriceQuote',
    # Validation
    'validate_rectangle', 'find_conflicts',
    # Wall
    'Wall',
    # Collaborators
    'CashBook', 'Transfer', 'ExecuteResult', 'SYSTEM_WALLET',
    'EventLog', 'CallbackSink', 'PurchaseHandler',
]

__version__ = '1.0.0'
