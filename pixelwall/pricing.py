"""
pricing.py - Dynamic Block Pricing

Integer pricing rule for wall rectangles. The total price of a rectangle
depends only on the wall's base price, the number of blocks sold so far and
the rectangle's area:

    dynamic_factor   = (105 * total_blocks_sold) // 100
    subtotal         = base_price + (base_price * dynamic_factor) // 100
    discount_percent = 90 if area >= 21, 95 if area >= 6, else 100
    total            = (subtotal * area * discount_percent) // 100

All arithmetic is integer and truncates at every division, in exactly the
grouping above, so two implementations agree to the minor unit. Every
intermediate is checked against MAX_AMOUNT.

Provides:
- price(): total price of a rectangle
- dynamic_factor(), discount_percent(): the two rule components
- per_block_price(), rounding_remainder(): per-block split of a total
- quote(): every intermediate bundled in a PriceQuote

These functions never see wall state; callers pass the counters in.
"""

from __future__ import annotations
from dataclasses import dataclass

from .core import (
    ArithmeticOverflow, EmptyRectangle,
    DEMAND_SURCHARGE_PERCENT, DISCOUNT_TIERS, FULL_PRICE_PERCENT, MAX_AMOUNT,
)


# ============================================================================
# HELPERS
# ============================================================================

def _checked(value: int, what: str) -> int:
    """Return value unchanged, or raise ArithmeticOverflow if it exceeds MAX_AMOUNT."""
    if value > MAX_AMOUNT:
        raise ArithmeticOverflow(f"{what} {value} exceeds {MAX_AMOUNT}")
    return value


def _validate_pricing_inputs(base_price: int, total_blocks_sold: int, num_blocks: int) -> None:
    """Reject negative or non-integer inputs."""
    for name, value in (
        ("base_price", base_price),
        ("total_blocks_sold", total_blocks_sold),
        ("num_blocks", num_blocks),
    ):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be int, got {type(value)}")
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")


# ============================================================================
# RULE COMPONENTS
# ============================================================================

def dynamic_factor(total_blocks_sold: int) -> int:
    """
    Demand surcharge in percent of base price.

    Grows by 1.05 percentage points per block already sold, truncated.
    """
    return _checked(DEMAND_SURCHARGE_PERCENT * total_blocks_sold, "demand product") // 100


def discount_percent(num_blocks: int) -> int:
    """Percent of list price paid for a rectangle of num_blocks blocks."""
    for min_blocks, percent in DISCOUNT_TIERS:
        if num_blocks >= min_blocks:
            return percent
    return FULL_PRICE_PERCENT


# ============================================================================
# PRICE
# ============================================================================

def price(base_price: int, total_blocks_sold: int, num_blocks: int) -> int:
    """
    Total price of a rectangle of num_blocks blocks.

    Args:
        base_price: Configured price of one block on an empty wall
        total_blocks_sold: Blocks sold on the wall before this purchase
        num_blocks: Area of the requested rectangle

    Returns:
        Total price in minor units

    Raises:
        ValueError: If any input is negative or not an int
        ArithmeticOverflow: If any intermediate exceeds MAX_AMOUNT

    Example:
        >>> price(100_000_000, 0, 5)
        500000000
        >>> price(100_000_000, 500, 25)
        14062500000
    """
    _validate_pricing_inputs(base_price, total_blocks_sold, num_blocks)

    factor = dynamic_factor(total_blocks_sold)
    surcharge = _checked(base_price * factor, "surcharge product") // 100
    subtotal = _checked(base_price + surcharge, "subtotal")

    gross = _checked(subtotal * num_blocks, "gross")
    discounted = _checked(gross * discount_percent(num_blocks), "discounted product")
    return discounted // 100


def per_block_price(total: int, num_blocks: int) -> int:
    """
    Price recorded against each block of a rectangle.

    Truncates, so the sum over the rectangle may fall short of total by up
    to num_blocks - 1 minor units. The shortfall is not redistributed.
    """
    if num_blocks <= 0:
        raise EmptyRectangle(f"Cannot split a price across {num_blocks} blocks")
    return total // num_blocks


def rounding_remainder(total: int, num_blocks: int) -> int:
    """Minor units of total not attributed to any block by per_block_price()."""
    return total - per_block_price(total, num_blocks) * num_blocks


# ============================================================================
# QUOTES
# ============================================================================

@dataclass(frozen=True, slots=True)
class PriceQuote:
    """
    Every intermediate of one price computation, for display and auditing.

    Attributes:
        base_price: Configured base price
        total_blocks_sold: Counter the quote was computed against
        num_blocks: Rectangle area
        dynamic_factor: Demand surcharge in percent
        subtotal: Base price plus surcharge, per block
        discount_percent: Bulk tier applied
        total: Amount to pay
        per_block: Amount recorded per block
    """
    base_price: int
    total_blocks_sold: int
    num_blocks: int
    dynamic_factor: int
    subtotal: int
    discount_percent: int
    total: int
    per_block: int

    @property
    def remainder(self) -> int:
        return self.total - self.per_block * self.num_blocks


def quote(base_price: int, total_blocks_sold: int, num_blocks: int) -> PriceQuote:
    """
    Price a rectangle and return the full breakdown.

    Raises:
        EmptyRectangle: If num_blocks is zero
        ValueError, ArithmeticOverflow: As for price()
    """
    total = price(base_price, total_blocks_sold, num_blocks)
    factor = dynamic_factor(total_blocks_sold)
    return PriceQuote(
        base_price=base_price,
        total_blocks_sold=total_blocks_sold,
        num_blocks=num_blocks,
        dynamic_factor=factor,
        subtotal=base_price + (base_price * factor) // 100,
        discount_percent=discount_percent(num_blocks),
        total=total,
        per_block=per_block_price(total, num_blocks),
    )
