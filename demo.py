#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The Advertising Wall Step by Step

A walk through the wall engine. Each step builds on the previous one.
Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Foundation  - The empty wall, funded buyers, the first purchase
  4-6: Exclusivity - Overlaps, out-of-bounds, underpayment (nothing changes)
  7-8: Pricing     - Demand surcharge and bulk discounts
  9:   Audit       - Invariants and replay

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from pixelwall import (
    Wall, CashBook, Transfer, EventLog, SYSTEM_WALLET,
    WallError, to_block_id, quote,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    base_price: int = 100_000_000
    buyer_funds: int = 100_000_000_000


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def attempt(wall: Wall, *args):
    """Run a purchase and show the error instead of stopping the tutorial."""
    try:
        return wall.purchase(*args)
    except WallError as e:
        print(f"    -> {type(e).__name__}: {e}")
        return None


# ============================================================================
# STEPS
# ============================================================================

def step_01_empty_wall():
    step_header(1, "The Empty Wall",
        "A 100x100 grid with nothing sold and a fixed base price.")
    book = CashBook("MIST", verbose=True)
    book.register_wallet("owner")
    events = EventLog()
    wall = Wall("owner", base_price=CONFIG.base_price, payments=book, event_sink=events)
    print(f"Grid:        {wall.width}x{wall.height}")
    print(f"Base price:  {wall.base_price}")
    print(f"Free blocks: {wall.free_blocks()}")
    return wall, book, events


def step_02_fund_buyers(book: CashBook):
    step_header(2, "Funding Buyers",
        "Money enters through SYSTEM_WALLET; the wall only ever charges.")
    for buyer in ("alice", "bob"):
        book.register_wallet(buyer)
        book.execute(Transfer(CONFIG.buyer_funds, SYSTEM_WALLET, buyer, f"fund_{buyer}"))


def step_03_first_purchase(wall: Wall, book: CashBook, events: EventLog):
    step_header(3, "First Purchase",
        "Alice buys a 5x1 banner; 5 blocks on an empty wall cost 5 x base.")
    receipt = wall.purchase("alice", 0, 0, 5, 1, b"ipfs://alice-banner", 10**10)
    print(f"Owner of block 4:   {wall.owner_of(4)}")
    print(f"Anchor flag, 0 / 1: {wall.info_of(0).is_anchor} / {wall.info_of(1).is_anchor}")
    print(f"Owner proceeds:     {book.get_balance('owner')}")
    print(f"Events published:   {len(events)}")
    return receipt


def step_04_overlap(wall: Wall):
    step_header(4, "Overlaps Are Rejected",
        "Bob's rectangle touches block (4, 0); the whole request fails.")
    before = wall.total_blocks_sold
    attempt(wall, "bob", 4, 0, 3, 3, b"ipfs://bob", 10**11)
    print(f"Blocks sold unchanged: {wall.total_blocks_sold == before}")


def step_05_out_of_bounds(wall: Wall):
    step_header(5, "Bounds",
        "A 5-wide rectangle at x=98 would hang off a 100-wide wall.")
    attempt(wall, "bob", 98, 0, 5, 1, b"ipfs://bob", 10**11)


def step_06_underpayment(wall: Wall):
    step_header(6, "Underpayment",
        "Offering less than the price fails before any funds move.")
    print(f"Quote for 2x2: {wall.quote(2, 2).total}")
    attempt(wall, "bob", 10, 10, 2, 2, b"ipfs://bob", 1)


def step_07_demand(wall: Wall):
    step_header(7, "Demand Surcharge",
        "Every block sold raises the next price by about 1.05% of base.")
    for sold in (0, 5, 100, 500, 5_000):
        print(f"  1 block after {sold:>5} sold: {quote(wall.base_price, sold, 1).total}")


def step_08_bulk(wall: Wall):
    step_header(8, "Bulk Discounts",
        "6+ blocks pay 95%, 21+ blocks pay 90% per block.")
    for area in (5, 6, 20, 21):
        q = wall.quote(area, 1)
        print(f"  {area:>2} blocks: total {q.total}, per block {q.per_block}")
    wall.purchase("bob", 10, 10, 7, 3, b"ipfs://bob-billboard", 10**11)


def step_09_audit(wall: Wall):
    step_header(9, "Audit",
        "Invariants hold and replaying the log rebuilds the same wall.")
    print(f"Invariants: {wall.verify_invariants()}")
    replayed = wall.replay()
    print(f"Replay matches: {replayed.occupancy == wall.occupancy}")
    print(f"Anchors: {sorted(wall.anchors())}")
    print(f"Bob's anchor: {to_block_id(10, 10)}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       PIXELWALL - INTERACTIVE TUTORIAL")
    print("=" * 70)
    wait_for_enter()

    wall, book, events = step_01_empty_wall()
    wait_for_enter()
    step_02_fund_buyers(book)
    wait_for_enter()
    step_03_first_purchase(wall, book, events)
    wait_for_enter()
    step_04_overlap(wall)
    wait_for_enter()
    step_05_out_of_bounds(wall)
    wait_for_enter()
    step_06_underpayment(wall)
    wait_for_enter()
    step_07_demand(wall)
    wait_for_enter()
    step_08_bulk(wall)
    wait_for_enter()
    step_09_audit(wall)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See pixelwall/pricing.py for the exact integer pricing rule
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
