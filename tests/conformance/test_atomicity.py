"""
Atomicity Conformance Tests

INVARIANT: Purchases are all-or-nothing.

    ∀ purchase P:
        P succeeds ⟹ every block of P is sold to the buyer, with a price
        P fails    ⟹ occupancy, prices, total_blocks_sold and funds are unchanged

Partial rectangles are impossible by construction.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pixelwall import (
    Wall, CashBook, Transfer, SYSTEM_WALLET, WallError, rectangle_block_ids,
)
from tests.conftest import wall_snapshot


IMG = b"img"

rectangles = st.tuples(
    st.integers(-2, 11),   # x
    st.integers(-2, 11),   # y
    st.integers(-1, 6),    # w
    st.integers(-1, 6),    # h
)


def new_wall_and_book():
    book = CashBook(verbose=False)
    book.register_wallet("owner")
    book.register_wallet("alice")
    book.execute(Transfer(10**9, SYSTEM_WALLET, "alice", "fund"))
    wall = Wall("owner", base_price=1_000, width=10, height=10, payments=book, verbose=False)
    return wall, book


class TestAtomicityProperties:
    """Property-based atomicity tests."""

    @given(st.lists(st.tuples(rectangles, st.booleans()), min_size=1, max_size=15))
    @settings(max_examples=100)
    def test_every_purchase_all_or_nothing(self, attempts):
        """
        PROPERTY: after each attempt the wall either gained exactly the
        rectangle's blocks or is identical to before.
        """
        wall, book = new_wall_and_book()

        for (x, y, w, h), pay_enough in attempts:
            before = wall_snapshot(wall)
            funds_before = (book.get_balance("alice"), book.get_balance("owner"))
            payment = 10**9 if pay_enough else 1
            try:
                receipt = wall.purchase("alice", x, y, w, h, IMG, payment)
            except WallError:
                assert wall_snapshot(wall) == before
                assert (book.get_balance("alice"), book.get_balance("owner")) == funds_before
                continue

            cells = rectangle_block_ids(x, y, w, h, 10, 10)
            assert set(wall.occupancy) == set(before["occupancy"]) | set(cells)
            assert set(wall.prices) == set(wall.occupancy)
            assert wall.total_blocks_sold == before["total_blocks_sold"] + w * h
            assert book.get_balance("owner") == funds_before[1] + receipt.total_price

    @given(rectangles)
    def test_failed_purchase_publishes_nothing(self, rect):
        wall, _ = new_wall_and_book()
        published = []

        class Sink:
            def publish(self, receipt):
                published.append(receipt)

        wall.event_sink = Sink()
        x, y, w, h = rect
        try:
            wall.purchase("alice", x, y, w, h, IMG, 1)
        except WallError:
            assert published == []
        else:
            assert len(published) == 1


class TestAtomicityExamples:
    """Explicit atomicity examples."""

    def test_conflict_on_last_cell_claims_nothing(self):
        wall, book = new_wall_and_book()
        wall.purchase("alice", 4, 4, 1, 1, IMG, 10**6)
        before = wall_snapshot(wall)
        with pytest.raises(WallError):
            wall.purchase("alice", 0, 0, 5, 5, IMG, 10**6)
        assert wall_snapshot(wall) == before
        assert wall.owner_of(0) is None

    def test_payment_refusal_claims_nothing(self):
        wall, book = new_wall_and_book()
        book.register_wallet("bob")
        with pytest.raises(WallError):
            wall.purchase("bob", 0, 0, 3, 3, IMG, 10**6)
        assert wall.sold_block_ids() == frozenset()
        assert wall.total_blocks_sold == 0
