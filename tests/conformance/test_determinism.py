"""
Determinism Conformance Tests

INVARIANT: Identical purchase sequences produce identical walls.

    ∀ sequence S:
        run(S) on wall A = run(S) on wall B    (state and receipts)
        replay(run(S)) = run(S)
        clone(W) = W, and diverges only by later purchases
"""

from datetime import datetime, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from pixelwall import Wall, WallError


IMG = b"img"

attempts = st.lists(
    st.tuples(
        st.sampled_from(["alice", "bob"]),
        st.integers(0, 9), st.integers(0, 9),
        st.integers(1, 4), st.integers(1, 4),
    ),
    min_size=1,
    max_size=20,
)


def run(sequence):
    wall = Wall("owner", base_price=1_000, width=10, height=10, verbose=False)
    t = datetime(2025, 1, 1)
    for i, (buyer, x, y, w, h) in enumerate(sequence):
        wall.advance_time(t + timedelta(hours=i))
        try:
            wall.purchase(buyer, x, y, w, h, IMG, 10**12)
        except WallError:
            pass
    return wall


class TestDeterminism:

    @given(attempts)
    @settings(max_examples=50)
    def test_same_sequence_same_wall(self, sequence):
        a = run(sequence)
        b = run(sequence)
        assert a.occupancy == b.occupancy
        assert a.prices == b.prices
        assert a.total_blocks_sold == b.total_blocks_sold
        assert [r.receipt_id for r in a.get_purchases()] == [r.receipt_id for r in b.get_purchases()]

    @given(attempts)
    @settings(max_examples=50)
    def test_replay_matches_original(self, sequence):
        wall = run(sequence)
        replayed = wall.replay()
        assert replayed.occupancy == wall.occupancy
        assert replayed.prices == wall.prices
        assert replayed.total_blocks_sold == wall.total_blocks_sold
        assert replayed.get_purchases() == wall.get_purchases()

    @given(attempts, attempts)
    @settings(max_examples=30)
    def test_clone_then_continue_equals_direct_run(self, first, second):
        direct = run(first + second)
        original = run(first)
        cloned = original.clone()
        assert cloned.occupancy == original.occupancy
        assert cloned.get_purchases() == original.get_purchases()

        # second leg continues the clock where the first left off
        t = datetime(2025, 1, 1) + timedelta(hours=len(first))
        for i, (buyer, x, y, w, h) in enumerate(second):
            cloned.advance_time(t + timedelta(hours=i))
            try:
                cloned.purchase(buyer, x, y, w, h, IMG, 10**12)
            except WallError:
                pass
        assert cloned.occupancy == direct.occupancy
        assert cloned.prices == direct.prices
        assert cloned.get_purchases() == direct.get_purchases()
