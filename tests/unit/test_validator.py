"""
test_validator.py - Unit tests for validator.py

Tests:
- validate_rectangle: bounds, empty rectangles, conflicts, visiting order
- find_conflicts: reporting every sold cell
- The validator never mutates the view
"""

import pytest

from pixelwall import (
    validate_rectangle, find_conflicts,
    OutOfBounds, EmptyRectangle, BlockAlreadySold,
)
from tests.fake_view import FakeView


class TestBounds:

    def test_rectangle_filling_grid(self):
        view = FakeView(width=10, height=10)
        assert len(validate_rectangle(view, 0, 0, 10, 10)) == 100

    def test_rectangle_touching_right_edge(self):
        view = FakeView()
        assert validate_rectangle(view, 95, 0, 5, 1) == (95, 96, 97, 98, 99)

    def test_rectangle_past_right_edge(self):
        # 98 + 5 > 100
        with pytest.raises(OutOfBounds):
            validate_rectangle(FakeView(), 98, 0, 5, 1)

    def test_rectangle_past_bottom_edge(self):
        with pytest.raises(OutOfBounds):
            validate_rectangle(FakeView(), 0, 99, 1, 2)

    def test_negative_origin(self):
        with pytest.raises(OutOfBounds):
            validate_rectangle(FakeView(), -1, 0, 2, 1)

    def test_bounds_checked_before_any_cell(self):
        view = FakeView(sold={0})
        with pytest.raises(OutOfBounds):
            validate_rectangle(view, 0, 0, 101, 1)
        assert view.queries == []

    @pytest.mark.parametrize("w,h", [(0, 1), (1, 0), (0, 0), (-1, 3)])
    def test_empty_rectangle_rejected(self, w, h):
        view = FakeView()
        with pytest.raises(EmptyRectangle):
            validate_rectangle(view, 0, 0, w, h)
        assert view.queries == []


class TestConflicts:

    def test_free_rectangle_returns_ids_row_major(self):
        view = FakeView(width=10, height=10)
        assert validate_rectangle(view, 2, 3, 3, 2) == (32, 33, 34, 42, 43, 44)

    def test_first_sold_cell_reported(self):
        view = FakeView(width=10, height=10, sold={43, 33})
        with pytest.raises(BlockAlreadySold) as exc:
            validate_rectangle(view, 2, 3, 3, 2)
        assert exc.value.block_id == 33
        assert (exc.value.x, exc.value.y) == (3, 3)

    def test_stops_at_first_conflict(self):
        view = FakeView(width=10, height=10, sold={1})
        with pytest.raises(BlockAlreadySold):
            validate_rectangle(view, 0, 0, 3, 3)
        assert view.queries == [0, 1]

    def test_visits_rows_outer_columns_inner(self):
        view = FakeView(width=10, height=10)
        validate_rectangle(view, 0, 0, 2, 2)
        assert view.queries == [0, 1, 10, 11]

    def test_adjacent_rectangle_is_free(self):
        view = FakeView(width=10, height=10, sold={0, 1, 10, 11})
        assert validate_rectangle(view, 2, 0, 2, 2) == (2, 3, 12, 13)


class TestFindConflicts:

    def test_reports_every_sold_cell(self):
        view = FakeView(width=10, height=10, sold={0, 11, 55})
        assert find_conflicts(view, 0, 0, 3, 3) == [0, 11]

    def test_free_rectangle(self):
        assert find_conflicts(FakeView(), 10, 10, 5, 5) == []

    def test_bounds_still_enforced(self):
        with pytest.raises(OutOfBounds):
            find_conflicts(FakeView(), 99, 99, 2, 2)
