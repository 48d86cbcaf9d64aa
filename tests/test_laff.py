"""
Tests for the floor-packing strategies: LAFF and its MaxRects variant.

Every layout produced here is also run through the validator, which
checks bounds and floor overlap independently of the strategy.
"""

import pytest

import roompack.strategies  # noqa: F401  registers all strategies
from roompack.layout.validator import validate_layout
from roompack.models import ItemRequest, Placement, RoomDimensions
from roompack.strategies.base_strategy import (
    STRATEGY_REGISTRY,
    expand_items,
    get_strategy,
    sort_largest_footprint_first,
)
from roompack.strategies.laff import LaffStrategy
from roompack.strategies.maxrects import MaxRectsStrategy, score_placement


FLOOR_STRATEGIES = ["laff", "maxrects"]


def _assert_valid(result, room):
    report = validate_layout(result.placements, room.width, room.depth, room.height)
    assert report.valid, report.errors


# ---------------------------------------------------------------------------
# Registry and helpers
# ---------------------------------------------------------------------------

class TestRegistry:

    def test_all_strategies_registered(self):
        for name in ("laff", "maxrects", "compartment", "hybrid"):
            assert name in STRATEGY_REGISTRY

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            get_strategy("tetris")

    def test_expand_and_sort(self):
        items = [
            ItemRequest(product_id="small", width=10, depth=10, height=5, quantity=2),
            ItemRequest(product_id="big", width=50, depth=40, height=5),
            ItemRequest(product_id="tall", width=40, depth=50, height=9),
        ]
        units = sort_largest_footprint_first(expand_items(items))
        assert len(units) == 4
        # Equal areas: the taller unit first.
        assert [u.product_id for u in units] == ["tall", "big", "small", "small"]


# ---------------------------------------------------------------------------
# LAFF
# ---------------------------------------------------------------------------

class TestLaff:

    def test_four_boxes_on_the_floor(self, room, four_boxes, no_rotation):
        result = LaffStrategy().pack(four_boxes, room, no_rotation)
        assert result.placed_count == 4
        assert not result.unplaced_items
        assert all(p.z == 0 for p in result.placements)
        assert all(p.rotation == 0 for p in result.placements)
        assert result.utilization == pytest.approx(5.0)
        _assert_valid(result, room)

    def test_first_unit_at_origin(self, room, four_boxes, no_rotation):
        result = LaffStrategy().pack(four_boxes, room, no_rotation)
        first = result.placements[0]
        assert (first.x, first.y) == (0, 0)

    def test_oversized_item_is_unplaced(self, small_room):
        items = [ItemRequest(product_id=1, width=150, depth=50, height=50)]
        result = LaffStrategy().pack(items, small_room)
        assert result.placed_count == 0
        (unplaced,) = result.unplaced_items
        assert "does not fit" in unplaced.reason

    def test_too_tall_item_reason(self, small_room):
        items = [ItemRequest(product_id=1, width=10, depth=10, height=150)]
        (unplaced,) = LaffStrategy().pack(items, small_room).unplaced_items
        assert "exceeds room height" in unplaced.reason

    def test_full_floor_reports_no_space(self, small_room):
        items = [ItemRequest(product_id=1, width=50, depth=50, height=10, quantity=5)]
        result = LaffStrategy().pack(items, small_room)
        assert result.placed_count == 4
        (unplaced,) = result.unplaced_items
        assert unplaced.reason == "No free floor space large enough for this item"

    def test_rotation_used_when_needed(self):
        room = RoomDimensions(width=60, depth=200, height=100)
        items = [ItemRequest(product_id=1, width=150, depth=50, height=50)]
        (p,) = LaffStrategy().pack(items, room).placements
        assert p.rotation in (90, 270)
        assert (p.width, p.depth) == (50, 150)

    def test_existing_placements_are_avoided(self, small_room):
        existing = [Placement(product_id=9, x=0, y=0, z=0, width=50, depth=100, height=50)]
        items = [ItemRequest(product_id=1, width=50, depth=50, height=50, quantity=3)]
        result = LaffStrategy().pack(items, small_room, existing=existing)
        assert result.placed_count == 2
        assert all(p.x >= 50 for p in result.placements)
        assert len(result.unplaced_items) == 1

    def test_each_unit_is_its_own_stack(self, room, four_boxes):
        result = LaffStrategy().pack(four_boxes, room)
        ids = {p.stack_id for p in result.placements}
        assert len(ids) == 4
        assert all(p.stack_position == 1 and p.items_below_count == 0
                   for p in result.placements)


# ---------------------------------------------------------------------------
# Properties shared by both floor strategies
# ---------------------------------------------------------------------------

MIXED = [
    ItemRequest(product_id=1, width=120, depth=80, height=100, quantity=6),
    ItemRequest(product_id=2, width=60, depth=40, height=40, quantity=10),
    ItemRequest(product_id=3, width=200, depth=100, height=150, quantity=3),
    ItemRequest(product_id=4, width=35, depth=35, height=200, quantity=8, rotatable=False),
]


@pytest.mark.parametrize("name", FLOOR_STRATEGIES)
class TestFloorStrategyProperties:

    def test_layout_is_valid(self, name):
        room = RoomDimensions(width=500, depth=400, height=250)
        result = get_strategy(name).pack(MIXED, room)
        assert result.placed_count + len(result.unplaced_items) == 27
        _assert_valid(result, room)

    def test_utilization_in_range(self, name):
        room = RoomDimensions(width=300, depth=200, height=250)
        result = get_strategy(name).pack(MIXED, room)
        assert 0 <= result.utilization <= 100

    def test_bigger_room_never_places_fewer(self, name):
        small = RoomDimensions(width=300, depth=200, height=250)
        large = RoomDimensions(width=600, depth=400, height=250)
        strategy = get_strategy(name)
        assert (strategy.pack(MIXED, large).placed_count
                >= strategy.pack(MIXED, small).placed_count)

    def test_deterministic(self, name):
        room = RoomDimensions(width=500, depth=400, height=250)
        a = get_strategy(name).pack(MIXED, room)
        b = get_strategy(name).pack(MIXED, room)
        assert a.placements == b.placements


class TestMaxRects:

    def test_score_prefers_bottom_left_and_centre(self, room):
        from roompack.geometry import Rectangle
        from roompack.strategies.laff import Candidate

        corner = Candidate(0, Rectangle(0, 0, 1000, 800), 100, 100, 10)
        far = Candidate(0, Rectangle(900, 700, 100, 100), 100, 100, 10)
        assert score_placement(corner, room) > score_placement(far, room)

    def test_places_everything_that_fits(self, room, four_boxes):
        result = MaxRectsStrategy().pack(four_boxes, room)
        assert result.placed_count == 4
        _assert_valid(result, room)
