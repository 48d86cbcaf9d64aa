"""Tests for compartment grid sizing and the compartment strategy."""

import pytest

from roompack.layout.validator import validate_layout
from roompack.models import GridRequest, ItemRequest, PackOptions, RoomDimensions
from roompack.strategies.compartment import CompartmentStrategy
from roompack.strategies.grid import (
    CompartmentManager,
    SmartGridCalculator,
    build_product_profiles,
)


# ---------------------------------------------------------------------------
# Grid arithmetic
# ---------------------------------------------------------------------------

class TestCompartmentManager:

    @pytest.mark.parametrize("n", [1, 2, 5, 12, 30])
    def test_simple_grid_has_a_cell_per_product(self, n):
        grid = CompartmentManager.calculate_grid(1000, 600, n)
        assert grid.cell_count >= n
        assert grid.strategy == "simple"
        assert grid.fits_room(1000, 600)

    def test_explicit_grid(self):
        grid = CompartmentManager.calculate_grid(1000, 600, 12, GridRequest(columns=2, rows=3))
        assert (grid.columns, grid.rows) == (2, 3)
        assert grid.cell_width == 500 and grid.cell_depth == 200
        assert grid.strategy == "explicit"

    @pytest.mark.parametrize("request_, expected", [
        (GridRequest(columns=4), (4, 3)),
        (GridRequest(rows=5), (3, 5)),
    ])
    def test_partial_grid_derives_the_other_axis(self, request_, expected):
        grid = CompartmentManager.calculate_grid(1000, 600, 12, request_)
        assert (grid.columns, grid.rows) == expected
        assert grid.strategy == "partial"

    def test_positions_are_row_major(self):
        assert CompartmentManager.get_next_grid_position(0, 3) == (0, 0)
        assert CompartmentManager.get_next_grid_position(4, 3) == (1, 1)

    def test_boundary_is_clipped_to_room(self):
        grid = CompartmentManager.calculate_grid(1000, 600, 4, GridRequest(columns=3, rows=2))
        cell = CompartmentManager.get_compartment_boundary(2, 1, grid, 1000, 600)
        assert cell.right_x == pytest.approx(1000)
        assert cell.top_y == pytest.approx(600)


class TestSmartGrid:

    def test_profiles_merge_requests_of_one_product(self):
        items = [
            ItemRequest(product_id=1, width=10, depth=10, height=10, quantity=2),
            ItemRequest(product_id=1, width=10, depth=10, height=10, quantity=3),
        ]
        (profile,) = build_product_profiles(items)
        assert profile.quantity == 5

    def test_every_product_gets_a_cell(self, twelve_products):
        room = RoomDimensions(width=1000, depth=600, height=250)
        grid = SmartGridCalculator().calculate_optimal_grid(twelve_products, room)
        assert grid.cell_count >= 12
        assert grid.cell_width >= 60 and grid.cell_depth >= 40

    def test_cells_grow_for_large_products(self):
        room = RoomDimensions(width=1000, depth=1000, height=250)
        items = [ItemRequest(product_id=i, width=400, depth=400, height=50) for i in range(4)]
        grid = SmartGridCalculator().calculate_optimal_grid(items, room)
        assert grid.cell_width >= 400 and grid.cell_depth >= 400

    def test_explicit_request_wins(self, twelve_products):
        room = RoomDimensions(width=1000, depth=600, height=250)
        grid = SmartGridCalculator().calculate_optimal_grid(
            twelve_products, room, GridRequest(columns=6, rows=2)
        )
        assert (grid.columns, grid.rows, grid.strategy) == (6, 2, "explicit")

    def test_score_rewards_fit(self):
        profiles = build_product_profiles(
            [ItemRequest(product_id=1, width=100, depth=100, height=10)]
        )
        calc = SmartGridCalculator()
        fits = CompartmentManager.calculate_grid(200, 200, 1)
        too_small = CompartmentManager.calculate_grid(200, 200, 1, GridRequest(columns=4, rows=4))
        assert calc.score_grid(fits, profiles)[1] == 1.0
        assert calc.score_grid(too_small, profiles)[1] == 0.0


# ---------------------------------------------------------------------------
# Compartment strategy
# ---------------------------------------------------------------------------

class TestCompartmentStrategy:

    def test_second_unit_stacks_on_the_first(self):
        room = RoomDimensions(width=50, depth=50, height=100)
        items = [
            ItemRequest(product_id=1, width=50, depth=50, height=30),
            ItemRequest(product_id=1, width=50, depth=50, height=40),
        ]
        result = CompartmentStrategy().pack(items, room)
        assert result.placed_count == 2
        base, top = result.placements
        assert (base.x, base.y, base.z) == (0, 0, 0)
        assert (top.x, top.y, top.z) == (0, 0, 30)
        assert top.stack_id == base.stack_id
        assert top.items_below_count == 1
        assert validate_layout(result.placements, 50, 50, 100).valid

    def test_stack_respects_height_limit(self):
        room = RoomDimensions(width=50, depth=50, height=100)
        items = [ItemRequest(product_id=1, width=50, depth=50, height=40, quantity=3)]
        result = CompartmentStrategy().pack(items, room)
        assert result.placed_count == 2
        (unplaced,) = result.unplaced_items
        assert unplaced.reason == "No space in compartment"

    def test_column_max_height(self):
        room = RoomDimensions(width=50, depth=50, height=300)
        items = [ItemRequest(product_id=1, width=50, depth=50, height=40, quantity=5)]
        result = CompartmentStrategy().pack(items, room, PackOptions(column_max_height=100))
        assert result.placed_count == 2
        assert max(p.z_max for p in result.placements) <= 100

    def test_twelve_products(self, twelve_products):
        room = RoomDimensions(width=1000, depth=600, height=250)
        result = CompartmentStrategy().pack(twelve_products, room)
        assert result.grid.cell_count >= 12
        assert result.placed_count == 24
        assert len(result.compartments) == 12
        assert all(c.placed_count == c.items_count == 2 for c in result.compartments)
        assert validate_layout(result.placements, 1000, 600, 250).valid

    def test_units_stay_inside_their_compartment(self, twelve_products):
        room = RoomDimensions(width=1000, depth=600, height=250)
        result = CompartmentStrategy().pack(twelve_products, room)
        cells = {c.product_id: c for c in result.compartments}
        for p in result.placements:
            cell = cells[p.product_id]
            assert p.x >= cell.x - 0.1 and p.x_max <= cell.x + cell.width + 0.1
            assert p.y >= cell.y - 0.1 and p.y_max <= cell.y + cell.depth + 0.1

    def test_overflow_products_have_no_compartment(self, twelve_products):
        room = RoomDimensions(width=1000, depth=600, height=250)
        options = PackOptions(grid=GridRequest(columns=2, rows=2))
        result = CompartmentStrategy().pack(twelve_products, room, options)
        assert len(result.compartments) == 4
        overflow = [u for u in result.unplaced_items
                    if u.reason == "No compartment available for product"]
        assert len(overflow) == 16

    def test_item_larger_than_cell(self):
        room = RoomDimensions(width=200, depth=100, height=100)
        items = [
            ItemRequest(product_id=1, width=150, depth=90, height=10),
            ItemRequest(product_id=2, width=40, depth=40, height=10),
        ]
        options = PackOptions(grid=GridRequest(columns=2, rows=1))
        result = CompartmentStrategy().pack(items, room, options)
        reasons = {u.product_id: u.reason for u in result.unplaced_items}
        assert reasons == {1: "Item too large for compartment"}

    def test_units_are_never_rotated(self):
        room = RoomDimensions(width=100, depth=200, height=100)
        items = [ItemRequest(product_id=1, width=150, depth=50, height=10)]
        options = PackOptions(allow_rotation=True, grid=GridRequest(columns=1, rows=1))
        result = CompartmentStrategy().pack(items, room, options)
        assert result.placed_count == 0
        (unplaced,) = result.unplaced_items
        assert unplaced.reason == "Item too large for compartment"

    def test_placements_keep_their_footprint(self, twelve_products):
        room = RoomDimensions(width=1000, depth=600, height=250)
        result = CompartmentStrategy().pack(twelve_products, room)
        assert all(p.rotation == 0 for p in result.placements)
        assert all((p.width, p.depth) == (60, 40) for p in result.placements)
