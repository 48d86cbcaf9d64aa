"""
Compartment strategy - one grid cell per product, vertical stacks inside.

Algorithm:
  1. Size a compartment grid for the request (SmartGridCalculator, or the
     explicit / partial grid from the options).
  2. Assign products to cells in first-seen order, row-major.  Products
     beyond the last cell are reported unplaced.
  3. Inside a cell, lay a sub-grid whose pitch is the product's own
     footprint, kept within 0.9x-1.5x of it and never wider than the cell.
  4. Each unit scans the sub-grid row by row and goes onto the first
     position where:
       * the unit stays inside the cell (BOUNDARY_MARGIN tolerance) and
         inside the room,
       * the stack there stays within the column height limit,
       * a new stack base does not overlap any floor-level placement.
     Units on an existing stack rest on top of it; stacks are tracked by
     identity, so stacking never relies on comparing coordinates.

Units are never rotated here: ``allow_rotation`` only affects the floor
strategies, and a unit wider or deeper than its cell is reported unplaced.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from roompack.config import BOUNDARY_MARGIN
from roompack.geometry import Box, Rectangle
from roompack.models import (
    CompartmentInfo,
    ItemRequest,
    PackOptions,
    PackResult,
    Placement,
    ProductId,
    RoomDimensions,
    UnplacedItem,
)
from roompack.spatial.collision import fits_in_room_2d, has_floor_collision
from roompack.spatial.rotation import ROTATION_0
from roompack.stacking import StackTracker
from roompack.strategies.base_strategy import (
    ExpandedItem,
    PackingStrategy,
    calculate_utilization,
    expand_items,
    register_strategy,
)
from roompack.strategies.grid import CompartmentManager, SmartGridCalculator
from roompack.strategies.laff import height_exceeded_reason

logger = logging.getLogger(__name__)


REASON_TOO_LARGE = "Item too large for compartment"
REASON_NO_SPACE = "No space in compartment"
REASON_NO_COMPARTMENT = "No compartment available for product"


def _inside_cell(x: float, y: float, width: float, depth: float, cell: Rectangle) -> bool:
    return (
        x >= cell.x - BOUNDARY_MARGIN
        and y >= cell.y - BOUNDARY_MARGIN
        and x + width <= cell.right_x + BOUNDARY_MARGIN
        and y + depth <= cell.top_y + BOUNDARY_MARGIN
    )


@register_strategy
class CompartmentStrategy(PackingStrategy):
    """Grid of per-product compartments with vertical stacking."""

    name = "compartment"

    def __init__(self, settings=None) -> None:
        super().__init__(settings)
        self.grid_calculator = SmartGridCalculator(self.settings)

    def pack(
        self,
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        options: Optional[PackOptions] = None,
    ) -> PackResult:
        options = options or PackOptions()
        grid = self.grid_calculator.calculate_optimal_grid(items, room, options.grid)
        by_product = self._group_units(expand_items(items))
        tracker = StackTracker(room.height, options.column_max_height)

        placements: List[Placement] = []
        floor_boxes: List[Box] = []
        unplaced: List[UnplacedItem] = []
        compartments: List[CompartmentInfo] = []

        for index, (product_id, units) in enumerate(by_product.items()):
            if index >= grid.cell_count:
                unplaced.extend(_unplaced(u, REASON_NO_COMPARTMENT) for u in units)
                continue
            column, row = CompartmentManager.get_next_grid_position(index, grid.columns)
            cell = CompartmentManager.get_compartment_boundary(
                column, row, grid, room.width, room.depth
            )
            placed_here = self._fill_compartment(
                units, cell, room, tracker, placements, floor_boxes, unplaced
            )
            compartments.append(CompartmentInfo(
                product_id=product_id,
                column=column,
                row=row,
                x=cell.x,
                y=cell.y,
                width=cell.width,
                depth=cell.depth,
                items_count=len(units),
                placed_count=placed_here,
            ))

        logger.debug(
            "compartment grid %dx%d (%s): placed %d, unplaced %d",
            grid.columns, grid.rows, grid.strategy, len(placements), len(unplaced),
        )
        return PackResult(
            placements=placements,
            unplaced_items=unplaced,
            utilization=calculate_utilization(placements, room),
            grid=grid,
            compartments=compartments,
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _group_units(units: List[ExpandedItem]) -> Dict[ProductId, List[ExpandedItem]]:
        grouped: Dict[ProductId, List[ExpandedItem]] = {}
        for unit in units:
            grouped.setdefault(unit.product_id, []).append(unit)
        return grouped

    @staticmethod
    def _fits_cell(unit: ExpandedItem, cell: Rectangle) -> bool:
        return (
            unit.width <= cell.width + BOUNDARY_MARGIN
            and unit.depth <= cell.depth + BOUNDARY_MARGIN
        )

    def _sub_grid(self, width: float, depth: float, cell: Rectangle) -> List[Tuple[float, float]]:
        """Candidate stack origins inside *cell*, row-major."""
        pitch_w = min(
            min(cell.width, width * self.settings.subgrid_max_scale),
            max(width * self.settings.subgrid_min_scale, width),
        )
        pitch_d = min(
            min(cell.depth, depth * self.settings.subgrid_max_scale),
            max(depth * self.settings.subgrid_min_scale, depth),
        )
        cols = max(1, int(cell.width // pitch_w)) if pitch_w > 0 else 1
        rows = max(1, int(cell.depth // pitch_d)) if pitch_d > 0 else 1
        return [
            (cell.x + c * pitch_w, cell.y + r * pitch_d)
            for r in range(rows)
            for c in range(cols)
        ]

    def _fill_compartment(
        self,
        units: List[ExpandedItem],
        cell: Rectangle,
        room: RoomDimensions,
        tracker: StackTracker,
        placements: List[Placement],
        floor_boxes: List[Box],
        unplaced: List[UnplacedItem],
    ) -> int:
        placed = 0
        positions: Optional[List[Tuple[float, float]]] = None
        for unit in units:
            if unit.height > room.height:
                unplaced.append(_unplaced(unit, height_exceeded_reason(unit.height, room.height)))
                continue
            if not self._fits_cell(unit, cell):
                unplaced.append(_unplaced(unit, REASON_TOO_LARGE))
                continue
            rotation, w, d, h = ROTATION_0, unit.width, unit.depth, unit.height
            if positions is None:
                # The first unit of the product fixes the sub-grid pitch.
                positions = self._sub_grid(w, d, cell)

            placement = self._place_unit(
                unit, rotation, w, d, h, positions, cell, room, tracker, floor_boxes
            )
            if placement is None:
                unplaced.append(_unplaced(unit, REASON_NO_SPACE))
                continue
            placements.append(placement)
            if placement.items_below_count == 0:
                floor_boxes.append(placement.to_box())
            placed += 1
        return placed

    def _place_unit(
        self,
        unit: ExpandedItem,
        rotation: int,
        w: float,
        d: float,
        h: float,
        positions: List[Tuple[float, float]],
        cell: Rectangle,
        room: RoomDimensions,
        tracker: StackTracker,
        floor_boxes: List[Box],
    ) -> Optional[Placement]:
        for x, y in positions:
            if not _inside_cell(x, y, w, d, cell):
                continue
            footprint = Box(x, y, 0.0, w, d, h)
            if not fits_in_room_2d(footprint, room.width, room.depth):
                continue
            if not tracker.can_fit_in_stack(unit.product_id, x, y, h):
                continue
            stack = tracker.find_existing_stack(unit.product_id, x, y)
            if stack is None and has_floor_collision(footprint, floor_boxes):
                continue
            return tracker.place(unit.product_id, x, y, w, d, h, rotation)
        return None


def _unplaced(unit: ExpandedItem, reason: str) -> UnplacedItem:
    return UnplacedItem(
        product_id=unit.product_id,
        width=unit.width,
        depth=unit.depth,
        height=unit.height,
        reason=reason,
    )

