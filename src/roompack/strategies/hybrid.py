"""
Hybrid strategy - pick a packing approach from the product mix.

Preferred branch:
  * many products (> hybrid_many_products) with low average quantity
    (< hybrid_low_quantity)                          -> compartment
  * few products (<= hybrid_few_products) with high average quantity
    (> hybrid_high_quantity)                         -> laff
  * anything else                                    -> grouped

``grouped`` partitions the requests with ProductGroupingService, gives
each group one cell of a ceil(sqrt(groups * aspect)) grid and runs LAFF
inside every cell, shifting the results to the cell origin.

The preferred branch always runs.  While the request stays within
``hybrid_alternative_unit_limit`` units the other branches run as well,
and the result with the highest

    utilization + hybrid_placed_weight * placed_count

is returned; ties keep the preferred branch.  A branch that raises is
logged and skipped.  When every branch fails, the compartment strategy is
run on its own.
"""

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence

from roompack.errors import LayoutGenerationError
from roompack.models import (
    ItemRequest,
    PackOptions,
    PackResult,
    Placement,
    RoomDimensions,
    UnplacedItem,
)
from roompack.stacking import move_placement
from roompack.strategies.base_strategy import (
    PackingStrategy,
    calculate_utilization,
    register_strategy,
)
from roompack.strategies.compartment import CompartmentStrategy
from roompack.strategies.grid import CompartmentManager
from roompack.strategies.grouping import ProductGroupingService
from roompack.strategies.laff import LaffStrategy

logger = logging.getLogger(__name__)

BRANCH_COMPARTMENT = "compartment"
BRANCH_LAFF = "laff"
BRANCH_GROUPED = "hybrid"


@register_strategy
class HybridStrategy(PackingStrategy):
    """Meta-strategy over compartment, LAFF and grouped-LAFF branches."""

    name = "hybrid"

    def __init__(self, settings=None) -> None:
        super().__init__(settings)
        self.compartment = CompartmentStrategy(self.settings)
        self.laff = LaffStrategy(self.settings)
        self.grouping = ProductGroupingService(self.settings)

    def determine_strategy(self, items: Sequence[ItemRequest]) -> str:
        products = {i.product_id for i in items}
        num_products = len(products)
        avg_quantity = sum(i.quantity for i in items) / max(num_products, 1)
        s = self.settings
        if num_products > s.hybrid_many_products and avg_quantity < s.hybrid_low_quantity:
            return BRANCH_COMPARTMENT
        if num_products <= s.hybrid_few_products and avg_quantity > s.hybrid_high_quantity:
            return BRANCH_LAFF
        return BRANCH_GROUPED

    def score(self, result: PackResult) -> float:
        return result.utilization + self.settings.hybrid_placed_weight * result.placed_count

    def pack(
        self,
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        options: Optional[PackOptions] = None,
    ) -> PackResult:
        options = options or PackOptions()
        preferred = self.determine_strategy(items)
        branches: Dict[str, Callable[[], PackResult]] = {
            BRANCH_COMPARTMENT: lambda: self.compartment.pack(items, room, options),
            BRANCH_LAFF: lambda: self.laff.pack(items, room, options),
            BRANCH_GROUPED: lambda: self.pack_grouped(items, room, options),
        }
        order = [preferred]
        units = sum(i.quantity for i in items)
        if units <= self.settings.hybrid_alternative_unit_limit:
            order += [b for b in branches if b != preferred]

        best: Optional[PackResult] = None
        best_name = preferred
        best_score = -math.inf
        for branch in order:
            try:
                result = branches[branch]()
            except Exception:
                logger.exception("Hybrid branch %s failed", branch)
                continue
            score = self.score(result)
            logger.debug("Hybrid branch %s scored %.2f", branch, score)
            if score > best_score:
                best, best_name, best_score = result, branch, score

        if best is None:
            logger.warning("All hybrid branches failed, falling back to compartment packing")
            try:
                best = self.compartment.pack(items, room, options)
            except Exception as exc:
                raise LayoutGenerationError(self.name, str(exc)) from exc
            best_name = BRANCH_COMPARTMENT

        best.strategy_used = best_name
        return best

    def pack_grouped(
        self,
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        options: PackOptions,
    ) -> PackResult:
        """Group requests, then LAFF-pack each group inside its own cell."""
        grouping = self.grouping.group_for_optimal_fit(items)
        groups = [g for g in grouping.groups if g.items]
        grid = CompartmentManager.calculate_grid(room.width, room.depth, len(groups))

        placements: List[Placement] = []
        unplaced: List[UnplacedItem] = []
        for index, group in enumerate(groups):
            column, row = CompartmentManager.get_next_grid_position(index, grid.columns)
            cell = CompartmentManager.get_compartment_boundary(
                column, row, grid, room.width, room.depth
            )
            cell_room = RoomDimensions(width=cell.width, depth=cell.depth, height=room.height)
            result = self.laff.pack(group.items, cell_room, options)
            placements.extend(
                move_placement(p, p.x + cell.x, p.y + cell.y) for p in result.placements
            )
            unplaced.extend(result.unplaced_items)

        logger.debug(
            "Grouped packing by %s: %d groups, %d placed", grouping.strategy,
            len(groups), len(placements),
        )
        return PackResult(
            placements=placements,
            unplaced_items=unplaced,
            utilization=calculate_utilization(placements, room),
        )
