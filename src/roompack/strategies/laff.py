"""
LAFF strategy - Largest Area Fit First floor packing.

Every unit goes on the floor (z = 0); this strategy never stacks.

Algorithm:
  1. Expand requests into single units and sort by base area descending,
     taller first among near-equal areas.
  2. For each unit, try every allowed rotation against every free
     rectangle that can hold it.  A candidate sits at the rectangle's
     origin and must be inside the room and clear of all placed boxes.
  3. Keep the candidate with the least leftover area, ties broken by
     lowest y then lowest x.  Commit it and carve its footprint out of
     the free-space pool.
  4. A unit without any valid candidate is reported unplaced with the
     most specific reason available.

Each placement is its own stack of height one, so stack metadata stays
meaningful for the optimizer and the validator.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from roompack.config import POINT_EPSILON
from roompack.geometry import Box, Rectangle
from roompack.models import (
    ItemRequest,
    PackOptions,
    PackResult,
    Placement,
    RoomDimensions,
    UnplacedItem,
)
from roompack.spatial.collision import fits_in_room, has_collision, is_floor_level
from roompack.spatial.free_space import FreeSpaceManager
from roompack.spatial.rotation import ALL_ROTATIONS, ROTATION_0, get_rotated_dimensions
from roompack.stacking import generate_stack_id
from roompack.strategies.base_strategy import (
    ExpandedItem,
    PackingStrategy,
    calculate_utilization,
    expand_items,
    register_strategy,
    sort_largest_footprint_first,
)

logger = logging.getLogger(__name__)


REASON_NO_FREE_SPACE = "No free floor space large enough for this item"
REASON_ALL_COLLIDE = "No valid non-colliding floor position found for this item"


def height_exceeded_reason(item_height: float, room_height: float) -> str:
    return f"Item height ({item_height:g}cm) exceeds room height ({room_height:g}cm)"


def oversized_reason(width: float, depth: float, height: float) -> str:
    return (
        f"Item ({width:g}x{depth:g}x{height:g}cm) does not fit in the room "
        f"in any allowed orientation"
    )


@dataclass(frozen=True)
class Candidate:
    """A valid floor position for one unit in one rotation."""
    rotation: int
    rect: Rectangle
    width: float
    depth: float
    height: float

    @property
    def x(self) -> float:
        return self.rect.x

    @property
    def y(self) -> float:
        return self.rect.y

    @property
    def waste(self) -> float:
        return self.rect.area - self.width * self.depth


@register_strategy
class LaffStrategy(PackingStrategy):
    """Largest-area-first floor packing over a MaxRects free-space pool."""

    name = "laff"

    def pack(
        self,
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        options: Optional[PackOptions] = None,
        existing: Sequence[Placement] = (),
    ) -> PackResult:
        """
        Pack *items* on the floor of *room*.

        ``existing`` placements are treated as already occupied space: their
        footprints are removed from the free pool and they take part in
        collision checks, but they are not part of the result.
        """
        options = options or PackOptions()
        free_space = FreeSpaceManager(room.width, room.depth, room.height)
        placed_boxes: List[Box] = []
        for p in existing:
            box = p.to_box()
            placed_boxes.append(box)
            if is_floor_level(box):
                free_space.occupy(p.x, p.y, p.width, p.depth)

        placements: List[Placement] = []
        unplaced: List[UnplacedItem] = []

        for unit in sort_largest_footprint_first(expand_items(items)):
            candidates = self._valid_candidates(unit, room, options, free_space, placed_boxes)
            choice = self._choose(candidates, room)
            if choice is None:
                unplaced.append(UnplacedItem(
                    product_id=unit.product_id,
                    width=unit.width,
                    depth=unit.depth,
                    height=unit.height,
                    reason=self._unplaced_reason(unit, room, options, free_space),
                ))
                continue

            placement = Placement(
                product_id=unit.product_id,
                x=choice.x,
                y=choice.y,
                z=0.0,
                width=choice.width,
                depth=choice.depth,
                height=choice.height,
                rotation=choice.rotation,
                layer_index=0,
                stack_id=generate_stack_id(unit.product_id, choice.x, choice.y),
                stack_position=1,
                stack_base_x=choice.x,
                stack_base_y=choice.y,
                items_below_count=0,
            )
            placements.append(placement)
            placed_boxes.append(placement.to_box())
            free_space.occupy(choice.x, choice.y, choice.width, choice.depth)

        logger.debug(
            "%s placed %d units, %d unplaced", self.name, len(placements), len(unplaced)
        )
        return PackResult(
            placements=placements,
            unplaced_items=unplaced,
            utilization=calculate_utilization(placements, room),
        )

    # ── Candidate search ─────────────────────────────────────────────────

    @staticmethod
    def _rotations(unit: ExpandedItem, options: PackOptions) -> Tuple[int, ...]:
        if options.allow_rotation and unit.rotatable:
            return ALL_ROTATIONS
        return (ROTATION_0,)

    def _valid_candidates(
        self,
        unit: ExpandedItem,
        room: RoomDimensions,
        options: PackOptions,
        free_space: FreeSpaceManager,
        placed_boxes: List[Box],
    ) -> List[Candidate]:
        found = []
        for rotation in self._rotations(unit, options):
            w, d, h = get_rotated_dimensions(unit.width, unit.depth, unit.height, rotation)
            for rect in free_space.candidates(w, d, h):
                box = Box(rect.x, rect.y, 0.0, w, d, h)
                if not fits_in_room(box, room.width, room.depth, room.height):
                    continue
                if has_collision(box, placed_boxes):
                    continue
                found.append(Candidate(rotation, rect, w, d, h))
        return found

    def _choose(self, candidates: List[Candidate], room: RoomDimensions) -> Optional[Candidate]:
        """Least leftover area, then bottom-left."""
        best: Optional[Candidate] = None
        for cand in candidates:
            if best is None or cand.waste < best.waste - POINT_EPSILON:
                best = cand
            elif abs(cand.waste - best.waste) <= POINT_EPSILON:
                if cand.y < best.y - POINT_EPSILON or (
                    abs(cand.y - best.y) <= POINT_EPSILON and cand.x < best.x
                ):
                    best = cand
        return best

    def _unplaced_reason(
        self,
        unit: ExpandedItem,
        room: RoomDimensions,
        options: PackOptions,
        free_space: FreeSpaceManager,
    ) -> str:
        if unit.height > room.height:
            return height_exceeded_reason(unit.height, room.height)
        rotations = self._rotations(unit, options)
        fits_room = False
        fits_free = False
        for rotation in rotations:
            w, d, h = get_rotated_dimensions(unit.width, unit.depth, unit.height, rotation)
            if w <= room.width and d <= room.depth:
                fits_room = True
            if free_space.find_best_fit(w, d, h) is not None:
                fits_free = True
        if not fits_room:
            return oversized_reason(unit.width, unit.depth, unit.height)
        if not fits_free:
            return REASON_NO_FREE_SPACE
        return REASON_ALL_COLLIDE
