"""
Vertical stacking - tracking columns of identical units on one footprint.

A stack is identified by its product and the floor origin of its base
unit.  ``StackTracker`` keeps the running height and unit count of every
stack so strategies never have to rediscover stacks by scanning
placements for equal coordinates; origins are matched within
``POINT_EPSILON`` only when a tracker is rebuilt from an existing layout.
"""

import math
import zlib
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from roompack.config import POINT_EPSILON
from roompack.models import Placement, ProductId


def _format_coord(value: float) -> str:
    return f"{round(value, 2):g}"


def generate_stack_id(product_id: ProductId, x: float, y: float) -> int:
    """Deterministic 32-bit id for the stack of *product_id* based at (x, y)."""
    key = f"{product_id}_{_format_coord(x)}_{_format_coord(y)}"
    return zlib.crc32(key.encode("utf-8"))


def move_placement(placement: Placement, x: float, y: float) -> Placement:
    """Return *placement* shifted to (x, y), carrying its stack metadata along."""
    dx = x - placement.x
    dy = y - placement.y
    base_x = placement.stack_base_x + dx
    base_y = placement.stack_base_y + dy
    return replace(
        placement,
        x=x,
        y=y,
        stack_base_x=base_x,
        stack_base_y=base_y,
        stack_id=generate_stack_id(placement.product_id, base_x, base_y),
    )


@dataclass
class StackState:
    """Running state of one vertical stack."""
    product_id: ProductId
    base_x: float
    base_y: float
    width: float
    depth: float
    stack_id: int
    height: float = 0.0
    count: int = 0

    def matches(self, product_id: ProductId, x: float, y: float) -> bool:
        return (
            self.product_id == product_id
            and abs(self.base_x - x) < POINT_EPSILON
            and abs(self.base_y - y) < POINT_EPSILON
        )


class StackTracker:
    """
    Stacks of one room, with a shared height limit.

    The limit is the room height, lowered to ``column_max_height`` when one
    is given.
    """

    def __init__(self, room_height: float, column_max_height: Optional[float] = None):
        self.room_height = room_height
        self.height_limit = (
            min(room_height, column_max_height) if column_max_height else room_height
        )
        self._stacks: Dict[ProductId, List[StackState]] = {}

    @classmethod
    def from_placements(
        cls,
        placements: Iterable[Placement],
        room_height: float,
        column_max_height: Optional[float] = None,
    ) -> "StackTracker":
        tracker = cls(room_height, column_max_height)
        for p in sorted(placements, key=lambda p: p.z):
            stack = tracker.find_existing_stack(p.product_id, p.stack_base_x, p.stack_base_y)
            if stack is None:
                stack = tracker._open(p.product_id, p.stack_base_x, p.stack_base_y,
                                      p.width, p.depth)
            stack.height = max(stack.height, p.z_max)
            stack.count += 1
        return tracker

    # ── Queries ──────────────────────────────────────────────────────────

    def stacks(self, product_id: Optional[ProductId] = None) -> List[StackState]:
        if product_id is not None:
            return list(self._stacks.get(product_id, []))
        return [s for group in self._stacks.values() for s in group]

    def find_existing_stack(self, product_id: ProductId, x: float, y: float) -> Optional[StackState]:
        for stack in self._stacks.get(product_id, []):
            if stack.matches(product_id, x, y):
                return stack
        return None

    def stack_z(self, product_id: ProductId, x: float, y: float) -> float:
        """Z at which the next unit of the stack would rest (0 for a new stack)."""
        stack = self.find_existing_stack(product_id, x, y)
        return stack.height if stack else 0.0

    def can_fit_in_stack(self, product_id: ProductId, x: float, y: float, item_height: float) -> bool:
        return self.stack_z(product_id, x, y) + item_height <= self.height_limit

    def stack_capacity(self, product_id: ProductId, x: float, y: float, item_height: float) -> int:
        """How many more units of *item_height* fit on top of the stack."""
        remaining = self.height_limit - self.stack_z(product_id, x, y)
        if remaining <= 0:
            return 0
        return int(math.floor(remaining / item_height))

    def next_stack_position(self, product_id: ProductId, x: float, y: float) -> int:
        stack = self.find_existing_stack(product_id, x, y)
        return stack.count + 1 if stack else 1

    # ── Updates ──────────────────────────────────────────────────────────

    def place(
        self,
        product_id: ProductId,
        x: float,
        y: float,
        width: float,
        depth: float,
        height: float,
        rotation: int = 0,
    ) -> Placement:
        """Put one unit on the stack at (x, y) and return its placement.

        The caller is responsible for checking ``can_fit_in_stack`` first.
        """
        stack = self.find_existing_stack(product_id, x, y)
        if stack is None:
            stack = self._open(product_id, x, y, width, depth)
        placement = Placement(
            product_id=product_id,
            x=stack.base_x,
            y=stack.base_y,
            z=stack.height,
            width=width,
            depth=depth,
            height=height,
            rotation=rotation,
            layer_index=stack.count,
            stack_id=stack.stack_id,
            stack_position=stack.count + 1,
            stack_base_x=stack.base_x,
            stack_base_y=stack.base_y,
            items_below_count=stack.count,
        )
        stack.height += height
        stack.count += 1
        return placement

    def _open(self, product_id: ProductId, x: float, y: float, width: float, depth: float) -> StackState:
        stack = StackState(
            product_id=product_id,
            base_x=x,
            base_y=y,
            width=width,
            depth=depth,
            stack_id=generate_stack_id(product_id, x, y),
        )
        self._stacks.setdefault(product_id, []).append(stack)
        return stack
