"""
Free-space manager - a MaxRects pool of free floor rectangles.

The pool starts as the whole floor.  Every time a footprint is occupied,
each free rectangle it overlaps is replaced by up to four maximal
rectangles (right, top, left and bottom of the used area), each clipped to
the free rectangle it was cut from.  Rectangles fully contained in another one
are then pruned.  Free rectangles may overlap each other; callers must
still run a collision check against placed boxes.

Best-fit choice:
    least leftover area (rect.area - width*depth), ties broken by
    lowest y, then lowest x (bottom-left).
"""

from typing import List, Optional

from roompack.config import POINT_EPSILON
from roompack.geometry import Rectangle


class FreeSpaceManager:
    """Tracks the free floor of a room as a list of maximal rectangles."""

    def __init__(self, room_width: float, room_depth: float, room_height: float):
        self.room_width = room_width
        self.room_depth = room_depth
        self.room_height = room_height
        self.free_rectangles: List[Rectangle] = [
            Rectangle(0.0, 0.0, room_width, room_depth, room_height)
        ]

    # ── Queries ──────────────────────────────────────────────────────────

    def candidates(self, width: float, depth: float, height: float) -> List[Rectangle]:
        """All free rectangles that can hold the item, best fit first."""
        fitting = [r for r in self.free_rectangles if r.can_fit(width, depth, height)]
        item_area = width * depth
        fitting.sort(key=lambda r: (r.area - item_area, r.y, r.x))
        return fitting

    def find_best_fit(self, width: float, depth: float, height: float) -> Optional[Rectangle]:
        best: Optional[Rectangle] = None
        best_waste = float("inf")
        item_area = width * depth
        for rect in self.free_rectangles:
            if not rect.can_fit(width, depth, height):
                continue
            waste = rect.area - item_area
            if best is None or waste < best_waste - POINT_EPSILON:
                best, best_waste = rect, waste
            elif abs(waste - best_waste) <= POINT_EPSILON and _is_more_bottom_left(rect, best):
                best, best_waste = rect, waste
        return best

    def get_total_free_area(self) -> float:
        """Sum of free rectangle areas.  Overlapping rectangles count twice."""
        return sum(r.area for r in self.free_rectangles)

    # ── Updates ──────────────────────────────────────────────────────────

    def split_free_space(self, used: Rectangle) -> None:
        """Remove *used* from the pool, replacing overlapped rectangles."""
        updated: List[Rectangle] = []
        for free in self.free_rectangles:
            if not free.intersects(used):
                updated.append(free)
                continue
            updated.extend(_split(free, used))
        self.free_rectangles = _prune_contained(updated)

    def occupy(self, x: float, y: float, width: float, depth: float) -> None:
        self.split_free_space(Rectangle(x, y, width, depth))


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _is_more_bottom_left(a: Rectangle, b: Rectangle) -> bool:
    if abs(a.y - b.y) > POINT_EPSILON:
        return a.y < b.y
    return a.x < b.x


def _split(free: Rectangle, used: Rectangle) -> List[Rectangle]:
    pieces = []
    if used.right_x < free.right_x:
        pieces.append(Rectangle(used.right_x, free.y, free.right_x - used.right_x,
                                free.depth, free.height))
    if used.top_y < free.top_y:
        pieces.append(Rectangle(free.x, used.top_y, free.width,
                                free.top_y - used.top_y, free.height))
    if used.x > free.x:
        pieces.append(Rectangle(free.x, free.y, used.x - free.x,
                                free.depth, free.height))
    if used.y > free.y:
        pieces.append(Rectangle(free.x, free.y, free.width,
                                used.y - free.y, free.height))
    return [p for p in pieces if p.width > 0 and p.depth > 0]


def _prune_contained(rects: List[Rectangle]) -> List[Rectangle]:
    # Duplicates contain each other; the first copy survives.
    kept = []
    for i, rect in enumerate(rects):
        redundant = False
        for j, other in enumerate(rects):
            if i == j or not other.contains(rect):
                continue
            if other != rect or j < i:
                redundant = True
                break
        if not redundant:
            kept.append(rect)
    return kept
