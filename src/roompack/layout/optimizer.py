"""
Layout optimizer - post-processing passes over a finished layout.

A layout is handled as columns: a floor-level placement plus everything
stacked on its (x, y) origin.  Columns always move as a unit, so stacks
stay on their bases.  Columns are addressed by index into the placement
list; a moved placement takes the place of the old one at the same index.

Passes (each optional, run in this order):

  1. Gap fill    - rasterise the floor on a ``gap_grid_size`` grid (numpy),
                   merge empty cells into maximal rectangles, drop those
                   smaller than ``gap_min_size`` on either side, then move
                   the smallest columns into the first gap they fit that is
                   further bottom-left than where they stand.
  2. Rearrange   - re-seat every column, largest footprint first, at the
                   bottom-left-most free position.  Candidate positions are
                   the room origin and the far edges of already-seated
                   columns.  If any column cannot be seated the whole pass
                   is dropped.
  3. Compact     - in (y, x) order, slide each column left, then toward
                   the front, until it touches a wall or another column.

Utilization is reported before and after.  Moves never change volume, so
the two only differ if a pass drops placements (none does).
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from roompack.config import DEFAULT_SETTINGS, FLOOR_EPSILON, POINT_EPSILON, EngineSettings
from roompack.geometry import Rectangle
from roompack.layout.validator import calculate_volume_utilization
from roompack.models import OptimizationResult, Placement
from roompack.stacking import move_placement

logger = logging.getLogger(__name__)


@dataclass
class _Column:
    indices: List[int]
    x: float
    y: float
    width: float
    depth: float

    @property
    def area(self) -> float:
        return self.width * self.depth

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.depth

    def overlaps(self, x: float, y: float, width: float, depth: float) -> bool:
        return x < self.x_max and self.x < x + width and y < self.y_max and self.y < y + depth


def _build_columns(placements: Sequence[Placement]) -> List[_Column]:
    columns: List[_Column] = []
    for i, p in enumerate(placements):
        if p.z < FLOOR_EPSILON:
            columns.append(_Column([i], p.x, p.y, p.width, p.depth))
    for i, p in enumerate(placements):
        if p.z < FLOOR_EPSILON:
            continue
        owner = next(
            (c for c in columns
             if abs(c.x - p.x) < POINT_EPSILON and abs(c.y - p.y) < POINT_EPSILON),
            None,
        )
        if owner is None:
            columns.append(_Column([i], p.x, p.y, p.width, p.depth))
        else:
            owner.indices.append(i)
            owner.width = max(owner.width, p.width)
            owner.depth = max(owner.depth, p.depth)
    return columns


def _is_more_bottom_left(x: float, y: float, column: _Column) -> bool:
    if y < column.y - POINT_EPSILON:
        return True
    return abs(y - column.y) <= POINT_EPSILON and x < column.x - POINT_EPSILON


def _columns_overlap(columns: List[_Column]) -> bool:
    for a_idx, a in enumerate(columns):
        for b in columns[a_idx + 1:]:
            if a.overlaps(b.x, b.y, b.width, b.depth):
                return True
    return False


class LayoutOptimizer:
    """Gap filling, rearrangement and compaction of an existing layout."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def optimize(
        self,
        placements: Sequence[Placement],
        room_width: float,
        room_depth: float,
        room_height: float,
        fill_gaps: bool = True,
        rearrange: bool = True,
        compact: bool = True,
    ) -> OptimizationResult:
        current = list(placements)
        before = calculate_volume_utilization(current, room_width, room_depth, room_height)
        improvements: List[str] = []

        if fill_gaps:
            current, moved = self.fill_gaps(current, room_width, room_depth)
            if moved:
                improvements.append(f"Moved {moved} items to fill gaps")
        if rearrange:
            current, moved = self.rearrange(current, room_width, room_depth)
            if moved:
                improvements.append(f"Rearranged {moved} items for better space utilization")
        if compact:
            current, moved = self.compact(current, room_width, room_depth)
            if moved:
                improvements.append(f"Compacted {moved} items toward the origin")

        after = calculate_volume_utilization(current, room_width, room_depth, room_height)
        return OptimizationResult(
            placements=current,
            improvements=improvements,
            utilization_before=before,
            utilization_after=after,
        )

    # ── Gap filling ──────────────────────────────────────────────────────

    def find_gaps(
        self, placements: Sequence[Placement], room_width: float, room_depth: float
    ) -> List[Rectangle]:
        """Empty floor rectangles, bottom-left first."""
        return self._gaps_for(_build_columns(placements), room_width, room_depth)

    def _gaps_for(self, columns: List[_Column], room_width: float, room_depth: float) -> List[Rectangle]:
        g = self.settings.gap_grid_size
        nx = max(1, math.ceil(room_width / g))
        ny = max(1, math.ceil(room_depth / g))
        occupied = np.zeros((ny, nx), dtype=bool)
        for c in columns:
            ix0 = max(0, math.floor(c.x / g))
            ix1 = min(nx, math.ceil(c.x_max / g))
            iy0 = max(0, math.floor(c.y / g))
            iy1 = min(ny, math.ceil(c.y_max / g))
            occupied[iy0:iy1, ix0:ix1] = True

        gaps: List[Rectangle] = []
        consumed = occupied.copy()
        for iy in range(ny):
            for ix in range(nx):
                if consumed[iy, ix]:
                    continue
                jx = ix
                while jx + 1 < nx and not consumed[iy, jx + 1]:
                    jx += 1
                jy = iy
                while jy + 1 < ny and not consumed[jy + 1, ix:jx + 1].any():
                    jy += 1
                consumed[iy:jy + 1, ix:jx + 1] = True

                x0, y0 = ix * g, iy * g
                width = min((jx + 1) * g, room_width) - x0
                depth = min((jy + 1) * g, room_depth) - y0
                if width >= self.settings.gap_min_size and depth >= self.settings.gap_min_size:
                    gaps.append(Rectangle(x0, y0, width, depth))
        return gaps

    def fill_gaps(
        self, placements: Sequence[Placement], room_width: float, room_depth: float
    ) -> Tuple[List[Placement], int]:
        current = list(placements)
        columns = _build_columns(current)
        gaps = self._gaps_for(columns, room_width, room_depth)
        moved = 0
        for column in sorted(columns, key=lambda c: c.area):
            for gap_index, gap in enumerate(gaps):
                if column.width > gap.width or column.depth > gap.depth:
                    continue
                if not _is_more_bottom_left(gap.x, gap.y, column):
                    continue
                self._move_column(current, column, gap.x, gap.y)
                del gaps[gap_index]
                moved += 1
                break
        return current, moved

    # ── Rearrangement ────────────────────────────────────────────────────

    def rearrange(
        self, placements: Sequence[Placement], room_width: float, room_depth: float
    ) -> Tuple[List[Placement], int]:
        columns = _build_columns(placements)
        seated: List[_Column] = []
        targets: List[Tuple[_Column, float, float]] = []

        for column in sorted(columns, key=lambda c: -c.area):
            spot = self._bottom_left_position(column, seated, room_width, room_depth)
            if spot is None:
                if any(s.overlaps(column.x, column.y, column.width, column.depth) for s in seated):
                    logger.debug("Rearrange abandoned: no position for a %.1fx%.1f column",
                                 column.width, column.depth)
                    return list(placements), 0
                spot = (column.x, column.y)
            seated.append(_Column(column.indices, spot[0], spot[1], column.width, column.depth))
            targets.append((column, spot[0], spot[1]))

        current = list(placements)
        moved = 0
        for column, x, y in targets:
            if abs(x - column.x) > POINT_EPSILON or abs(y - column.y) > POINT_EPSILON:
                self._move_column(current, column, x, y)
                moved += len(column.indices)
        return current, moved

    @staticmethod
    def _bottom_left_position(
        column: _Column, seated: List[_Column], room_width: float, room_depth: float
    ) -> Optional[Tuple[float, float]]:
        xs = sorted({0.0, *(s.x_max for s in seated)})
        ys = sorted({0.0, *(s.y_max for s in seated)})
        for y in ys:
            if y + column.depth > room_depth:
                break
            for x in xs:
                if x + column.width > room_width:
                    break
                if not any(s.overlaps(x, y, column.width, column.depth) for s in seated):
                    return x, y
        return None

    # ── Compaction ───────────────────────────────────────────────────────

    def compact(
        self, placements: Sequence[Placement], room_width: float, room_depth: float
    ) -> Tuple[List[Placement], int]:
        current = list(placements)
        columns = _build_columns(current)
        if _columns_overlap(columns):
            logger.debug("Compaction skipped: layout already has overlapping columns")
            return current, 0

        moved = 0
        for column in sorted(columns, key=lambda c: (c.y, c.x)):
            others = [c for c in columns if c is not column]
            new_x = max(
                [0.0] + [o.x_max for o in others
                         if o.y < column.y_max and column.y < o.y_max
                         and o.x_max <= column.x + POINT_EPSILON]
            )
            new_y = max(
                [0.0] + [o.y_max for o in others
                         if o.x < new_x + column.width and new_x < o.x_max
                         and o.y_max <= column.y + POINT_EPSILON]
            )
            if new_x < column.x - POINT_EPSILON or new_y < column.y - POINT_EPSILON:
                if any(o.overlaps(new_x, new_y, column.width, column.depth) for o in others):
                    continue
                self._move_column(current, column, new_x, new_y)
                moved += len(column.indices)
        return current, moved

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _move_column(current: List[Placement], column: _Column, x: float, y: float) -> None:
        dx = x - column.x
        dy = y - column.y
        for i in column.indices:
            p = current[i]
            current[i] = move_placement(p, p.x + dx, p.y + dy)
        column.x = x
        column.y = y
