"""
Compartment grid sizing.

CompartmentManager
    The plain grid: explicit columns/rows when requested, otherwise a grid
    of ``ceil(sqrt(n * aspect))`` columns that keeps cells roughly square
    relative to the room.  Also maps a product index to its cell and a
    cell to its floor rectangle.

SmartGridCalculator
    Tries three sizing heuristics and keeps the best-scoring grid:

      * size_based        - cells at least 10% larger than the largest product
      * aspect_ratio      - cell aspect closest to the average product aspect
      * density_optimized - densest grid in which every product fits

    Grid score (higher is better):

        50 * fit_rate + 30 * (1 - waste / cell_area) + 20 * used_cells / cells

    A heuristic that has nothing to offer returns None; when every one
    does, or no product fits any candidate cell, the plain grid is used.
    The winner is finally re-checked against the largest product and
    shrunk to fewer, larger cells where needed.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from roompack.config import DEFAULT_SETTINGS, EngineSettings
from roompack.geometry import Rectangle
from roompack.models import GridConfig, GridRequest, ItemRequest, ProductId, RoomDimensions

logger = logging.getLogger(__name__)

# Grid score weights
WEIGHT_FIT: float = 50.0
WEIGHT_WASTE: float = 30.0
WEIGHT_CELL_USE: float = 20.0


# ─────────────────────────────────────────────────────────────────────────────
# CompartmentManager
# ─────────────────────────────────────────────────────────────────────────────

class CompartmentManager:
    """Plain compartment grid arithmetic."""

    @staticmethod
    def calculate_grid(
        room_width: float,
        room_depth: float,
        num_products: int,
        grid: Optional[GridRequest] = None,
    ) -> GridConfig:
        grid = grid or GridRequest()
        n = max(1, num_products)
        if grid.is_explicit:
            columns, rows, strategy = grid.columns, grid.rows, "explicit"
        elif grid.columns is not None:
            columns, rows, strategy = grid.columns, max(1, math.ceil(n / grid.columns)), "partial"
        elif grid.rows is not None:
            columns, rows, strategy = max(1, math.ceil(n / grid.rows)), grid.rows, "partial"
        else:
            aspect = room_width / room_depth
            columns = max(1, math.ceil(math.sqrt(n * aspect)))
            rows = max(1, math.ceil(n / columns))
            strategy = "simple"
        return GridConfig(
            columns=columns,
            rows=rows,
            cell_width=room_width / columns,
            cell_depth=room_depth / rows,
            strategy=strategy,
        )

    @staticmethod
    def get_next_grid_position(index: int, columns: int) -> Tuple[int, int]:
        """Row-major ``(column, row)`` of the *index*-th compartment."""
        return index % columns, index // columns

    @staticmethod
    def get_compartment_boundary(
        column: int,
        row: int,
        grid: GridConfig,
        room_width: float,
        room_depth: float,
    ) -> Rectangle:
        """Floor rectangle of a cell, clipped to the room."""
        x = column * grid.cell_width
        y = row * grid.cell_depth
        return Rectangle(
            x=x,
            y=y,
            width=max(0.0, min(grid.cell_width, room_width - x)),
            depth=max(0.0, min(grid.cell_depth, room_depth - y)),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Product profiles
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ProductProfile:
    """Aggregated size and demand of one product."""
    product_id: ProductId
    width: float
    depth: float
    height: float
    quantity: int
    size_class: str = "medium"

    @property
    def base_area(self) -> float:
        return self.width * self.depth

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.depth


def _tertile_bounds(values: List[float]) -> Tuple[float, float]:
    ordered = sorted(values)
    n = len(ordered)
    return ordered[int(n * 0.33)], ordered[int(n * 0.66)]


def build_product_profiles(items: Sequence[ItemRequest]) -> List[ProductProfile]:
    """
    One profile per product, quantities summed, size classified into
    small / medium / large tertiles by unit volume and base area.
    """
    if not items:
        return []
    vol_33, vol_66 = _tertile_bounds([i.unit_volume for i in items])
    area_33, area_66 = _tertile_bounds([i.base_area for i in items])

    profiles: Dict[ProductId, ProductProfile] = {}
    for item in items:
        profile = profiles.get(item.product_id)
        if profile is None:
            profile = ProductProfile(item.product_id, item.width, item.depth, item.height, 0)
            profiles[item.product_id] = profile
        profile.quantity += item.quantity
        if item.unit_volume <= vol_33 and item.base_area <= area_33:
            profile.size_class = "small"
        elif item.unit_volume <= vol_66 and item.base_area <= area_66:
            profile.size_class = "medium"
        else:
            profile.size_class = "large"
    return list(profiles.values())


# ─────────────────────────────────────────────────────────────────────────────
# SmartGridCalculator
# ─────────────────────────────────────────────────────────────────────────────

class SmartGridCalculator:
    """Chooses a compartment grid from product sizes and demand."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def calculate_optimal_grid(
        self,
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        grid: Optional[GridRequest] = None,
    ) -> GridConfig:
        grid = grid or GridRequest()
        profiles = build_product_profiles(items)
        if grid.is_explicit or grid.is_partial:
            return CompartmentManager.calculate_grid(room.width, room.depth, len(profiles), grid)
        if not profiles:
            return CompartmentManager.calculate_grid(room.width, room.depth, 1)

        heuristics: List[Tuple[str, Callable[[], Optional[GridConfig]]]] = [
            ("size_based", lambda: self.size_based_grid(profiles, room)),
            ("aspect_ratio", lambda: self.aspect_ratio_grid(profiles, room)),
            ("density_optimized", lambda: self.density_optimized_grid(profiles, room)),
        ]
        best: Optional[GridConfig] = None
        best_score = -1.0
        best_fit_rate = 0.0
        for name, heuristic in heuristics:
            candidate = heuristic()
            if candidate is None:
                logger.debug("Grid heuristic %s found no grid", name)
                continue
            score, fit_rate = self.score_grid(candidate, profiles)
            if score > best_score:
                best_score, best_fit_rate = score, fit_rate
                best = GridConfig(candidate.columns, candidate.rows,
                                  candidate.cell_width, candidate.cell_depth, name)

        if best is None or best_fit_rate == 0:
            logger.info("No grid heuristic fits these products, using the simple grid")
            fallback = CompartmentManager.calculate_grid(room.width, room.depth, len(profiles))
            best = GridConfig(fallback.columns, fallback.rows,
                              fallback.cell_width, fallback.cell_depth, "simple_fallback")
        return self.validate_and_adjust_grid(best, profiles, room)

    # ── Heuristics ───────────────────────────────────────────────────────

    def size_based_grid(self, profiles: List[ProductProfile], room: RoomDimensions) -> Optional[GridConfig]:
        n = len(profiles)
        min_cell_w = max(p.width for p in profiles) * self.settings.grid_size_margin
        min_cell_d = max(p.depth for p in profiles) * self.settings.grid_size_margin
        max_cols = max(1, int(room.width // min_cell_w))
        max_rows = max(1, int(room.depth // min_cell_d))

        target_cols = math.ceil(math.sqrt(n * room.aspect_ratio))
        target_rows = math.ceil(n / target_cols)
        cols = min(target_cols, max_cols)
        rows = min(target_rows, max_rows)
        while cols * rows < n:
            if cols < max_cols:
                cols += 1
            elif rows < max_rows:
                rows += 1
            else:
                break
        return _grid(cols, rows, room)

    def aspect_ratio_grid(self, profiles: List[ProductProfile], room: RoomDimensions) -> Optional[GridConfig]:
        n = len(profiles)
        target = sum(p.aspect_ratio for p in profiles) / n
        best: Optional[GridConfig] = None
        best_match = math.inf
        for cols in range(1, min(n, self.settings.grid_search_limit) + 1):
            rows = math.ceil(n / cols)
            cell_aspect = (room.width / cols) / (room.depth / rows)
            match = abs(cell_aspect - target)
            if match < best_match:
                best_match = match
                best = _grid(cols, rows, room)
        return best

    def density_optimized_grid(self, profiles: List[ProductProfile], room: RoomDimensions) -> Optional[GridConfig]:
        n = len(profiles)
        limit = self.settings.grid_search_limit
        qty_cap = self.settings.grid_density_quantity_cap
        max_cols = min(limit, int(room.width // self.settings.grid_min_cell))
        max_rows = min(limit, int(room.depth // self.settings.grid_min_cell))

        best: Optional[GridConfig] = None
        best_density = 0.0
        for cols in range(1, max_cols + 1):
            for rows in range(1, max_rows + 1):
                if cols * rows < n:
                    continue
                cell_w = room.width / cols
                cell_d = room.depth / rows
                if any(p.width > cell_w or p.depth > cell_d for p in profiles):
                    continue
                cell_area = cell_w * cell_d
                used = sum(min(p.base_area, cell_area) * min(p.quantity, qty_cap) for p in profiles)
                density = used / (cell_area * cols * rows)
                if density > best_density:
                    best_density = density
                    best = _grid(cols, rows, room)
        return best

    # ── Scoring & adjustment ─────────────────────────────────────────────

    @staticmethod
    def score_grid(grid: GridConfig, profiles: List[ProductProfile]) -> Tuple[float, float]:
        """Return ``(score, fit_rate)`` for *grid*."""
        n = len(profiles)
        cell_area = grid.cell_area
        fit = 0
        waste_score = 0.0
        for p in profiles:
            if p.base_area <= cell_area:
                fit += 1
                waste_score += max(0.0, 1 - (cell_area - p.base_area) / cell_area)
        fit_rate = fit / n
        used_cells = min(n, grid.cell_count)
        score = (
            fit_rate * WEIGHT_FIT
            + waste_score / n * WEIGHT_WASTE
            + used_cells / grid.cell_count * WEIGHT_CELL_USE
        )
        return score, fit_rate

    def validate_and_adjust_grid(
        self, grid: GridConfig, profiles: List[ProductProfile], room: RoomDimensions
    ) -> GridConfig:
        """Grow cells that are too small for the largest product; clamp to the room."""
        margin = self.settings.grid_validate_margin
        min_w = max((p.width * margin for p in profiles), default=0.0)
        min_d = max((p.depth * margin for p in profiles), default=0.0)
        cols, rows = grid.columns, grid.rows
        cell_w, cell_d = grid.cell_width, grid.cell_depth
        if cell_w < min_w:
            cols = max(1, int(room.width // min_w))
            cell_w = room.width / cols
        if cell_d < min_d:
            rows = max(1, int(room.depth // min_d))
            cell_d = room.depth / rows
        return GridConfig(
            columns=cols,
            rows=rows,
            cell_width=min(cell_w, room.width),
            cell_depth=min(cell_d, room.depth),
            strategy=grid.strategy,
        )


def _grid(cols: int, rows: int, room: RoomDimensions) -> GridConfig:
    return GridConfig(cols, rows, room.width / cols, room.depth / rows)
