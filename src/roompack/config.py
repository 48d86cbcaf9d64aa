"""
Tolerances and tuneable heuristics for the room layout engine.

Two layers live here:

Tolerance constants
    Fixed numeric tolerances shared by geometry, collision and validation.
    They are module-level so every comparison in the package reads the same
    value.

EngineSettings
    Every heuristic threshold the strategies, the feasibility checks and the
    optimizer rely on.  Frozen so a single instance can be shared between
    strategies; load a different table from YAML with ``load_settings()``.
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml


# ─────────────────────────────────────────────────────────────────────────────
# Tolerances
# ─────────────────────────────────────────────────────────────────────────────

# Point equality, stack-base matching and sort tie-breaks.
POINT_EPSILON: float = 0.01

# A placement whose z is below this sits on the floor.
FLOOR_EPSILON: float = 0.1

# Slack allowed at compartment-cell edges to absorb float drift.
BOUNDARY_MARGIN: float = 0.1

# Relative slack when checking that a grid covers no more than the room.
GRID_TOLERANCE: float = 0.01


# ─────────────────────────────────────────────────────────────────────────────
# Engine settings
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EngineSettings:
    """
    Heuristic thresholds for packing, grid sizing, feasibility and optimization.

    Attributes:
        max_expanded_units:          Upper bound on the sum of item quantities per request.
        max_room_width/depth/height: Sanity limits for room dimensions.
        capacity_safety_factor:      Fraction of the naive grid capacity that is
                                     considered achievable per product.
        volume_tolerance:            Total item volume may exceed the room volume
                                     by this factor before a warning is raised.
        floor_area_tolerance:        Same for the summed footprints vs. floor area.
        healthy_utilization_min/max: Estimated utilization band (percent) that
                                     does not trigger a warning.
        grid_size_margin:            Minimum cell size as a multiple of the largest item.
        grid_validate_margin:        Margin used when re-checking the winning grid.
        grid_search_limit:           Upper bound on columns/rows tried by the grid search.
        grid_min_cell:               Smallest cell edge the density search considers.
        grid_density_quantity_cap:   Per-product quantity cap in the density estimate.
        subgrid_min_scale/max_scale: Bounds for a compartment's sub-grid pitch,
                                     relative to the item footprint.
        grouping_dimension_tolerance: Dimension bucket size for grouping.
        grouping_aspect_tolerance:   Aspect-ratio bucket size for grouping.
        hybrid_*:                    Product-mix thresholds of the hybrid strategy.
        hybrid_placed_weight:        Weight of the placed count in the hybrid score.
        hybrid_alternative_unit_limit: Above this many units the hybrid strategy
                                     only runs its preferred branch.
        gap_grid_size:               Floor scan resolution of the gap finder.
        gap_min_size:                Smallest gap edge worth filling.
        default_algorithm:           Strategy used when a request names none.
        cache_ttl_seconds:           Lifetime of memoized layouts.
    """
    max_expanded_units: int = 500
    max_room_width: float = 10000.0
    max_room_depth: float = 10000.0
    max_room_height: float = 1000.0

    # Feasibility
    capacity_safety_factor: float = 0.8
    volume_tolerance: float = 1.1
    floor_area_tolerance: float = 1.2
    healthy_utilization_min: float = 30.0
    healthy_utilization_max: float = 90.0

    # Grid sizing
    grid_size_margin: float = 1.1
    grid_validate_margin: float = 1.05
    grid_search_limit: int = 20
    grid_min_cell: float = 10.0
    grid_density_quantity_cap: int = 10
    subgrid_min_scale: float = 0.9
    subgrid_max_scale: float = 1.5

    # Grouping
    grouping_dimension_tolerance: float = 5.0
    grouping_aspect_tolerance: float = 0.2

    # Hybrid
    hybrid_many_products: int = 10
    hybrid_low_quantity: float = 5.0
    hybrid_few_products: int = 3
    hybrid_high_quantity: float = 10.0
    hybrid_placed_weight: float = 0.1
    hybrid_alternative_unit_limit: int = 250

    # Optimizer
    gap_grid_size: float = 10.0
    gap_min_size: float = 5.0

    default_algorithm: str = "hybrid"
    cache_ttl_seconds: float = 3600.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EngineSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown engine settings: {', '.join(unknown)}")
        return cls(**d)


DEFAULT_SETTINGS = EngineSettings()


def load_settings(path: Union[str, Path]) -> EngineSettings:
    """Read an ``EngineSettings`` table from a YAML mapping.

    Keys missing from the file keep their defaults.  An empty file yields
    the default settings.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return EngineSettings.from_dict(data)
