"""
Layout validator - re-checks a finished layout from scratch.

Checks:
  1. Bounds    - every placement lies inside the room (inclusive walls).
  2. Floor     - floor-level placements (z < FLOOR_EPSILON) must not overlap
                 each other in 2D.
  3. Support   - a stacked placement needs a floor-level placement with the
                 same (x, y) origin, within POINT_EPSILON.
  4. Volume    - stacked placements must not intersect any other placement
                 in 3D.

Findings are returned as data; nothing here raises.  Warnings cover
layouts that are legal but suspicious (overhanging stacks, unknown
rotation codes).
"""

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from roompack.config import FLOOR_EPSILON, POINT_EPSILON
from roompack.models import Placement, ValidationReport
from roompack.spatial.rotation import is_valid_rotation

logger = logging.getLogger(__name__)


def _floor_overlap_pairs(floor: List[Tuple[int, Placement]]) -> List[Tuple[int, int]]:
    """Index pairs of floor placements whose footprints overlap."""
    if len(floor) < 2:
        return []
    x0 = np.array([p.x for _, p in floor])
    x1 = np.array([p.x_max for _, p in floor])
    y0 = np.array([p.y for _, p in floor])
    y1 = np.array([p.y_max for _, p in floor])
    overlap = (
        (x0[:, None] < x1[None, :])
        & (x0[None, :] < x1[:, None])
        & (y0[:, None] < y1[None, :])
        & (y0[None, :] < y1[:, None])
    )
    ii, jj = np.nonzero(np.triu(overlap, k=1))
    return [(floor[i][0], floor[j][0]) for i, j in zip(ii.tolist(), jj.tolist())]


def calculate_floor_utilization(
    placements: Sequence[Placement], room_width: float, room_depth: float
) -> float:
    """Occupied floor over floor area, in percent; each (x, y) origin counts once."""
    floor_area = room_width * room_depth
    if floor_area <= 0:
        return 0.0
    footprints: Dict[Tuple[float, float], float] = {}
    for p in placements:
        key = (round(p.x, 2), round(p.y, 2))
        footprints[key] = max(footprints.get(key, 0.0), p.base_area)
    return sum(footprints.values()) / floor_area * 100.0


def calculate_volume_utilization(
    placements: Sequence[Placement], room_width: float, room_depth: float, room_height: float
) -> float:
    volume = room_width * room_depth * room_height
    if volume <= 0:
        return 0.0
    return sum(p.volume for p in placements) / volume * 100.0


def validate_layout(
    placements: Sequence[Placement],
    room_width: float,
    room_depth: float,
    room_height: float,
) -> ValidationReport:
    errors: List[str] = []
    warnings: List[str] = []

    for i, p in enumerate(placements):
        if (
            p.x < 0 or p.y < 0 or p.z < 0
            or p.x_max > room_width or p.y_max > room_depth or p.z_max > room_height
        ):
            errors.append(
                f"Placement #{i} (product {p.product_id}) at "
                f"({p.x:.1f}, {p.y:.1f}, {p.z:.1f}) exceeds room bounds "
                f"{room_width:.1f}x{room_depth:.1f}x{room_height:.1f}"
            )
        if not is_valid_rotation(p.rotation):
            warnings.append(f"Placement #{i} has unknown rotation code {p.rotation}")

    floor = [(i, p) for i, p in enumerate(placements) if p.z < FLOOR_EPSILON]
    for i, j in _floor_overlap_pairs(floor):
        errors.append(f"Placements #{i} and #{j} overlap on the floor")

    for i, p in enumerate(placements):
        if p.z < FLOOR_EPSILON:
            continue
        base = next(
            (b for _, b in floor
             if abs(b.x - p.x) < POINT_EPSILON and abs(b.y - p.y) < POINT_EPSILON),
            None,
        )
        if base is None:
            errors.append(
                f"Placement #{i} (product {p.product_id}) is stacked at "
                f"z={p.z:.1f} with no base at ({p.x:.1f}, {p.y:.1f})"
            )
        elif p.width > base.width + POINT_EPSILON or p.depth > base.depth + POINT_EPSILON:
            warnings.append(f"Placement #{i} overhangs its base at ({p.x:.1f}, {p.y:.1f})")

        box = p.to_box()
        for j, other in enumerate(placements):
            if j == i:
                continue
            # Pairs of stacked placements are reported once.
            if other.z >= FLOOR_EPSILON and j > i:
                continue
            if box.intersects(other.to_box()):
                errors.append(f"Placement #{i} intersects placement #{j}")

    report = ValidationReport(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        utilization=calculate_volume_utilization(placements, room_width, room_depth, room_height),
        floor_utilization=calculate_floor_utilization(placements, room_width, room_depth),
    )
    if errors:
        logger.debug("Layout has %d errors", len(errors))
    return report
