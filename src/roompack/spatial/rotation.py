"""
Floor-plane rotations.

Only rotations about the vertical axis are allowed, so the height never
changes.  Codes 90 and 270 swap width and depth; 0 and 180 keep them.
"""

from typing import Dict, Optional, Tuple

ROTATION_0 = 0
ROTATION_90 = 90
ROTATION_180 = 180
ROTATION_270 = 270

ALL_ROTATIONS: Tuple[int, ...] = (ROTATION_0, ROTATION_90, ROTATION_180, ROTATION_270)


def is_valid_rotation(rotation: int) -> bool:
    return rotation in ALL_ROTATIONS


def get_rotated_dimensions(
    width: float, depth: float, height: float, rotation: int
) -> Tuple[float, float, float]:
    """Return ``(width, depth, height)`` after applying *rotation*."""
    if not is_valid_rotation(rotation):
        raise ValueError(f"Unsupported rotation {rotation}; expected one of {ALL_ROTATIONS}")
    if rotation in (ROTATION_90, ROTATION_270):
        return depth, width, height
    return width, depth, height


def get_all_rotations(
    width: float, depth: float, height: float
) -> Dict[int, Tuple[float, float, float]]:
    return {r: get_rotated_dimensions(width, depth, height, r) for r in ALL_ROTATIONS}


def get_best_rotation(
    width: float,
    depth: float,
    height: float,
    space_width: float,
    space_depth: float,
    space_height: float,
    rotatable: bool = True,
) -> Optional[int]:
    """First rotation (in ``ALL_ROTATIONS`` order) whose footprint fits the space.

    Returns None when the item is taller than the space or no allowed
    rotation fits.
    """
    if height > space_height:
        return None
    rotations = ALL_ROTATIONS if rotatable else (ROTATION_0,)
    for rotation in rotations:
        w, d, _ = get_rotated_dimensions(width, depth, height, rotation)
        if w <= space_width and d <= space_depth:
            return rotation
    return None
