"""Spatial building blocks: collision checks, free-space tracking and rotations."""

from roompack.spatial.collision import (
    check_placement,
    fits_in_room,
    fits_in_room_2d,
    footprints_overlap,
    has_collision,
    has_floor_collision,
    is_floor_level,
)
from roompack.spatial.free_space import FreeSpaceManager
from roompack.spatial.rotation import (
    ALL_ROTATIONS,
    get_all_rotations,
    get_best_rotation,
    get_rotated_dimensions,
    is_valid_rotation,
)

__all__ = [
    "ALL_ROTATIONS",
    "FreeSpaceManager",
    "check_placement",
    "fits_in_room",
    "fits_in_room_2d",
    "footprints_overlap",
    "get_all_rotations",
    "get_best_rotation",
    "get_rotated_dimensions",
    "has_collision",
    "has_floor_collision",
    "is_floor_level",
    "is_valid_rotation",
]
