"""
Collision and bounds checks - pure functions over ``Box`` values.

Two collision notions are used by the strategies:

  * 3D  - ``has_collision``: volumes intersect.
  * 2D  - ``has_floor_collision``: footprints intersect, ignoring z.  Only
          meaningful between floor-level boxes (z < FLOOR_EPSILON); stacked
          boxes share their base's footprint on purpose.

Room bounds are inclusive: a box may end exactly on a wall.

``check_placement`` bundles the checks and raises the placement errors from
``roompack.errors``, for callers that want a reason rather than a boolean.
"""

from typing import Iterable, Optional

from roompack.config import FLOOR_EPSILON
from roompack.errors import OutOfBoundsError, OverlapError
from roompack.geometry import Box


def is_floor_level(box: Box) -> bool:
    return box.z < FLOOR_EPSILON


def footprints_overlap(a: Box, b: Box) -> bool:
    """True when the floor projections of *a* and *b* share positive area."""
    return a.x < b.right_x and b.x < a.right_x and a.y < b.top_y and b.y < a.top_y


def first_collision(box: Box, placed: Iterable[Box]) -> Optional[Box]:
    """Return the first placed box that intersects *box* in 3D, if any."""
    for other in placed:
        if box.intersects(other):
            return other
    return None


def has_collision(box: Box, placed: Iterable[Box]) -> bool:
    return first_collision(box, placed) is not None


def has_floor_collision(box: Box, placed: Iterable[Box]) -> bool:
    """True when *box*'s footprint overlaps any floor-level box in *placed*."""
    return any(
        footprints_overlap(box, other) for other in placed if is_floor_level(other)
    )


def fits_in_room(box: Box, room_width: float, room_depth: float, room_height: float) -> bool:
    return (
        box.x >= 0
        and box.y >= 0
        and box.z >= 0
        and box.right_x <= room_width
        and box.top_y <= room_depth
        and box.top_z <= room_height
    )


def fits_in_room_2d(box: Box, room_width: float, room_depth: float) -> bool:
    return box.x >= 0 and box.y >= 0 and box.right_x <= room_width and box.top_y <= room_depth


def check_placement(
    box: Box,
    placed: Iterable[Box],
    room_width: float,
    room_depth: float,
    room_height: float,
) -> bool:
    """
    Verify that *box* is inside the room and clear of every placed box.

    Returns:
        True if all checks pass.

    Raises:
        OutOfBoundsError: box extends outside the room.
        OverlapError:     box intersects a placed box in 3D.
    """
    if not fits_in_room(box, room_width, room_depth, room_height):
        raise OutOfBoundsError(
            f"Box at ({box.x:.1f}, {box.y:.1f}, {box.z:.1f}) size "
            f"{box.width:.1f}x{box.depth:.1f}x{box.height:.1f} exceeds room "
            f"{room_width:.1f}x{room_depth:.1f}x{room_height:.1f}"
        )
    other = first_collision(box, placed)
    if other is not None:
        raise OverlapError(
            f"Box at ({box.x:.1f}, {box.y:.1f}, {box.z:.1f}) overlaps box at "
            f"({other.x:.1f}, {other.y:.1f}, {other.z:.1f})"
        )
    return True
