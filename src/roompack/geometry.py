"""
Geometry primitives: Point, Rectangle (2D footprint) and Box (3D volume).

Coordinates follow the room frame: x runs along the width, y along the
depth and z up from the floor.  Every shape is anchored at its
minimum corner.

Intersection tests are strict: two shapes that only share an edge or a
face do not intersect, so boxes placed flush against each other are legal.
"""

import math
from dataclasses import dataclass

from roompack.config import POINT_EPSILON


# ─────────────────────────────────────────────────────────────────────────────
# Point
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Point:
    """A 3D point.  Equality tolerates ``POINT_EPSILON`` per axis."""
    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: "Point") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return (
            abs(self.x - other.x) < POINT_EPSILON
            and abs(self.y - other.y) < POINT_EPSILON
            and abs(self.z - other.z) < POINT_EPSILON
        )

    # Tolerant equality cannot be hashed consistently.
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Point({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"


# ─────────────────────────────────────────────────────────────────────────────
# Rectangle
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Rectangle:
    """
    A footprint on the floor plane.

    ``height`` is optional: free-space rectangles carry the clear height
    above them so a single query can check all three dimensions.
    """
    x: float
    y: float
    width: float
    depth: float
    height: float = 0.0

    @property
    def area(self) -> float:
        return self.width * self.depth

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def right_x(self) -> float:
        return self.x + self.width

    @property
    def top_y(self) -> float:
        return self.y + self.depth

    def contains_point(self, point: Point) -> bool:
        return self.x <= point.x <= self.right_x and self.y <= point.y <= self.top_y

    def contains(self, other: "Rectangle") -> bool:
        """True when *other* lies entirely inside this rectangle."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right_x <= self.right_x
            and other.top_y <= self.top_y
        )

    def intersects(self, other: "Rectangle") -> bool:
        """True when the two footprints share a region of positive area."""
        return (
            self.x < other.right_x
            and other.x < self.right_x
            and self.y < other.top_y
            and other.y < self.top_y
        )

    def can_fit(self, width: float, depth: float, height: float = 0.0) -> bool:
        """True when an item of the given size fits inside this rectangle.

        The height is only checked when this rectangle carries one.
        """
        if width > self.width or depth > self.depth:
            return False
        return self.height <= 0 or height <= self.height


# ─────────────────────────────────────────────────────────────────────────────
# Box
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Box:
    """An axis-aligned 3D volume anchored at its minimum corner."""
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def base_area(self) -> float:
        return self.width * self.depth

    @property
    def right_x(self) -> float:
        return self.x + self.width

    @property
    def top_y(self) -> float:
        return self.y + self.depth

    @property
    def top_z(self) -> float:
        return self.z + self.height

    @property
    def footprint(self) -> Rectangle:
        return Rectangle(self.x, self.y, self.width, self.depth, self.height)

    def contains_point(self, point: Point) -> bool:
        return (
            self.x <= point.x <= self.right_x
            and self.y <= point.y <= self.top_y
            and self.z <= point.z <= self.top_z
        )

    def intersects(self, other: "Box") -> bool:
        """True unless the boxes are separated along at least one axis."""
        return (
            self.x < other.right_x
            and other.x < self.right_x
            and self.y < other.top_y
            and other.y < self.top_y
            and self.z < other.top_z
            and other.z < self.top_z
        )

    def can_fit(self, other: "Box") -> bool:
        """True when *other*'s dimensions fit inside this box's dimensions."""
        return (
            other.width <= self.width
            and other.depth <= self.depth
            and other.height <= self.height
        )
