"""
Exception taxonomy for the layout engine.

Unplaceable items are never exceptions; they are reported in
``PackResult.unplaced_items``.  Exceptions are reserved for bad caller input,
broken invariants and the placement checks in ``roompack.spatial.collision``.
"""

from typing import Any, Dict, Optional, Union


# ─────────────────────────────────────────────────────────────────────────────
# Base
# ─────────────────────────────────────────────────────────────────────────────

class PackingError(Exception):
    """Base class for all layout engine errors."""


# ─────────────────────────────────────────────────────────────────────────────
# Caller input
# ─────────────────────────────────────────────────────────────────────────────

class InvalidRequestError(PackingError):
    """The request could not be turned into a valid packing job."""


class InvalidRoomDimensionsError(InvalidRequestError):
    """Room dimensions are non-positive or outside the sanity limits."""

    def __init__(self, width: float, depth: float, height: float, reason: str = ""):
        self.width = width
        self.depth = depth
        self.height = height
        message = f"Invalid room dimensions: {width:.1f}x{depth:.1f}x{height:.1f}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ItemLimitExceededError(InvalidRequestError):
    """The request expands to more units than the engine accepts."""

    def __init__(self, requested: int, limit: int):
        self.requested = requested
        self.limit = limit
        super().__init__(f"Request expands to {requested} units, limit is {limit}")


class ItemTooLargeError(PackingError):
    """An item cannot fit in the room in any orientation."""

    def __init__(
        self,
        product_id: Union[int, str],
        item_dims: Dict[str, float],
        room_dims: Dict[str, float],
    ):
        self.product_id = product_id
        self.item_dims = item_dims
        self.room_dims = room_dims
        super().__init__(
            f"Product {product_id} "
            f"({item_dims['width']:.1f}x{item_dims['depth']:.1f}x{item_dims['height']:.1f}) "
            f"is too large for room "
            f"{room_dims['width']:.1f}x{room_dims['depth']:.1f}x{room_dims['height']:.1f}"
        )


class LayoutGenerationError(PackingError):
    """A strategy failed outright (not merely left items unplaced)."""

    def __init__(self, algorithm: str, reason: str, details: Optional[Dict[str, Any]] = None):
        self.algorithm = algorithm
        self.details = details or {}
        super().__init__(f"Layout generation failed with '{algorithm}': {reason}")


# ─────────────────────────────────────────────────────────────────────────────
# Placement checks
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(PackingError):
    """Base class for placement check failures."""


class OutOfBoundsError(PlacementError):
    """Box extends outside the room."""


class OverlapError(PlacementError):
    """Box intersects an already-placed box."""
