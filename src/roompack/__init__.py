"""
roompack - room packing and layout engine.

Places products (boxes with a footprint, a height and a quantity) inside a
room, stacks identical units, validates and optimizes stored layouts, and
suggests where additional stock can go.

    >>> from roompack import pack
    >>> result = pack([{"product_id": 1, "width": 200, "depth": 150, "height": 100,
    ...                 "quantity": 4}], 1000, 800, 300, {"algorithm": "laff"})
    >>> result.placed_count
    4
"""

from roompack.cache import LayoutCache
from roompack.config import DEFAULT_SETTINGS, EngineSettings, load_settings
from roompack.engine import LayoutEngine, optimize_layout, pack, validate_layout
from roompack.errors import (
    InvalidRequestError,
    InvalidRoomDimensionsError,
    ItemLimitExceededError,
    ItemTooLargeError,
    LayoutGenerationError,
    PackingError,
)
from roompack.models import (
    GridRequest,
    ItemRequest,
    OptimizationResult,
    PackOptions,
    PackResult,
    Placement,
    RoomDimensions,
    UnplacedItem,
    ValidationReport,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "GridRequest",
    "InvalidRequestError",
    "InvalidRoomDimensionsError",
    "ItemLimitExceededError",
    "ItemRequest",
    "ItemTooLargeError",
    "LayoutCache",
    "LayoutEngine",
    "LayoutGenerationError",
    "OptimizationResult",
    "PackOptions",
    "PackResult",
    "PackingError",
    "Placement",
    "RoomDimensions",
    "UnplacedItem",
    "ValidationReport",
    "load_settings",
    "optimize_layout",
    "pack",
    "validate_layout",
]
