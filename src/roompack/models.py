"""
Request models and result records for the layout engine.

Requests (caller input) are pydantic models so malformed dictionaries are
rejected before any packing starts:

    ItemRequest     - a product type and how many units to place
    RoomDimensions  - the packable volume
    GridRequest     - optional explicit compartment grid
    PackOptions     - per-request switches

Results are frozen dataclasses, mirroring how placements are shared
between strategies, the optimizer and the validator without copying:

    Placement, UnplacedItem, CompartmentInfo, GridConfig,
    ValidationReport, PackResult, OptimizationResult
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from roompack.config import GRID_TOLERANCE
from roompack.geometry import Box

ProductId = Union[int, str]


# ─────────────────────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────────────────────

class ItemRequest(BaseModel):
    """One product type to place, ``quantity`` identical units of it."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    product_id: ProductId
    width: float = Field(gt=0)
    depth: float = Field(gt=0)
    height: float = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    rotatable: bool = True

    @property
    def base_area(self) -> float:
        return self.width * self.depth

    @property
    def unit_volume(self) -> float:
        return self.width * self.depth * self.height


class RoomDimensions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    width: float = Field(gt=0)
    depth: float = Field(gt=0)
    height: float = Field(gt=0)

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def floor_area(self) -> float:
        return self.width * self.depth

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.depth


class GridRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    columns: Optional[int] = Field(default=None, ge=1)
    rows: Optional[int] = Field(default=None, ge=1)

    @property
    def is_explicit(self) -> bool:
        return self.columns is not None and self.rows is not None

    @property
    def is_partial(self) -> bool:
        return (self.columns is None) != (self.rows is None)


class PackOptions(BaseModel):
    """Per-request switches.  Unknown keys are ignored."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    allow_rotation: bool = True
    prefer_bottom: bool = True
    column_max_height: Optional[float] = Field(default=None, gt=0)
    grid: GridRequest = Field(default_factory=GridRequest)
    algorithm: Optional[str] = None
    optimize: bool = False

    @field_validator("algorithm")
    @classmethod
    def _normalise_algorithm(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        return value or None


# ─────────────────────────────────────────────────────────────────────────────
# Placement
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Placement:
    """
    One placed unit.

    Attributes:
        product_id:        Product this unit belongs to.
        x, y, z:           Minimum corner in room coordinates.
        width/depth/height: Dimensions after rotation.
        rotation:          Floor-plane rotation code (0, 90, 180, 270).
        layer_index:       Position in its vertical stack, 0 for the base.
        stack_id:          Deterministic id of the vertical stack.
        stack_position:    1-based position in the stack.
        stack_base_x/y:    Footprint origin of the stack's base unit.
        items_below_count: Units underneath this one in the same stack.
    """
    product_id: ProductId
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float
    rotation: int = 0
    layer_index: int = 0
    stack_id: int = 0
    stack_position: int = 1
    stack_base_x: float = 0.0
    stack_base_y: float = 0.0
    items_below_count: int = 0

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def base_area(self) -> float:
        return self.width * self.depth

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.depth

    @property
    def z_max(self) -> float:
        return self.z + self.height

    def to_box(self) -> Box:
        return Box(self.x, self.y, self.z, self.width, self.depth, self.height)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Placement":
        x = float(d["x"])
        y = float(d["y"])
        return cls(
            product_id=d["product_id"],
            x=x, y=y, z=float(d.get("z", 0.0)),
            width=float(d["width"]), depth=float(d["depth"]), height=float(d["height"]),
            rotation=int(d.get("rotation", 0)),
            layer_index=int(d.get("layer_index", 0)),
            stack_id=int(d.get("stack_id", 0)),
            stack_position=int(d.get("stack_position", 1)),
            stack_base_x=float(d.get("stack_base_x", x)),
            stack_base_y=float(d.get("stack_base_y", y)),
            items_below_count=int(d.get("items_below_count", 0)),
        )


@dataclass(frozen=True)
class UnplacedItem:
    product_id: ProductId
    width: float
    depth: float
    height: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ─────────────────────────────────────────────────────────────────────────────
# Compartment grid
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GridConfig:
    """
    A compartment grid laid over the floor.

    ``strategy`` records which sizing heuristic produced the grid
    (``explicit``, ``partial``, ``simple``, ``size_based``, ``aspect_ratio``,
    ``density_optimized``).
    """
    columns: int
    rows: int
    cell_width: float
    cell_depth: float
    strategy: str = "simple"

    @property
    def cell_count(self) -> int:
        return self.columns * self.rows

    @property
    def cell_area(self) -> float:
        return self.cell_width * self.cell_depth

    def fits_room(self, room_width: float, room_depth: float) -> bool:
        return (
            self.columns * self.cell_width <= room_width * (1 + GRID_TOLERANCE)
            and self.rows * self.cell_depth <= room_depth * (1 + GRID_TOLERANCE)
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CompartmentInfo:
    """The cell assigned to one product and what ended up in it."""
    product_id: ProductId
    column: int
    row: int
    x: float
    y: float
    width: float
    depth: float
    items_count: int
    placed_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ─────────────────────────────────────────────────────────────────────────────
# Reports
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    utilization: float = 0.0
    floor_utilization: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PackResult:
    """
    Output of a packing strategy.

    ``utilization`` is placed volume over room volume, in percent.
    ``grid`` and ``compartments`` are only set by the compartment strategy;
    ``strategy_used`` is set when a meta-strategy chose among branches.
    """
    placements: List[Placement] = field(default_factory=list)
    unplaced_items: List[UnplacedItem] = field(default_factory=list)
    utilization: float = 0.0
    strategy_used: Optional[str] = None
    grid: Optional[GridConfig] = None
    compartments: List[CompartmentInfo] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    validation: Optional[ValidationReport] = None

    @property
    def placed_count(self) -> int:
        return len(self.placements)

    @property
    def valid(self) -> bool:
        return self.validation is None or self.validation.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "placements": [p.to_dict() for p in self.placements],
            "unplaced_items": [u.to_dict() for u in self.unplaced_items],
            "utilization": self.utilization,
            "strategy_used": self.strategy_used,
            "grid": self.grid.to_dict() if self.grid else None,
            "compartments": [c.to_dict() for c in self.compartments],
            "warnings": list(self.warnings),
            "validation": self.validation.to_dict() if self.validation else None,
        }


@dataclass
class OptimizationResult:
    placements: List[Placement]
    improvements: List[str] = field(default_factory=list)
    utilization_before: float = 0.0
    utilization_after: float = 0.0

    @property
    def improvement(self) -> float:
        return self.utilization_after - self.utilization_before

    def to_dict(self) -> Dict[str, Any]:
        return {
            "placements": [p.to_dict() for p in self.placements],
            "improvements": list(self.improvements),
            "utilization_before": self.utilization_before,
            "utilization_after": self.utilization_after,
            "improvement": self.improvement,
        }
