"""
Pre-generation feasibility checks.

Run before packing to catch requests that cannot work or will work
badly.  Only invalid room dimensions are hard errors for the engine;
everything else is advisory and is attached to the result as warnings.

Capacity estimate per product (both floor orientations considered when
the product may rotate):

    max_quantity = floor(cols * rows * layers * capacity_safety_factor)
    cols = max(1, floor(W / w)), rows = max(1, floor(D / d)),
    layers = max(1, floor(H / h))

Stock levels are supplied by the caller; this module never looks them up.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from roompack.config import DEFAULT_SETTINGS, EngineSettings
from roompack.models import ItemRequest, ProductId, RoomDimensions

# Strategy hints returned by calculate_theoretical_capacity()
HINT_STACKING_REQUIRED = "stacking_required"
HINT_DENSE_PACKING = "dense_packing"
HINT_SPARSE_PACKING = "sparse_packing"
HINT_MIXED = "mixed"

STACKING_FLOOR_THRESHOLD = 90.0    # percent of floor
DENSE_VOLUME_THRESHOLD = 80.0      # percent of volume
SPARSE_UNIT_THRESHOLD = 10         # units


# ─────────────────────────────────────────────────────────────────────────────
# Result records
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ProductCapacity:
    product_id: ProductId
    max_quantity: int
    requested: int

    @property
    def fits(self) -> bool:
        return self.requested <= self.max_quantity

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["fits"] = self.fits
        return d


@dataclass
class FeasibilityReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    capacity: Dict[ProductId, ProductCapacity] = field(default_factory=dict)
    total_volume_needed: float = 0.0
    total_floor_area_needed: float = 0.0
    estimated_utilization: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "capacity": {str(k): v.to_dict() for k, v in self.capacity.items()},
            "total_volume_needed": self.total_volume_needed,
            "total_floor_area_needed": self.total_floor_area_needed,
            "estimated_utilization": self.estimated_utilization,
        }


@dataclass
class TheoreticalCapacity:
    total_units: int
    volume_utilization: float
    floor_utilization: float
    strategy_hint: str

    @property
    def estimated_utilization(self) -> float:
        return max(self.volume_utilization, self.floor_utilization)


@dataclass
class StockLevel:
    """Units available for a product, as known to the caller."""
    warehouse_available: int = 0
    room_available: int = 0

    @property
    def total_available(self) -> int:
        return self.warehouse_available + self.room_available


@dataclass
class StockReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggested_quantities: Dict[ProductId, int] = field(default_factory=dict)


@dataclass
class QuantitySuggestion:
    product_id: ProductId
    suggested_quantity: int
    available_stock: int
    theoretical_capacity: int

    @property
    def limited_by(self) -> str:
        return "stock" if self.suggested_quantity == self.available_stock else "capacity"


# ─────────────────────────────────────────────────────────────────────────────
# Checks
# ─────────────────────────────────────────────────────────────────────────────

def validate_room_dimensions(
    room_width: float,
    room_depth: float,
    room_height: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> List[str]:
    """Error messages for the room; empty when the room is usable."""
    errors = []
    for label, value, limit in (
        ("width", room_width, settings.max_room_width),
        ("depth", room_depth, settings.max_room_depth),
        ("height", room_height, settings.max_room_height),
    ):
        if value <= 0:
            errors.append(f"Room {label} must be greater than 0")
        elif value > limit:
            errors.append(f"Room {label} ({value:g}) exceeds the limit of {limit:g}")
    return errors


def product_fit_error(item: ItemRequest, room: RoomDimensions) -> Optional[str]:
    """Why a single unit of *item* cannot fit the room, or None."""
    if item.height > room.height:
        return f"height ({item.height:g}cm) exceeds room height ({room.height:g}cm)"
    fits_straight = item.width <= room.width and item.depth <= room.depth
    fits_turned = item.rotatable and item.depth <= room.width and item.width <= room.depth
    if not (fits_straight or fits_turned):
        return (
            f"footprint ({item.width:g}x{item.depth:g}cm) exceeds room floor "
            f"({room.width:g}x{room.depth:g}cm)"
        )
    return None


def calculate_max_quantity(
    item: ItemRequest,
    room: RoomDimensions,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> int:
    if product_fit_error(item, room) is not None:
        return 0
    layers = max(1, math.floor(room.height / item.height))
    footprints = [(item.width, item.depth)]
    if item.rotatable:
        footprints.append((item.depth, item.width))
    best = 0
    for w, d in footprints:
        if w > room.width or d > room.depth:
            continue
        per_floor = max(1, math.floor(room.width / w)) * max(1, math.floor(room.depth / d))
        best = max(best, per_floor)
    return int(math.floor(best * layers * settings.capacity_safety_factor))


def calculate_theoretical_capacity(
    items: Sequence[ItemRequest], room: RoomDimensions
) -> TheoreticalCapacity:
    total_units = sum(i.quantity for i in items)
    volume = sum(i.unit_volume * i.quantity for i in items)
    floor = sum(i.base_area * i.quantity for i in items)
    volume_util = volume / room.volume * 100.0
    floor_util = floor / room.floor_area * 100.0

    if floor_util > STACKING_FLOOR_THRESHOLD:
        hint = HINT_STACKING_REQUIRED
    elif volume_util > DENSE_VOLUME_THRESHOLD:
        hint = HINT_DENSE_PACKING
    elif total_units < SPARSE_UNIT_THRESHOLD:
        hint = HINT_SPARSE_PACKING
    else:
        hint = HINT_MIXED
    return TheoreticalCapacity(total_units, volume_util, floor_util, hint)


def validate_room_for_products(
    items: Sequence[ItemRequest],
    room: RoomDimensions,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> FeasibilityReport:
    """
    Per-product fit and capacity, plus totals against the room.

    Products that cannot fit at all are errors; over-capacity requests,
    over-full rooms and an estimated utilization outside the healthy band
    are warnings.
    """
    report = FeasibilityReport(valid=True)
    report.errors.extend(validate_room_dimensions(room.width, room.depth, room.height, settings))
    if report.errors:
        report.valid = False
        return report

    fitting: List[ItemRequest] = []
    for item in items:
        reason = product_fit_error(item, room)
        if reason is not None:
            report.errors.append(
                f"Product #{item.product_id} "
                f"({item.width:g}x{item.depth:g}x{item.height:g}cm) {reason}"
            )
            continue
        fitting.append(item)
        max_quantity = calculate_max_quantity(item, room, settings)
        capacity = report.capacity.get(item.product_id)
        if capacity is None:
            capacity = ProductCapacity(item.product_id, max_quantity, 0)
            report.capacity[item.product_id] = capacity
        capacity.requested += item.quantity

    for capacity in report.capacity.values():
        if not capacity.fits:
            report.warnings.append(
                f"Product #{capacity.product_id}: requested quantity ({capacity.requested}) "
                f"exceeds estimated capacity ({capacity.max_quantity})"
            )

    report.total_volume_needed = sum(i.unit_volume * i.quantity for i in fitting)
    report.total_floor_area_needed = sum(i.base_area * i.quantity for i in fitting)
    if report.total_volume_needed > room.volume * settings.volume_tolerance:
        report.warnings.append(
            f"Total volume needed ({report.total_volume_needed:.0f}) exceeds "
            f"room volume ({room.volume:.0f})"
        )
    if report.total_floor_area_needed > room.floor_area * settings.floor_area_tolerance:
        report.warnings.append(
            f"Total floor area needed ({report.total_floor_area_needed:.0f}) significantly "
            f"exceeds room floor area ({room.floor_area:.0f})"
        )

    if fitting:
        estimate = calculate_theoretical_capacity(fitting, room)
        report.estimated_utilization = estimate.volume_utilization
        if not (
            settings.healthy_utilization_min
            <= estimate.volume_utilization
            <= settings.healthy_utilization_max
        ):
            report.warnings.append(
                f"Estimated utilization {estimate.volume_utilization:.1f}% is outside the "
                f"{settings.healthy_utilization_min:g}-{settings.healthy_utilization_max:g}% band"
            )

    report.valid = not report.errors
    return report


# ─────────────────────────────────────────────────────────────────────────────
# Stock
# ─────────────────────────────────────────────────────────────────────────────

def validate_quantities_against_stock(
    items: Sequence[ItemRequest],
    stock: Mapping[ProductId, StockLevel],
    check_room_stock: bool = False,
) -> StockReport:
    """
    Compare requested quantities with caller-supplied stock levels.

    Exceeding warehouse stock is an error; exceeding room stock (when
    *check_room_stock* is set) is a warning.  Products missing from
    *stock* have nothing available.
    """
    report = StockReport(valid=True)
    for item in items:
        level = stock.get(item.product_id, StockLevel())
        if item.quantity > level.warehouse_available:
            report.errors.append(
                f"Product #{item.product_id}: requested quantity ({item.quantity}) exceeds "
                f"available warehouse stock ({level.warehouse_available})"
            )
        if check_room_stock and item.quantity > level.room_available:
            report.warnings.append(
                f"Product #{item.product_id}: requested quantity ({item.quantity}) exceeds "
                f"available room stock ({level.room_available})"
            )
        if item.quantity > level.total_available:
            report.suggested_quantities[item.product_id] = level.total_available
    report.valid = not report.errors
    return report


def suggest_optimal_quantities(
    items: Sequence[ItemRequest],
    room: RoomDimensions,
    stock: Mapping[ProductId, StockLevel],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Dict[ProductId, QuantitySuggestion]:
    """Per product: the smaller of available stock and estimated room capacity."""
    suggestions: Dict[ProductId, QuantitySuggestion] = {}
    for item in items:
        available = stock.get(item.product_id, StockLevel()).total_available
        capacity = calculate_max_quantity(item, room, settings)
        suggestions[item.product_id] = QuantitySuggestion(
            product_id=item.product_id,
            suggested_quantity=min(available, capacity),
            available_stock=available,
            theoretical_capacity=capacity,
        )
    return suggestions
