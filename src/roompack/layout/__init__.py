"""Whole-layout services: validation, feasibility checks and optimization."""

from roompack.layout.feasibility import (
    FeasibilityReport,
    StockLevel,
    calculate_max_quantity,
    calculate_theoretical_capacity,
    suggest_optimal_quantities,
    validate_quantities_against_stock,
    validate_room_dimensions,
    validate_room_for_products,
)
from roompack.layout.optimizer import LayoutOptimizer
from roompack.layout.validator import (
    calculate_floor_utilization,
    calculate_volume_utilization,
    validate_layout,
)

__all__ = [
    "FeasibilityReport",
    "LayoutOptimizer",
    "StockLevel",
    "calculate_floor_utilization",
    "calculate_max_quantity",
    "calculate_theoretical_capacity",
    "calculate_volume_utilization",
    "suggest_optimal_quantities",
    "validate_layout",
    "validate_quantities_against_stock",
    "validate_room_dimensions",
    "validate_room_for_products",
]
