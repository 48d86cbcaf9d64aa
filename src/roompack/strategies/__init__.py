"""
Packing strategies.  Importing this package registers every strategy in
``STRATEGY_REGISTRY``.
"""

from roompack.strategies.base_strategy import (
    STRATEGY_REGISTRY,
    ExpandedItem,
    PackingStrategy,
    calculate_utilization,
    expand_items,
    get_strategy,
    register_strategy,
    sort_largest_footprint_first,
)
from roompack.strategies.laff import LaffStrategy
from roompack.strategies.maxrects import MaxRectsStrategy
from roompack.strategies.compartment import CompartmentStrategy
from roompack.strategies.hybrid import HybridStrategy
from roompack.strategies.grid import CompartmentManager, SmartGridCalculator
from roompack.strategies.grouping import ProductGroupingService

__all__ = [
    "STRATEGY_REGISTRY",
    "CompartmentManager",
    "CompartmentStrategy",
    "ExpandedItem",
    "HybridStrategy",
    "LaffStrategy",
    "MaxRectsStrategy",
    "PackingStrategy",
    "ProductGroupingService",
    "SmartGridCalculator",
    "calculate_utilization",
    "expand_items",
    "get_strategy",
    "register_strategy",
    "sort_largest_footprint_first",
]
