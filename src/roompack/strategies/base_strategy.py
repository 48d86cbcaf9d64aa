"""
Strategy interface - abstract base class for all packing strategies.

A strategy receives the whole request at once (validated item requests,
the room and the options) and returns a ``PackResult``.  Units it cannot
place are listed in ``unplaced_items`` with a reason; a strategy raises
only when something is broken, never because the room is full.

Creating a strategy
~~~~~~~~~~~~~~~~~~~
1. Create ``roompack/strategies/my_strategy.py``
2. Subclass ``PackingStrategy``, set ``name``, implement ``pack()``
3. Decorate with ``@register_strategy``
4. Import the module in ``roompack/strategies/__init__.py``

Shared helpers for expansion, ordering and utilization live here too so
every strategy counts units and volume the same way.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Type

from roompack.config import DEFAULT_SETTINGS, POINT_EPSILON, EngineSettings
from roompack.models import (
    ItemRequest,
    PackOptions,
    PackResult,
    Placement,
    ProductId,
    RoomDimensions,
)


# ─────────────────────────────────────────────────────────────────────────────
# Unit expansion
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ExpandedItem:
    """A single physical unit produced by expanding an ``ItemRequest``."""
    product_id: ProductId
    width: float
    depth: float
    height: float
    rotatable: bool = True
    request_index: int = 0

    @property
    def base_area(self) -> float:
        return self.width * self.depth

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height


def expand_items(items: Sequence[ItemRequest]) -> List[ExpandedItem]:
    """One ``ExpandedItem`` per requested unit, in request order."""
    expanded = []
    for index, item in enumerate(items):
        unit = ExpandedItem(
            product_id=item.product_id,
            width=item.width,
            depth=item.depth,
            height=item.height,
            rotatable=item.rotatable,
            request_index=index,
        )
        expanded.extend([unit] * item.quantity)
    return expanded


def _area_then_height_key(unit: ExpandedItem):
    # Areas within POINT_EPSILON compare equal, so bucket before sorting.
    return (-round(unit.base_area / POINT_EPSILON), -unit.height)


def sort_largest_footprint_first(units: Iterable[ExpandedItem]) -> List[ExpandedItem]:
    """Base area descending; near-equal areas put the taller unit first."""
    return sorted(units, key=_area_then_height_key)


def calculate_utilization(placements: Iterable[Placement], room: RoomDimensions) -> float:
    """Placed volume over room volume, in percent."""
    if room.volume <= 0:
        return 0.0
    used = sum(p.volume for p in placements)
    return used / room.volume * 100.0


# ─────────────────────────────────────────────────────────────────────────────
# PackingStrategy
# ─────────────────────────────────────────────────────────────────────────────

class PackingStrategy(ABC):
    """
    Abstract base for packing strategies.

    Strategies are stateless between calls: everything a run needs is built
    inside ``pack()``, so one instance may serve many requests.
    """

    name: str = "unnamed"

    def __init__(self, settings: Optional[EngineSettings] = None) -> None:
        self.settings = settings or DEFAULT_SETTINGS

    @abstractmethod
    def pack(
        self,
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        options: Optional[PackOptions] = None,
    ) -> PackResult:
        """
        Place the requested units in *room*.

        Args:
            items:   Validated item requests.
            room:    Room dimensions.
            options: Per-request switches; defaults apply when None.

        Returns:
            ``PackResult`` with every unit either placed or listed as unplaced.
        """
        ...


# ─────────────────────────────────────────────────────────────────────────────
# Strategy registry
# ─────────────────────────────────────────────────────────────────────────────

STRATEGY_REGISTRY: Dict[str, Type[PackingStrategy]] = {}


def register_strategy(cls: Type[PackingStrategy]) -> Type[PackingStrategy]:
    """Class decorator - registers a strategy in the global registry."""
    STRATEGY_REGISTRY[cls.name] = cls
    return cls


def get_strategy(name: str, settings: Optional[EngineSettings] = None) -> PackingStrategy:
    """Look up a strategy by name and return a new instance."""
    if name not in STRATEGY_REGISTRY:
        available = ", ".join(sorted(STRATEGY_REGISTRY.keys()))
        raise ValueError(f"Unknown strategy '{name}'.  Available: [{available}]")
    return STRATEGY_REGISTRY[name](settings)
