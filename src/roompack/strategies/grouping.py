"""
Product grouping - bucket item requests for the hybrid strategy.

Three groupings are offered; ``group_for_optimal_fit`` runs all of them
and keeps the best-scoring one:

  * dimensions    - same group when width, depth and height are all within
                    ``grouping_dimension_tolerance`` of the group's first item
  * aspect_ratio  - same group when width/depth is within
                    ``grouping_aspect_tolerance`` of the group's first item
  * quantity      - high (>= 1.5x average quantity), medium (>= 0.5x) and
                    low demand buckets

Grouping score (higher is better):

    60 * (1 - group_count / item_count) + 40 * (1 - variance / mean_size^2)

i.e. fewer groups and evenly sized groups win.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from roompack.config import DEFAULT_SETTINGS, EngineSettings
from roompack.models import ItemRequest

WEIGHT_CONSOLIDATION: float = 60.0
WEIGHT_BALANCE: float = 40.0

HIGH_DEMAND_FACTOR: float = 1.5
MEDIUM_DEMAND_FACTOR: float = 0.5


@dataclass
class ProductGroup:
    label: str
    items: List[ItemRequest] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def size(self) -> int:
        return len(self.items)


@dataclass
class Grouping:
    strategy: str
    groups: List[ProductGroup]
    score: float = 0.0

    @property
    def group_count(self) -> int:
        return len(self.groups)


class ProductGroupingService:
    """Groups item requests by shape or demand."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def group_by_dimensions(self, items: Sequence[ItemRequest]) -> Grouping:
        tol = self.settings.grouping_dimension_tolerance
        groups: List[ProductGroup] = []
        for item in items:
            for group in groups:
                ref = group.items[0]
                if (
                    abs(item.width - ref.width) <= tol
                    and abs(item.depth - ref.depth) <= tol
                    and abs(item.height - ref.height) <= tol
                ):
                    group.items.append(item)
                    break
            else:
                label = f"{item.width:g}x{item.depth:g}x{item.height:g}"
                groups.append(ProductGroup(label, [item]))
        return Grouping("dimensions", groups)

    def group_by_aspect_ratio(self, items: Sequence[ItemRequest]) -> Grouping:
        tol = self.settings.grouping_aspect_tolerance
        groups: List[ProductGroup] = []
        for item in items:
            ratio = item.width / item.depth
            for group in groups:
                ref = group.items[0]
                if abs(ratio - ref.width / ref.depth) <= tol:
                    group.items.append(item)
                    break
            else:
                groups.append(ProductGroup(f"aspect {ratio:.2f}", [item]))
        return Grouping("aspect_ratio", groups)

    def group_by_quantity(self, items: Sequence[ItemRequest]) -> Grouping:
        if not items:
            return Grouping("quantity", [])
        average = sum(i.quantity for i in items) / len(items)
        buckets = {"high": ProductGroup("high"), "medium": ProductGroup("medium"),
                   "low": ProductGroup("low")}
        for item in sorted(items, key=lambda i: -i.quantity):
            if item.quantity >= average * HIGH_DEMAND_FACTOR:
                buckets["high"].items.append(item)
            elif item.quantity >= average * MEDIUM_DEMAND_FACTOR:
                buckets["medium"].items.append(item)
            else:
                buckets["low"].items.append(item)
        return Grouping("quantity", [g for g in buckets.values() if g.items])

    @staticmethod
    def score_grouping(grouping: Grouping) -> float:
        sizes = [g.size for g in grouping.groups]
        total = sum(sizes)
        if total == 0:
            return 0.0
        consolidation = max(0.0, 1 - grouping.group_count / total)
        mean = total / len(sizes)
        variance = sum((s - mean) ** 2 for s in sizes) / len(sizes)
        balance = max(0.0, 1 - variance / (mean * mean))
        return consolidation * WEIGHT_CONSOLIDATION + balance * WEIGHT_BALANCE

    def group_for_optimal_fit(self, items: Sequence[ItemRequest]) -> Grouping:
        best: Optional[Grouping] = None
        for grouping in (
            self.group_by_dimensions(items),
            self.group_by_aspect_ratio(items),
            self.group_by_quantity(items),
        ):
            grouping.score = self.score_grouping(grouping)
            if best is None or grouping.score > best.score:
                best = grouping
        if best is None or not best.groups:
            return Grouping("none", [ProductGroup("all", list(items))])
        return best
