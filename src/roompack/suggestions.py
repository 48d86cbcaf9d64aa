"""
Storage suggestions - where to put N more units of a product.

For every candidate room (its dimensions plus the placements already in
it) two kinds of options are collected:

  * stack options  - existing stacks of the same product with headroom;
                     each can take up to its remaining capacity
  * floor options  - new stack bases found by LAFF around the existing
                     layout, for whatever the stacks could not absorb

Room score: 10 per stack option plus the room's utilization once every
suggested unit is in.  The best-scoring room with at least one option is
recommended; the others are returned as alternatives.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from roompack.config import DEFAULT_SETTINGS, EngineSettings
from roompack.layout.validator import calculate_volume_utilization
from roompack.models import ItemRequest, PackOptions, Placement, RoomDimensions
from roompack.stacking import StackTracker
from roompack.strategies.laff import LaffStrategy

logger = logging.getLogger(__name__)

STACK_OPTION_BONUS: float = 10.0


@dataclass
class RoomState:
    room_id: Union[int, str]
    name: str
    room: RoomDimensions
    placements: List[Placement] = field(default_factory=list)


@dataclass
class PlacementOption:
    room_id: Union[int, str]
    x: float
    y: float
    z: float
    stack_on_existing: bool
    can_fit_quantity: int
    position_label: str
    existing_stack_height: float = 0.0
    items_in_stack: int = 0
    remaining_stack_height: float = 0.0


@dataclass
class RoomSuggestion:
    room_id: Union[int, str]
    room_name: str
    options: List[PlacementOption] = field(default_factory=list)
    utilization_after: float = 0.0

    @property
    def placeable_quantity(self) -> int:
        return sum(o.can_fit_quantity for o in self.options)

    @property
    def stack_options(self) -> List[PlacementOption]:
        return [o for o in self.options if o.stack_on_existing]

    @property
    def floor_options(self) -> List[PlacementOption]:
        return [o for o in self.options if not o.stack_on_existing]

    @property
    def score(self) -> float:
        return STACK_OPTION_BONUS * len(self.stack_options) + self.utilization_after


@dataclass
class StorageSuggestion:
    product_id: Union[int, str]
    quantity: int
    recommended: Optional[RoomSuggestion] = None
    alternatives: List[RoomSuggestion] = field(default_factory=list)

    @property
    def placement_options(self) -> List[PlacementOption]:
        return self.recommended.options if self.recommended else []


@dataclass
class StorageFeedback:
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class StorageSuggester:
    """Finds rooms and positions for additional units of one product."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS
        self.laff = LaffStrategy(self.settings)

    def suggest(self, item: ItemRequest, rooms: Sequence[RoomState]) -> StorageSuggestion:
        """*item.quantity* is the number of units to store."""
        suggestion = StorageSuggestion(product_id=item.product_id, quantity=item.quantity)
        candidates = [self.analyze_room(item, state) for state in rooms]
        candidates = [c for c in candidates if c.options]
        best_score = -math.inf
        for candidate in candidates:
            if candidate.score > best_score:
                best_score = candidate.score
                suggestion.recommended = candidate
        suggestion.alternatives = [c for c in candidates if c is not suggestion.recommended]
        logger.debug(
            "Storage suggestion for product %s: %d rooms with options",
            item.product_id, len(candidates),
        )
        return suggestion

    def analyze_room(self, item: ItemRequest, state: RoomState) -> RoomSuggestion:
        room = state.room
        result = RoomSuggestion(room_id=state.room_id, room_name=state.name)
        tracker = StackTracker.from_placements(state.placements, room.height)
        remaining = item.quantity
        added_volume = 0.0

        for stack in tracker.stacks(item.product_id):
            if remaining <= 0:
                break
            capacity = tracker.stack_capacity(item.product_id, stack.base_x, stack.base_y, item.height)
            if capacity <= 0:
                continue
            take = min(capacity, remaining)
            first = stack.count + 1
            result.options.append(PlacementOption(
                room_id=state.room_id,
                x=stack.base_x,
                y=stack.base_y,
                z=stack.height,
                stack_on_existing=True,
                can_fit_quantity=take,
                position_label=f"Stack position {first}-{first + take - 1}",
                existing_stack_height=stack.height,
                items_in_stack=stack.count,
                remaining_stack_height=tracker.height_limit - stack.height,
            ))
            remaining -= take
            added_volume += take * item.unit_volume

        if remaining > 0:
            request = item.model_copy(update={"quantity": remaining})
            options = PackOptions(allow_rotation=item.rotatable, prefer_bottom=True)
            packed = self.laff.pack([request], room, options, existing=state.placements)
            for p in packed.placements:
                result.options.append(PlacementOption(
                    room_id=state.room_id,
                    x=p.x,
                    y=p.y,
                    z=0.0,
                    stack_on_existing=False,
                    can_fit_quantity=1,
                    position_label="New stack position",
                ))
                added_volume += p.volume

        existing = calculate_volume_utilization(state.placements, room.width, room.depth, room.height)
        result.utilization_after = existing + added_volume / room.volume * 100.0
        return result


def generate_feedback(suggestion: StorageSuggestion) -> StorageFeedback:
    """Human-readable advice for a storage suggestion."""
    feedback = StorageFeedback()
    best = suggestion.recommended
    if best is None:
        feedback.recommendations.append("No storage space available for this product")
        feedback.warnings.append("Consider removing items or expanding room capacity")
        return feedback

    feedback.recommendations.append(f"Store in room '{best.room_name}'")
    if best.stack_options:
        opt = best.stack_options[0]
        feedback.recommendations.append(
            f"Stack {opt.can_fit_quantity} items on the existing stack at "
            f"({opt.x:.0f}, {opt.y:.0f}) starting from Z={opt.z:.0f}"
        )
    if best.floor_options:
        opt = best.floor_options[0]
        feedback.recommendations.append(
            f"Start new stacks from position ({opt.x:.0f}, {opt.y:.0f})"
        )
    feedback.recommendations.append(
        f"Total space utilization will be {best.utilization_after:.1f}% after placement"
    )
    if best.placeable_quantity < suggestion.quantity:
        feedback.warnings.append(
            f"Only {best.placeable_quantity} of {suggestion.quantity} units fit in "
            f"room '{best.room_name}'"
        )
    return feedback
