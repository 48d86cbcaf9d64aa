"""
MaxRects strategy - LAFF ordering with a multi-criteria position choice.

Units are expanded and ordered exactly like LAFF and placed on the floor.
The difference is where each unit goes.  From the valid candidates three
proposals are drawn:

  * bottom-left - lowest y, then lowest x
  * best fit    - least leftover area in the free rectangle
  * stability   - close to the room centre and low in y

Each proposal is scored and the highest score wins:

    score = 30 * (1 - y / room_depth)
          + 20 * (1 - x / room_width)
          + 50 * (1 - centre_distance / half_diagonal)
"""

import math
from typing import List, Optional

from roompack.config import POINT_EPSILON
from roompack.models import RoomDimensions
from roompack.strategies.base_strategy import register_strategy
from roompack.strategies.laff import Candidate, LaffStrategy

# Scoring weights
WEIGHT_BOTTOM: float = 30.0   # Prefer low y
WEIGHT_LEFT: float = 20.0     # Prefer low x
WEIGHT_CENTRE: float = 50.0   # Prefer positions near the room centre

# Distance scale used by the stability proposal (room units).
STABILITY_DISTANCE_SCALE: float = 100.0


def _centre_distance(cand: Candidate, room: RoomDimensions) -> float:
    cx = cand.x + cand.width / 2
    cy = cand.y + cand.depth / 2
    return math.hypot(cx - room.width / 2, cy - room.depth / 2)


def score_placement(cand: Candidate, room: RoomDimensions) -> float:
    half_diagonal = math.hypot(room.width, room.depth) / 2
    score = WEIGHT_BOTTOM * (1 - cand.y / room.depth)
    score += WEIGHT_LEFT * (1 - cand.x / room.width)
    score += WEIGHT_CENTRE * (1 - _centre_distance(cand, room) / half_diagonal)
    return score


def _bottom_left(candidates: List[Candidate]) -> Candidate:
    return min(candidates, key=lambda c: (round(c.y / POINT_EPSILON), c.x))


def _best_fit(candidates: List[Candidate]) -> Candidate:
    return min(candidates, key=lambda c: c.waste)


def _most_stable(candidates: List[Candidate], room: RoomDimensions) -> Candidate:
    def stability(c: Candidate) -> float:
        nearness = 1 / (1 + _centre_distance(c, room) / STABILITY_DISTANCE_SCALE)
        return nearness * (1 - c.y / room.depth)

    return max(candidates, key=stability)


@register_strategy
class MaxRectsStrategy(LaffStrategy):
    """LAFF ordering; positions picked by the best-scoring of three proposals."""

    name = "maxrects"

    def _choose(self, candidates: List[Candidate], room: RoomDimensions) -> Optional[Candidate]:
        if not candidates:
            return None
        best: Optional[Candidate] = None
        best_score = -math.inf
        for proposal in (
            _bottom_left(candidates),
            _best_fit(candidates),
            _most_stable(candidates, room),
        ):
            score = score_placement(proposal, room)
            if score > best_score:
                best, best_score = proposal, score
        return best
