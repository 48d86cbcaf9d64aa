"""
Layout engine - the request pipeline around the packing strategies.

``LayoutEngine.pack`` runs, in order:

  1. coerce the caller's items / options into the request models
     (pydantic errors become ``InvalidRequestError``)
  2. room sanity check               -> ``InvalidRoomDimensionsError``
  3. expanded unit cap               -> ``ItemLimitExceededError``
  4. cache lookup (when a cache is attached)
  5. feasibility warnings, attached to the result
  6. strategy, resolved from ``options.algorithm``
  7. optional optimizer pass
  8. validation, attached as ``result.validation``
  9. cache store

Algorithm names: ``laff``/``skyline`` -> LAFF, ``maxrects``,
``compartment``/``compartment_grid`` -> compartment, ``hybrid``.  Anything
else, or no name at all, uses ``EngineSettings.default_algorithm``.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from roompack.cache import LayoutCache
from roompack.config import DEFAULT_SETTINGS, EngineSettings
from roompack.errors import (
    InvalidRequestError,
    InvalidRoomDimensionsError,
    ItemLimitExceededError,
    ItemTooLargeError,
)
from roompack.layout.feasibility import (
    FeasibilityReport,
    product_fit_error,
    validate_room_dimensions,
    validate_room_for_products,
)
from roompack.layout.optimizer import LayoutOptimizer
from roompack.layout import validator
from roompack.models import (
    ItemRequest,
    OptimizationResult,
    PackOptions,
    PackResult,
    Placement,
    RoomDimensions,
    ValidationReport,
)
from roompack.strategies import get_strategy
from roompack.strategies.base_strategy import calculate_utilization
from roompack.suggestions import RoomState, StorageSuggester, StorageSuggestion

logger = logging.getLogger(__name__)

ALGORITHM_ALIASES: Dict[str, str] = {
    "laff": "laff",
    "skyline": "laff",
    "maxrects": "maxrects",
    "compartment": "compartment",
    "compartment_grid": "compartment",
    "hybrid": "hybrid",
}

ItemsInput = Iterable[Union[ItemRequest, Mapping[str, Any]]]
OptionsInput = Optional[Union[PackOptions, Mapping[str, Any]]]
PlacementsInput = Iterable[Union[Placement, Mapping[str, Any]]]


def coerce_items(items: ItemsInput) -> List[ItemRequest]:
    try:
        return [i if isinstance(i, ItemRequest) else ItemRequest.model_validate(i) for i in items]
    except ValidationError as exc:
        raise InvalidRequestError(f"Invalid item request: {exc}") from exc


def coerce_options(options: OptionsInput) -> PackOptions:
    if options is None:
        return PackOptions()
    if isinstance(options, PackOptions):
        return options
    try:
        return PackOptions.model_validate(options)
    except ValidationError as exc:
        raise InvalidRequestError(f"Invalid pack options: {exc}") from exc


def coerce_placements(placements: PlacementsInput) -> List[Placement]:
    try:
        return [p if isinstance(p, Placement) else Placement.from_dict(p) for p in placements]
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidRequestError(f"Invalid placement record: {exc}") from exc


class LayoutEngine:
    """
    Entry point for packing, validating and optimizing room layouts.

    One engine may serve many requests; it holds only settings, the
    optional cache and stateless helpers.  Pass ``cache=True`` for a
    cache whose TTL comes from the settings.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        cache: Union[LayoutCache, bool, None] = None,
    ):
        self.settings = settings or DEFAULT_SETTINGS
        self.cache: Optional[LayoutCache] = None
        if cache is True:
            self.cache = LayoutCache.from_settings(self.settings)
        elif isinstance(cache, LayoutCache):
            cache.apply_settings(self.settings)
            self.cache = cache
        self.optimizer = LayoutOptimizer(self.settings)

    def resolve_algorithm(self, name: Optional[str]) -> str:
        if name is None:
            return self.settings.default_algorithm
        resolved = ALGORITHM_ALIASES.get(name)
        if resolved is None:
            logger.warning(
                "Unknown algorithm '%s', using %s", name, self.settings.default_algorithm
            )
            return self.settings.default_algorithm
        return resolved

    def _room(self, width: float, depth: float, height: float) -> RoomDimensions:
        errors = validate_room_dimensions(width, depth, height, self.settings)
        if errors:
            raise InvalidRoomDimensionsError(width, depth, height, "; ".join(errors))
        return RoomDimensions(width=width, depth=depth, height=height)

    def pack(
        self,
        items: ItemsInput,
        room_width: float,
        room_depth: float,
        room_height: float,
        options: OptionsInput = None,
        room_id: Optional[Union[int, str]] = None,
        strict: bool = False,
    ) -> PackResult:
        """
        Pack *items* into a room of the given dimensions.

        Args:
            items:    ``ItemRequest`` objects or equivalent dictionaries.
            room_*:   Room dimensions.
            options:  ``PackOptions`` or an equivalent dictionary.
            room_id:  Included in the cache key when a cache is attached.
            strict:   Raise ``ItemTooLargeError`` for a product that cannot
                      fit the room at all instead of reporting it unplaced.

        Raises:
            InvalidRequestError: malformed items/options, bad room, too many units.
        """
        requests = coerce_items(items)
        opts = coerce_options(options)
        room = self._room(room_width, room_depth, room_height)

        units = sum(i.quantity for i in requests)
        if units > self.settings.max_expanded_units:
            raise ItemLimitExceededError(units, self.settings.max_expanded_units)

        if strict:
            for item in requests:
                if product_fit_error(item, room) is not None:
                    raise ItemTooLargeError(
                        item.product_id,
                        {"width": item.width, "depth": item.depth, "height": item.height},
                        room.model_dump(),
                    )

        key = None
        if self.cache is not None:
            key = self.cache.make_key(requests, room, opts, room_id)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Layout cache hit for %s", key)
                return cached

        feasibility = self.check_feasibility(requests, room)

        algorithm = self.resolve_algorithm(opts.algorithm)
        strategy = get_strategy(algorithm, self.settings)
        result = strategy.pack(requests, room, opts)
        if result.strategy_used is None:
            result.strategy_used = algorithm
        result.warnings = feasibility.errors + feasibility.warnings + result.warnings

        if opts.optimize and result.placements:
            optimized = self.optimizer.optimize(
                result.placements, room.width, room.depth, room.height
            )
            result.placements = optimized.placements
            result.utilization = calculate_utilization(result.placements, room)
            for improvement in optimized.improvements:
                logger.info("Optimizer: %s", improvement)

        result.validation = self.validate_layout(
            result.placements, room.width, room.depth, room.height
        )
        if not result.validation.valid:
            logger.error(
                "Generated layout failed validation (%s): %s",
                algorithm, "; ".join(result.validation.errors),
            )

        logger.info(
            "Packed %d/%d units with %s, utilization %.1f%%",
            result.placed_count, units, result.strategy_used, result.utilization,
        )
        if key is not None:
            self.cache.put(key, result)
        return result

    def validate_layout(
        self,
        placements: PlacementsInput,
        room_width: float,
        room_depth: float,
        room_height: float,
    ) -> ValidationReport:
        return validator.validate_layout(
            coerce_placements(placements), room_width, room_depth, room_height
        )

    def optimize_layout(
        self,
        placements: PlacementsInput,
        room_width: float,
        room_depth: float,
        room_height: float,
    ) -> OptimizationResult:
        result = self.optimizer.optimize(
            coerce_placements(placements), room_width, room_depth, room_height
        )
        logger.info(
            "Optimization: %.1f%% -> %.1f%% (%d improvements)",
            result.utilization_before, result.utilization_after, len(result.improvements),
        )
        return result

    def check_feasibility(
        self, items: ItemsInput, room: RoomDimensions
    ) -> FeasibilityReport:
        report = validate_room_for_products(coerce_items(items), room, self.settings)
        for warning in report.warnings:
            logger.warning("Feasibility: %s", warning)
        for error in report.errors:
            logger.warning("Feasibility: %s", error)
        return report

    def suggest_storage(
        self,
        item: Union[ItemRequest, Mapping[str, Any]],
        rooms: Sequence[RoomState],
    ) -> StorageSuggestion:
        """Where to put ``item.quantity`` more units across *rooms*."""
        (request,) = coerce_items([item])
        return StorageSuggester(self.settings).suggest(request, rooms)


# ─────────────────────────────────────────────────────────────────────────────
# Module-level entry points
# ─────────────────────────────────────────────────────────────────────────────

_default_engine = LayoutEngine()


def pack(
    items: ItemsInput,
    room_width: float,
    room_depth: float,
    room_height: float,
    options: OptionsInput = None,
) -> PackResult:
    return _default_engine.pack(items, room_width, room_depth, room_height, options)


def validate_layout(
    placements: PlacementsInput,
    room_width: float,
    room_depth: float,
    room_height: float,
) -> ValidationReport:
    return _default_engine.validate_layout(placements, room_width, room_depth, room_height)


def optimize_layout(
    placements: PlacementsInput,
    room_width: float,
    room_depth: float,
    room_height: float,
) -> OptimizationResult:
    return _default_engine.optimize_layout(placements, room_width, room_depth, room_height)
