"""
Integration tests: the engine pipeline, caching, storage suggestions,
reporting, settings files and the command line.
"""

import csv
import json

import pytest
import yaml

from roompack import (
    InvalidRequestError,
    InvalidRoomDimensionsError,
    ItemLimitExceededError,
    ItemTooLargeError,
    LayoutCache,
    LayoutEngine,
    optimize_layout,
    pack,
    validate_layout,
)
from roompack.cli import main
from roompack.config import DEFAULT_SETTINGS, EngineSettings, load_settings
from roompack.models import ItemRequest, PackOptions, Placement, RoomDimensions
from roompack.report import export_to_csv, export_to_json, print_summary, summarize
from roompack.suggestions import RoomState, StorageSuggester, generate_feedback


FOUR_BOXES = [{"product_id": 1, "width": 200, "depth": 150, "height": 100, "quantity": 4}]


@pytest.fixture
def engine():
    return LayoutEngine()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestPack:

    def test_laff_request_from_dicts(self, engine):
        result = engine.pack(FOUR_BOXES, 1000, 800, 300,
                             {"algorithm": "LAFF", "allow_rotation": False})
        assert result.placed_count == 4
        assert result.utilization == pytest.approx(5.0)
        assert result.strategy_used == "laff"
        assert result.validation is not None and result.validation.valid

    @pytest.mark.parametrize("alias, expected", [
        ("skyline", "laff"),
        ("compartment_grid", "compartment"),
        ("maxrects", "maxrects"),
        ("no-such-thing", "hybrid"),
        (None, "hybrid"),
    ])
    def test_algorithm_aliases(self, engine, alias, expected):
        assert engine.resolve_algorithm(alias) == expected

    def test_default_is_hybrid(self, engine):
        result = engine.pack(FOUR_BOXES, 1000, 800, 300)
        assert result.strategy_used in {"compartment", "laff", "hybrid"}
        assert result.placed_count == 4

    def test_feasibility_warnings_attached(self, engine):
        result = engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        assert any("Estimated utilization" in w for w in result.warnings)

    def test_oversized_item_is_reported_not_raised(self, engine):
        items = [{"product_id": 7, "width": 150, "depth": 50, "height": 50}]
        result = engine.pack(items, 100, 100, 100, {"algorithm": "laff"})
        assert result.placed_count == 0
        assert "does not fit" in result.unplaced_items[0].reason

    def test_strict_mode_raises(self, engine):
        items = [{"product_id": 7, "width": 150, "depth": 50, "height": 50}]
        with pytest.raises(ItemTooLargeError) as exc:
            engine.pack(items, 100, 100, 100, strict=True)
        assert exc.value.product_id == 7

    def test_optimize_option(self, engine):
        result = engine.pack(FOUR_BOXES, 1000, 800, 300,
                             {"algorithm": "compartment", "optimize": True})
        assert result.placed_count == 4
        assert result.validation.valid

    def test_module_level_functions(self):
        result = pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        report = validate_layout(result.placements, 1000, 800, 300)
        assert report.valid
        optimized = optimize_layout([p.to_dict() for p in result.placements], 1000, 800, 300)
        assert len(optimized.placements) == 4


class TestInputErrors:

    @pytest.mark.parametrize("dims", [(0, 800, 300), (1000, -5, 300), (1000, 800, 5000)])
    def test_bad_room(self, engine, dims):
        with pytest.raises(InvalidRoomDimensionsError):
            engine.pack(FOUR_BOXES, *dims)

    def test_malformed_item(self, engine):
        with pytest.raises(InvalidRequestError):
            engine.pack([{"product_id": 1, "width": -1, "depth": 1, "height": 1}], 100, 100, 100)
        with pytest.raises(InvalidRequestError):
            engine.pack([{"product_id": 1, "width": 1}], 100, 100, 100)

    def test_malformed_options(self, engine):
        with pytest.raises(InvalidRequestError):
            engine.pack(FOUR_BOXES, 1000, 800, 300, {"column_max_height": -10})

    def test_unit_cap(self, engine):
        items = [{"product_id": 1, "width": 1, "depth": 1, "height": 1, "quantity": 501}]
        with pytest.raises(ItemLimitExceededError):
            engine.pack(items, 100, 100, 100)

    def test_bad_placement_record(self, engine):
        with pytest.raises(InvalidRequestError):
            engine.validate_layout([{"x": 0}], 100, 100, 100)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class TestCache:

    def test_identical_requests_hit(self):
        cache = LayoutCache()
        engine = LayoutEngine(cache=cache)
        first = engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        second = engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        assert len(cache) == 1
        assert second.placements == first.placements
        assert second is not first
        (key,) = list(cache._entries)
        cache.invalidate(key)
        assert len(cache) == 0

    def test_key_depends_on_room_id(self):
        items = [ItemRequest(**FOUR_BOXES[0])]
        room = RoomDimensions(width=1000, depth=800, height=300)
        opts = PackOptions()
        assert LayoutCache.make_key(items, room, opts, 1) != LayoutCache.make_key(items, room, opts, 2)
        assert LayoutCache.make_key(items, room, opts) == LayoutCache.make_key(items, room, opts)

    def test_entries_expire(self):
        now = [0.0]
        cache = LayoutCache(ttl_seconds=10, clock=lambda: now[0])
        engine = LayoutEngine(cache=cache)
        engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        (key,) = list(cache._entries)
        assert cache.get(key) is not None
        now[0] = 11.0
        assert cache.get(key) is None
        assert len(cache) == 0

    def test_ttl_comes_from_settings(self):
        settings = EngineSettings(cache_ttl_seconds=5)
        assert LayoutEngine(settings, cache=LayoutCache()).cache.ttl_seconds == 5
        assert LayoutEngine(settings, cache=True).cache.ttl_seconds == 5
        assert LayoutEngine(settings, cache=LayoutCache(ttl_seconds=60)).cache.ttl_seconds == 60
        assert LayoutEngine(settings).cache is None

    def test_settings_ttl_expires_entries(self):
        now = [0.0]
        cache = LayoutCache(clock=lambda: now[0])
        engine = LayoutEngine(EngineSettings(cache_ttl_seconds=5), cache=cache)
        engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        (key,) = list(cache._entries)
        now[0] = 6.0
        assert cache.get(key) is None

    def test_put_purges_expired_entries(self):
        now = [0.0]
        cache = LayoutCache(ttl_seconds=10, clock=lambda: now[0])
        engine = LayoutEngine(cache=cache)
        engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "maxrects"})
        assert len(cache) == 2
        now[0] = 20.0
        engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "compartment"})
        assert len(cache) == 1


# ---------------------------------------------------------------------------
# Storage suggestions
# ---------------------------------------------------------------------------

class TestSuggestions:

    def _room_with_stack(self):
        placements = [
            Placement(product_id=1, x=0, y=0, z=0, width=50, depth=50, height=40,
                      stack_base_x=0, stack_base_y=0),
        ]
        return RoomState(room_id=1, name="A", room=RoomDimensions(width=200, depth=200, height=100),
                         placements=placements)

    def test_existing_stack_is_preferred(self):
        item = ItemRequest(product_id=1, width=50, depth=50, height=40, quantity=3)
        empty = RoomState(room_id=2, name="B", room=RoomDimensions(width=200, depth=200, height=100))
        suggestion = StorageSuggester().suggest(item, [empty, self._room_with_stack()])
        best = suggestion.recommended
        assert best.room_id == 1
        (stack_option,) = best.stack_options
        assert stack_option.z == 40
        assert stack_option.can_fit_quantity == 1
        assert len(best.floor_options) == 2
        assert best.placeable_quantity == 3
        assert suggestion.placement_options == best.options
        assert [a.room_id for a in suggestion.alternatives] == [2]

    def test_feedback(self):
        item = ItemRequest(product_id=1, width=50, depth=50, height=40, quantity=3)
        feedback = generate_feedback(StorageSuggester().suggest(item, [self._room_with_stack()]))
        assert feedback.recommendations[0] == "Store in room 'A'"
        assert any("existing stack" in r for r in feedback.recommendations)
        assert feedback.warnings == []

    def test_no_room_has_space(self, engine):
        item = {"product_id": 2, "width": 500, "depth": 500, "height": 40}
        suggestion = engine.suggest_storage(item, [self._room_with_stack()])
        assert suggestion.recommended is None
        feedback = generate_feedback(suggestion)
        assert feedback.recommendations == ["No storage space available for this product"]


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

class TestReport:

    def test_summary_and_exports(self, engine, tmp_path):
        result = engine.pack(FOUR_BOXES, 1000, 800, 300, {"algorithm": "laff"})
        room = RoomDimensions(width=1000, depth=800, height=300)
        summary = summarize(result, room)
        assert summary.placed_count == 4
        assert summary.stack_count == 4
        assert summary.floor_utilization_pct == pytest.approx(15.0)
        assert summary.valid is True
        assert "Strategy: laff" in print_summary(summary)

        json_path = tmp_path / "out" / "layout.json"
        export_to_json(result, room, json_path)
        data = json.loads(json_path.read_text())
        assert data["summary"]["placed_count"] == 4
        assert len(data["placements"]) == 4

        csv_path = tmp_path / "layout.csv"
        export_to_csv(result.placements, csv_path)
        with csv_path.open() as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 4
        assert float(rows[0]["x"]) == 0.0


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSettings:

    def test_roundtrip_and_unknown_keys(self):
        assert EngineSettings.from_dict(DEFAULT_SETTINGS.to_dict()) == DEFAULT_SETTINGS
        with pytest.raises(ValueError, match="Unknown engine settings"):
            EngineSettings.from_dict({"not_a_setting": 1})

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"max_expanded_units": 3, "default_algorithm": "laff"}))
        settings = load_settings(path)
        assert settings.max_expanded_units == 3
        assert settings.capacity_safety_factor == DEFAULT_SETTINGS.capacity_safety_factor

        engine = LayoutEngine(settings)
        assert engine.resolve_algorithm(None) == "laff"
        with pytest.raises(ItemLimitExceededError):
            engine.pack(FOUR_BOXES, 1000, 800, 300)

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path) == DEFAULT_SETTINGS


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestCli:

    @pytest.fixture
    def request_file(self, tmp_path):
        path = tmp_path / "request.yaml"
        path.write_text(yaml.safe_dump({
            "room": {"width": 1000, "depth": 800, "height": 300},
            "items": FOUR_BOXES,
            "options": {"allow_rotation": False},
        }))
        return path

    def test_pack_then_validate_then_optimize(self, request_file, tmp_path, capsys):
        layout = tmp_path / "layout.json"
        assert main(["pack", str(request_file), "--algorithm", "laff", "-o", str(layout)]) == 0
        assert "Placed:   4" in capsys.readouterr().out

        assert main(["validate", str(layout)]) == 0
        assert "Layout is valid" in capsys.readouterr().out

        optimized = tmp_path / "optimized.json"
        assert main(["optimize", str(layout), "-o", str(optimized)]) == 0
        assert len(json.loads(optimized.read_text())["placements"]) == 4

    def test_invalid_layout_exit_code(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "room": {"width": 100, "depth": 100, "height": 100},
            "placements": [
                {"product_id": 1, "x": 0, "y": 0, "width": 60, "depth": 60, "height": 10},
                {"product_id": 2, "x": 30, "y": 30, "width": 60, "depth": 60, "height": 10},
            ],
        }))
        assert main(["validate", str(path)]) == 1
        assert "overlap on the floor" in capsys.readouterr().out

    def test_bad_room_exit_code(self, tmp_path, capsys):
        path = tmp_path / "bad_room.yaml"
        path.write_text(yaml.safe_dump({"room": {"width": 0, "depth": 10, "height": 10},
                                        "items": FOUR_BOXES}))
        assert main(["pack", str(path)]) == 2
        assert "Invalid room dimensions" in capsys.readouterr().err
