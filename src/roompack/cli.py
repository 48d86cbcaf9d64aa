"""
roompack command line.

Request and layout files are YAML or JSON (JSON is valid YAML):

    room:    {width: 1000, depth: 800, height: 300}
    items:   [{product_id: 1, width: 200, depth: 150, height: 100, quantity: 4}]
    options: {algorithm: laff, allow_rotation: false}

A layout file carries ``placements`` instead of ``items``.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from roompack.config import load_settings
from roompack.engine import LayoutEngine
from roompack.errors import PackingError
from roompack.models import RoomDimensions
from roompack.report import export_to_csv, export_to_json, print_summary, summarize

logger = logging.getLogger(__name__)


def load_request(path: str) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict) or "room" not in data:
        raise PackingError(f"{path}: expected a mapping with a 'room' key")
    return data


def _room_args(data: Dict[str, Any]) -> List[float]:
    room = data["room"]
    return [float(room["width"]), float(room["depth"]), float(room["height"])]


def _write_json(payload: Dict[str, Any], path: str) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w") as f:
        json.dump(payload, f, indent=2, default=str)


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_pack(engine: LayoutEngine, args: argparse.Namespace) -> int:
    data = load_request(args.request)
    options = dict(data.get("options") or {})
    if args.algorithm:
        options["algorithm"] = args.algorithm
    if args.optimize:
        options["optimize"] = True

    width, depth, height = _room_args(data)
    result = engine.pack(data.get("items") or [], width, depth, height, options, strict=args.strict)
    room = RoomDimensions(width=width, depth=depth, height=height)

    print(print_summary(summarize(result, room)))
    for warning in result.warnings:
        print(f"  WARNING: {warning}")
    for item in result.unplaced_items:
        print(f"  UNPLACED: product {item.product_id}: {item.reason}")

    if args.output:
        if args.output.endswith(".csv"):
            export_to_csv(result.placements, args.output)
        else:
            export_to_json(result, room, args.output)
        print(f"\n  Layout written to {args.output}")
    return 0 if result.valid else 1


def cmd_validate(engine: LayoutEngine, args: argparse.Namespace) -> int:
    data = load_request(args.layout)
    report = engine.validate_layout(data.get("placements") or [], *_room_args(data))
    print(f"Layout is {'valid' if report.valid else 'INVALID'}")
    print(f"  Utilization: {report.utilization:.2f}% (floor {report.floor_utilization:.2f}%)")
    for error in report.errors:
        print(f"  ERROR: {error}")
    for warning in report.warnings:
        print(f"  WARNING: {warning}")
    return 0 if report.valid else 1


def cmd_optimize(engine: LayoutEngine, args: argparse.Namespace) -> int:
    data = load_request(args.layout)
    result = engine.optimize_layout(data.get("placements") or [], *_room_args(data))
    print(f"Utilization: {result.utilization_before:.2f}% -> {result.utilization_after:.2f}%")
    if not result.improvements:
        print("  No improvements found")
    for improvement in result.improvements:
        print(f"  {improvement}")
    if args.output:
        payload = {"room": data["room"], **result.to_dict()}
        _write_json(payload, args.output)
        print(f"\n  Layout written to {args.output}")
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roompack",
        description="Room packing and layout engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  roompack pack request.yaml
  roompack pack request.yaml --algorithm compartment --output layout.json
  roompack validate layout.json
  roompack optimize layout.json --output optimized.json
        """,
    )
    parser.add_argument("--settings", type=str,
                        help="YAML file overriding engine settings")
    parser.add_argument("--verbose", "-v", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("pack", help="Pack the items of a request file into its room")
    p.add_argument("request", help="YAML/JSON request with room, items and options")
    p.add_argument("--algorithm", type=str,
                   help="laff, skyline, maxrects, compartment, compartment_grid or hybrid")
    p.add_argument("--optimize", action="store_true",
                   help="Run the layout optimizer after packing")
    p.add_argument("--strict", action="store_true",
                   help="Fail when a product cannot fit the room at all")
    p.add_argument("--output", "-o", type=str,
                   help="Write the layout to JSON (or CSV when the name ends in .csv)")
    p.set_defaults(handler=cmd_pack)

    v = sub.add_parser("validate", help="Validate a stored layout")
    v.add_argument("layout", help="YAML/JSON layout with room and placements")
    v.set_defaults(handler=cmd_validate)

    o = sub.add_parser("optimize", help="Optimize a stored layout")
    o.add_argument("layout", help="YAML/JSON layout with room and placements")
    o.add_argument("--output", "-o", type=str, help="Write the optimized layout to JSON")
    o.set_defaults(handler=cmd_optimize)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.settings) if args.settings else None
    engine = LayoutEngine(settings)
    try:
        return args.handler(engine, args)
    except PackingError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
