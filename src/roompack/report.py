"""Layout summaries and export.

Provides a summary dataclass for a packed layout and utilities for
exporting results to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from roompack.layout.validator import calculate_floor_utilization
from roompack.models import PackResult, Placement, RoomDimensions

PLACEMENT_CSV_FIELDS = [
    "product_id", "x", "y", "z", "width", "depth", "height", "rotation",
    "layer_index", "stack_id", "stack_position", "stack_base_x", "stack_base_y",
    "items_below_count",
]


@dataclass
class LayoutSummary:
    """Headline numbers of one packed layout.

    Attributes:
        strategy: Strategy that produced the layout.
        placed_count: Number of placed units.
        unplaced_count: Number of units that could not be placed.
        utilization_pct: Volume utilization percentage (0-100).
        floor_utilization_pct: Share of the floor covered by stacks (0-100).
        volume_used: Total placed volume.
        volume_total: Room volume.
        stack_count: Number of distinct stacks.
        max_stack_height: Tallest stack top.
        valid: Whether the layout passed validation (None if not validated).
        computed_at: Timestamp of the summary.
    """

    strategy: str
    placed_count: int
    unplaced_count: int
    utilization_pct: float
    floor_utilization_pct: float
    volume_used: float
    volume_total: float
    stack_count: int
    max_stack_height: float
    valid: bool | None = None
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp.

        Example:
            >>> s = LayoutSummary("laff", 3, 0, 12.5, 30.0, 1e5, 8e5, 3, 40.0)
            >>> s.to_dict()["placed_count"]
            3
        """
        d = asdict(self)
        d["computed_at"] = self.computed_at.isoformat()
        return d


def summarize(result: PackResult, room: RoomDimensions, algorithm: str = "") -> LayoutSummary:
    """Build a ``LayoutSummary`` for *result* packed into *room*."""
    placements = result.placements
    return LayoutSummary(
        strategy=result.strategy_used or algorithm or "unknown",
        placed_count=len(placements),
        unplaced_count=len(result.unplaced_items),
        utilization_pct=result.utilization,
        floor_utilization_pct=calculate_floor_utilization(placements, room.width, room.depth),
        volume_used=sum(p.volume for p in placements),
        volume_total=room.volume,
        stack_count=len({(p.product_id, p.stack_id) for p in placements}),
        max_stack_height=max((p.z_max for p in placements), default=0.0),
        valid=result.validation.valid if result.validation else None,
    )


def export_to_json(
    result: PackResult,
    room: RoomDimensions,
    output_path: Path | str,
    include_placements: bool = True,
) -> None:
    """Export a layout summary, optionally with every placement, to JSON.

    Args:
        result: Packed layout.
        room: Room it was packed into.
        output_path: Path to output JSON file.
        include_placements: If False, only the summary is written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "room": room.model_dump(),
        "summary": summarize(result, room).to_dict(),
    }
    if include_placements:
        data.update(result.to_dict())

    with output_path.open("w") as f:
        json.dump(data, f, indent=2, default=str)


def export_to_csv(placements: Sequence[Placement], output_path: Path | str) -> None:
    """Export placements to CSV, one row per unit.  Writes headers when empty."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=PLACEMENT_CSV_FIELDS)
        writer.writeheader()
        for placement in placements:
            writer.writerow(placement.to_dict())


def print_summary(summary: LayoutSummary) -> str:
    """Generate human-readable summary of a layout.

    Returns:
        Formatted multi-line summary string.
    """
    validity = {True: "valid", False: "INVALID", None: "not validated"}[summary.valid]
    lines = [
        "=" * 60,
        f"Strategy: {summary.strategy}",
        "=" * 60,
        f"Placed:   {summary.placed_count}",
        f"Unplaced: {summary.unplaced_count}",
        f"Stacks:   {summary.stack_count} (tallest top at {summary.max_stack_height:.1f})",
        "",
        "Utilization:",
        f"  Volume: {summary.utilization_pct:.2f}%",
        f"  Floor:  {summary.floor_utilization_pct:.2f}%",
        "",
        f"Layout:   {validity}",
        f"Computed: {summary.computed_at.isoformat()}",
        "=" * 60,
    ]
    return "\n".join(lines)
