#!/usr/bin/env python3
"""
Rebuild the A-VO-S radar layout from a coded-survey snapshot.

Pipeline:
- Read a snapshot JSON {papers, scores, bibliography, tooltipContent} exported by the ingestion step.
- Flatten and aggregate coded rows into one data point per (paper, topic, category).
- Anchor every point on the radar for the requested viewport, relax collisions, apply filters.
- Export the positioned points as JSON (and optionally Parquet) into the output directory.

Usage:
    python -m radar.rebuild_layout --snapshot data/snapshot.json [--out Output/radar] [--width 1600 --height 1000]
        [--years 2015 2020] [--journal "Journal of Marketing" ...] [--search "Doe, J."] [--parquet]

Everything is computed in memory and synchronously; there are no network calls.
"""
from __future__ import annotations

import argparse
import datetime as dt
import json
import pathlib
import time
from dataclasses import replace
from typing import Any, Callable

try:
    import numpy as np  # noqa: F401
    import pandas as pd
    import scipy  # noqa: F401
except Exception as e:
    raise SystemExit(
        "Missing Python dependencies 'numpy'/'pandas'/'scipy'. Install them with:\n"
        "  python -m pip install -e .\n"
        f"Original error: {e}"
    )

from radar.aggregate import empty_result, transform_snapshot
from radar.cache import LayoutCache
from radar.config import DEFAULT_CONFIG, ForceConfig, LayoutConfig
from radar.coords import RadialBands, label_positions
from radar.filters import apply_filters, journal_options, search_options, year_range
from radar.interaction import CoalescingScheduler, SelectionMachine, SelectionState
from radar.relax import compute_node_positions
from radar.schema import DataPoint

# ---------- Session ----------


class RadarSession:
    """
    Owns everything the renderer needs between snapshots: the aggregated data, the single-slot
    layout cache, the debounced resize/pointer handling and the selection state.
    """

    def __init__(self, width: float, height: float, config: LayoutConfig = DEFAULT_CONFIG, clock: Callable[[], float] = time.monotonic):
        RadialBands.for_viewport(width, height, config.chart)
        self.config = config
        self.width = width
        self.height = height
        self.result: dict[str, Any] = empty_result()
        self.cache = LayoutCache()
        self.selection = SelectionMachine()
        self.resize_scheduler = CoalescingScheduler(config.resize_delay, self._apply_resize, clock)
        self.pointer_scheduler = CoalescingScheduler(config.pointer_delay, self._apply_pointer, clock)
        self.last_positions: list[dict[str, float]] = []

    @property
    def data(self) -> list[DataPoint]:
        return self.result["data"]

    def load(self, snapshot: dict[str, Any]) -> dict[str, Any]:
        self.result = transform_snapshot(snapshot)
        self.selection.reset()
        self.pointer_scheduler.cancel()
        return self.result

    def bands(self) -> RadialBands:
        return RadialBands.for_viewport(self.width, self.height, self.config.chart)

    def positions(self) -> list[dict[str, float]]:
        """Relaxed [{x, y, size, radius}] aligned index-for-index with `self.data`."""
        data = self.data
        if not data:
            self.last_positions = []
            return []
        width, height, bands = self.width, self.height, self.bands()
        self.last_positions = self.cache.get_or_compute(
            data, width, height, lambda: compute_node_positions(data, bands, width, self.config)
        )
        return self.last_positions

    # Resize / pointer events are coalesced; `poll` applies whatever settled.

    def resize(self, width: float, height: float) -> None:
        self.resize_scheduler.trigger(width, height)

    def hover(self, point: DataPoint | None) -> None:
        self.pointer_scheduler.trigger(point)

    def click(self, point: DataPoint) -> SelectionState:
        self.pointer_scheduler.cancel()
        return self.selection.click(point)

    def poll(self) -> bool:
        resized = self.resize_scheduler.poll()
        self.pointer_scheduler.poll()
        return resized

    def _apply_resize(self, width: float, height: float) -> None:
        RadialBands.for_viewport(width, height, self.config.chart)
        self.width = width
        self.height = height
        print(f"[radar] Viewport {width}x{height}; recomputing positions")
        self.positions()

    def _apply_pointer(self, point: DataPoint | None) -> None:
        if point is None:
            self.selection.pointer_out()
        else:
            self.selection.pointer_over(point)

    def view(self, filters: dict[str, Any] | None = None, search: dict[str, Any] | None = None) -> dict[str, Any]:
        positions = self.positions()
        filtered = apply_filters(self.data, filters, search)
        points = [
            replace(p, x=pos["x"], y=pos["y"], size=pos["size"], radius=pos["radius"])
            for p, pos in zip(filtered, positions)
        ]
        return {
            "data": points,
            "journals": list(self.result["journals"]),
            "bibliography": self.result["bibliography"],
            "tooltipContent": self.result["tooltipContent"],
            "labels": label_positions(self.bands(), self.width, self.config.chart),
            "journalOptions": journal_options(self.data),
            "searchOptions": search_options(self.data, filters),
            "yearRange": list(year_range(self.data)),
            "highlight": self.selection.highlight(points, search),
            "controlsDisabled": self.selection.controls_disabled,
        }

    def close(self) -> None:
        self.resize_scheduler.cancel()
        self.pointer_scheduler.cancel()


def build_layout(
    snapshot: dict[str, Any],
    width: float,
    height: float,
    filters: dict[str, Any] | None = None,
    search: dict[str, Any] | None = None,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    session = RadarSession(width, height, config)
    session.load(snapshot)
    view = session.view(filters, search)
    session.close()
    return view

# ---------- Loading / export ----------


def load_snapshot(path: pathlib.Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"snapshot must be a JSON object, got {type(data).__name__}")
    for key in ("papers", "scores"):
        if not isinstance(data.get(key) or [], list):
            raise ValueError(f"snapshot field {key!r} must be a list")
    return data


def layout_summary(view: dict[str, Any], width: float, height: float) -> dict[str, Any]:
    points: list[DataPoint] = view["data"]
    return {
        "generated_at": dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "viewport": {"width": width, "height": height},
        "point_count": len(points),
        "interactive_count": sum(1 for p in points if p.interactive),
        "journals": view["journals"],
        "year_range": view.get("yearRange"),
        "labels": view.get("labels", []),
        "bibliography": view["bibliography"],
        "tooltipContent": view["tooltipContent"],
        "data": [p.to_dict() for p in points],
    }


def write_layout(out_dir: pathlib.Path, summary: dict[str, Any], parquet: bool = False) -> pathlib.Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / "radar_layout.json"
    out_path.write_text(json.dumps(summary, indent=2))
    print(f"[radar] Wrote layout to {out_path}")
    if parquet and summary["data"]:
        table_path = out_dir / "radar_points.parquet"
        pd.DataFrame(summary["data"]).to_parquet(table_path, compression="zstd")
        print(f"[radar] Wrote point table to {table_path}")
    return out_path

# ---------- Main entry ----------


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Rebuild the radar layout JSON from a coded-survey snapshot.")
    parser.add_argument("--snapshot", required=True, help="Snapshot JSON with papers/scores/bibliography/tooltipContent")
    parser.add_argument("--out", default="Output/radar", help="Output directory (default Output/radar)")
    parser.add_argument("--width", type=float, default=1600.0, help="Viewport width in px")
    parser.add_argument("--height", type=float, default=1000.0, help="Viewport height in px")
    parser.add_argument("--years", nargs=2, type=int, default=None, metavar=("MIN", "MAX"), help="Year filter (inclusive)")
    parser.add_argument("--journal", action="append", default=[], help="Journal filter; repeat for several")
    parser.add_argument("--search", default="", help="Show only the paper with this label")
    parser.add_argument("--charge-strength", type=float, default=DEFAULT_CONFIG.forces.charge_strength, help="Mutual repulsion strength")
    parser.add_argument("--collide-factor", type=float, default=DEFAULT_CONFIG.forces.collide_factor, help="Collision radius multiplier")
    parser.add_argument("--parquet", action="store_true", help="Also write the point table as Parquet")
    args = parser.parse_args(argv)

    snapshot_path = pathlib.Path(args.snapshot).expanduser()
    if not snapshot_path.exists():
        raise SystemExit(f"No snapshot found at {snapshot_path}. Export one from the ingestion step first.")
    if args.width <= 0 or args.height <= 0:
        raise SystemExit(f"Viewport must be positive, got {args.width}x{args.height}.")

    try:
        snapshot = load_snapshot(snapshot_path)
    except ValueError as e:
        raise SystemExit(f"Unusable snapshot {snapshot_path}: {e}")

    forces = ForceConfig(charge_strength=args.charge_strength, collide_factor=args.collide_factor)
    config = replace(DEFAULT_CONFIG, forces=forces)
    filters = {"years": list(args.years) if args.years else [], "journals": args.journal}
    search = {"value": args.search}

    print(f"[radar] Loading {len(snapshot.get('scores') or [])} coded rows and {len(snapshot.get('papers') or [])} papers from {snapshot_path}")
    started = time.perf_counter()
    view = build_layout(snapshot, args.width, args.height, filters, search, config)
    print(f"[radar] Positioned {len(view['data'])} points in {time.perf_counter() - started:.2f}s ({forces.iterations} ticks)")

    summary = layout_summary(view, args.width, args.height)
    write_layout(pathlib.Path(args.out).expanduser(), summary, parquet=args.parquet)


if __name__ == "__main__":
    main()
