"""
Filter recomputation for rendered points.

Filter state is owned by the caller: {"years": [min, max], "journals": [...]} plus a
{"value": "<label>"} search term. A point passes when its year is in range, its source
title is among the selected journals (if any) and its label equals the search (if any).
"""
from __future__ import annotations

import math
from dataclasses import replace
from typing import Any

from radar.config import DEFAULT_YEAR_RANGE, FILTERED_OPACITY
from radar.schema import DataPoint


def _valid_years(points: list[DataPoint]) -> list[float]:
    return [p.year for p in points if p.year is not None and not math.isnan(p.year)]


def year_range(points: list[DataPoint]) -> tuple[int, int]:
    years = _valid_years(points)
    if not years:
        return DEFAULT_YEAR_RANGE
    return int(min(years)), int(max(years))


def _bounds(filters: dict[str, Any] | None, points: list[DataPoint]) -> tuple[float, float]:
    years = (filters or {}).get("years") or []
    if len(years) >= 2:
        return float(years[0]), float(years[-1])
    return tuple(float(y) for y in year_range(points))  # type: ignore[return-value]


def _matches_filters(point: DataPoint, lo: float, hi: float, journals: list[str]) -> bool:
    if point.year is None or math.isnan(point.year):
        return False
    if not (lo <= point.year <= hi):
        return False
    return not journals or point.sourcetitle in journals


def point_passes(point: DataPoint, filters: dict[str, Any] | None, search: dict[str, Any] | None = None, bounds: tuple[float, float] | None = None) -> bool:
    lo, hi = bounds if bounds is not None else _bounds(filters, [point])
    journals = list((filters or {}).get("journals") or [])
    term = (search or {}).get("value") or ""
    if not _matches_filters(point, lo, hi, journals):
        return False
    return not term or point.label == term


def apply_filters(points: list[DataPoint], filters: dict[str, Any] | None, search: dict[str, Any] | None = None) -> list[DataPoint]:
    """Return copies of `points` with `interactive`/`opacity` recomputed; inputs are untouched."""
    if not points:
        return []
    bounds = _bounds(filters, points)
    out: list[DataPoint] = []
    for p in points:
        ok = point_passes(p, filters, search, bounds=bounds)
        out.append(replace(p, interactive=ok, opacity=p.opacity if ok else FILTERED_OPACITY))
    return out


def journal_options(points: list[DataPoint]) -> list[str]:
    return sorted({p.sourcetitle for p in points})


def search_options(points: list[DataPoint], filters: dict[str, Any] | None) -> list[str]:
    if not points:
        return []
    lo, hi = _bounds(filters, points)
    journals = list((filters or {}).get("journals") or [])
    labels = {p.label for p in points if _matches_filters(p, lo, hi, journals)}
    return sorted(labels, key=lambda s: (s.casefold(), s))
