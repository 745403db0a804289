"""
Single-slot memo for relaxed layouts.

The key covers only what changes geometry: each point's entity, category and citation
weight plus the viewport. Opacity, filters and selection never invalidate it.
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Callable

from radar.schema import DataPoint


def layout_signature(points: list[DataPoint], width: float, height: float) -> str:
    payload = {
        "data": [{"entity": p.entity, "category": p.category, "count": p.count} for p in points],
        "width": width,
        "height": height,
    }
    return hashlib.sha1(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


@dataclass
class _Entry:
    signature: str
    positions: list[dict[str, float]]


class LayoutCache:
    """Most-recent-wins cache: one entry, replaced on every miss."""

    def __init__(self) -> None:
        self._entry: _Entry | None = None
        self.hits = 0
        self.misses = 0

    @property
    def signature(self) -> str | None:
        return self._entry.signature if self._entry else None

    def get_or_compute(
        self,
        points: list[DataPoint],
        width: float,
        height: float,
        compute: Callable[[], list[dict[str, float]]],
    ) -> list[dict[str, float]]:
        signature = layout_signature(points, width, height)
        if self._entry is not None and self._entry.signature == signature:
            self.hits += 1
            return self._entry.positions
        self.misses += 1
        positions = compute()
        self._entry = _Entry(signature=signature, positions=positions)
        return positions

    def clear(self) -> None:
        self._entry = None

    def stats(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "cached_points": len(self._entry.positions) if self._entry else 0,
        }
