"""
Coordinate mapper: (topic, category, value, counter) -> anchor position.

Topics split the circle into equal angular sectors (angle 0 at twelve o'clock, growing
clockwise). Inside a sector the 1-5 scope value maps linearly onto the usable angle range
(mirrored for the last topic). Categories are concentric radial bands; a point sits on
its band midpoint, nudged outward by its counter so identical cells fan out.

Scales are rebuilt per layout pass from the viewport; nothing here is mutated in place.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from radar.config import CATEGORIES, DEFAULT_CONFIG, NEW_PAPER, SCOPE_LABELS, SCOPE_LEVELS, TOPICS, ChartConfig
from radar.schema import DataPoint

ANGLE_SLICE = 2 * math.pi / len(TOPICS)

# ---------- Radial bands ----------


@dataclass(frozen=True)
class RadialBands:
    radius: float
    bands: tuple[tuple[float, float], ...]
    categories: tuple[str, ...] = CATEGORIES

    @classmethod
    def for_viewport(cls, width: float, height: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> "RadialBands":
        if width <= 0 or height <= 0:
            raise ValueError(f"viewport must be positive, got {width}x{height}")
        radius = max(0.0, min(width / 2, height / 2) - config.margin)
        ends = [radius * f for f in config.band_fractions]
        starts = [0.0, *ends[:-1]]
        return cls(radius=radius, bands=tuple(zip(starts, ends)))

    def band(self, category: str) -> tuple[float, float]:
        if category not in self.categories:
            raise ValueError(f"unknown category {category!r}")
        return self.bands[self.categories.index(category)]

    def outer(self, category: str) -> float:
        return self.band(category)[1]

    def midpoint(self, category: str) -> float:
        start, end = self.band(category)
        return end - (end - start) / 2

    def band_of(self, r: float) -> str | None:
        for category, (start, end) in zip(self.categories, self.bands):
            if start <= r <= end:
                return category
        return None

# ---------- Angles ----------


def sector_buffer(topic: str, color: str, width: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> float:
    if color != NEW_PAPER and topic == "Consumers":
        factor = config.consumers_buffer_narrow if width < config.narrow_width else config.consumers_buffer_wide
        return config.sector_buffer * factor
    return config.sector_buffer


def sector_range(topic: str, color: str, width: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> tuple[float, float]:
    if topic not in TOPICS:
        raise ValueError(f"unknown topic {topic!r}")
    start = ANGLE_SLICE * TOPICS.index(topic)
    buf = sector_buffer(topic, color, width, config)
    return start + buf, start + ANGLE_SLICE - buf


def value_to_angle(value: float, topic: str, color: str, width: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> float:
    lo_v, hi_v = SCOPE_LEVELS[0], SCOPE_LEVELS[-1]
    if math.isnan(value) or not (lo_v <= value <= hi_v):
        raise ValueError(f"scope value {value} outside {lo_v}-{hi_v}")
    lo, hi = sector_range(topic, color, width, config)
    if topic == TOPICS[-1]:
        lo_v, hi_v = hi_v, lo_v
    t = (value - lo_v) / (hi_v - lo_v)
    return lo + t * (hi - lo)

# ---------- Radii / anchors ----------


def anchor_radius(point: DataPoint, bands: RadialBands, config: ChartConfig = DEFAULT_CONFIG.chart) -> float:
    mid = bands.midpoint(point.category)
    if point.color == NEW_PAPER:
        return mid
    start, end = bands.band(point.category)
    offset = config.counter_base_offsets.get(point.category, 0.0) * (end - start)
    if point.category == CATEGORIES[0] and point.topic == "Consumers":
        offset += config.consumers_inner_offset
    return mid + offset + point.counter * config.counter_step


def polar_to_cartesian(angle: float, r: float) -> tuple[float, float]:
    return r * math.sin(angle), -r * math.cos(angle)


def anchor_for(point: DataPoint, bands: RadialBands, width: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> tuple[float, float]:
    angle = value_to_angle(point.value, point.topic, point.color, width, config)
    return polar_to_cartesian(angle, anchor_radius(point, bands, config))


def node_sizes(counts: Any, config: ChartConfig = DEFAULT_CONFIG.chart) -> np.ndarray:
    """Square-root scale from citation weight to circle radius, clamped to size_range."""
    c = np.clip(np.asarray(counts, dtype=np.float64), config.count_domain[0], config.count_domain[1])
    d0, d1 = np.sqrt(config.count_domain[0]), np.sqrt(config.count_domain[1])
    t = (np.sqrt(c) - d0) / (d1 - d0) if d1 > d0 else np.zeros_like(c)
    lo, hi = config.size_range
    return lo + t * (hi - lo)


def node_size(count: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> float:
    return float(node_sizes([count], config)[0])


def label_positions(bands: RadialBands, width: float, config: ChartConfig = DEFAULT_CONFIG.chart) -> list[dict[str, Any]]:
    """Scope-level label anchors for every topic, on the innermost band midpoint."""
    labels: list[dict[str, Any]] = []
    r = bands.midpoint(CATEGORIES[0])
    for topic in TOPICS:
        for level in SCOPE_LEVELS:
            x, y = polar_to_cartesian(value_to_angle(level, topic, "", width, config), r)
            labels.append({"topic": topic, "value": level, "text": SCOPE_LABELS[level], "x": x, "y": y})
    return labels
