"""
Layout relaxer: a fixed-length particle simulation that removes overlaps between nodes
while keeping each one close to its anchor.

Every particle starts on its anchor. Per tick the forces below are applied in order, each
adding to the particle velocities, then velocities decay and positions integrate:

- charge_force:  constant mutual repulsion (inverse-distance, exact pairwise sum)
- axis_force:    per-axis spring back to the anchor (x and y independently)
- radial_force:  weaker spring back to the anchor's distance from the chart centre
- collide_force: pairwise overlap resolution using the scaled node radius

The alpha schedule decays geometrically from 1 to alpha_min, so the tick count is known
up front (ForceConfig.iterations) and the run is synchronous and deterministic.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from scipy.spatial import cKDTree

from radar.config import DEFAULT_CONFIG, ForceConfig, LayoutConfig
from radar.coords import RadialBands, anchor_for, node_sizes
from radar.schema import DataPoint

JIGGLE = 1e-6

# ---------- State ----------


@dataclass
class ParticleState:
    x: np.ndarray
    y: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    anchor_x: np.ndarray
    anchor_y: np.ndarray
    anchor_r: np.ndarray
    collide_r: np.ndarray

    @classmethod
    def from_anchors(cls, anchors: np.ndarray, sizes: np.ndarray, radii: np.ndarray | None, collide_factor: float) -> "ParticleState":
        anchors = np.asarray(anchors, dtype=np.float64).reshape(-1, 2)
        ax = anchors[:, 0].copy()
        ay = anchors[:, 1].copy()
        n = ax.shape[0]
        if radii is None:
            radii = np.hypot(ax, ay)
        return cls(
            x=ax.copy(),
            y=ay.copy(),
            vx=np.zeros(n, dtype=np.float64),
            vy=np.zeros(n, dtype=np.float64),
            anchor_x=ax,
            anchor_y=ay,
            anchor_r=np.asarray(radii, dtype=np.float64),
            collide_r=np.asarray(sizes, dtype=np.float64) * collide_factor,
        )

    def __len__(self) -> int:
        return int(self.x.shape[0])

# ---------- Forces ----------


def charge_force(state: ParticleState, alpha: float, config: ForceConfig) -> None:
    if len(state) < 2:
        return
    dx = state.x[None, :] - state.x[:, None]
    dy = state.y[None, :] - state.y[:, None]
    l2 = dx * dx + dy * dy
    dmin2 = config.distance_min * config.distance_min
    l2 = np.where(l2 < dmin2, np.sqrt(dmin2 * l2), l2)
    with np.errstate(divide="ignore", invalid="ignore"):
        w = np.where(l2 > 0, config.charge_strength * alpha / l2, 0.0)
    np.fill_diagonal(w, 0.0)
    state.vx += (dx * w).sum(axis=1)
    state.vy += (dy * w).sum(axis=1)


def axis_force(state: ParticleState, alpha: float, config: ForceConfig) -> None:
    state.vx += (state.anchor_x - state.x) * config.axis_strength * alpha
    state.vy += (state.anchor_y - state.y) * config.axis_strength * alpha


def radial_force(state: ParticleState, alpha: float, config: ForceConfig) -> None:
    dx = np.where(state.x == 0, JIGGLE, state.x)
    dy = state.y
    r = np.hypot(dx, dy)
    k = (state.anchor_r - r) * config.radial_strength * alpha / r
    state.vx += dx * k
    state.vy += dy * k


def _jiggle(i: int, j: int) -> float:
    # Fixed, index-derived nudge for exactly coincident particles.
    return JIGGLE if (i + j) % 2 == 0 else -JIGGLE


def collide_force(state: ParticleState, alpha: float, config: ForceConfig) -> None:
    """
    Resolve overlaps on predicted positions (x + vx). Pairs are visited in (i, j) order with
    i < j; the push is split between the two particles by their squared radii.
    """
    n = len(state)
    if n < 2:
        return
    px = state.x + state.vx
    py = state.y + state.vy
    reach = 2.0 * float(state.collide_r.max())
    pairs = cKDTree(np.column_stack([px, py])).query_pairs(r=reach, output_type="ndarray")
    if len(pairs) == 0:
        return
    pairs = pairs[np.lexsort((pairs[:, 1], pairs[:, 0]))]

    x = state.x.tolist()
    y = state.y.tolist()
    vx = state.vx.tolist()
    vy = state.vy.tolist()
    radii = state.collide_r.tolist()

    current = -1
    xi = yi = ri = ri2 = 0.0
    for i, j in pairs.tolist():
        if i != current:
            current = i
            xi = x[i] + vx[i]
            yi = y[i] + vy[i]
            ri = radii[i]
            ri2 = ri * ri
        rj = radii[j]
        rr = ri + rj
        dx = xi - x[j] - vx[j]
        dy = yi - y[j] - vy[j]
        l = dx * dx + dy * dy
        if l >= rr * rr:
            continue
        if dx == 0:
            dx = _jiggle(i, j)
            l += dx * dx
        if dy == 0:
            dy = _jiggle(j, i)
            l += dy * dy
        l = math.sqrt(l)
        l = (rr - l) / l * config.collide_strength
        dx *= l
        dy *= l
        share = (rj * rj) / (ri2 + rj * rj)
        vx[i] += dx * share
        vy[i] += dy * share
        vx[j] -= dx * (1 - share)
        vy[j] -= dy * (1 - share)

    state.vx = np.asarray(vx, dtype=np.float64)
    state.vy = np.asarray(vy, dtype=np.float64)


Force = Callable[[ParticleState, float, ForceConfig], None]
DEFAULT_FORCES: tuple[Force, ...] = (charge_force, axis_force, radial_force, collide_force)

# ---------- Simulation ----------


def tick(state: ParticleState, alpha: float, config: ForceConfig, forces: tuple[Force, ...] = DEFAULT_FORCES) -> None:
    for force in forces:
        force(state, alpha, config)
    keep = 1.0 - config.velocity_decay
    state.vx *= keep
    state.vy *= keep
    state.x += state.vx
    state.y += state.vy


def relax(
    anchors: Any,
    sizes: Any,
    radii: Any | None = None,
    config: ForceConfig = DEFAULT_CONFIG.forces,
    forces: tuple[Force, ...] = DEFAULT_FORCES,
) -> list[dict[str, float]]:
    """
    Run the fixed-length simulation and return [{x, y, size}] in input order.

    anchors: (n, 2) anchor positions; sizes: (n,) visual radii; radii: optional (n,) target
    distances from the centre (defaults to the anchors' own distance).
    """
    sizes = np.asarray(sizes, dtype=np.float64).reshape(-1)
    n = sizes.shape[0]
    if n == 0:
        return []
    anchors = np.asarray(anchors, dtype=np.float64).reshape(-1, 2)
    if n == 1:
        return [{"x": float(anchors[0, 0]), "y": float(anchors[0, 1]), "size": float(sizes[0])}]

    state = ParticleState.from_anchors(anchors, sizes, radii, config.collide_factor)
    alpha = 1.0
    for _ in range(config.iterations):
        alpha += (0.0 - alpha) * config.alpha_decay
        tick(state, alpha, config, forces)

    return [
        {"x": float(x), "y": float(y), "size": float(s)}
        for x, y, s in zip(state.x.tolist(), state.y.tolist(), sizes.tolist())
    ]


def anchor_table(points: list[DataPoint], bands: RadialBands, width: float, config: LayoutConfig = DEFAULT_CONFIG) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    anchors = np.array([anchor_for(p, bands, width, config.chart) for p in points], dtype=np.float64).reshape(-1, 2)
    sizes = node_sizes([p.count for p in points], config.chart)
    radii = np.hypot(anchors[:, 0], anchors[:, 1])
    return anchors, sizes, radii


def compute_node_positions(points: list[DataPoint], bands: RadialBands, width: float, config: LayoutConfig = DEFAULT_CONFIG) -> list[dict[str, float]]:
    """Anchor every point for this viewport and relax; returns [{x, y, size, radius}] aligned with `points`."""
    if not points:
        return []
    anchors, sizes, radii = anchor_table(points, bands, width, config)
    positions = relax(anchors, sizes, radii, config.forces)
    for pos, r in zip(positions, radii.tolist()):
        pos["radius"] = float(r)
    return positions
