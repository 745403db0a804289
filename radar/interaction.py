"""
Interaction plumbing for the rendered radar: a coalescing scheduler for resize/pointer
bursts and an explicit selection state machine (Idle / Hovered / Selected).
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from radar.config import FILTERED_OPACITY, SCOPE_LABELS
from radar.schema import DataPoint

# ---------- Coalescing scheduler ----------


class CoalescingScheduler:
    """
    Holds at most one pending trigger. Each trigger replaces the previous payload and restarts
    the quiet period; `poll` fires the latest payload once `delay` seconds have passed without
    a new trigger. No threads: the owner calls `poll` from its own loop.
    """

    def __init__(self, delay: float, callback: Callable[..., Any], clock: Callable[[], float] = time.monotonic):
        self.delay = float(delay)
        self.callback = callback
        self.clock = clock
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._deadline = 0.0
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        self._pending = (args, kwargs)
        self._deadline = self.clock() + self.delay

    def poll(self) -> bool:
        if self._pending is None or self.clock() < self._deadline:
            return False
        self._fire()
        return True

    def flush(self) -> bool:
        if self._pending is None:
            return False
        self._fire()
        return True

    def cancel(self) -> None:
        self._pending = None

    def _fire(self) -> None:
        args, kwargs = self._pending  # type: ignore[misc]
        self._pending = None
        self.fired += 1
        self.callback(*args, **kwargs)

# ---------- Selection state machine ----------

IDLE = "idle"
HOVERED = "hovered"
SELECTED = "selected"


@dataclass(frozen=True)
class SelectionState:
    kind: str = IDLE
    entity: str | None = None


class SelectionMachine:
    """
    Transitions (non-interactive points are ignored):
      Idle/Hovered --over(e)--> Hovered(e)      Selected --over--> unchanged
      Hovered --out--> Idle                     Selected --out--> unchanged
      any --click(e)--> Selected(e)             Selected(e) --click(e)--> Idle
    """

    def __init__(self) -> None:
        self.state = SelectionState()

    def pointer_over(self, point: DataPoint) -> SelectionState:
        if point.interactive and self.state.kind != SELECTED:
            self.state = SelectionState(HOVERED, point.entity)
        return self.state

    def pointer_out(self) -> SelectionState:
        if self.state.kind != SELECTED:
            self.state = SelectionState()
        return self.state

    def click(self, point: DataPoint) -> SelectionState:
        if not point.interactive:
            return self.state
        if self.state.kind == SELECTED and self.state.entity == point.entity:
            self.state = SelectionState()
        else:
            self.state = SelectionState(SELECTED, point.entity)
        return self.state

    def reset(self) -> SelectionState:
        self.state = SelectionState()
        return self.state

    @property
    def controls_disabled(self) -> bool:
        return self.state.kind == SELECTED

    def focused(self, points: list[DataPoint]) -> DataPoint | None:
        if self.state.entity is None:
            return None
        return next((p for p in points if p.entity == self.state.entity), None)

    def highlight(self, points: list[DataPoint], search: dict[str, Any] | None = None) -> dict[str, float]:
        """Entity -> opacity. The focused paper's nodes (or only the focused node while searching) stay lit."""
        focus = self.focused(points)
        if focus is None:
            return {p.entity: p.opacity for p in points}
        if (search or {}).get("value"):
            lit = {focus.entity}
        else:
            lit = {p.entity for p in points if p.unit_id == focus.unit_id}
        return {p.entity: 1.0 if p.entity in lit else FILTERED_OPACITY for p in points}

# ---------- Tooltip ----------


def relabel_category(point: DataPoint) -> str:
    if point.category != "Self-Profit-Growth":
        return point.category
    return {"Institutions": "Growth", "Businesses": "Profit", "Consumers": "Self"}.get(point.topic, point.category)


def tooltip_lines(point: DataPoint) -> list[str]:
    value = point.value
    scope = SCOPE_LABELS.get(int(value)) if float(value).is_integer() else None
    return [
        f"Paper: {point.label}",
        f"Topic: {point.topic}",
        f"Value Orientation: {relabel_category(point)}",
        f"Scope of Sustainability: {scope or round(value, 2)}",
    ]
