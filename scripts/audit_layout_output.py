#!/usr/bin/env python3
"""
Audit a radar layout written by radar/rebuild_layout.py.

This is a lightweight sanity check intended to catch common regressions:
- Duplicate entity keys (the join key between data and rendered nodes)
- Counter gaps/repeats within a (topic, category, value) cell
- Scope values outside the 1-5 ordinal domain
- Rendered circles overlapping by more than the tolerance

Usage:
  python3 scripts/audit_layout_output.py [Output/radar/radar_layout.json]
"""

from __future__ import annotations

import json
import os
import sys
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

import numpy as np
from scipy.spatial import cKDTree

LAYOUT_PATH = os.path.join("Output", "radar", "radar_layout.json")


@dataclass(frozen=True)
class Finding:
    kind: str
    entity: str
    detail: str


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def audit_entities(data: list[dict[str, Any]]) -> list[Finding]:
    findings: list[Finding] = []
    seen: set[str] = set()
    for d in data:
        entity = d.get("entity")
        if not isinstance(entity, str) or not entity:
            findings.append(Finding("entity.missing", str(entity), "Missing entity key"))
            continue
        if entity in seen:
            findings.append(Finding("entity.duplicate", entity, "Entity appears more than once"))
        seen.add(entity)
    return findings


def audit_counters(data: list[dict[str, Any]]) -> list[Finding]:
    findings: list[Finding] = []
    cells: dict[tuple[Any, Any, Any], list[int]] = defaultdict(list)
    for d in data:
        cells[(d.get("topic"), d.get("category"), d.get("value"))].append(int(d.get("counter") or 0))
    for (topic, category, value), counters in cells.items():
        expected = list(range(1, len(counters) + 1))
        if sorted(counters) != expected:
            findings.append(Finding("counter.not_contiguous", f"{topic}-{category}-{value}", f"Got {sorted(counters)[:10]}"))
    return findings


def audit_scope(data: list[dict[str, Any]]) -> list[Finding]:
    findings: list[Finding] = []
    for d in data:
        v = d.get("value")
        if not isinstance(v, (int, float)) or not (1 <= float(v) <= 5):
            findings.append(Finding("value.out_of_domain", str(d.get("entity")), f"value={v}"))
    return findings


def audit_overlap(data: list[dict[str, Any]], tolerance: float = 0.5) -> list[Finding]:
    """Flag pairs whose circles overlap by more than `tolerance` px (positions must be present)."""
    placed = [d for d in data if isinstance(d.get("x"), (int, float)) and isinstance(d.get("y"), (int, float))]
    if len(placed) < 2:
        return []
    xy = np.array([[d["x"], d["y"]] for d in placed], dtype=np.float64)
    sizes = np.array([float(d.get("size") or 0.0) for d in placed], dtype=np.float64)
    findings: list[Finding] = []
    for i, j in sorted(cKDTree(xy).query_pairs(r=2 * float(sizes.max()))):
        gap = float(np.hypot(*(xy[i] - xy[j]))) - (sizes[i] + sizes[j])
        if gap < -tolerance:
            findings.append(Finding("layout.overlap", str(placed[i].get("entity")), f"overlaps {placed[j].get('entity')} by {-gap:.2f}px"))
    return findings


def audit_layout(summary: dict[str, Any], tolerance: float = 0.5) -> list[Finding]:
    data = summary.get("data") or []
    findings: list[Finding] = []
    findings.extend(audit_entities(data))
    findings.extend(audit_counters(data))
    findings.extend(audit_scope(data))
    findings.extend(audit_overlap(data, tolerance))
    return findings


def _summarize(findings: Iterable[Finding]) -> str:
    by_kind: dict[str, int] = {}
    total = 0
    for f in findings:
        total += 1
        by_kind[f.kind] = by_kind.get(f.kind, 0) + 1

    lines = []
    lines.append(f"Findings: {total}")
    for kind, count in sorted(by_kind.items(), key=lambda kv: (-kv[1], kv[0])):
        lines.append(f"- {kind}: {count}")
    return "\n".join(lines)


def _write_report(findings: list[Finding], report_dir: str) -> str:
    os.makedirs(report_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    path = os.path.join(report_dir, f"layout_audit_{stamp}.md")

    lines = []
    lines.append("# Radar Layout Audit")
    lines.append("")
    lines.append(f"- Timestamp (UTC): `{stamp}`")
    lines.append(f"- Total findings: `{len(findings)}`")
    lines.append("")
    lines.append("```")
    lines.append(_summarize(findings))
    lines.append("```")
    lines.append("")
    for f in findings[:250]:
        lines.append(f"- **{f.kind}** `{f.entity}`: {f.detail}")
    if len(findings) > 250:
        lines.append(f"- _(truncated; showing first 250 of {len(findings)})_")
    lines.append("")

    with open(path, "w", encoding="utf-8") as fp:
        fp.write("\n".join(lines))
    return path


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = argv[0] if argv else LAYOUT_PATH
    if not os.path.isfile(path):
        print(f"Missing `{path}`; nothing to audit.", file=sys.stderr)
        return 2

    findings = audit_layout(_read_json(path))
    print(_summarize(findings))
    if findings:
        report = _write_report(findings, os.path.join(os.path.dirname(path), "reports"))
        print(f"Report written: {report}")

    # Non-zero exit if any issues found.
    return 1 if findings else 0


if __name__ == "__main__":
    raise SystemExit(main())
