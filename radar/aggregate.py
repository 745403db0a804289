"""
Turn coded survey rows into aggregated radar data points.

Pipeline:
- normalize_coded_row: survey export headers -> short flag codes, Yes/No -> 1/0.
- flatten_row(s): one flat point per coded flag equal to 1.
- aggregate_points: group by (unit, topic, category), mean scope value, join paper metadata.
- classify_journals / sort_by_source_title / assign_counters: colour classes and
  deterministic counters for points that share a (topic, category, value) cell.
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Any, Iterable

import pandas as pd

from radar.config import (
    CATEGORIES,
    COLUMN_MAPPING,
    DEFAULT_CITATION_WEIGHT,
    FLAG_KEYS,
    NEW_PAPER,
    NEW_SOURCE_GROUP,
    OTHER_JOURNALS,
    PRIMARY_OPACITY,
    PRIMARY_SOURCE_GROUP,
    SCOPE_KEY,
    SCOPE_LEVELS,
    SECONDARY_OPACITY,
    TOP_JOURNALS,
    TOPICS,
    UNIT_KEY,
)
from radar.schema import DataPoint, PaperRecord, clean_category, clean_topic, make_entity, to_number

# ---------- Row flattening ----------


def normalize_coded_row(row: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in row.items():
        if value == "Yes":
            value = 1
        elif value == "No":
            value = 0
        out[COLUMN_MAPPING.get(key, key)] = value
    return out


def _flag_is_set(value: Any) -> bool:
    if isinstance(value, str) and value.strip() == "Yes":
        return True
    return to_number(value) == 1.0


def flatten_row(row: dict[str, Any], keys: Iterable[str] = FLAG_KEYS) -> list[DataPoint]:
    unit_id = row.get(UNIT_KEY)
    scope = to_number(row.get(SCOPE_KEY))
    points: list[DataPoint] = []
    for key in keys:
        if not _flag_is_set(row.get(key)):
            continue
        topic_part, _, category_part = key.partition("_")
        points.append(
            DataPoint(
                unit_id=str(unit_id),
                topic=clean_topic(topic_part),
                category=clean_category(category_part),
                value=scope,
            )
        )
    return points


def flatten_rows(rows: Iterable[dict[str, Any]], keys: Iterable[str] = FLAG_KEYS) -> list[DataPoint]:
    keys = tuple(keys)
    flat: list[DataPoint] = []
    for row in rows:
        flat.extend(flatten_row(row, keys))
    return flat

# ---------- Aggregation ----------


def index_papers(papers: Iterable[dict[str, Any]]) -> dict[str, PaperRecord]:
    """First record per Code wins; records that cannot be parsed are skipped."""
    index: dict[str, PaperRecord] = {}
    skipped = 0
    for raw in papers:
        try:
            record = PaperRecord.from_raw(raw)
        except ValueError:
            skipped += 1
            continue
        index.setdefault(record.code, record)
    if skipped:
        print(f"[radar] Skipped {skipped} unparseable paper record(s)")
    return index


def citation_weight(count: float, default: int = DEFAULT_CITATION_WEIGHT) -> float:
    # Zero counts fall back to the default weight as well.
    if math.isnan(count) or count == 0:
        return float(default)
    return float(count)


def in_scope_domain(value: float) -> bool:
    return not math.isnan(value) and SCOPE_LEVELS[0] <= value <= SCOPE_LEVELS[-1]


def aggregate_points(
    flat: list[DataPoint],
    papers: Iterable[dict[str, Any]] | dict[str, PaperRecord],
    primary_source_group: str = PRIMARY_SOURCE_GROUP,
    new_source_group: str = NEW_SOURCE_GROUP,
    default_weight: int = DEFAULT_CITATION_WEIGHT,
) -> list[DataPoint]:
    """
    Group flat points by (unit, topic, category) and build one DataPoint per group.

    Groups keep first-seen nested order (unit, then topic, then category). A group is dropped
    (and logged) when its unit has no paper record, when its topic/category is not one of the
    nine chart cells, or when its mean scope value is missing or outside the 1-5 ordinal domain.
    """
    index = papers if isinstance(papers, dict) else index_papers(papers)

    groups: dict[str, dict[str, dict[str, list[float]]]] = {}
    for p in flat:
        groups.setdefault(p.unit_id, {}).setdefault(p.topic, {}).setdefault(p.category, []).append(p.value)

    out: list[DataPoint] = []
    for unit_id, topics in groups.items():
        paper = index.get(unit_id)
        if paper is None:
            n = sum(len(cats) for cats in topics.values())
            print(f"[radar] Dropped {n} group(s) for unit {unit_id}: no paper record")
            continue
        weight = citation_weight(paper.citation_count, default_weight)
        for topic, categories in topics.items():
            for category, values in categories.items():
                if topic not in TOPICS or category not in CATEGORIES:
                    print(f"[radar] Dropped {make_entity(unit_id, topic, category)}: not a chart cell")
                    continue
                value = float(pd.Series(values, dtype="float64").mean())
                if not in_scope_domain(value):
                    print(f"[radar] Dropped {make_entity(unit_id, topic, category)}: scope value {value} outside 1-5")
                    continue
                out.append(
                    DataPoint(
                        unit_id=unit_id,
                        topic=topic,
                        category=category,
                        value=value,
                        entity=make_entity(unit_id, topic, category),
                        count=weight,
                        color=NEW_PAPER if paper.source_group == new_source_group else "",
                        label=paper.authors,
                        authors=paper.authors,
                        abstract=paper.abstract,
                        title=paper.title,
                        url=paper.link,
                        sourcetitle=paper.source_title,
                        year=paper.year,
                        opacity=PRIMARY_OPACITY if paper.source_group == primary_source_group else SECONDARY_OPACITY,
                    )
                )
    return out

# ---------- Journals / counters ----------


def top_journals(points: list[DataPoint], top_n: int = TOP_JOURNALS) -> list[str]:
    # Counter.most_common is a stable sort, so ties keep discovery order.
    counts = Counter(p.sourcetitle for p in points)
    return [title for title, _ in counts.most_common(top_n)]


def classify_journals(points: list[DataPoint], top_n: int = TOP_JOURNALS) -> list[str]:
    top = top_journals(points, top_n)
    distinguished = set(top)
    for p in points:
        if p.color == NEW_PAPER:
            continue
        p.color = p.sourcetitle if p.sourcetitle in distinguished else OTHER_JOURNALS
    return top


def sort_by_source_title(points: list[DataPoint]) -> list[DataPoint]:
    return sorted(points, key=lambda p: p.sourcetitle)


def assign_counters(points: list[DataPoint]) -> list[DataPoint]:
    next_counter: dict[tuple[str, str, float], int] = {}
    for p in points:
        key = (p.topic, p.category, p.value)
        p.counter = next_counter.get(key, 1)
        next_counter[key] = p.counter + 1
    return points

# ---------- Snapshot transform ----------


def empty_result(snapshot: dict[str, Any] | None = None) -> dict[str, Any]:
    snapshot = snapshot or {}
    return {
        "data": [],
        "journals": [],
        "bibliography": list(snapshot.get("bibliography") or []),
        "tooltipContent": dict(snapshot.get("tooltipContent") or {}),
    }


def transform_snapshot(snapshot: dict[str, Any], top_n: int = TOP_JOURNALS) -> dict[str, Any]:
    """
    {papers, scores, bibliography, tooltipContent} -> {data, journals, bibliography, tooltipContent}.
    """
    scores = snapshot.get("scores") or []
    papers = snapshot.get("papers") or []
    if not scores or not papers:
        return empty_result(snapshot)

    rows = [normalize_coded_row(row) for row in scores if isinstance(row, dict)]
    flat = flatten_rows(rows)
    points = aggregate_points(flat, papers)
    if not points:
        return empty_result(snapshot)

    top = classify_journals(points, top_n)
    points = assign_counters(sort_by_source_title(points))
    print(f"[radar] Aggregated {len(points)} points from {len(rows)} coded rows ({len(top)} distinguished journals)")
    return {
        "data": points,
        "journals": [*top, OTHER_JOURNALS],
        "bibliography": list(snapshot.get("bibliography") or []),
        "tooltipContent": dict(snapshot.get("tooltipContent") or {}),
    }
