"""
Data model for the radar chart: paper records, flat/aggregated data points and
the alias normalisation applied to coded flag names.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

from radar.config import CATEGORY_ALIASES, SECTION_ALIASES, TOPIC_ALIASES

# ---------- Normalisation ----------


def clean_topic(fragment: str) -> str:
    return TOPIC_ALIASES.get(fragment, fragment)


def clean_category(fragment: str) -> str:
    return CATEGORY_ALIASES.get(fragment, fragment)


def clean_section(fragment: str) -> str:
    return SECTION_ALIASES.get(fragment, fragment)


def make_entity(unit_id: str, topic: str, category: str) -> str:
    return f"{unit_id}-{topic}-{category}"


def to_number(value: Any) -> float:
    """Numeric coercion that yields NaN instead of raising (blank strings included)."""
    if value is None or isinstance(value, bool):
        return float("nan")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return float("nan")
    try:
        return float(text)
    except ValueError:
        return float("nan")


def _pipes_to_commas(value: Any) -> str:
    return str(value or "").replace("|", ",")

# ---------- Records ----------


@dataclass
class PaperRecord:
    code: str
    authors: str
    abstract: str
    title: str
    link: str
    source_title: str
    year: float
    source_group: str
    citation_count: float

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "PaperRecord":
        if not isinstance(raw, dict):
            raise ValueError(f"paper record must be an object, got {type(raw).__name__}")
        code = raw.get("Code")
        if code is None or str(code).strip() == "":
            raise ValueError("paper record has no Code")
        return cls(
            code=str(code),
            authors=_pipes_to_commas(raw.get("Authors")),
            abstract=_pipes_to_commas(raw.get("Abstract")),
            title=_pipes_to_commas(raw.get("Title")),
            link=str(raw.get("Link") or ""),
            source_title=str(raw.get("Source title") or ""),
            year=to_number(raw.get("Year")),
            source_group=str(raw.get("sourceFile") or ""),
            citation_count=to_number(raw.get("citationCount")),
        )


@dataclass
class DataPoint:
    unit_id: str
    topic: str
    category: str
    value: float
    entity: str = ""
    count: float = 0.0
    color: str = ""
    counter: int = 0
    label: str = ""
    authors: str = ""
    abstract: str = ""
    title: str = ""
    url: str = ""
    sourcetitle: str = ""
    year: float | None = None
    opacity: float = 1.0
    interactive: bool = True
    # Populated by the coordinate mapper / relaxer.
    x: float | None = None
    y: float | None = None
    size: float | None = None
    radius: float | None = None

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        year = out.get("year")
        if isinstance(year, float) and math.isnan(year):
            out["year"] = None
        elif isinstance(year, float) and year.is_integer():
            out["year"] = int(year)
        return out
