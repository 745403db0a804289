"""
Named configuration for the A-VO-S radar layout.

Enumerations and alias tables are plain module constants. Visual tuning knobs
(sector buffers, counter nudges, force strengths) live on frozen dataclasses so
a layout pass can be run with an explicit, immutable parameter set.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field

# ---------- Enumerations ----------

TOPICS: tuple[str, ...] = ("Consumers", "Businesses", "Institutions")
CATEGORIES: tuple[str, ...] = ("Self-Profit-Growth", "Society", "Environment")
SCOPE_LEVELS: tuple[int, ...] = (1, 2, 3, 4, 5)

SCOPE_LABELS: dict[int, str] = {
    1: "Very narrow",
    2: "Narrow",
    3: "Moderate",
    4: "Broad",
    5: "Very broad",
}

# Coded flags, "<topic fragment>_<category fragment>".
FLAG_KEYS: tuple[str, ...] = (
    "Cons_Self", "Cons_Soc", "Cons_Env",
    "Busi_Prof", "Busi_Soc", "Busi_Env",
    "Inst_Gro", "Inst_Soc", "Inst_Env",
)
SCOPE_KEY = "SP"
UNIT_KEY = "Code"

# ---------- Alias tables ----------

TOPIC_ALIASES: dict[str, str] = {
    "Bus": "Businesses",
    "Busi": "Businesses",
    "Ins": "Institutions",
    "Inst": "Institutions",
    "Con": "Consumers",
    "Cons": "Consumers",
}

CATEGORY_ALIASES: dict[str, str] = {
    "Self": "Self-Profit-Growth",
    "Prof": "Self-Profit-Growth",
    "Gro": "Self-Profit-Growth",
    "Grow": "Self-Profit-Growth",
    "Gro2": "Self-Profit-Growth",
    "Gro3": "Self-Profit-Growth",
    "Growth": "Self-Profit-Growth",
    "Soc": "Society",
    "Env": "Environment",
    "SP": "Sustainability",
    "Oth": "Other",
}

SECTION_ALIASES: dict[str, str] = {
    "T": "Title",
    "A": "Abstract",
    "I": "Introduction",
    "D": "Discussion",
    "C": "Conclusion",
    "O": "Overall",
}

# Survey export headers -> short codes used by the flattener.
COLUMN_MAPPING: dict[str, str] = {
    "Are Consumers addressed as Actors in this research?": "Act_Cons",
    "Are Consumers Self-Oriented in this article?": "Cons_Self",
    "Are Consumers Societally-Oriented in this article?": "Cons_Soc",
    "Are Consumers Environmentally-Oriented in this article?": "Cons_Env",
    "Are Businesses addressed as Actors in this research?": "Act_Busi",
    "Are Businesses Profit-Oriented in this article?": "Busi_Prof",
    "Are Businesses Societally-Oriented in this article?": "Busi_Soc",
    "Are Businesses Environmentally-Oriented in this article?": "Busi_Env",
    "Are Institutions addressed as Actors in this research?": "Act_Inst",
    "Are Institutions Growth-Oriented in this article?": "Inst_Gro",
    "Are Institutions Societally-Oriented in this article?": "Inst_Soc",
    "Are Institutions Environmentally-Oriented in this article?": "Inst_Env",
    "What is the Scope of Sustainability in this article?": "SP",
}

# ---------- Classification ----------

OTHER_JOURNALS = "Other journals"
NEW_PAPER = "New paper"
TOP_JOURNALS = 8
DEFAULT_CITATION_WEIGHT = 10
PRIMARY_SOURCE_GROUP = "SustainabMarketing"
NEW_SOURCE_GROUP = "NewPaper"
PRIMARY_OPACITY = 1.0
SECONDARY_OPACITY = 0.5
FILTERED_OPACITY = 0.1
DEFAULT_YEAR_RANGE: tuple[int, int] = (2002, 2024)

# ---------- Tunable layout parameters ----------


@dataclass(frozen=True)
class ChartConfig:
    margin: float = 60.0
    band_fractions: tuple[float, float, float] = (0.55, 0.80, 1.0)
    # Angular clearance at both edges of a topic sector, radians.
    sector_buffer: float = 0.12
    narrow_width: float = 1800.0
    consumers_buffer_narrow: float = 1.8
    consumers_buffer_wide: float = 1.15
    # Radial fan-out of same-valued points: counter * counter_step px, starting
    # from a per-category base offset (fraction of the band width).
    counter_step: float = 1.0
    counter_base_offsets: dict[str, float] = field(
        default_factory=lambda: {
            "Self-Profit-Growth": 0.0,
            "Society": -0.25,
            "Environment": -0.25,
        }
    )
    consumers_inner_offset: float = -10.0
    size_range: tuple[float, float] = (4.0, 16.0)
    count_domain: tuple[float, float] = (0.0, 3000.0)


@dataclass(frozen=True)
class ForceConfig:
    charge_strength: float = -30.0
    axis_strength: float = 0.9
    radial_strength: float = 0.1
    collide_factor: float = 1.1
    collide_strength: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - 0.001 ** (1.0 / 300.0)
    velocity_decay: float = 0.4
    distance_min: float = 1.0

    @property
    def iterations(self) -> int:
        return int(math.ceil(math.log(self.alpha_min) / math.log(1.0 - self.alpha_decay)))


@dataclass(frozen=True)
class LayoutConfig:
    chart: ChartConfig = field(default_factory=ChartConfig)
    forces: ForceConfig = field(default_factory=ForceConfig)
    resize_delay: float = 0.25
    pointer_delay: float = 0.05


DEFAULT_CONFIG = LayoutConfig()
