"""
Elemental Power Scorer (五行 / 十神 strength distribution).

Scores a four-pillar chart into:
- raw per-element accumulators
- element percentages (integers, sum 100)
- ten-god category percentages (integers, sum 100)
- subtype values reconciled exactly to their category
- a per-stem breakdown in tenths, reconciled to the category totals
- support flags 得令 / 得地 / 得勢

Pipeline:
    1. base positional weights (stem / branch per slot)
    2. rootedness (通根) from the root-rate table
    3. emergence (透出): branch weight projected onto matching stems nearby
    4. neighbour multiplier per slot by element relation
    5. harmony overlay (optional)
    6. luck overlay: decade / year / month / day pillars by view tab
    7-11. categories, subtypes, element view, per-stem breakdown
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from fourpillars.relations import harmony_overlay
from fourpillars.tables import (
    BRANCH_MAIN_STEM,
    ELEMENTS,
    HEAVENLY_STEMS,
    PILLAR_POSITIONS,
    PRODUCED_BY,
    ROOT_RATES,
    Element,
    HiddenMode,
    hidden_mode as coerce_hidden_mode,
    parse_chart,
    parse_pillar,
    parse_stem,
)
from fourpillars.ten_gods import (
    CATEGORIES,
    SUBTYPE_PAIRS,
    category_of_element,
    element_of_category,
    element_relationship,
)

logger = logging.getLogger(__name__)


# ============================================================
# CONFIGURATION
# ============================================================

class Criteria(Enum):
    MODERN = "modern"
    CLASSIC = "classic"


class LuckTab(Enum):
    NATAL = "natal"    # 原局
    DECADE = "decade"  # 大運
    YEAR = "year"      # 歲運
    MONTH = "month"    # 月運
    DAY = "day"        # 日運


# (stem weight, branch weight) per slot
WEIGHTS = {
    Criteria.MODERN: {
        "year": (10, 10), "month": (15, 30), "day": (25, 25), "hour": (15, 15),
    },
    Criteria.CLASSIC: {
        "year": (10, 10), "month": (15, 45), "day": (25, 40), "hour": (15, 12.5),
    },
}

# Emergence fraction by slot distance: (same polarity, different polarity)
PROJECTION = {0: (1.0, 0.8), 1: (0.6, 0.5), 2: (0.3, 0.2)}

# Multiplier adjustment by the relation of a slot's element to a neighbour's
RELATION_ADJUST = {
    "same": 0.15,
    "produces_me": 0.10,
    "i_produce": -0.15,
    "i_control": -0.20,
    "controls_me": -0.25,
}

# Luck overlay share of the running total, per scope
LUCK_PCT = {"decade": 0.04, "year": 0.03, "month": 0.02, "day": 0.01}

TAB_SCOPES = {
    LuckTab.NATAL: (),
    LuckTab.DECADE: ("decade",),
    LuckTab.YEAR: ("decade", "year"),
    LuckTab.MONTH: ("decade", "year", "month"),
    LuckTab.DAY: ("decade", "year", "month", "day"),
}

MOMENTUM_THRESHOLD = 30


# ============================================================
# ROUNDING
# ============================================================

def round_half_up(x: float, digits: int = 0) -> float:
    """Round half toward +infinity, e.g. 2.5 → 3, -2.5 → -2."""
    scale = 10 ** digits
    value = math.floor(x * scale + 0.5) / scale
    return int(value) if digits == 0 else value


def round1(x: float) -> float:
    return round_half_up(x, 1)


def largest_remainder(weights, total: int) -> list[int]:
    """
    Split an integer total proportionally to weights.

    Each share is floored, then the leftover units go one by one to the
    largest fractional remainders (ties in list order). Non-positive weight
    sums split evenly.
    """
    n = len(weights)
    if n == 0:
        return []
    s = sum(weights)
    if s <= 0:
        weights = [1] * n
        s = n
    exact = [total * w / s for w in weights]
    base = [math.floor(x) for x in exact]
    left = total - sum(base)
    order = sorted(range(n), key=lambda i: -(exact[i] - base[i]))
    for i in order[:left]:
        base[i] += 1
    return base


def normalize_to_100(values) -> list[int]:
    """Integer percentages summing to exactly 100 (all zeros when the input sums to zero)."""
    if sum(values) <= 0:
        return [0] * len(values)
    return largest_remainder(list(values), 100)


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class SupportFlags:
    month: bool = False     # 得令: month branch supports the Day Master
    ground: bool = False    # 得地: day branch supports the Day Master
    momentum: bool = False  # 得勢: peer element raw score ≥ 30

    def to_dict(self):
        return {"得令": self.month, "得地": self.ground, "得勢": self.momentum}


@dataclass(frozen=True)
class LuckOverlay:
    decade: object = None
    year: object = None
    month: object = None
    day: object = None


@dataclass(frozen=True)
class PowerResult:
    element_scores: dict
    element_percent: dict
    category_percent: dict
    subtype_percent: dict
    per_stem: dict
    per_stem_raw: dict = field(default_factory=dict)
    support: SupportFlags = SupportFlags()
    total: float = 0.0
    day_stem: Optional[object] = None
    harmony: tuple = ()

    @property
    def is_empty(self) -> bool:
        return self.total == 0 and not any(self.category_percent.values())

    def to_dict(self):
        return {
            "day_stem": self.day_stem.chinese if self.day_stem else None,
            "element_scores": {el.value: round(v, 2) for el, v in self.element_scores.items()},
            "element_percent": {el.value: v for el, v in self.element_percent.items()},
            "category_percent": {c.value: v for c, v in self.category_percent.items()},
            "subtype_percent": {g.value: v for g, v in self.subtype_percent.items()},
            "per_stem": {s.chinese: v for s, v in self.per_stem.items()},
            "support": self.support.to_dict(),
            "total": round(self.total, 2),
            "harmony": [h.to_dict() for h in self.harmony],
        }


def empty_power_result() -> PowerResult:
    return PowerResult(
        element_scores={el: 0.0 for el in ELEMENTS},
        element_percent={el: 0 for el in ELEMENTS},
        category_percent={c: 0 for c in CATEGORIES},
        subtype_percent={g: 0 for pair in SUBTYPE_PAIRS.values() for g in pair},
        per_stem={s: 0.0 for s in HEAVENLY_STEMS},
    )


# ============================================================
# SCORER
# ============================================================

def _side_slots(i: int) -> list[int]:
    if i == 0:
        return [1]
    if i == 3:
        return [2]
    return [i - 1, i + 1]


def _supports(day_element: Element, branch) -> bool:
    el = branch.element
    return el == day_element or el == PRODUCED_BY[day_element]


def _luck_pillar(luck, scope: str):
    if luck is None:
        return None
    raw = luck.get(scope) if isinstance(luck, dict) else getattr(luck, scope, None)
    return parse_pillar(raw, scope)


def compute_power(pillars, day_stem=None, luck=None, tab=LuckTab.NATAL,
                  use_harmony: bool = False, criteria=Criteria.MODERN,
                  hidden_mode=HiddenMode.HGC) -> PowerResult:
    """
    Score a chart's elemental power.

    Args:
        pillars: 4 pillars (Pillar or 2-char text) in year/month/day/hour order
        day_stem: optional Day Master override
        luck: LuckOverlay or dict with "decade"/"year"/"month"/"day" pillars
        tab: LuckTab (or its value) choosing which luck scopes count
        use_harmony: apply the 三合/方合 overlay
        criteria: Criteria weighting table (or its value)
        hidden_mode: selects the root-rate table; classic or hgc

    Returns:
        PowerResult; all zeros when fewer than 4 pillars parse
    """
    chart = parse_chart(pillars)
    if any(p is None for p in chart):
        logger.debug("power: chart incomplete (%s), returning zeros", pillars)
        return empty_power_result()

    criteria = Criteria(criteria) if not isinstance(criteria, Criteria) else criteria
    tab = LuckTab(tab) if not isinstance(tab, LuckTab) else tab
    weights = WEIGHTS[criteria]
    root_rates = ROOT_RATES[coerce_hidden_mode(hidden_mode)]

    dm = parse_stem(day_stem) or chart[2].stem
    day_el = dm.element

    scores = {el: 0.0 for el in ELEMENTS}
    stem_parts = [0.0] * 4
    branch_parts = [[] for _ in range(4)]

    # 1) base weights
    for i, p in enumerate(chart):
        w_stem, w_branch = weights[PILLAR_POSITIONS[i]]
        scores[p.stem.element] += w_stem
        stem_parts[i] = float(w_stem)
        scores[p.branch.element] += w_branch
        branch_parts[i].append(float(w_branch))

    # 2) rootedness
    for i, p in enumerate(chart):
        rate = root_rates.get(p.key, 0.0)
        if rate == 0:
            continue
        add = weights[PILLAR_POSITIONS[i]][0] * rate
        scores[p.stem.element] += add
        stem_parts[i] += add

    # 3) emergence
    for i, p in enumerate(chart):
        main_el = p.branch.element
        base = weights[PILLAR_POSITIONS[i]][1]
        b_pol = p.branch.functional_polarity
        add_sum = 0.0
        for j in (i, i - 1, i + 1, i - 2, i + 2):
            if not 0 <= j <= 3:
                continue
            s = chart[j].stem
            if s.element != main_el:
                continue
            same, other = PROJECTION[abs(j - i)]
            add_sum += base * (same if s.polarity == b_pol else other)
        if add_sum != 0:
            scores[main_el] += add_sum
            branch_parts[i].append(add_sum)

    # 4) neighbour multiplier: stems
    for i, p in enumerate(chart):
        el = p.stem.element
        adj = RELATION_ADJUST[element_relationship(el, p.branch.element)]
        for j in _side_slots(i):
            adj += RELATION_ADJUST[element_relationship(el, chart[j].stem.element)]
        before = stem_parts[i]
        if before != 0 and adj != 0:
            after = round1(before * (1 + adj))
            scores[el] += after - before
            stem_parts[i] = after

    # 4) neighbour multiplier: branches
    for i, p in enumerate(chart):
        el = p.branch.element
        adj = RELATION_ADJUST[element_relationship(el, p.stem.element)]
        for j in _side_slots(i):
            adj += RELATION_ADJUST[element_relationship(el, chart[j].branch.element)]
        before = sum(branch_parts[i])
        if before != 0 and adj != 0:
            after = round1(before * (1 + adj))
            delta = after - before
            scores[el] += delta
            branch_parts[i][0] += delta

    # 5) harmony overlay
    harmony = ()
    if use_harmony:
        harmony = tuple(harmony_overlay(chart, scores))

    # 6) luck overlay
    for scope in TAB_SCOPES[tab]:
        lp = _luck_pillar(luck, scope)
        if lp is None:
            continue
        pct = LUCK_PCT[scope]
        add = round_half_up(max(1.0, sum(scores.values())) * pct)
        scores[lp.stem.element] += add
        scores[lp.branch.element] += add
        logger.debug("luck %s %s: +%s each to stem and branch element", scope, lp.key, add)

    for el in ELEMENTS:
        if scores[el] < 0:
            scores[el] = 0.0

    # 7-8) categories
    cat_raw = {c: 0.0 for c in CATEGORIES}
    for el, v in scores.items():
        cat_raw[category_of_element(day_el, el)] += v
    cat_pct = dict(zip(CATEGORIES, normalize_to_100([cat_raw[c] for c in CATEGORIES])))

    # 9) subtypes
    subtype_pct = {}
    for cat in CATEGORIES:
        a_god, b_god = SUBTYPE_PAIRS[cat]
        v = cat_raw[cat]
        a0 = b0 = 0.5 * v if v > 0 else 0.0
        target = cat_pct[cat]
        if a0 + b0 > 0:
            a = math.floor(target * a0 / (a0 + b0) + 0.5)
        else:
            a = math.floor(target / 2 + 0.5)
        subtype_pct[a_god] = a
        subtype_pct[b_god] = target - a

    # 10) element view re-derived from the categories
    element_pct = {el: 0 for el in ELEMENTS}
    for cat in CATEGORIES:
        element_pct[element_of_category(day_el, cat)] += cat_pct[cat]

    # 11) per-stem breakdown in tenths
    per_stem_raw = {}
    for i, p in enumerate(chart):
        if stem_parts[i]:
            per_stem_raw[p.stem] = per_stem_raw.get(p.stem, 0.0) + stem_parts[i]
    for i, p in enumerate(chart):
        main = BRANCH_MAIN_STEM[p.branch]
        per_stem_raw[main] = per_stem_raw.get(main, 0.0) + sum(branch_parts[i])

    per_stem = {s: 0.0 for s in HEAVENLY_STEMS}
    for cat in CATEGORIES:
        el = element_of_category(day_el, cat)
        total_units = max(0, round_half_up(cat_pct[cat] * 10))
        parts = [(s, v) for s, v in per_stem_raw.items() if s.element == el]
        if parts:
            units = largest_remainder([v for _, v in parts], total_units)
            for (s, _), u in zip(parts, units):
                per_stem[s] = u / 10
        else:
            yang, yin = [s for s in HEAVENLY_STEMS if s.element == el]
            u0 = total_units // 2
            per_stem[yang] += u0 / 10
            per_stem[yin] += (total_units - u0) / 10

    support = SupportFlags(
        month=_supports(day_el, chart[1].branch),
        ground=_supports(day_el, chart[2].branch),
        momentum=scores[day_el] >= MOMENTUM_THRESHOLD,
    )

    total = sum(scores.values())
    logger.debug("power: day=%s total=%.1f categories=%s", dm.chinese, total,
                 {c.value: v for c, v in cat_pct.items()})

    return PowerResult(
        element_scores=scores,
        element_percent=element_pct,
        category_percent=cat_pct,
        subtype_percent=subtype_pct,
        per_stem=per_stem,
        per_stem_raw=per_stem_raw,
        support=support,
        total=total,
        day_stem=dm,
        harmony=harmony,
    )


# Quick verification
if __name__ == "__main__":
    result = compute_power(["庚午", "辛巳", "甲子", "丙寅"])
    print("Elements:", {el.value: v for el, v in result.element_percent.items()})
    print("Categories:", {c.value: v for c, v in result.category_percent.items()})
    print("Support:", result.support.to_dict())
