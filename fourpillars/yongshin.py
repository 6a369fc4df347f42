"""
Favorable-element (用神) multi-method engine.

Five methods each nominate elements independently:

    balance     抑扶用神  weight 1.25  priority 1  (passed in by the caller)
    seasonal    調候用神  weight 0.85 in winter/summer, else 0.55  priority 2
    conflict    通關用神  weight 0.7   priority 3
    deficiency  病藥用神  weight 0.7   priority 3
    structure   格局用神  weight 0.55  priority 4  (passed in by the caller)

Each group's fit score is its top candidate's score times the method weight.
The group with the highest fit wins; ties go to the lower priority number,
then to table order. The winner's final score is lifted above every other
group's so the displayed ranking agrees with the selection.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from fourpillars.climate import ClimatePercents, element_presence
from fourpillars.power import round_half_up
from fourpillars.structure import LABEL_TEN_GOD
from fourpillars.tables import (
    CONTROL_CYCLE,
    ELEMENTS,
    PRODUCTION_CYCLE,
    SEASON_BY_BRANCH,
    SEASONAL_PREFERENCES,
    Element,
    Season,
    parse_branch,
    parse_pillar,
    parse_stem,
)
from fourpillars.ten_gods import element_of_category

logger = logging.getLogger(__name__)


class YongshinMethod(Enum):
    BALANCE = "balance"
    SEASONAL = "seasonal"
    CONFLICT = "conflict"
    DEFICIENCY = "deficiency"
    STRUCTURE = "structure"


METHOD_TITLES = {
    YongshinMethod.BALANCE: "抑扶用神",
    YongshinMethod.SEASONAL: "調候用神",
    YongshinMethod.CONFLICT: "通關用神",
    YongshinMethod.DEFICIENCY: "病藥用神",
    YongshinMethod.STRUCTURE: "格局用神",
}

BALANCE_WEIGHT = 1.25
SEASONAL_WEIGHT_EXTREME = 0.85
SEASONAL_WEIGHT_MILD = 0.55
CONFLICT_WEIGHT = 0.7
DEFICIENCY_WEIGHT = 0.7
STRUCTURE_WEIGHT = 0.55

# Opposing pairs scanned by the conflict method
CONFLICT_PAIRS = [
    (Element.METAL, Element.WOOD),
    (Element.WATER, Element.FIRE),
    (Element.WOOD, Element.EARTH),
    (Element.FIRE, Element.METAL),
    (Element.EARTH, Element.WATER),
]
CONFLICT_MIN_PCT = 24
CONFLICT_MIN_RATIO = 0.6

DEFICIENCY_PCT = 8
CLIMATE_DEVIATION = 12

# axis, direction → (primary, support)
CLIMATE_REMEDIES = {
    ("temperature", "cold"): (Element.FIRE, Element.EARTH),
    ("temperature", "hot"): (Element.WATER, Element.METAL),
    ("humidity", "wet"): (Element.EARTH, Element.FIRE),
    ("humidity", "dry"): (Element.WATER, Element.WOOD),
}

_ELEMENT_CHARS = {"木": Element.WOOD, "火": Element.FIRE, "土": Element.EARTH,
                  "金": Element.METAL, "水": Element.WATER}


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class YongshinCandidate:
    element: Element
    score: float
    reasons: tuple = ()

    def to_dict(self):
        return {"element": self.element.value, "score": self.score, "reasons": list(self.reasons)}


@dataclass(frozen=True)
class YongshinGroup:
    method: YongshinMethod
    title: str
    priority: int
    weight: float
    applicable: bool
    candidates: tuple = ()
    fit_score: int = 0
    final_score: int = 0
    max_score: float = 0
    note: str = ""

    @property
    def top(self) -> Optional[YongshinCandidate]:
        return self.candidates[0] if self.candidates else None

    def to_dict(self):
        return {
            "method": self.method.value,
            "title": self.title,
            "priority": self.priority,
            "weight": self.weight,
            "applicable": self.applicable,
            "note": self.note,
            "candidates": [c.to_dict() for c in self.candidates],
            "max_score": self.max_score,
            "fit_score": self.fit_score,
            "final_score": self.final_score,
        }


@dataclass(frozen=True)
class YongshinMultiResult:
    best_method: Optional[YongshinMethod]
    best_group: Optional[YongshinGroup]
    groups: list = field(default_factory=list)

    def to_dict(self):
        return {
            "best_method": self.best_method.value if self.best_method else None,
            "best": self.best_group.to_dict() if self.best_group else None,
            "groups": [g.to_dict() for g in self.groups],
        }


# ============================================================
# HELPERS
# ============================================================

def parse_element(value) -> Optional[Element]:
    """Element from an Element, its value ("wood"), or its character (木)."""
    if isinstance(value, Element):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text in _ELEMENT_CHARS:
        return _ELEMENT_CHARS[text]
    try:
        return Element(text.lower())
    except ValueError:
        return None


def _as_candidate(item) -> Optional[YongshinCandidate]:
    if isinstance(item, YongshinCandidate):
        return item
    if isinstance(item, dict):
        el, score, reasons = item.get("element"), item.get("score", 0), item.get("reasons", ())
    else:
        el = getattr(item, "element", None)
        score = getattr(item, "score", 0)
        reasons = getattr(item, "reasons", ())
    el = parse_element(el)
    if el is None:
        return None
    return YongshinCandidate(el, score or 0, tuple(reasons or ()))


def _percentages(values) -> dict:
    out = {el: 0.0 for el in ELEMENTS}
    for k, v in (values or {}).items():
        el = parse_element(k)
        if el is not None:
            out[el] = float(v or 0)
    return out


def _month_branch(month_pillar):
    pillar = parse_pillar(month_pillar)
    if pillar is not None:
        return pillar.branch
    if isinstance(month_pillar, str) and month_pillar.strip():
        return parse_branch(month_pillar.strip()[-1])
    return parse_branch(month_pillar)


def season_of(month_pillar) -> Season:
    branch = _month_branch(month_pillar)
    return SEASON_BY_BRANCH.get(branch, Season.UNKNOWN) if branch is not None else Season.UNKNOWN


def need_adjusted(score: float, pct: float) -> int:
    """Less is needed of what the chart already holds; never below 10% of the base."""
    k = max(0.1, 1 - pct / 120)
    return max(0, round_half_up(score * k))


def _demote_absent(items, presence: dict, demote: bool) -> list:
    if not demote:
        return list(items)
    out = []
    for it in items:
        if presence.get(it.element, False):
            out.append(it)
        else:
            out.append(YongshinCandidate(it.element, 0, it.reasons + ("absent in chart → 0",)))
    return out


def _sorted(items, presence: dict, demote: bool) -> tuple:
    def key(it):
        absent = 0 if not demote or presence.get(it.element, False) else 1
        return (absent, -it.score, ELEMENTS.index(it.element))
    return tuple(sorted(items, key=key))


def present_balance(element_percent: dict, presence: dict) -> tuple:
    """(spread of present elements, balanced flag)."""
    vals = [element_percent[el] for el in ELEMENTS if presence.get(el, False)]
    if not vals:
        return 0, False
    spread = round_half_up(max(vals) - min(vals))
    return spread, len(vals) >= 3 and spread <= 12


# ============================================================
# METHOD BUILDERS
# ============================================================

def seasonal_candidates(month_pillar, element_percent: dict,
                        climate: Optional[ClimatePercents] = None) -> list[YongshinCandidate]:
    """
    調候 candidates. A climate reading that leans 12+ points off centre on
    either axis drives the scores; otherwise the month's season table does.
    """
    pct = _percentages(element_percent)
    scores = {}
    reasons = {}

    if climate is not None:
        for axis, value in (("temperature", climate.temperature_bias),
                            ("humidity", climate.humidity_bias)):
            dev = value - 50
            if abs(dev) < CLIMATE_DEVIATION:
                continue
            if axis == "temperature":
                direction = "hot" if dev > 0 else "cold"
            else:
                direction = "wet" if dev > 0 else "dry"
            primary, support = CLIMATE_REMEDIES[(axis, direction)]
            main_score = 60 + round_half_up(abs(dev) * 1.6)
            for el, pts, role in ((primary, main_score, "first"),
                                  (support, round_half_up(main_score / 2), "support")):
                scores[el] = scores.get(el, 0) + pts
                reasons.setdefault(el, []).append(
                    f"climate ({direction}, {axis} {round_half_up(value)}%): {el.value} {role}")

    if not scores:
        for el, base, why in SEASONAL_PREFERENCES[season_of(month_pillar)]:
            scores[el] = base
            reasons[el] = [why]

    out = []
    for el, base in scores.items():
        out.append(YongshinCandidate(
            el, need_adjusted(base, pct[el]),
            tuple(reasons[el]) + (f"{el.value} now {round_half_up(pct[el])}%",),
        ))
    return out


def conflict_candidates(element_percent: dict) -> list[YongshinCandidate]:
    """通關 candidates: the element bridging two strong, evenly matched opponents."""
    pct = _percentages(element_percent)
    merged = {}
    for x, y in CONFLICT_PAIRS:
        px, py = pct[x], pct[y]
        if px < CONFLICT_MIN_PCT or py < CONFLICT_MIN_PCT:
            continue
        if min(px, py) / max(1.0, px, py) < CONFLICT_MIN_RATIO:
            continue
        if CONTROL_CYCLE[x] == y:
            controller, controlled = x, y
        elif CONTROL_CYCLE[y] == x:
            controller, controlled = y, x
        else:
            continue
        mediator = PRODUCTION_CYCLE[controller]
        base = 95 + round_half_up(min(px, py) / 2)
        why = (
            f"{controller.value} controls {controlled.value} "
            f"({x.value} {round_half_up(px)}%, {y.value} {round_half_up(py)}%)",
            f"bridge: {controller.value} → {mediator.value} → {controlled.value}",
        )
        if mediator in merged:
            score, prior = merged[mediator]
            merged[mediator] = (max(score, base), prior + why)
        else:
            merged[mediator] = (base, why)

    return [YongshinCandidate(el, need_adjusted(score, pct[el]), why)
            for el, (score, why) in merged.items()]


def deficiency_candidates(element_percent: dict, presence: dict) -> list[YongshinCandidate]:
    """病藥 candidate: the weakest element, when something is missing or nearly so."""
    pct = _percentages(element_percent)
    weakest = ELEMENTS[0]
    for el in ELEMENTS:
        if pct[el] < pct[weakest]:
            weakest = el
    low = pct[weakest]
    has_absent = any(not presence.get(el, False) for el in ELEMENTS)
    if not has_absent and low > DEFICIENCY_PCT:
        return []
    base = (85 if has_absent else 70) + round_half_up((DEFICIENCY_PCT - min(DEFICIENCY_PCT, low)) * 6)
    why = "deficiency: missing element, top it up" if has_absent else "deficiency: element far too low"
    return [YongshinCandidate(weakest, need_adjusted(base, low),
                              (why, f"weakest {weakest.value} = {round_half_up(low)}%"))]


def candidates_from_structure(day_stem, structure) -> list[YongshinCandidate]:
    """
    Structure-derived candidates.

    The inner structure's category element scores 92, the true stem's element
    86 (+6 when accepted), the supporting stem's element 70. One element
    named twice keeps its higher score.
    """
    dm = parse_stem(day_stem)
    if structure is None:
        return []
    merged = {}

    def upsert(el, score, reason):
        if el in merged:
            prior, reasons = merged[el]
            merged[el] = (max(prior, score), reasons if reason in reasons else reasons + (reason,))
        else:
            merged[el] = (score, (reason,))

    god = LABEL_TEN_GOD.get(structure.inner_structure)
    if dm is not None and god is not None:
        el = element_of_category(dm.element, god.category)
        upsert(el, 92, f"inner structure {structure.inner_structure} → {god.category.value} ({el.value})")
    if structure.true_stem is not None:
        boost = 6 if structure.accepted is not None else 0
        el = structure.true_stem.element
        upsert(el, 86 + boost, f"true stem {structure.true_stem.chinese} → {el.value}")
    if structure.supporting_stem is not None:
        el = structure.supporting_stem.element
        upsert(el, 70, f"supporting stem {structure.supporting_stem.chinese} → {el.value}")

    out = [YongshinCandidate(el, score, reasons) for el, (score, reasons) in merged.items()]
    return sorted(out, key=lambda c: -c.score)


# ============================================================
# ENGINE
# ============================================================

def compute_yongshin_multi(balance_candidates, month_pillar, element_percent, presence=None,
                           demote_absent: bool = False, pillars=None, structure_candidates=None,
                           climate: Optional[ClimatePercents] = None) -> YongshinMultiResult:
    """
    Merge the five methods into one ranked result.

    Args:
        balance_candidates: balance-correction candidates (element/score/reasons)
        month_pillar: month pillar text or Pillar; its branch sets the season
        element_percent: Element → percent
        presence: Element → bool; derived from pillars when omitted
        demote_absent: zero and sink candidates whose element is not in the chart
        pillars: the natal pillars, used for presence when it is not given
        structure_candidates: structure-derived candidates; the method is
            inapplicable when empty
        climate: ClimatePercents; the season table is used when omitted

    Returns:
        YongshinMultiResult with groups sorted by priority
    """
    pct = _percentages(element_percent)
    if presence is None:
        presence = element_presence(pillars or [])
    presence = {el: bool(presence.get(el, False)) for el in ELEMENTS}
    season = season_of(month_pillar)

    def prepared(items):
        items = [c for c in (_as_candidate(i) for i in (items or [])) if c is not None]
        return _sorted(_demote_absent(items, presence, demote_absent), presence, demote_absent)

    balance = prepared(balance_candidates)
    seasonal = prepared(seasonal_candidates(month_pillar, pct, climate))
    conflict = prepared(conflict_candidates(pct))
    deficiency = prepared(deficiency_candidates(pct, presence))
    structure = prepared(structure_candidates)

    if season is Season.WINTER:
        seasonal_note = "winter: cold-season climate correction"
    elif season is Season.SUMMER:
        seasonal_note = "summer: hot-season climate correction"
    else:
        seasonal_note = "climate correction leads only in the extreme seasons"

    base = [
        (YongshinMethod.BALANCE, 1, BALANCE_WEIGHT, bool(balance), balance,
         "first choice: restrain or support the Day Master"),
        (YongshinMethod.SEASONAL, 2,
         SEASONAL_WEIGHT_EXTREME if season in (Season.WINTER, Season.SUMMER) else SEASONAL_WEIGHT_MILD,
         True, seasonal, seasonal_note),
        (YongshinMethod.CONFLICT, 3, CONFLICT_WEIGHT, bool(conflict), conflict,
         "two strong elements in a control clash" if conflict else "no strong control clash"),
        (YongshinMethod.DEFICIENCY, 3, DEFICIENCY_WEIGHT, bool(deficiency), deficiency,
         "an element is missing or nearly so" if deficiency else "elements are evenly present"),
        (YongshinMethod.STRUCTURE, 4, STRUCTURE_WEIGHT, bool(structure), structure,
         "secondary view from the month structure" if structure else "no structure candidates"),
    ]

    spread, balanced = present_balance(pct, presence)
    groups = []
    for method, priority, weight, applicable, candidates, note in base:
        fit = 0.0
        top = candidates[0] if candidates else None
        if applicable and top is not None:
            fit = top.score * weight
            if method is YongshinMethod.BALANCE:
                if balanced:
                    fit *= 0.75
                else:
                    fit += min(35, round_half_up(spread * 0.9))
            if demote_absent and not presence[top.element]:
                fit *= 0.25
        fit = round_half_up(fit)
        max_score = max([0] + [c.score for c in candidates])
        groups.append(YongshinGroup(method, METHOD_TITLES[method], priority, weight, applicable,
                                    candidates, fit, fit, max_score, note))
    groups.sort(key=lambda g: g.priority)

    eligible = [g for g in groups if g.applicable and g.candidates]
    if not eligible:
        return YongshinMultiResult(None, None, groups)
    best = sorted(eligible, key=lambda g: (-g.fit_score, g.priority))[0]

    max_fit = max(g.fit_score for g in groups)
    contested = any(g.fit_score >= best.fit_score for g in groups if g is not best)
    final = []
    for g in groups:
        if g is best:
            g = YongshinGroup(g.method, g.title, g.priority, g.weight, g.applicable, g.candidates,
                              g.fit_score, max_fit + 1 if contested else g.fit_score,
                              g.max_score, g.note)
            best = g
        final.append(g)

    logger.debug("yongshin: best %s (fit %s, final %s) over %s", best.method.value, best.fit_score,
                  best.final_score, {g.method.value: g.fit_score for g in groups})
    return YongshinMultiResult(best.method, best, final)


if __name__ == "__main__":
    pct = {Element.WOOD: 10, Element.FIRE: 45, Element.EARTH: 5, Element.METAL: 15, Element.WATER: 25}
    result = compute_yongshin_multi([], "壬午", pct, pillars=["庚午", "壬午", "丙午", "甲午"])
    for g in result.groups:
        print(g.title, g.applicable, g.fit_score, g.final_score, [c.element.value for c in g.candidates])
    print("best:", result.best_method)
