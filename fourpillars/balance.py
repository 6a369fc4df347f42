"""
Balance-correction (抑扶) candidate builder.

Scores every element as a favorable-element candidate from four angles and
orders them for the multi-method engine:
- 抑扶: restrain a strong Day Master, support a weak one
- 調候: month-branch climate (cold / hot, wet / dry)
- 通關: mediate the strongest control pressure
- 病藥: top up elements close to empty

The neutral band (45..55) leans toward the lighter side, every element gets a
small role bias from the element deficits, and elements at 24% or more are
penalized. The final order puts ordinary elements first, then absent ones,
then the over-represented ones by degree.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from fourpillars.power import round1
from fourpillars.tables import (
    CONTROL_CYCLE,
    CONTROLLED_BY,
    ELEMENTS,
    MONTH_BRANCH_CLIMATE,
    PRODUCED_BY,
    PRODUCTION_CYCLE,
    Element,
    parse_branch,
    parse_stem,
)
from fourpillars.ten_gods import TenGodCategory

logger = logging.getLogger(__name__)


# ============================================================
# TABLES
# ============================================================

# (upper bound exclusive, band)
BANDS = [
    (10, "極弱"),
    (20, "太弱"),
    (35, "身弱"),
    (45, "中和身弱"),
    (55, "中和"),
    (65, "中和身強"),
    (80, "太強"),
]
TOP_BAND = "極太強"

STRONG_SIDE_BANDS = ("中和身強", "太強", "極太強")
WEAK_SIDE_BANDS = ("極弱", "太弱", "身弱", "中和身弱")
SUPPORT_FIRST_BANDS = ("極弱", "太弱", "太強", "極太強")

STRONG_THRESHOLD_PCT = 24

# (minimum percent, multiplier); smaller multiplier = harder penalty
STRONG_STEPS = [
    (60, 0.00),
    (55, 0.01),
    (50, 0.03),
    (45, 0.06),
    (40, 0.10),
    (35, 0.18),
    (30, 0.32),
    (27, 0.48),
    (24, 0.62),
]

TARGET_PCT = 20
ROLE_BIAS_K = 6.5

METHOD_SUPPORT = "抑扶"
METHOD_CLIMATE = "調候"
METHOD_MEDIATION = "通關"
METHOD_REMEDY = "病藥"


@dataclass(frozen=True)
class BalanceCandidate:
    element: Element
    score: float
    via: tuple = ()
    reasons: tuple = ()
    ten_god_hints: tuple = ()

    def to_dict(self):
        return {
            "element": self.element.value,
            "score": self.score,
            "via": list(self.via),
            "reasons": list(self.reasons),
            "ten_god_hints": [c.value for c in self.ten_god_hints],
        }


@dataclass(frozen=True)
class BalanceResult:
    chosen_type: str
    band: str
    overall_pct: float
    ordered: list = field(default_factory=list)
    element_score: dict = field(default_factory=dict)

    def to_dict(self):
        return {
            "chosen_type": self.chosen_type,
            "band": self.band,
            "overall_pct": round(self.overall_pct, 1),
            "ordered": [c.to_dict() for c in self.ordered],
        }


# ============================================================
# HELPERS
# ============================================================

def strength_band(overall_pct: float) -> str:
    for upper, name in BANDS:
        if overall_pct < upper:
            return name
    return TOP_BAND


def strong_penalty_factor(pct: float) -> float:
    for minimum, factor in STRONG_STEPS:
        if pct >= minimum:
            return factor
    return 1.0


def _by_element(values) -> dict:
    out = {el: 0.0 for el in ELEMENTS}
    for k, v in (values or {}).items():
        el = k if isinstance(k, Element) else Element(k)
        out[el] = float(v or 0)
    return out


def _by_category(values) -> dict:
    out = {c: 0.0 for c in TenGodCategory}
    for k, v in (values or {}).items():
        cat = k if isinstance(k, TenGodCategory) else TenGodCategory(k)
        out[cat] = float(v or 0)
    return out


def _roles(day_element: Element) -> dict:
    return {
        "peer": day_element,
        "leak": PRODUCTION_CYCLE[day_element],
        "wealth": CONTROL_CYCLE[day_element],
        "officer": CONTROLLED_BY[day_element],
        "resource": PRODUCED_BY[day_element],
    }


def overall_strength(day_element: Optional[Element], category_percent: dict, element_percent: dict) -> float:
    """Peer + resource share of the chart, 0..100."""
    if any(category_percent.values()):
        return category_percent[TenGodCategory.PEER] + category_percent[TenGodCategory.RESOURCE]
    if day_element is None:
        return 50.0
    total = sum(element_percent.values()) or 1
    own = element_percent[day_element] + element_percent[PRODUCED_BY[day_element]]
    return min(100.0, max(0.0, own / total * 100))


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def deficit_ratio(element: Element, element_percent: dict) -> float:
    """How far below the 20% target an element sits, 0..1."""
    return _clamp((TARGET_PCT - element_percent.get(element, 0)) / TARGET_PCT, 0.0, 1.0)


def surplus_ratio(element: Element, element_percent: dict) -> float:
    """How far above the 20% target an element sits, 0..1."""
    return _clamp((element_percent.get(element, 0) - TARGET_PCT) / TARGET_PCT, 0.0, 1.0)


def role_of(day_element: Optional[Element], element: Optional[Element]) -> Optional[str]:
    if day_element is None or element is None:
        return None
    for role, el in _roles(day_element).items():
        if el == element:
            return role
    return None


def role_bias_points(day_element: Optional[Element], overall_pct: float, element: Element,
                     element_percent: dict) -> float:
    """
    Small per-role correction added on top of the scorers.

    On the weak half resource and peers are pushed up and the draining roles
    down, scaled by how far the Day Master sits below 50%. The strong half
    mirrors that. Inside the exact middle only the deficits and surpluses of
    the element and of the Day Master move the score.

    Returns:
        the delta in points, rounded half up to one decimal
    """
    role = role_of(day_element, element)
    if role is None:
        return 0.0

    weak_gap = _clamp((50 - overall_pct) / 50, 0.0, 1.0)
    strong_gap = _clamp((overall_pct - 50) / 50, 0.0, 1.0)
    def_el = deficit_ratio(element, element_percent)
    sur_el = surplus_ratio(element, element_percent)
    def_day = deficit_ratio(day_element, element_percent)
    sur_day = surplus_ratio(day_element, element_percent)

    if weak_gap > 0:
        w = {
            "resource": (0.30 + 0.40 * def_day + 0.15 * def_el),
            "peer": (0.18 + 0.45 * def_day),
            "officer": -(0.08 + 0.20 * (1 - def_el) + 0.10 * sur_day),
            "wealth": -(0.22 + 0.25 * (1 - def_el) + 0.10 * (1 - def_day)),
            "leak": -(0.35 + 0.25 * (1 - def_el) + 0.10 * (1 - def_day)),
        }[role] * weak_gap
    elif strong_gap > 0:
        w = {
            "resource": -(0.25 + 0.25 * (1 - def_el) + 0.20 * sur_day),
            "peer": -(0.28 + 0.20 * sur_day),
            "officer": (0.18 + 0.20 * def_el + 0.15 * sur_day),
            "wealth": (0.22 + 0.25 * def_el + 0.10 * sur_day),
            "leak": (0.20 + 0.20 * def_el),
        }[role] * strong_gap
    else:
        w = {
            "resource": 0.08 * (def_day + def_el),
            "peer": 0.05 * def_day - 0.03 * sur_day,
            "officer": 0.02 * def_el - 0.02 * sur_el,
            "wealth": 0.01 * def_el - 0.06 * sur_el,
            "leak": -0.05 * (1 - def_el),
        }[role]
    return round1(ROLE_BIAS_K * w)


# ============================================================
# SCORERS
# ============================================================

def _empty() -> dict:
    return {el: 0.0 for el in ELEMENTS}


def _note(reasons, el, text):
    if reasons is not None:
        reasons[el].append(text)


def score_support(day_element: Element, band: str, reasons=None) -> dict:
    """抑扶: drain a strong Day Master, feed a weak one."""
    s = _empty()
    roles = _roles(day_element)
    if band in STRONG_SIDE_BANDS:
        s[roles["leak"]] += 28
        s[roles["wealth"]] += 22
        s[roles["officer"]] += 20
        _note(reasons, roles["leak"], "support/restrain: strong Day Master → output drains it")
        _note(reasons, roles["wealth"], "support/restrain: strong Day Master → wealth spends it")
        _note(reasons, roles["officer"], "support/restrain: strong Day Master → officer checks it")
    if band in WEAK_SIDE_BANDS:
        s[roles["resource"]] += 28
        s[roles["peer"]] += 22
        _note(reasons, roles["resource"], "support/restrain: weak Day Master → resource feeds it")
        _note(reasons, roles["peer"], "support/restrain: weak Day Master → peers back it")
    return s


def score_climate(month_branch, reasons=None) -> dict:
    """調候 from the month branch's temperature and moisture tendency."""
    s = _empty()
    mb = parse_branch(month_branch)
    if mb is None:
        return s
    temperature, moisture = MONTH_BRANCH_CLIMATE.get(mb, ("mild", "normal"))
    if temperature == "cold":
        s[Element.FIRE] += 16
        s[Element.EARTH] += 6
        _note(reasons, Element.FIRE, "climate: cold month → fire")
        _note(reasons, Element.EARTH, "climate: cold damp month → earth support")
    elif temperature == "hot":
        s[Element.WATER] += 14
        s[Element.METAL] += 6
        _note(reasons, Element.WATER, "climate: hot month → water")
        _note(reasons, Element.METAL, "climate: hot month → metal cools")
    if moisture == "wet":
        s[Element.EARTH] += 8
        s[Element.FIRE] += 4
        _note(reasons, Element.EARTH, "climate: wet month → earth")
        _note(reasons, Element.FIRE, "climate: wet chill → fire warms")
    elif moisture == "dry":
        s[Element.WATER] += 8
        s[Element.WOOD] += 4
        _note(reasons, Element.WATER, "climate: dry month → water")
        _note(reasons, Element.WOOD, "climate: dry month → wood growth")
    return s


def score_mediation(element_score: dict, reasons=None) -> dict:
    """通關: each controller's surplus over what it controls feeds the element it produces."""
    s = _empty()
    for a in ELEMENTS:
        b = CONTROL_CYCLE[a]
        pressure = max(0.0, element_score[a] - element_score[b])
        if pressure <= 0:
            continue
        mediator = PRODUCTION_CYCLE[a]
        gain = math.floor(pressure * 0.35 + 0.5)
        if gain > 0:
            s[mediator] += gain
            _note(reasons, mediator, f"mediation: eases {a.value} controlling {b.value}")
    return s


def score_remedy(element_score: dict, reasons=None) -> dict:
    """病藥: +12 to every element at or below max(6, lowest)."""
    s = _empty()
    floor_value = max(6.0, min(element_score.values()))
    for el in ELEMENTS:
        if element_score[el] <= floor_value:
            s[el] += 12
            _note(reasons, el, "remedy: fills a shortage")
    return s


def choose_type(band: str, climate: dict, mediation: dict, remedy: dict) -> str:
    if band in SUPPORT_FIRST_BANDS:
        return METHOD_SUPPORT
    c2, c3, c4 = sum(climate.values()), sum(mediation.values()), sum(remedy.values())
    if c2 > max(c3, c4):
        return METHOD_CLIMATE
    if c3 >= c4:
        return METHOD_MEDIATION
    return METHOD_REMEDY


# ============================================================
# BUILDER
# ============================================================

def compute_balance_candidates(day_stem, month_branch, category_percent=None,
                               element_percent=None) -> BalanceResult:
    """
    Build the balance-correction candidate list.

    Args:
        day_stem: Day Master (stem or text); None skips the Day Master scorers
        month_branch: month branch for the climate scorer
        category_percent: TenGodCategory → percent from the power scorer
        element_percent: Element → percent from the power scorer

    Returns:
        BalanceResult with all five elements ordered best first
    """
    dm = parse_stem(day_stem)
    day_el = dm.element if dm is not None else None
    cat_pct = _by_category(category_percent)
    elem_pct = _by_element(element_percent)

    overall = overall_strength(day_el, cat_pct, elem_pct)
    band = strength_band(overall)
    reasons = {el: [] for el in ELEMENTS}
    score = _empty()

    parts = []
    if day_el is not None:
        parts.append(score_support(day_el, band, reasons))
    parts.append(score_climate(month_branch, reasons))
    parts.append(score_mediation(elem_pct, reasons))
    parts.append(score_remedy(elem_pct, reasons))
    for part in parts:
        for el in ELEMENTS:
            score[el] += part[el]

    # neutral band: lean toward the lighter side
    if day_el is not None and 45 <= overall <= 55:
        roles = _roles(day_el)
        others = max(cat_pct[c] for c in TenGodCategory if c is not TenGodCategory.OFFICER)
        officer_heavy = (cat_pct[TenGodCategory.OFFICER] >= 30
                         or cat_pct[TenGodCategory.OFFICER] >= others + 5)
        if overall <= 50:
            for role, pts in (("resource", 14), ("peer", 10), ("leak", 6), ("wealth", 3)):
                score[roles[role]] += pts
                reasons[roles[role]].append("balance: neutral, leaning weak")
            if officer_heavy:
                score[roles["officer"]] = round1(score[roles["officer"]] * 0.8)
                reasons[roles["officer"]].append("balance: officer too heavy, held back")
        else:
            for role, pts in (("leak", 14), ("wealth", 10), ("officer", 6), ("resource", 3)):
                score[roles[role]] += pts
                reasons[roles[role]].append("balance: neutral, leaning strong")

    for el in ELEMENTS:
        delta = role_bias_points(day_el, overall, el, elem_pct)
        score[el] = min(999.0, max(0.0, round1(score[el] + delta)))

    weak_side = overall < 50
    for el in ELEMENTS:
        pct = elem_pct[el]
        if pct < STRONG_THRESHOLD_PCT or (weak_side and el == day_el):
            continue
        score[el] = round1(score[el] * strong_penalty_factor(pct))
        extra = min(14, max(0, math.ceil((pct - STRONG_THRESHOLD_PCT) * 0.5)))
        if extra > 0:
            score[el] = min(999.0, max(0.0, score[el] - extra))
        reasons[el].append("over-represented: penalized")

    hints = {el: [] for el in ELEMENTS}
    if day_el is not None:
        hints[PRODUCTION_CYCLE[day_el]].append(TenGodCategory.OUTPUT)
        hints[CONTROL_CYCLE[day_el]].append(TenGodCategory.WEALTH)
        hints[CONTROLLED_BY[day_el]].append(TenGodCategory.OFFICER)
        hints[day_el].append(TenGodCategory.PEER)
        hints[PRODUCED_BY[day_el]].append(TenGodCategory.RESOURCE)

    present = {el: elem_pct[el] > 0 for el in ELEMENTS}

    def bucket(el):
        pct = elem_pct[el]
        if pct >= STRONG_THRESHOLD_PCT and not (weak_side and el == day_el):
            if pct >= 55:
                return 4
            if pct >= 45:
                return 3
            return 2
        if not present[el]:
            return 1
        return 0

    climate = score_climate(month_branch)
    mediation = score_mediation(elem_pct)
    remedy = score_remedy(elem_pct)

    def via(el):
        out = [name for name, part in ((METHOD_CLIMATE, climate), (METHOD_MEDIATION, mediation),
                                       (METHOD_REMEDY, remedy)) if part[el] > 0]
        return tuple(out) or (METHOD_SUPPORT,)

    ordered = sorted(
        (BalanceCandidate(el, round1(score[el]), via(el), tuple(reasons[el]), tuple(hints[el]))
         for el in ELEMENTS),
        key=lambda c: (bucket(c.element), -c.score, ELEMENTS.index(c.element)),
    )
    chosen = choose_type(band, climate, mediation, remedy)
    logger.debug("balance: overall %.1f (%s), chosen %s, top %s",
                 overall, band, chosen, ordered[0].element.value)
    return BalanceResult(chosen, band, overall, ordered, elem_pct)


if __name__ == "__main__":
    from fourpillars.power import compute_power

    result = compute_power(["庚午", "壬午", "丙午", "甲午"])
    balance = compute_balance_candidates(result.day_stem, "午", result.category_percent,
                                         result.element_percent)
    for c in balance.ordered:
        print(c.element.value, c.score, c.via)
    print(balance.chosen_type, balance.band)
