"""
Ten Gods (十神): relational category and subtype of any stem or branch
relative to the Day Master.

Five categories, each split by polarity match with the Day Master:

    peer      (same element)          比肩 same polarity / 劫財 different
    output    (Day Master produces)   食神 / 傷官
    wealth    (Day Master controls)   偏財 / 正財
    officer   (controls Day Master)   偏官 (七殺) / 正官
    resource  (produces Day Master)   偏印 / 正印
"""

from enum import Enum
from typing import Optional

from fourpillars.tables import (
    CONTROL_CYCLE,
    CONTROLLED_BY,
    PRODUCED_BY,
    PRODUCTION_CYCLE,
    Element,
    HeavenlyStem,
    EarthlyBranch,
    parse_branch,
    parse_stem,
)


class TenGodCategory(Enum):
    PEER = "peer"
    OUTPUT = "output"
    WEALTH = "wealth"
    OFFICER = "officer"
    RESOURCE = "resource"


CATEGORIES = list(TenGodCategory)


class TenGod(Enum):
    COMPANION = "比肩"
    ROB_WEALTH = "劫財"
    EATING_GOD = "食神"
    HURTING_OFFICER = "傷官"
    INDIRECT_WEALTH = "偏財"
    DIRECT_WEALTH = "正財"
    SEVEN_KILLINGS = "偏官"
    DIRECT_OFFICER = "正官"
    INDIRECT_RESOURCE = "偏印"
    DIRECT_RESOURCE = "正印"

    @property
    def category(self) -> TenGodCategory:
        return TEN_GOD_CATEGORY[self]

    @property
    def english(self) -> str:
        return TEN_GOD_ENGLISH[self]


TEN_GOD_ENGLISH = {
    TenGod.COMPANION: "Companion",
    TenGod.ROB_WEALTH: "Rob Wealth",
    TenGod.EATING_GOD: "Eating God",
    TenGod.HURTING_OFFICER: "Hurting Officer",
    TenGod.INDIRECT_WEALTH: "Indirect Wealth",
    TenGod.DIRECT_WEALTH: "Direct Wealth",
    TenGod.SEVEN_KILLINGS: "7 Killings",
    TenGod.DIRECT_OFFICER: "Direct Officer",
    TenGod.INDIRECT_RESOURCE: "Indirect Resource",
    TenGod.DIRECT_RESOURCE: "Direct Resource",
}

TEN_GODS = {
    # (category, same_polarity): ten god
    (TenGodCategory.PEER, True): TenGod.COMPANION,
    (TenGodCategory.PEER, False): TenGod.ROB_WEALTH,
    (TenGodCategory.OUTPUT, True): TenGod.EATING_GOD,
    (TenGodCategory.OUTPUT, False): TenGod.HURTING_OFFICER,
    (TenGodCategory.WEALTH, True): TenGod.INDIRECT_WEALTH,
    (TenGodCategory.WEALTH, False): TenGod.DIRECT_WEALTH,
    (TenGodCategory.OFFICER, True): TenGod.SEVEN_KILLINGS,
    (TenGodCategory.OFFICER, False): TenGod.DIRECT_OFFICER,
    (TenGodCategory.RESOURCE, True): TenGod.INDIRECT_RESOURCE,
    (TenGodCategory.RESOURCE, False): TenGod.DIRECT_RESOURCE,
}

TEN_GOD_CATEGORY = {god: cat for (cat, _), god in TEN_GODS.items()}

# Subtype pairs per category, same-polarity member second where the
# reading tradition lists the "direct" form first
SUBTYPE_PAIRS = {
    TenGodCategory.PEER: (TenGod.COMPANION, TenGod.ROB_WEALTH),
    TenGodCategory.OUTPUT: (TenGod.EATING_GOD, TenGod.HURTING_OFFICER),
    TenGodCategory.WEALTH: (TenGod.DIRECT_WEALTH, TenGod.INDIRECT_WEALTH),
    TenGodCategory.OFFICER: (TenGod.DIRECT_OFFICER, TenGod.SEVEN_KILLINGS),
    TenGodCategory.RESOURCE: (TenGod.DIRECT_RESOURCE, TenGod.INDIRECT_RESOURCE),
}


# ============================================================
# ELEMENT RELATIONSHIPS
# ============================================================

def element_relationship(day_master_element: Element, other_element: Element) -> str:
    """Determine the elemental relationship from DM's perspective."""
    if day_master_element == other_element:
        return "same"
    elif PRODUCTION_CYCLE[other_element] == day_master_element:
        return "produces_me"  # other produces DM
    elif PRODUCTION_CYCLE[day_master_element] == other_element:
        return "i_produce"  # DM produces other
    elif CONTROL_CYCLE[day_master_element] == other_element:
        return "i_control"  # DM controls other
    else:
        return "controls_me"  # other controls DM


_RELATIONSHIP_CATEGORY = {
    "same": TenGodCategory.PEER,
    "i_produce": TenGodCategory.OUTPUT,
    "i_control": TenGodCategory.WEALTH,
    "controls_me": TenGodCategory.OFFICER,
    "produces_me": TenGodCategory.RESOURCE,
}


def category_of_element(day_element: Element, other: Element) -> TenGodCategory:
    return _RELATIONSHIP_CATEGORY[element_relationship(day_element, other)]


def element_of_category(day_element: Element, category: TenGodCategory) -> Element:
    """Inverse of category_of_element: which element plays `category` for this Day Master."""
    if category is TenGodCategory.PEER:
        return day_element
    if category is TenGodCategory.OUTPUT:
        return PRODUCTION_CYCLE[day_element]
    if category is TenGodCategory.WEALTH:
        return CONTROL_CYCLE[day_element]
    if category is TenGodCategory.OFFICER:
        return CONTROLLED_BY[day_element]
    return PRODUCED_BY[day_element]


# ============================================================
# TEN GOD OF A STEM / BRANCH
# ============================================================

def ten_god(day_master, other) -> Optional[TenGod]:
    """
    Determine the Ten God of a stem relative to the Day Master.

    Args:
        day_master: the Day Master stem (HeavenlyStem or text)
        other: the stem being evaluated (HeavenlyStem or text)

    Returns:
        TenGod, or None if either stem cannot be parsed
    """
    dm = parse_stem(day_master)
    o = parse_stem(other)
    if dm is None or o is None:
        return None
    category = category_of_element(dm.element, o.element)
    return TEN_GODS[(category, dm.polarity == o.polarity)]


def branch_ten_god(day_master, branch) -> Optional[TenGod]:
    """Ten God of a branch's surface, read through its main hidden stem."""
    b = parse_branch(branch)
    if b is None:
        return None
    return ten_god(day_master, b.main_stem)


def map_ten_gods(day_master: HeavenlyStem, pillars) -> list[dict]:
    """
    Map Ten Gods for every stem and branch surface in the chart.

    Returns:
        One dict per pillar with stem and branch Ten God names; the day
        stem itself is labelled "Day Master".
    """
    results = []
    for p in pillars:
        if p is None:
            results.append(None)
            continue
        stem_god = ten_god(day_master, p.stem)
        branch_god = branch_ten_god(day_master, p.branch)
        results.append({
            "position": p.position,
            "stem": p.stem.chinese,
            "stem_ten_god": "Day Master" if p.position == "day" else stem_god.value,
            "branch": p.branch.chinese,
            "branch_ten_god": branch_god.value,
        })
    return results


def stem_ten_gods(day_master: HeavenlyStem, stems) -> list[TenGod]:
    """Ten Gods of a sequence of stems; unparseable entries are skipped."""
    out = []
    for s in stems:
        god = ten_god(day_master, s)
        if god is not None:
            out.append(god)
    return out


def category_count(gods, category: TenGodCategory) -> int:
    return sum(1 for g in gods if g.category is category)


def branch_category(day_master: HeavenlyStem, branch: EarthlyBranch) -> TenGodCategory:
    return category_of_element(day_master.element, branch.element)
