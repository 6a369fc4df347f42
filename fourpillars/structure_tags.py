"""
Structure Tag Detector.

Qualitative tags over a natal chart, read from three views:
- stems: ten god of each of the 4 stems (day stem included, as 比肩)
- surface: ten god of each branch's main stem
- full: ten gods of every hidden stem (HGC table unless mode is classic)

Counts use stems + surface. Adjacency is vertical only: a stem and the
surface of its own branch. The closing battery flags each ten-god category
that is missing from stems and surface (天地無X when the hidden stems lack
it too, 無X when it only shows hidden).
"""

import logging

from fourpillars.tables import (
    BRANCH_MAIN_STEM,
    ELEMENTS,
    YANG_REN_MONTH_BY_DAY_STEM,
    Element,
    HiddenMode,
    hidden_stems,
    parse_chart,
)
from fourpillars.ten_gods import CATEGORIES, TenGod, TenGodCategory, ten_god

logger = logging.getLogger(__name__)

C = TenGodCategory
G = TenGod

CATEGORY_LABEL = {
    C.PEER: "比劫",
    C.OUTPUT: "食傷",
    C.WEALTH: "財星",
    C.OFFICER: "官星",
    C.RESOURCE: "印星",
}


def _tag_mode(value) -> HiddenMode:
    """Tags read the HGC table unless classic is asked for explicitly."""
    if isinstance(value, HiddenMode):
        return value
    if isinstance(value, str) and value.strip().lower() == "classic":
        return HiddenMode.CLASSIC
    return HiddenMode.HGC


def _element_percent(values) -> dict:
    out = {el: 0 for el in ELEMENTS}
    for k, v in (values or {}).items():
        el = k if isinstance(k, Element) else Element(k)
        out[el] = v
    return out


def detect_structure_tags(pillars, hidden_mode=HiddenMode.HGC, element_percent=None) -> list[str]:
    """
    Detect structure tags for a chart.

    Args:
        pillars: 4 pillars, year/month/day/hour
        hidden_mode: "classic" selects the classic hidden-stem table; anything else HGC
        element_percent: Element → percent from the power scorer

    Returns:
        Tags in detection order, no duplicates; empty for an incomplete chart
    """
    chart = parse_chart(pillars)
    if any(p is None for p in chart):
        return []
    mode = _tag_mode(hidden_mode)
    pct = _element_percent(element_percent)

    dm = chart[2].stem
    stems = [p.stem for p in chart]
    branches = [p.branch for p in chart]
    tags = []

    el_count = {el: 0 for el in ELEMENTS}
    for s in stems:
        el_count[s.element] += 10
    for b in branches:
        el_count[b.element] += 6

    stem_gods = [ten_god(dm, s) for s in stems]
    surface_gods = [ten_god(dm, BRANCH_MAIN_STEM[b]) for b in branches]
    sub_list = stem_gods + surface_gods

    def cnt(*gods):
        return sum(1 for g in sub_list if g in gods)

    def cnt_cat(cat):
        return sum(1 for g in sub_list if g.category is cat)

    def has(*gods):
        return any(g in gods for g in sub_list)

    def adjacent(group_a, group_b):
        for s, b in zip(stem_gods, surface_gods):
            if (s in group_a and b in group_b) or (s in group_b and b in group_a):
                return True
        return False

    peer = (G.COMPANION, G.ROB_WEALTH)
    output = (G.EATING_GOD, G.HURTING_OFFICER)
    wealth = (G.INDIRECT_WEALTH, G.DIRECT_WEALTH)
    officer = (G.SEVEN_KILLINGS, G.DIRECT_OFFICER)

    n_peer = cnt_cat(C.PEER)
    n_output = cnt_cat(C.OUTPUT)
    n_wealth = cnt_cat(C.WEALTH)
    n_officer = cnt_cat(C.OFFICER)
    n_resource = cnt_cat(C.RESOURCE)
    n_companion = cnt(G.COMPANION)
    n_rob = cnt(G.ROB_WEALTH)
    n_hurting = cnt(G.HURTING_OFFICER)
    n_killings = cnt(G.SEVEN_KILLINGS)
    n_direct_officer = cnt(G.DIRECT_OFFICER)

    # ---- harmony and generation
    if pct[Element.WATER] >= 20 and pct[Element.FIRE] >= 20 and pct[Element.EARTH] >= 15:
        tags.append("坎離相持")

    if ((n_hurting >= 1 or n_output >= 2) and n_wealth >= 1 and n_output > n_wealth
            and n_officer <= 1 and adjacent(output, wealth)):
        tags.append("化傷爲財")

    if has(*wealth) and has(*officer) and adjacent(wealth, officer):
        tags.append("財生官殺" if n_killings else "財生官")

    if (n_wealth >= 2 and n_resource >= 2 and abs(n_wealth - n_resource) <= 1
            and n_output <= 1 and n_officer <= 1):
        tags.append("財印不礙")

    if n_rob >= 2 and n_output >= 1 and el_count[Element.FIRE] + el_count[Element.WOOD] >= 20:
        tags.append("化劫爲生")
    if n_rob >= 2 and n_wealth >= 1 and el_count[Element.FIRE] + el_count[Element.EARTH] >= 20:
        tags.append("化劫爲財")
    if (n_companion >= 2 and n_wealth >= 1
            and el_count[Element.FIRE] + el_count[Element.EARTH] >= 20
            and adjacent((G.COMPANION,), wealth) and n_officer <= 1):
        tags.append("化祿爲財")

    # 財命有氣: Day Master and some wealth stem each rooted in their own branch
    day_rooted = dm.element == chart[2].branch.element
    wealth_rooted = any(
        ten_god(dm, p.stem).category is C.WEALTH and p.stem.element == p.branch.element
        for p in chart
    )
    if day_rooted and wealth_rooted:
        tags.append("財命有氣")

    # ---- excess and imbalance
    if n_officer >= 3 and n_officer >= 0.5 * (n_peer + n_output + n_wealth + n_resource):
        tags.append("官殺過多")
    if n_resource >= 3 and n_resource >= 0.5 * (n_peer + n_output + n_wealth + n_officer):
        tags.append("印綬過多")
    if n_resource >= 3 and n_officer >= 1:
        tags.append("印多官洩")
    if n_wealth >= 3 and n_peer + n_resource <= 1:
        tags.append("財多身弱")
    if n_peer + n_resource >= 2 and n_killings == 1 and n_wealth >= 1:
        tags.append("財滋弱殺")
    if n_killings >= 2 and n_output + n_resource >= 3:
        tags.append("制殺太過")
    if (n_companion >= 2 or n_peer >= 2) and n_wealth >= 1 and n_peer > n_wealth:
        tags.append("群比爭財")
    if n_rob >= 2 and n_wealth >= 1 and n_peer > n_wealth:
        tags.append("群劫爭財")

    # ---- hurting officer and officer interplay
    if n_hurting >= 2 and n_killings + n_direct_officer >= 1:
        tags.append("傷官見官")
    if n_hurting >= 2 and n_killings + n_direct_officer == 0:
        tags.append("傷官傷盡")
    if n_hurting >= 2 and n_killings >= 1:
        tags.append("傷官帶殺" if dm.is_yang else "傷官合殺")
    if cnt(G.EATING_GOD) >= 2 and cnt(G.INDIRECT_RESOURCE) >= 1:
        tags.append("食神逢梟")
    if n_direct_officer >= 1 and cnt(G.DIRECT_RESOURCE) >= 1 and adjacent((G.DIRECT_OFFICER,), (G.DIRECT_RESOURCE,)):
        tags.append("官印雙全")
    yang_ren_month = YANG_REN_MONTH_BY_DAY_STEM.get(dm) == chart[1].branch
    if yang_ren_month and n_killings >= 1 and n_peer + n_resource >= 2:
        tags.append("羊刃合殺")

    # ---- absence battery: stems (day stem excluded), surface, every hidden stem
    stem_cats = {ten_god(dm, p.stem).category for i, p in enumerate(chart) if i != 2}
    surface_cats = {g.category for g in surface_gods}
    hidden_cats = {ten_god(dm, h).category for b in branches for h in hidden_stems(b, mode)}
    for cat in CATEGORIES:
        if cat in stem_cats or cat in surface_cats:
            continue
        if cat in hidden_cats:
            tags.append(f"無{CATEGORY_LABEL[cat]}")
        else:
            tags.append(f"天地無{CATEGORY_LABEL[cat]}")

    logger.debug("structure tags for %s: %s", "".join(p.key for p in chart), tags)
    return list(dict.fromkeys(tags))
