"""
Outer / special structure battery (外格).

Every check is independent and runs on every complete chart; a chart can
match none, one or several. Labels are returned in check order with
duplicates removed. Element-parameterized labels read "專旺格 (wood)".

Views used:
- stem ten gods (the day stem counts as its own 比肩)
- branch surface: ten god of each branch's main stem
- hidden stems: every hidden stem of each branch (classic table unless hgc)
- rough element strength: 10 per stem, 6 per branch main element
"""

from fourpillars.tables import (
    BRANCH_MAIN_STEM,
    ELEMENTS,
    JIAN_LU_PAIRS,
    LOK_BRANCH,
    MONTH_ROB_BRANCH,
    STEM_COMBINATIONS,
    YANG_REN_BRANCH,
    HiddenMode,
    hidden_mode as coerce_hidden_mode,
    hidden_stems,
    parse_branch,
    parse_stem,
)
from fourpillars.ten_gods import TenGod, TenGodCategory, ten_god

C = TenGodCategory


def rough_element_strength(chart) -> dict:
    """10 points per stem element, 6 per branch main element."""
    strength = {el: 0 for el in ELEMENTS}
    for p in chart:
        strength[p.stem.element] += 10
        strength[p.branch.element] += 6
    return strength


def _ranked(strength: dict) -> list:
    # stable: ties keep wood → water order
    return sorted(strength.items(), key=lambda kv: -kv[1])


def _with_element(label: str, element) -> str:
    return f"{label} ({element.value})"


def detect_outer_structures(chart, day_stem, month_branch, mode=HiddenMode.CLASSIC) -> list[str]:
    """
    Run the special-structure battery over a complete chart.

    Args:
        chart: 4 Pillar objects, year/month/day/hour
        day_stem: Day Master
        month_branch: month branch
        mode: hidden-stem table for the existence view; hgc or classic

    Returns:
        Ordered, de-duplicated list of structure labels
    """
    dm = parse_stem(day_stem)
    mb = parse_branch(month_branch)
    if dm is None or mb is None or len(chart) < 4 or any(p is None for p in chart):
        return []
    mode = coerce_hidden_mode(mode)

    yp, mp, dp, hp = chart[:4]
    stems = [p.stem for p in chart]
    branches = [p.branch for p in chart]
    branch_set = set(b.chinese for b in branches)
    subs = [ten_god(dm, s) for s in stems]
    day_el = dm.element
    out = []

    def count_subs(*gods):
        return sum(1 for g in subs if g in gods)

    def count_cat(cat):
        return sum(1 for g in subs if g.category is cat)

    def has_all(chars):
        return all(c in branch_set for c in chars)

    def count_branch(ch):
        return sum(1 for b in branches if b.chinese == ch)

    # ---- peer exceptions and 祿 placement
    if dm.is_yang and YANG_REN_BRANCH.get(dm) == mb:
        out.append("羊刃格")
    if (dm, mb) in JIAN_LU_PAIRS:
        out.append("建祿格")
    if not dm.is_yang and MONTH_ROB_BRANCH.get(dm) == mb:
        out.append("月劫格")
    lok = LOK_BRANCH.get(dm)
    if lok is not None and dp.branch == lok and day_el == dp.branch.element:
        out.append("專祿格")
    if lok is not None and hp.branch == lok and day_el == hp.branch.element:
        out.append("歸祿格")

    # ---- existence view: stems, branch surface and every hidden stem
    present = set(subs)
    for b in branches:
        present.add(ten_god(dm, BRANCH_MAIN_STEM[b]))
        present.update(ten_god(dm, h) for h in hidden_stems(b, mode))
    present_cats = {g.category for g in present}

    stem_seq = [g.category for g in subs]
    surface_seq = [ten_god(dm, BRANCH_MAIN_STEM[b]).category for b in branches]

    def adjacent(cat_a, cat_b):
        """Stem ↔ own branch surface, or neighbouring stems, or neighbouring surfaces."""
        def ok(x, y):
            return (x is cat_a and y is cat_b) or (x is cat_b and y is cat_a)
        for i in range(4):
            if ok(stem_seq[i], surface_seq[i]):
                return True
        for i in range(3):
            if ok(stem_seq[i], stem_seq[i + 1]) or ok(surface_seq[i], surface_seq[i + 1]):
                return True
        return False

    if C.OFFICER in present_cats and C.RESOURCE in present_cats and adjacent(C.OFFICER, C.RESOURCE):
        out.append("官印相生格")
    if C.OUTPUT in present_cats and C.WEALTH in present_cats and adjacent(C.OUTPUT, C.WEALTH):
        out.append("食傷生財格")

    # ---- stem-count motifs
    n_output = count_cat(C.OUTPUT)
    n_killings = count_subs(TenGod.SEVEN_KILLINGS)
    n_direct_officer = count_subs(TenGod.DIRECT_OFFICER)
    n_resource = count_cat(C.RESOURCE)
    n_wealth = count_cat(C.WEALTH)
    n_officer = count_cat(C.OFFICER)
    n_hurting = count_subs(TenGod.HURTING_OFFICER)

    if n_killings >= 1 and n_output >= 1 and n_output >= n_killings and n_direct_officer <= n_killings:
        out.append("食傷制殺格")
    if n_hurting >= 1 and n_resource >= 1 and n_hurting >= n_resource:
        out.append("傷官佩印格")
    if n_killings >= 1 and n_resource >= 1:
        out.append("殺印相生格")

    # ---- dominant / following
    strength = rough_element_strength(chart)
    ranked = _ranked(strength)
    top_el, top_val = ranked[0]
    if top_val >= 60:
        out.append(_with_element("專旺格", top_el))
    if top_val >= 75 and top_val - ranked[1][1] >= 12 and top_el != day_el:
        out.append(_with_element("從格", top_el))

    # ---- stem combination transformations
    for a, b, to_el in STEM_COMBINATIONS:
        if a not in stems or b not in stems:
            continue
        to_str = strength[to_el]
        orig_max = max(strength[a.element], strength[b.element])
        gate = mb.element == to_el or top_el == to_el
        if to_str >= 60 and gate and orig_max <= 20 and to_str - orig_max >= 20:
            out.append(_with_element("化氣格", to_el))
        elif to_str >= 50 and gate and orig_max <= 25:
            out.append(_with_element("眞化格", to_el))
        elif to_str >= 35:
            out.append(_with_element("假化格", to_el))

    # ---- hour and 祿馬 checks
    if dm.chinese in "甲己" and hp.key in ("己巳", "癸酉", "乙丑"):
        out.append("金神格")
    if hp.branch.chinese in "辰戌丑未":
        out.append("時墓格")
    if dm.chinese in "丙丁" and (dp.branch.chinese == "午" or mp.branch.chinese == "午") and "子" not in branch_set:
        out.append("倒沖祿馬格")
    fire_stem = any(s.chinese in "丙丁" for s in stems)
    fire_branch = "巳" in branch_set or "午" in branch_set
    if dp.branch.chinese in "子亥" and not fire_stem and not fire_branch:
        out.append("飛天祿馬格")

    # ---- three wonders, images, balance
    stem_chars = set(s.chinese for s in stems)
    if set("甲戊庚") <= stem_chars:
        out.append("天上三奇格")
    if set("壬癸辛") <= stem_chars:
        out.append("人中三奇格")
    if set("乙丙丁") <= stem_chars:
        out.append("地下三奇格")
    vals = sorted(strength.values(), reverse=True)
    if vals[0] - vals[2] <= 8 and vals[0] + vals[1] + vals[2] >= 80:
        out.append("三象格")
    if n_wealth >= 1 and n_officer >= 1 and abs(n_wealth - n_officer) <= 1:
        out.append("財官雙美格")

    # ---- branch sets and uniform pillars
    if has_all("辰戌丑未"):
        out.append("四庫格")
    if has_all("寅申巳亥"):
        out.append("四生格")
    if has_all("子午卯酉"):
        out.append("四正格")
    if all(b == branches[0] for b in branches):
        out.append("地支元一氣格")
    same_element = all(s.element == stems[0].element for s in stems)
    yangs = [s.is_yang for s in stems]
    alternating = yangs in ([True, False, True, False], [False, True, False, True])
    if same_element and alternating:
        out.append("兩干不雜格")
    if all(p.key == yp.key for p in chart):
        out.append("鳳凰池格")
    if all(s == stems[0] for s in stems) and all(b == branches[0] for b in branches):
        out.append("干支同體格")
    if n_output >= 1 and lok is not None and (dp.branch == lok or hp.branch == lok):
        out.append("專食祿格")

    # ---- classical day-pillar specials
    has_officer = n_officer >= 1
    has_wealth = n_wealth >= 1
    if (sum(1 for s in stems if s.chinese == "乙") >= 3 and has_all("巳酉丑")
            and dp.branch.chinese in "巳酉丑"):
        out.append("福德秀氣格")
    if dm.chinese in "戊己" and any(has_all(s) for s in ("亥卯未", "寅卯辰", "亥子丑", "申子辰")):
        out.append("勾陳得位格")
    if dp.key in ("甲子", "甲寅", "甲辰", "甲午", "甲申", "甲戌") and count_branch("亥") >= 2:
        if not (has_officer or has_wealth or "巳" in branch_set or "寅" in branch_set):
            out.append("六甲趨乾格")
    if (dp.key in ("壬子", "壬寅", "壬辰", "壬午", "壬申", "壬戌")
            and count_branch("寅") >= 2 and "亥" in branch_set):
        out.append("六壬趨艮格")
    if dm.chinese == "乙" and hp.key == "丙子":
        month_sub = ten_god(dm, mp.stem)
        if (month_sub.category not in (C.WEALTH, C.OFFICER) and has_wealth
                and "午" not in branch_set and "寅" not in branch_set):
            out.append("六乙鼠貴格")
    if dp.key in ("辛亥", "辛丑", "辛酉") and hp.key == "戊子" and "午" not in branch_set and not has_officer:
        out.append("六陰朝陽格")
    if dp.key == "壬辰" and count_branch("辰") + count_branch("寅") >= 2:
        out.append("壬騎龍背格")
    if dp.key in ("癸丑", "辛丑") and count_branch("丑") >= 2 and not has_officer and "子" not in branch_set:
        out.append("丑遙巳格")
    if dm.chinese == "庚" and has_all("申子辰"):
        out.append("井欄叉格")
    if dp.key == "甲子" and hp.key == "甲子":
        out.append("子遙巳格")

    return list(dict.fromkeys(out))
