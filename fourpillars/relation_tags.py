"""
Relation tags (合沖刑破害) between the pillars of a chart and its luck chain.

Every relation found becomes a display tag such as "#月X日_子午沖", sorted
into one bucket per relation kind:

    stem_combination  天干合   adjacent natal stems, or a luck stem with any natal stem
    stem_clash        天干沖
    triad             三合     complete natal triad, or one luck branch + two natal
    half_triad        半合     natal pairs holding the triad's cardinal branch
    directional       方合     complete natal directional set (luck view only)
    six_harmony       六合
    clash             沖
    punishment        刑       相刑, 子卯刑, 自刑 and 三刑
    destruction       破
    harm              害
    resentment        元嗔
    ghost_gate        鬼門
    hidden_combination         暗合 between branches
    pillar_hidden_combination  干支暗合 inside one pillar

A natal pair spanning the year and hour pillars is far apart and carries the
"(弱)" suffix. For each relation the closest pair is tagged; a far pair is
replaced once a close pair of the same relation turns up.
"""

import logging
from itertools import combinations
from typing import Optional

from fourpillars.tables import (
    BRANCH_CLASHES,
    BRANCH_DESTRUCTIONS,
    BRANCH_HARMS,
    BRANCH_HIDDEN_COMBINATIONS,
    BRANCH_PUNISHMENTS,
    BRANCH_RESENTMENTS,
    CARDINAL_BRANCHES,
    DIRECTIONAL_SETS,
    GHOST_GATES,
    HALF_TRIADS,
    PILLAR_HIDDEN_COMBINATIONS,
    PUNISHMENT_TRIADS,
    RUDE_PUNISHMENTS,
    SELF_PUNISHMENT_BRANCHES,
    SIX_HARMONIES,
    STEM_CLASHES,
    STEM_COMBINATIONS,
    TRIADS,
    parse_chart,
    parse_pillar,
)

logger = logging.getLogger(__name__)

BUCKETS = (
    "stem_combination",
    "stem_clash",
    "triad",
    "half_triad",
    "directional",
    "six_harmony",
    "clash",
    "punishment",
    "destruction",
    "harm",
    "resentment",
    "ghost_gate",
    "hidden_combination",
    "pillar_hidden_combination",
)

POSITION_LABELS = ("年", "月", "日", "時")
PILLAR_LABELS = ("年柱", "月柱", "日柱", "時柱")
LUCK_SCOPES = ("decade", "year", "month", "day")
LUCK_LABELS = {"decade": "大運", "year": "歲運", "month": "月運", "day": "日運"}

WEAK_SUFFIX = "(弱)"
NONE_TAG = "#無"

YEAR_SLOT, HOUR_SLOT = 0, 3

STEM_PAIR_RULES = [
    ("stem_combination", [(a, b) for a, b, _ in STEM_COMBINATIONS], "合"),
    ("stem_clash", STEM_CLASHES, "沖"),
]

BRANCH_PAIR_RULES = [
    ("six_harmony", SIX_HARMONIES, "合"),
    ("clash", BRANCH_CLASHES, "沖"),
    ("destruction", BRANCH_DESTRUCTIONS, "破"),
    ("harm", BRANCH_HARMS, "害"),
    ("resentment", BRANCH_RESENTMENTS, "元嗔"),
    ("ghost_gate", GHOST_GATES, "鬼門"),
]


# ============================================================
# HELPERS
# ============================================================

def _empty_buckets() -> dict:
    return {k: [] for k in BUCKETS}


def _chars(items) -> str:
    return "".join(x.chinese for x in items)


def pair_label(pairs, a, b, suffix: str) -> Optional[str]:
    """Label of the (a, b) pair in a relation table, in table order, or None."""
    for x, y in pairs:
        if (a == x and b == y) or (a == y and b == x):
            return f"{x.chinese}{y.chinese}{suffix}"
    return None


def _push(bucket: list, tag: str):
    if tag not in bucket:
        bucket.append(tag)


def _push_prefer_close(bucket: list, tag: str, marker: str):
    """Keep one tag per relation; a far (弱) tag gives way to a close one."""
    for k, existing in enumerate(bucket):
        if marker in existing:
            if WEAK_SUFFIX in existing and WEAK_SUFFIX not in tag:
                bucket[k] = tag
            return
    bucket.append(tag)


def _position_pairs(branches, x, y) -> list:
    """Every slot pair holding x and y, closest first."""
    pairs = [(min(i, j), max(i, j))
             for i, b1 in enumerate(branches) if b1 == x
             for j, b2 in enumerate(branches) if b2 == y and i != j]
    return sorted(pairs, key=lambda p: p[1] - p[0])


def _is_far(i: int, j: int) -> bool:
    return i == YEAR_SLOT and j == HOUR_SLOT


def _mask(slots) -> str:
    return "X".join(POSITION_LABELS[i] for i in sorted(slots))


def _add_natal_pairs(bucket: list, branches, x, y, label: str, prefer_close: bool = True):
    for i, j in _position_pairs(branches, x, y):
        far = _is_far(i, j)
        tag = f"#{POSITION_LABELS[i]}X{POSITION_LABELS[j]}_{label}{WEAK_SUFFIX if far else ''}"
        if far or not prefer_close:
            _push(bucket, tag)
        else:
            _push_prefer_close(bucket, tag, label)


def _holds_cardinal(x, y) -> bool:
    return x in CARDINAL_BRANCHES or y in CARDINAL_BRANCHES


def _finalize(out: dict) -> dict:
    """Drop duplicates; a 三刑 swallows the pair punishments inside it."""
    out = {k: list(dict.fromkeys(v)) for k, v in out.items()}
    for members in PUNISHMENT_TRIADS:
        if not any(f"{_chars(members)}三刑" in t for t in out["punishment"]):
            continue
        inner = [f"{x.chinese}{y.chinese}刑" for x, y in BRANCH_PUNISHMENTS
                 if x in members and y in members]
        out["punishment"] = [t for t in out["punishment"] if not any(p in t for p in inner)]
    return out


def _luck_pillars(luck) -> list:
    out = []
    if luck is None:
        return out
    for scope in LUCK_SCOPES:
        raw = luck.get(scope) if isinstance(luck, dict) else getattr(luck, scope, None)
        pillar = parse_pillar(raw, scope)
        if pillar is not None:
            out.append((scope, pillar))
    return out


# ============================================================
# NATAL TAGS
# ============================================================

def natal_relation_tags(pillars, pillar_hidden: bool = True, fill_none: bool = True) -> dict:
    """
    Relation tags inside the natal chart.

    Args:
        pillars: 4 pillars in year/month/day/hour order; bad slots are skipped
        pillar_hidden: also tag 干支暗合 pillars
        fill_none: an empty bucket reads ["#無"]

    Returns:
        bucket name → list of tags
    """
    chart = parse_chart(pillars)
    stems = [p.stem if p is not None else None for p in chart]
    branches = [p.branch if p is not None else None for p in chart]
    out = _empty_buckets()

    # stems: neighbours only
    for i in range(3):
        a, b = stems[i], stems[i + 1]
        if a is None or b is None:
            continue
        for bucket, pairs, suffix in STEM_PAIR_RULES:
            label = pair_label(pairs, a, b, suffix)
            if label:
                _push(out[bucket], f"#{POSITION_LABELS[i]}X{POSITION_LABELS[i + 1]}_{label}")

    for bucket, pairs, suffix in BRANCH_PAIR_RULES:
        for x, y in pairs:
            _add_natal_pairs(out[bucket], branches, x, y, f"{x.chinese}{y.chinese}{suffix}")

    for members in TRIADS:
        if not all(m in branches for m in members):
            continue
        slots = [i for i, b in enumerate(branches) if b in members]
        far = YEAR_SLOT in slots and HOUR_SLOT in slots
        _push(out["triad"], f"#{_mask(slots)}_{_chars(members)}三合{WEAK_SUFFIX if far else ''}")

    for x, y in HALF_TRIADS:
        if _holds_cardinal(x, y):
            _add_natal_pairs(out["half_triad"], branches, x, y, f"{x.chinese}{y.chinese}半合",
                             prefer_close=False)

    for x, y in BRANCH_PUNISHMENTS + RUDE_PUNISHMENTS:
        _add_natal_pairs(out["punishment"], branches, x, y, f"{x.chinese}{y.chinese}刑")

    for br in SELF_PUNISHMENT_BRANCHES:
        slots = [i for i, b in enumerate(branches) if b == br]
        for i, j in combinations(slots, 2):
            marker = f"{br.chinese}自刑"
            far = _is_far(i, j)
            tag = f"#{POSITION_LABELS[i]}X{POSITION_LABELS[j]}_{marker}{WEAK_SUFFIX if far else ''}"
            _push_prefer_close(out["punishment"], tag, marker)

    for x, y in BRANCH_HIDDEN_COMBINATIONS:
        _add_natal_pairs(out["hidden_combination"], branches, x, y, f"{x.chinese}{y.chinese}暗合")

    if pillar_hidden:
        for i, p in enumerate(chart):
            if p is not None and p.key in PILLAR_HIDDEN_COMBINATIONS:
                _push(out["pillar_hidden_combination"], f"#{PILLAR_LABELS[i]}_{p.key}暗合")

    out = _finalize(out)
    if fill_none:
        out = {k: v or [NONE_TAG] for k, v in out.items()}
    logger.debug("natal relations: %s", {k: len(v) for k, v in out.items() if v != [NONE_TAG]})
    return out


# ============================================================
# LUCK TAGS
# ============================================================

def _luck_triad(bucket: list, kind: str, luck_branch, members, branches, suffix: str) -> bool:
    """One luck branch completing a set with two different natal branches."""
    if luck_branch not in members:
        return False
    others = [m for m in members if m != luck_branch]
    slots = []
    for m in others:
        slot = next((i for i, b in enumerate(branches) if b == m), None)
        if slot is None:
            return False
        slots.append(slot)
    _push(bucket, f"#{kind}X{_mask(slots)}_{_chars(members)}{suffix}")
    return True


def luck_relation_tags(pillars, luck, pillar_hidden: bool = False) -> dict:
    """
    Relation tags between the luck chain and the natal chart.

    Each luck pillar (大運, 歲運, 月運, 日運) is compared with every natal
    pillar. The natal half triads are carried along; relations among the luck
    pillars alone are not tagged, except a 三刑 two of them close with a
    natal branch.

    Args:
        pillars: the 4 natal pillars
        luck: dict or LuckOverlay with "decade"/"year"/"month"/"day" pillars;
            missing scopes are skipped
        pillar_hidden: also tag the natal 干支暗合 pillars when any luck is given

    Returns:
        bucket name → list of tags (empty buckets stay empty)
    """
    chart = parse_chart(pillars)
    branches = [p.branch if p is not None else None for p in chart]
    lucks = _luck_pillars(luck)
    out = _empty_buckets()

    for x, y in HALF_TRIADS:
        if not _holds_cardinal(x, y):
            continue
        for i, j in _position_pairs(branches, x, y):
            _push(out["half_triad"], f"#{POSITION_LABELS[i]}X{POSITION_LABELS[j]}_{x.chinese}{y.chinese}半合")

    if pillar_hidden and lucks:
        for i, p in enumerate(chart):
            if p is not None and p.key in PILLAR_HIDDEN_COMBINATIONS:
                _push(out["pillar_hidden_combination"], f"#{PILLAR_LABELS[i]}_{p.key}暗合")

    for scope, lp in lucks:
        kind = LUCK_LABELS[scope]
        if lp.key in PILLAR_HIDDEN_COMBINATIONS:
            _push(out["pillar_hidden_combination"], f"#{kind}_{lp.key}暗合")

        for i, p in enumerate(chart):
            if p is None:
                continue
            prefix = f"#{kind}X{POSITION_LABELS[i]}_"
            for bucket, pairs, suffix in STEM_PAIR_RULES:
                label = pair_label(pairs, lp.stem, p.stem, suffix)
                if label:
                    _push(out[bucket], prefix + label)
            for bucket, pairs, suffix in BRANCH_PAIR_RULES:
                label = pair_label(pairs, lp.branch, p.branch, suffix)
                if label:
                    _push(out[bucket], prefix + label)

            label = (pair_label(BRANCH_PUNISHMENTS, lp.branch, p.branch, "刑")
                     or pair_label(RUDE_PUNISHMENTS, lp.branch, p.branch, "刑"))
            if label is None and lp.branch == p.branch and lp.branch in SELF_PUNISHMENT_BRANCHES:
                label = f"{lp.branch.chinese}自刑"
            if label:
                _push(out["punishment"], prefix + label)

            label = pair_label(BRANCH_HIDDEN_COMBINATIONS, lp.branch, p.branch, "暗合")
            if label:
                _push(out["hidden_combination"], prefix + label)

        for members in TRIADS:
            _luck_triad(out["triad"], kind, lp.branch, members, branches, "三合")
        for members in PUNISHMENT_TRIADS:
            _luck_triad(out["punishment"], kind, lp.branch, members, branches, "三刑")

    if lucks:
        for members in DIRECTIONAL_SETS:
            slots = [i for i, b in enumerate(branches) if b in members]
            if len({branches[i] for i in slots}) == 3:
                _push(out["directional"], f"#{_mask(slots)}_{_chars(members)}方合")

    for members in PUNISHMENT_TRIADS:
        for (s1, l1), (s2, l2) in combinations(lucks, 2):
            for i, b in enumerate(branches):
                if b is not None and {b, l1.branch, l2.branch} == set(members):
                    _push(out["punishment"],
                          f"#{POSITION_LABELS[i]}X{LUCK_LABELS[s1]}X{LUCK_LABELS[s2]}_{_chars(members)}三刑")

    out = _finalize(out)
    logger.debug("luck relations over %s: %s", [s for s, _ in lucks],
                 {k: len(v) for k, v in out.items() if v})
    return out


if __name__ == "__main__":
    natal = ["庚午", "壬午", "丙子", "甲午"]
    for name, tags in natal_relation_tags(natal).items():
        print(name, tags)
    print(luck_relation_tags(natal, {"decade": "戊寅", "year": "丙午"}))
