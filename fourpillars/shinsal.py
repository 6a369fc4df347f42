"""
Natal shinsal (神殺): auspicious and baleful stars read from the four pillars.

Each star is keyed on one part of the chart and looked up in a table:

    year branch   太白, 孤辰, 寡宿, 囚獄, the 耗 and 符 stars on the other slots
    month branch  天德 / 月德 nobles (stems), 天醫, 紅鸞, 血支, 急脚 ...
                  and the day pillars 天赦, 進神, 天轉, 地轉
    day stem      天乙, 文昌, 十干祿, 羊刃, 紅艶 ...

plus a set of pattern stars (魁罡, 白虎, 天羅地網, 懸針, 截路空亡, the
peach-blossom variants, 祿馬, 平頭, 曲脚, 元嗔, 鬼門) and 空亡 (void
branches of the day or year pillar's ten-day decade).

Every hit sits on one slot with a weight (month 4, day 3, year 2, hour 1).
A star found on several slots keeps only the heaviest one, except 懸針,
曲脚, 元嗔 and 鬼門 which may repeat.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from fourpillars.relation_tags import pair_label
from fourpillars.tables import (
    BRANCH_RESENTMENTS,
    GHOST_GATES,
    HiddenMode,
    SEXAGENARY_CYCLE,
    hidden_stems,
    parse_chart,
    parse_pillar,
)

logger = logging.getLogger(__name__)

YEAR, MONTH, DAY, HOUR = range(4)
POSITIONS = ("year", "month", "day", "hour")
POS_WEIGHT = {MONTH: 4, DAY: 3, YEAR: 2, HOUR: 1}
SEARCH_ORDER = (DAY, MONTH, HOUR, YEAR)
ALL_SLOTS = (YEAR, MONTH, DAY, HOUR)

STEM_SLOTS = ("年干", "月干", "日干", "時干")
BRANCH_SLOTS = ("年支", "月支", "日支", "時支")
PILLAR_SLOTS = ("年柱", "月柱", "日柱", "時柱")

STEM_ORDER = "甲乙丙丁戊己庚辛壬癸"
BRANCH_ORDER = "子丑寅卯辰巳午未申酉戌亥"


def _keyed(order: str, text: str) -> dict:
    """Key a table string such as 巳丑酉... or 丑未 子申 ... on the stem or branch order."""
    tokens = text.split() if " " in text else list(text)
    return {k: list(v) for k, v in zip(order, tokens)}


def _keyed_pillars(text: str) -> dict:
    return {k: [v] for k, v in zip(BRANCH_ORDER, text.split())}


# ============================================================
# YEAR-BRANCH TABLES (all baleful)
# ============================================================

_SMALL_WASTE = "巳午未申酉戌亥子丑寅卯辰"
_FIVE_GHOSTS = "辰巳午未申酉戌亥子丑寅卯"
_SICK_TALLY = "亥子丑寅卯辰巳午未申酉戌"
_HEAVEN_DOG = "戌亥子丑寅卯辰巳午未申酉"

# (name, table, slots checked besides the year itself)
YEAR_STARS = [
    ("太白", "巳丑酉巳丑酉巳丑酉巳丑酉", (MONTH,)),
    ("五鬼", _FIVE_GHOSTS, (DAY,)),
    ("孤辰", "寅寅巳巳巳申申申亥亥亥寅", (MONTH,)),
    ("寡宿", "戌戌丑丑丑辰辰辰未未未戌", (MONTH,)),
    ("囚獄", "午卯子酉午卯子酉午卯子酉", None),
    ("短命", "巳寅辰未巳寅辰未巳寅辰未", (HOUR,)),
    ("天耗", "申戌子寅辰午申戌子寅辰午", None),
    ("地耗", "巳未酉亥丑卯巳未酉亥丑卯", None),
    ("大耗", "午未申酉戌亥子丑寅卯辰巳", None),
    ("小耗", _SMALL_WASTE, None),
    ("隔角", "寅卯辰巳午未申酉戌亥子丑", None),
    ("破軍", "申巳寅亥申巳寅亥申巳寅亥", None),
    ("勾神", "卯辰巳午未申酉戌亥子丑寅", None),
    ("絞神", "酉戌亥子丑寅卯辰巳午未申", None),
    ("返吟", "子丑寅卯辰巳午未申酉戌亥", None),
    ("伏吟", "午未申酉戌亥子丑寅卯辰巳", None),
    ("病符", _SICK_TALLY, None),
    ("死符", _SMALL_WASTE, None),
    ("官符", _FIVE_GHOSTS, None),
    ("太陰", _SICK_TALLY, None),
    ("歲破", "酉辰亥午丑申卯戌巳子未寅", None),
    ("天狗", _HEAVEN_DOG, None),
    ("飛廉", "申酉戌亥子丑寅卯辰巳午未", None),
    ("埋兒", "丑卯申丑卯申丑卯申丑卯申", None),
    ("湯火", "午未寅午未寅午未寅午未寅", None),
]


# ============================================================
# MONTH-BRANCH TABLES
# ============================================================

# Noble stems (a branch entry is matched against branches)
MONTH_NOBLES = [
    ("天德貴人", "巳庚丁申壬辛亥甲癸寅丙乙"),
    ("月德貴人", "壬庚丙甲壬庚丙甲壬庚丙甲"),
    ("天德合", "申乙壬巳丁丙寅己戊亥辛庚"),
    ("月德合", "丁乙辛己丁乙辛己丁乙辛己"),
]

# (name, table, slots)
MONTH_BAD = [
    ("血支", "申酉戌亥子丑寅卯辰巳午未", ALL_SLOTS),
    ("金鎖", "子丑申酉戌亥子丑申酉戌亥", (YEAR, DAY)),
    ("急脚殺", "丑辰 丑辰 亥子 亥子 亥子 卯未 卯未 卯未 寅戌 寅戌 寅戌 丑辰", ALL_SLOTS),
    ("斷橋關殺", "亥子寅卯申丑戌酉辰巳午未", ALL_SLOTS),
    ("斧劈殺", "巳丑酉巳丑酉巳丑酉巳丑酉", ALL_SLOTS),
    ("浴盆關殺", "丑丑辰辰辰未未未戌戌戌丑", ALL_SLOTS),
    ("四柱關殺", "丑未 子午 巳亥 辰戌 卯酉 寅申 丑未 子午 巳亥 辰戌 卯酉 寅申", ALL_SLOTS),
]

MONTH_GOOD = [
    ("天醫星", "亥子丑寅卯辰巳午未申酉戌", ALL_SLOTS),
    ("天喜神", "酉申未午巳辰卯寅丑子亥戌", (DAY, HOUR)),
    ("皇恩大赦", "申未戌丑寅巳酉卯子午亥辰", (DAY, HOUR)),
    ("紅鸞星", "卯寅丑子亥戌酉申未午巳辰", ALL_SLOTS),
    ("長壽星", "丑子亥戌酉申未午巳辰卯寅", ALL_SLOTS),
]

# Month branch → day pillar
MONTH_DAY_PILLARS_GOOD = [
    ("天赦", "甲子 甲子 戊寅 戊寅 戊寅 甲午 甲午 甲午 戊申 戊申 戊申 甲子"),
    ("進神", "甲子 甲子 甲子 甲子 甲子 甲午 甲午 甲午 戊申 戊申 戊申 甲子"),
]
MONTH_DAY_PILLARS_BAD = [
    ("天轉殺", "壬子 壬子 乙卯 乙卯 乙卯 丙午 丙午 丙午 辛酉 辛酉 辛酉 壬子"),
    ("地轉殺", "丙子 丙子 辛卯 辛卯 辛卯 戊午 戊午 戊午 癸酉 癸酉 癸酉 丙子"),
]


# ============================================================
# DAY-STEM TABLES
# ============================================================

DAY_GOOD = [
    ("太極貴人", "子午 子午 卯 卯 辰戌 丑未 寅亥 寅亥 巳申 巳申"),
    ("天乙貴人", "丑未 子申 亥酉 亥酉 丑未 子申 丑未 寅午 巳卯 巳卯"),
    ("天廚貴人", "巳午巳午申酉亥子寅卯"),
    ("天官貴人", "酉 申 子 亥 卯 寅 午 巳 丑未 辰戌"),
    ("天福貴人", "未辰巳酉戌卯亥申寅午"),
    ("文昌貴人", "巳午申酉申酉亥子寅卯"),
    ("暗祿", "亥戌申未申未巳辰寅丑"),
    ("金輿祿", "辰巳未申未申戌亥丑寅"),
    ("夾祿", "丑卯 寅辰 辰午 巳未 辰午 巳未 未酉 申戌 戌子 亥丑"),
    ("官貴學館", "巳巳巳申亥亥寅寅申申"),
    ("文曲貴人", "亥子寅卯寅卯巳午申酉"),
    ("學堂貴人", "亥午寅酉寅酉巳子申卯"),
    ("十干祿", "寅卯巳午巳午申酉亥子"),
    ("財庫貴人", "辰辰丑丑丑丑未未戌戌"),
]

_OWL = "子 亥 寅 卯 午 巳 辰戌 丑未 申 酉"
_YIN_ERROR = {"丁": ["丑", "未"], "辛": ["卯", "酉"], "癸": ["巳", "亥"]}
_YANG_ERROR = {"丙": ["子", "午"], "戊": ["寅", "申"], "壬": ["辰", "戌"]}
_LONE_PHOENIX = {"甲": ["寅"], "丁": ["巳"], "戊": ["申"], "辛": ["亥"]}

# (name, table, slots)
DAY_BAD = [
    ("紅艶", _keyed(STEM_ORDER, "申午寅未辰辰戌酉子申"), ALL_SLOTS),
    ("流霞", _keyed(STEM_ORDER, "酉戌未申巳午辰卯亥寅"), ALL_SLOTS),
    ("落井關殺", _keyed(STEM_ORDER, "巳子申戌卯巳子申戌卯"), ALL_SLOTS),
    ("梟神殺", _keyed(STEM_ORDER, _OWL), (DAY, HOUR)),
    ("陰錯殺", _YIN_ERROR, (DAY, HOUR)),
    ("陽錯殺", _YANG_ERROR, (DAY, HOUR)),
    ("孤鸞殺", _LONE_PHOENIX, (DAY,)),
    ("飛刃殺", _keyed(STEM_ORDER, "酉戌子丑子丑卯辰午未"), ALL_SLOTS),
    ("羊刃殺", _keyed(STEM_ORDER, "卯辰午未午未酉戌子丑"), ALL_SLOTS),
]

WHITE_TIGER = {"甲": "辰", "乙": "未", "丙": "戌", "丁": "丑", "戊": "辰", "壬": "戌", "癸": "丑"}
KUIGANG_DAYS = frozenset(["庚辰", "壬辰", "庚戌", "戊戌"])
HEAVEN_NET_PAIRS = [("戌", "亥"), ("辰", "巳")]

NEEDLE_STEMS, NEEDLE_BRANCHES = frozenset("甲辛"), frozenset("卯午未申")
BENT_LEG_STEMS, BENT_LEG_BRANCHES = frozenset("乙己"), frozenset("丑巳")
FLAT_HEAD = frozenset("甲丙丁壬子辰")

# day stems → hour pillars that cut the road
CUT_ROAD = [
    ("甲己", ("壬申", "癸酉")),
    ("乙庚", ("壬午", "癸未")),
    ("丙辛", ("壬辰", "癸巳")),
    ("丁壬", ("壬寅", "癸卯")),
    ("戊癸", ("壬子", "癸丑")),
]

# month/day/hour triad + the year branch it needs
INVERTED_PEACH = [("申子辰", "酉"), ("寅午戌", "卯"), ("巳酉丑", "卯"), ("亥卯未", "子")]

# day stem → (祿 branch, 馬 stem)
ROK_MA_CROSS = {
    "甲": ("寅", "庚"), "乙": ("卯", "丙"), "丙": ("巳", "壬"), "丁": ("午", "庚"),
    "戊": ("巳", "壬"), "己": ("午", "庚"), "庚": ("申", "甲"), "辛": ("酉", "壬"),
    "壬": ("亥", None), "癸": ("子", "甲"),
}

# day stem → (祿 branch, 馬 branch, 祿 stem, 馬 stem)
HEAVEN_ROK_MA = {
    "甲": ("寅", "申", "丙", "壬"), "乙": ("卯", "巳", "丙", "壬"),
    "丙": ("巳", "亥", "壬", "丙"), "丁": ("午", "亥", "庚", "丙"),
    "戊": ("巳", "亥", "壬", "丙"), "己": ("午", "亥", "庚", "丙"),
    "庚": ("申", "寅", "甲", "庚"), "辛": ("酉", "亥", "壬", "甲"),
    "壬": ("亥", "巳", None, "壬"), "癸": ("子", "寅", "甲", "庚"),
}

RESENTMENT_SLOTS = [(YEAR, MONTH), (YEAR, DAY), (MONTH, DAY), (MONTH, HOUR), (DAY, HOUR)]
# (slot, slot, bonus)
GHOST_GATE_SLOTS = [(YEAR, MONTH, 0), (MONTH, DAY, 1), (MONTH, HOUR, 0), (DAY, HOUR, 0)]
STRONG_GHOST_GATES = [frozenset("寅未"), frozenset("卯申")]

# 三災: triad group → its three years
SAMJAE = [("亥卯未", "巳午未"), ("寅午戌", "申酉戌"), ("巳酉丑", "亥子丑"), ("申子辰", "寅卯辰")]

MULTI_SLOT_STARS = frozenset(["懸針殺", "曲脚殺"])


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class ShinsalHit:
    label: str
    pos: int
    weight: int
    good: bool

    @property
    def name(self) -> str:
        return self.label.rsplit("_", 1)[-1]

    @property
    def position(self) -> str:
        return POSITIONS[self.pos]


@dataclass
class ShinsalResult:
    good: dict = field(default_factory=dict)   # position → labels
    bad: dict = field(default_factory=dict)
    hits: list = field(default_factory=list)
    day_void: Optional[tuple] = None
    year_void: Optional[tuple] = None
    samjae: Optional[tuple] = None

    def to_dict(self):
        return {
            "good": self.good,
            "bad": self.bad,
            "day_void": list(self.day_void) if self.day_void else None,
            "year_void": list(self.year_void) if self.year_void else None,
            "samjae": list(self.samjae) if self.samjae else None,
        }


# ============================================================
# LOOKUPS
# ============================================================

def void_branches(pillar) -> Optional[tuple]:
    """空亡: the two branches left over by the pillar's ten-day decade."""
    p = parse_pillar(pillar)
    if p is None:
        return None
    n = SEXAGENARY_CYCLE.index(p.key)
    start = n - n % 10
    return BRANCH_ORDER[(start + 10) % 12], BRANCH_ORDER[(start + 11) % 12]


def samjae_years(branch) -> Optional[tuple]:
    """三災 year branches for a birth branch, e.g. 子 → (寅, 卯, 辰)."""
    b = getattr(branch, "chinese", branch)
    for group, years in SAMJAE:
        if b and b in group:
            return tuple(years)
    return None


def _pair_tag(name: str, p1: int, p2: int, good: bool, bonus: int = 0) -> ShinsalHit:
    """A pair star sits on the heavier of its two slots."""
    a, b = sorted((p1, p2))
    heavier = p1 if POS_WEIGHT[p1] >= POS_WEIGHT[p2] else p2
    return ShinsalHit(f"#{PILLAR_SLOTS[a]}X{PILLAR_SLOTS[b]}_{name}", heavier,
                      POS_WEIGHT[heavier] + bonus, good)


def _hit(label: str, pos: int, good: bool) -> ShinsalHit:
    return ShinsalHit(label, pos, POS_WEIGHT[pos], good)


class _Chart:
    """Character view of the natal pillars; missing slots read ''."""

    def __init__(self, pillars):
        self.pillars = parse_chart(pillars)
        self.stems = [p.stem.chinese if p else "" for p in self.pillars]
        self.branches = [p.branch.chinese if p else "" for p in self.pillars]
        self.keys = [p.key if p else "" for p in self.pillars]

    def best_slot(self, target: str) -> Optional[int]:
        chars = self.stems if target in STEM_ORDER else self.branches
        return next((p for p in SEARCH_ORDER if chars[p] == target), None)

    def has_stem_or_hidden(self, stem: Optional[str], slot: int) -> bool:
        p = self.pillars[slot]
        if stem is None or p is None:
            return False
        return p.stem.chinese == stem or any(
            s.chinese == stem for s in hidden_stems(p.branch, HiddenMode.CLASSIC))


# ============================================================
# TABLE STARS
# ============================================================

def _year_stars(c: _Chart) -> list:
    out = []
    yb = c.branches[YEAR]
    for name, table, slots in YEAR_STARS:
        for target in _keyed(BRANCH_ORDER, table).get(yb, ()):
            for p in slots or (MONTH, DAY, HOUR):
                if c.branches[p] == target:
                    out.append(_hit(f"#{PILLAR_SLOTS[YEAR]}X{PILLAR_SLOTS[p]}_{name}", p, False))
    return out


def _month_label(name: str, target: str, p: int) -> str:
    if target in STEM_ORDER:
        return f"#{BRANCH_SLOTS[MONTH]}X{STEM_SLOTS[p]}_{name}"
    if p == MONTH:
        return f"#{BRANCH_SLOTS[MONTH]}_{name}"
    return f"#{BRANCH_SLOTS[MONTH]}X{BRANCH_SLOTS[p]}_{name}"


def _month_stars(c: _Chart) -> tuple:
    good, bad = [], []
    mb = c.branches[MONTH]

    for name, table in MONTH_NOBLES:
        for target in _keyed(BRANCH_ORDER, table).get(mb, ()):
            p = c.best_slot(target)
            if p is not None:
                good.append(_hit(_month_label(name, target, p), p, True))

    for rules, bucket, is_good in ((MONTH_BAD, bad, False), (MONTH_GOOD, good, True)):
        for name, table, slots in rules:
            for target in _keyed(BRANCH_ORDER, table).get(mb, ()):
                for p in slots:
                    if c.branches[p] == target:
                        bucket.append(_hit(_month_label(name, target, p), p, is_good))

    for rules, bucket, is_good in ((MONTH_DAY_PILLARS_GOOD, good, True),
                                   (MONTH_DAY_PILLARS_BAD, bad, False)):
        for name, table in rules:
            if c.keys[DAY] and c.keys[DAY] in _keyed_pillars(table).get(mb, ()):
                bucket.append(_hit(f"#{PILLAR_SLOTS[MONTH]}X{PILLAR_SLOTS[DAY]}_{name}", DAY, is_good))
    return good, bad


def _day_stem_stars(c: _Chart) -> tuple:
    good, bad = [], []
    ds = c.stems[DAY]
    rules = [(name, _keyed(STEM_ORDER, t), ALL_SLOTS, good, True) for name, t in DAY_GOOD]
    rules += [(name, table, slots, bad, False) for name, table, slots in DAY_BAD]
    for name, table, slots, bucket, is_good in rules:
        for target in table.get(ds, ()):
            for p in slots:
                if c.branches[p] == target:
                    bucket.append(_hit(f"#{STEM_SLOTS[DAY]}X{BRANCH_SLOTS[p]}_{name}", p, is_good))
    return good, bad


# ============================================================
# PATTERN STARS
# ============================================================

def _pattern_stars(c: _Chart, decade) -> tuple:
    good, bad = [], []
    ds, db, hb = c.stems[DAY], c.branches[DAY], c.branches[HOUR]
    day_key, hour_key = c.keys[DAY], c.keys[HOUR]

    if day_key in KUIGANG_DAYS:
        bad.append(_hit(f"#{PILLAR_SLOTS[DAY]}_魁罡殺", DAY, False))
        for p in (YEAR, MONTH, HOUR):
            if c.keys[p] == day_key:
                bad.append(_hit(f"#{PILLAR_SLOTS[p]}_魁罡殺", p, False))

    tiger = WHITE_TIGER.get(ds)
    for p in ALL_SLOTS:
        if tiger and c.stems[p] == ds and c.branches[p] == tiger:
            bad.append(_hit(f"#{PILLAR_SLOTS[p]}_白虎大殺", p, False))

    for a, b in HEAVEN_NET_PAIRS:
        pa, pb = c.best_slot(a), c.best_slot(b)
        if pa is not None and pb is not None:
            bad.append(_pair_tag("天羅地網", pa, pb, False))

    for p in ALL_SLOTS:
        if c.stems[p] in NEEDLE_STEMS or c.branches[p] in NEEDLE_BRANCHES:
            bad.append(_hit(f"#{PILLAR_SLOTS[p]}_懸針殺", p, False))
        if c.stems[p] in BENT_LEG_STEMS or c.branches[p] in BENT_LEG_BRANCHES:
            bad.append(_hit(f"#{PILLAR_SLOTS[p]}_曲脚殺", p, False))

    if any(ds and ds in stems and hour_key in hours for stems, hours in CUT_ROAD):
        bad.append(_pair_tag("截路空亡", DAY, HOUR, False))

    if all(b in c.branches for b in "子午卯酉"):
        good.append(_hit(f"#{PILLAR_SLOTS[DAY]}_遍野桃花", DAY, True))

    if (day_key, hour_key) in (("丙子", "辛卯"), ("己卯", "甲子")):
        bad.append(_pair_tag("滾浪桃花", DAY, HOUR, False))

    rest = set(c.branches[1:])
    if any(set(combo) <= rest and c.branches[YEAR] == need for combo, need in INVERTED_PEACH):
        good.append(_hit(f"#{PILLAR_SLOTS[DAY]}_倒插桃花", DAY, True))

    if day_key in ("壬午", "癸巳"):
        good.append(_hit(f"#{PILLAR_SLOTS[DAY]}_祿馬同鄕", DAY, True))

    cross = ROK_MA_CROSS.get(ds)
    if cross and cross[0] in c.branches and cross[1] and c.stems[HOUR] == cross[1]:
        good.append(_pair_tag("祿馬交馳", DAY, HOUR, True))

    heaven = HEAVEN_ROK_MA.get(ds)
    if heaven and db == heaven[0] and hb == heaven[1]:
        if any(c.has_stem_or_hidden(s, p) for s in heaven[2:] for p in (DAY, HOUR)):
            good.append(_pair_tag("天祿天馬", DAY, HOUR, True))

    count = sum(1 for x in c.stems + c.branches if x in FLAT_HEAD)
    dp = parse_pillar(decade)
    decade_has = dp is not None and (dp.stem.chinese in FLAT_HEAD or dp.branch.chinese in FLAT_HEAD)
    if count >= 4 or (count == 3 and decade_has):
        bad.append(_hit(f"#{PILLAR_SLOTS[DAY]}_平頭殺", DAY, False))

    branch_objs = [p.branch if p else None for p in c.pillars]
    for p1, p2 in RESENTMENT_SLOTS:
        label = pair_label(BRANCH_RESENTMENTS, branch_objs[p1], branch_objs[p2], "元嗔")
        if label:
            bad.append(_pair_tag(label, p1, p2, False))
    for p1, p2, bonus in GHOST_GATE_SLOTS:
        label = pair_label(GHOST_GATES, branch_objs[p1], branch_objs[p2], "鬼門")
        if label:
            strong = frozenset((c.branches[p1], c.branches[p2])) in STRONG_GHOST_GATES
            bad.append(_pair_tag(label, p1, p2, False, bonus + int(strong)))
    return good, bad


def _void_stars(c: _Chart, basis: str, voids) -> list:
    if not voids:
        return []
    mark = "日" if basis == "day" else "年"
    return [_hit(f"#空亡({mark}空亡)X{BRANCH_SLOTS[p]}_空亡", p, False)
            for p in ALL_SLOTS if c.branches[p] in voids]


# ============================================================
# FINALIZE
# ============================================================

def _multi_slot(name: str) -> bool:
    return name in MULTI_SLOT_STARS or name.endswith("元嗔") or name.endswith("鬼門")


def _finalize(hits: list) -> list:
    best = {}
    for h in hits:
        key = (h.label, h.pos)
        if key not in best or h.weight > best[key].weight:
            best[key] = h
    ordered = sorted(best.values(), key=lambda h: (-h.weight, h.label))

    grouped = {}
    for h in ordered:
        grouped.setdefault(h.name, []).append(h)
    out = []
    for name, group in grouped.items():
        if _multi_slot(name):
            out.extend(group)
        else:
            out.append(min(group, key=lambda h: (-POS_WEIGHT[h.pos], -h.weight)))
    return out


def _by_position(hits: list) -> dict:
    buckets = {pos: [] for pos in POSITIONS}
    for h in hits:
        buckets[h.position].append(h.label)
    return buckets


# ============================================================
# PUBLIC API
# ============================================================

def natal_shinsal(pillars, decade=None, void_basis: str = "day",
                  samjae_basis: str = "day") -> ShinsalResult:
    """
    Natal shinsal of a chart.

    Args:
        pillars: 4 pillars in year/month/day/hour order
        decade: current 大運 pillar; only used by 平頭殺
        void_basis: "day" or "year" pillar for the 空亡 marks
        samjae_basis: "day" or "year" branch for the 三災 years

    Returns:
        ShinsalResult with good/bad labels bucketed by position
    """
    if void_basis not in ("day", "year"):
        raise ValueError(f"void_basis must be 'day' or 'year', got {void_basis!r}")
    c = _Chart(pillars)

    good, bad = [], []
    bad += _year_stars(c)
    g, b = _month_stars(c)
    good += g
    bad += b
    g, b = _day_stem_stars(c)
    good += g
    bad += b
    g, b = _pattern_stars(c, decade)
    good += g
    bad += b

    day_void = void_branches(c.pillars[DAY])
    year_void = void_branches(c.pillars[YEAR])
    bad += _void_stars(c, void_basis, day_void if void_basis == "day" else year_void)

    good, bad = _finalize(good), _finalize(bad)
    samjae_branch = c.branches[DAY] if samjae_basis == "day" else c.branches[YEAR]
    result = ShinsalResult(
        good=_by_position(good),
        bad=_by_position(bad),
        hits=good + bad,
        day_void=day_void,
        year_void=year_void,
        samjae=samjae_years(samjae_branch),
    )
    logger.debug("shinsal: %d good, %d bad", len(good), len(bad))
    return result


if __name__ == "__main__":
    r = natal_shinsal(["庚辰", "丙戌", "庚辰", "丁亥"])
    for pos in POSITIONS:
        print(pos, r.good[pos], r.bad[pos])
    print("void", r.day_void, "samjae", r.samjae)
