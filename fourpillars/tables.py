"""
Static lookup tables for the Four Pillars engine.

Everything here is immutable reference data keyed over the closed set of
10 Heavenly Stems and 12 Earthly Branches:
- stem / branch definitions (element, polarity, cycle index)
- hidden-stem (地支藏干) phase distributions, in two variants:
    classic: day counts, every branch sums to 30
    hgc:     relative strength, every branch sums to 100
- root-rate (通根) table keyed by pillar string
- special-pattern tables (三合, 方合, 祿, 羊刃, 月劫, 建祿, 天干合)
- month-branch → opening solar term, season and climate tables

Symbols are canonically stored as Chinese characters. Korean hangul readings
are accepted on input and normalized.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


ELEMENTS = list(Element)  # cycle order: wood, fire, earth, metal, water


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    korean: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.chinese} {self.pinyin} ({self.polarity.value} {self.element.value})"

    @property
    def is_yang(self) -> bool:
        return self.polarity is Polarity.YANG


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    korean: str
    animal: str
    element: Element  # main element (本氣)
    polarity: Polarity  # cycle polarity
    index: int  # 0-11 in the cycle

    def __str__(self):
        return f"{self.chinese} {self.pinyin} ({self.animal})"

    @property
    def main_stem(self) -> HeavenlyStem:
        return BRANCH_MAIN_STEM[self]

    @property
    def functional_polarity(self) -> Polarity:
        """Polarity in use: that of the main hidden stem (子午 read yin, 巳亥 read yang)."""
        return self.main_stem.polarity


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch
    position: str = ""  # "year", "month", "day", "hour", or a luck scope

    def __str__(self):
        return f"{self.stem.chinese}{self.branch.chinese}"

    @property
    def key(self) -> str:
        return f"{self.stem.chinese}{self.branch.chinese}"

    def to_dict(self):
        return {
            "position": self.position,
            "pillar": self.key,
            "stem": {
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
            },
            "combined": f"{self.stem.pinyin} {self.branch.pinyin}",
        }


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = [
    HeavenlyStem("甲", "Jia", "갑", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", "을", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", "병", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", "정", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", "무", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", "기", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", "경", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", "신", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", "임", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", "계", Element.WATER, Polarity.YIN, 9),
]

EARTHLY_BRANCHES = [
    EarthlyBranch("子", "Zi", "자", "Rat", Element.WATER, Polarity.YANG, 0),
    EarthlyBranch("丑", "Chou", "축", "Ox", Element.EARTH, Polarity.YIN, 1),
    EarthlyBranch("寅", "Yin", "인", "Tiger", Element.WOOD, Polarity.YANG, 2),
    EarthlyBranch("卯", "Mao", "묘", "Rabbit", Element.WOOD, Polarity.YIN, 3),
    EarthlyBranch("辰", "Chen", "진", "Dragon", Element.EARTH, Polarity.YANG, 4),
    EarthlyBranch("巳", "Si", "사", "Snake", Element.FIRE, Polarity.YIN, 5),
    EarthlyBranch("午", "Wu", "오", "Horse", Element.FIRE, Polarity.YANG, 6),
    EarthlyBranch("未", "Wei", "미", "Goat", Element.EARTH, Polarity.YIN, 7),
    EarthlyBranch("申", "Shen", "신", "Monkey", Element.METAL, Polarity.YANG, 8),
    EarthlyBranch("酉", "You", "유", "Rooster", Element.METAL, Polarity.YIN, 9),
    EarthlyBranch("戌", "Xu", "술", "Dog", Element.EARTH, Polarity.YANG, 10),
    EarthlyBranch("亥", "Hai", "해", "Pig", Element.WATER, Polarity.YIN, 11),
]

# Lookup helpers
STEM_BY_CHINESE = {s.chinese: s for s in HEAVENLY_STEMS}
STEM_BY_PINYIN = {s.pinyin: s for s in HEAVENLY_STEMS}
STEM_BY_KOREAN = {s.korean: s for s in HEAVENLY_STEMS}
BRANCH_BY_CHINESE = {b.chinese: b for b in EARTHLY_BRANCHES}
BRANCH_BY_PINYIN = {b.pinyin: b for b in EARTHLY_BRANCHES}
BRANCH_BY_KOREAN = {b.korean: b for b in EARTHLY_BRANCHES}


def _s(chinese: str) -> HeavenlyStem:
    return STEM_BY_CHINESE[chinese]


def _b(chinese: str) -> EarthlyBranch:
    return BRANCH_BY_CHINESE[chinese]


# The 60 pillars in sexagenary order: 甲子, 乙丑, 丙寅, ...
SEXAGENARY_CYCLE = [
    HEAVENLY_STEMS[i % 10].chinese + EARTHLY_BRANCHES[i % 12].chinese
    for i in range(60)
]


# ============================================================
# INPUT NORMALIZATION
# ============================================================

def parse_stem(text) -> Optional[HeavenlyStem]:
    """Resolve a stem from its Chinese character, hangul reading or pinyin."""
    if isinstance(text, HeavenlyStem):
        return text
    if not isinstance(text, str) or not text:
        return None
    text = text.strip()
    return (STEM_BY_CHINESE.get(text)
            or STEM_BY_KOREAN.get(text)
            or STEM_BY_PINYIN.get(text.capitalize()))


def parse_branch(text) -> Optional[EarthlyBranch]:
    """Resolve a branch from its Chinese character, hangul reading or pinyin."""
    if isinstance(text, EarthlyBranch):
        return text
    if not isinstance(text, str) or not text:
        return None
    text = text.strip()
    return (BRANCH_BY_CHINESE.get(text)
            or BRANCH_BY_KOREAN.get(text)
            or BRANCH_BY_PINYIN.get(text.capitalize()))


def parse_pillar(text, position: str = "") -> Optional[Pillar]:
    """
    Parse a 2-character pillar string ("甲子" or "갑자") into a Pillar.

    Returns None when the text is not exactly one stem followed by one branch.
    """
    if isinstance(text, Pillar):
        return text
    if not isinstance(text, str):
        return None
    text = text.strip()
    if len(text) != 2:
        return None
    stem = STEM_BY_CHINESE.get(text[0]) or STEM_BY_KOREAN.get(text[0])
    branch = BRANCH_BY_CHINESE.get(text[1]) or BRANCH_BY_KOREAN.get(text[1])
    if stem is None or branch is None:
        return None
    return Pillar(stem, branch, position)


PILLAR_POSITIONS = ["year", "month", "day", "hour"]


def parse_chart(pillars) -> list[Optional[Pillar]]:
    """Parse up to four pillars in year/month/day/hour order; bad slots become None."""
    out = []
    for i, position in enumerate(PILLAR_POSITIONS):
        raw = pillars[i] if pillars is not None and i < len(pillars) else None
        p = parse_pillar(raw, position)
        if p is not None and p.position != position:
            p = Pillar(p.stem, p.branch, position)
        out.append(p)
    return out


# ============================================================
# ELEMENT CYCLES
# ============================================================

# Production cycle: Wood → Fire → Earth → Metal → Water → Wood
PRODUCTION_CYCLE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# Control cycle: Wood → Earth → Water → Fire → Metal → Wood
CONTROL_CYCLE = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}

PRODUCED_BY = {v: k for k, v in PRODUCTION_CYCLE.items()}
CONTROLLED_BY = {v: k for k, v in CONTROL_CYCLE.items()}


# ============================================================
# HIDDEN STEMS (地支藏干)
# ============================================================

class HiddenMode(Enum):
    CLASSIC = "classic"  # day-count table, sums to 30
    HGC = "hgc"          # strength table, sums to 100


def hidden_mode(value: Union[str, HiddenMode, None]) -> HiddenMode:
    """Coerce a mode flag: "hgc" (any case) selects HGC, anything else is classic."""
    if isinstance(value, HiddenMode):
        return value
    if isinstance(value, str) and value.strip().lower() == "hgc":
        return HiddenMode.HGC
    return HiddenMode.CLASSIC


class Phase(Enum):
    EARLY = "early"    # 初氣 / 餘氣
    MIDDLE = "middle"  # 中氣
    MAIN = "main"      # 正氣


@dataclass(frozen=True)
class HiddenPhase:
    phase: Phase
    stem: HeavenlyStem
    weight: float


_E, _M, _P = Phase.EARLY, Phase.MIDDLE, Phase.MAIN

# (phase, stem, days); every branch sums to 30
_CLASSIC_PHASES = {
    "子": [(_E, "壬", 10), (_P, "癸", 20)],
    "丑": [(_E, "癸", 9), (_M, "辛", 3), (_P, "己", 18)],
    "寅": [(_E, "戊", 7), (_M, "丙", 7), (_P, "甲", 16)],
    "卯": [(_E, "甲", 10), (_P, "乙", 20)],
    "辰": [(_E, "乙", 9), (_M, "癸", 3), (_P, "戊", 18)],
    "巳": [(_E, "戊", 7), (_M, "庚", 7), (_P, "丙", 16)],
    "午": [(_E, "丙", 10), (_M, "己", 9), (_P, "丁", 11)],
    "未": [(_E, "丁", 9), (_M, "乙", 3), (_P, "己", 18)],
    "申": [(_E, "戊", 7), (_M, "壬", 7), (_P, "庚", 16)],
    "酉": [(_E, "庚", 10), (_P, "辛", 20)],
    "戌": [(_E, "辛", 9), (_M, "丁", 3), (_P, "戊", 18)],
    "亥": [(_E, "戊", 7), (_M, "甲", 7), (_P, "壬", 16)],
}

# (phase, stem, strength); every branch sums to 100
_HGC_PHASES = {
    "子": [(_P, "癸", 100)],
    "丑": [(_E, "癸", 20), (_M, "辛", 30), (_P, "己", 50)],
    "寅": [(_M, "丙", 30), (_P, "甲", 70)],
    "卯": [(_P, "乙", 100)],
    "辰": [(_E, "乙", 20), (_M, "癸", 30), (_P, "戊", 50)],
    "巳": [(_M, "庚", 30), (_P, "丙", 70)],
    "午": [(_P, "丁", 100)],
    "未": [(_E, "丁", 20), (_M, "乙", 30), (_P, "己", 50)],
    "申": [(_M, "壬", 30), (_P, "庚", 70)],
    "酉": [(_P, "辛", 100)],
    "戌": [(_E, "辛", 20), (_M, "丁", 30), (_P, "戊", 50)],
    "亥": [(_M, "甲", 30), (_P, "壬", 70)],
}


def _build_phase_table(raw: dict) -> dict:
    return {
        _b(branch): tuple(HiddenPhase(phase, _s(stem), weight) for phase, stem, weight in rows)
        for branch, rows in raw.items()
    }


HIDDEN_PHASES = {
    HiddenMode.CLASSIC: _build_phase_table(_CLASSIC_PHASES),
    HiddenMode.HGC: _build_phase_table(_HGC_PHASES),
}


def lookup_hidden_phases(branch, mode=HiddenMode.CLASSIC) -> tuple:
    """
    Ordered hidden sub-phases of a branch under the given table variant.

    Args:
        branch: EarthlyBranch or any text parse_branch accepts
        mode: HiddenMode or a mode flag string

    Returns:
        Tuple of HiddenPhase (1-3 entries); empty tuple when the branch is unknown.
        Callers compute the total weight; it is 30 or 100 depending on the mode.
    """
    b = parse_branch(branch)
    if b is None:
        return ()
    return HIDDEN_PHASES[hidden_mode(mode)].get(b, ())


def hidden_stems(branch, mode=HiddenMode.CLASSIC) -> list[HeavenlyStem]:
    """All hidden stems of a branch, early phase first."""
    return [p.stem for p in lookup_hidden_phases(branch, mode)]


def total_weight(phases) -> float:
    return sum(p.weight for p in phases)


# Main (正氣) stem per branch; identical in both table variants
BRANCH_MAIN_STEM = {
    _b(b): _s(s) for b, s in {
        "子": "癸", "丑": "己", "寅": "甲", "卯": "乙", "辰": "戊", "巳": "丙",
        "午": "丁", "未": "己", "申": "庚", "酉": "辛", "戌": "戊", "亥": "壬",
    }.items()
}


# ============================================================
# ROOT RATES (通根)
# ============================================================

# Rate at which a stem is rooted in its own branch, in sexagenary order.
_ROOT_RATES_HGC = [
    1.0, 0.2, 1.0, 1.0, 0.5, 0.7, 0.0, 0.5, 1.0, 1.0, 0.0, 1.0,  # 甲子 .. 乙亥
    0.0, 0.0, 0.3, 0.0, 0.5, 0.3, 0.0, 0.0, 0.3, 0.0, 0.8, 0.3,  # 丙子 .. 丁亥
    0.0, 0.5, 0.0, 0.0, 0.3, 0.3, 0.0, 0.3, 0.0, 0.0, 0.8, 0.0,  # 戊子 .. 己亥
    0.0, 0.8, 0.0, 0.0, 0.5, 0.0, 1.0, 0.5, 0.0, 0.0, 0.7, 0.0,  # 庚子 .. 辛亥
    1.0, 0.5, 0.7, 0.0, 0.2, 0.7, 1.0, 0.7, 0.7, 1.0, 0.2, 0.7,  # 壬子 .. 癸亥
]

ROOT_RATES_HGC = dict(zip(SEXAGENARY_CYCLE, _ROOT_RATES_HGC))

ROOT_RATES_CLASSIC = {
    **ROOT_RATES_HGC,
    "丙寅": 0.8, "庚午": 0.3, "戊寅": 0.5, "辛巳": 0.5,
    "庚寅": 0.2, "己亥": 0.2, "丙午": 0.8, "戊申": 0.2,
}

ROOT_RATES = {
    HiddenMode.CLASSIC: ROOT_RATES_CLASSIC,
    HiddenMode.HGC: ROOT_RATES_HGC,
}


# ============================================================
# SPECIAL-PATTERN TABLES
# ============================================================

# Three Harmony (三合): members → resulting element
TRIADS = {
    (_b("申"), _b("子"), _b("辰")): Element.WATER,
    (_b("亥"), _b("卯"), _b("未")): Element.WOOD,
    (_b("寅"), _b("午"), _b("戌")): Element.FIRE,
    (_b("巳"), _b("酉"), _b("丑")): Element.METAL,
}

# Directional (方合): members → resulting element
DIRECTIONAL_SETS = {
    (_b("寅"), _b("卯"), _b("辰")): Element.WOOD,
    (_b("巳"), _b("午"), _b("未")): Element.FIRE,
    (_b("申"), _b("酉"), _b("戌")): Element.METAL,
    (_b("亥"), _b("子"), _b("丑")): Element.WATER,
}

CARDINAL_BRANCHES = frozenset(_b(c) for c in "子午卯酉")   # 旺支
STORAGE_BRANCHES = frozenset(_b(c) for c in "辰戌丑未")    # 庫支
GROWTH_BRANCHES = frozenset(_b(c) for c in "寅申巳亥")     # 生支

# 祿: the branch where each day stem reaches its prosperity
LOK_BRANCH = {
    _s(s): _b(b) for s, b in {
        "甲": "寅", "乙": "卯", "丙": "巳", "丁": "午", "戊": "午",
        "己": "巳", "庚": "申", "辛": "酉", "壬": "亥", "癸": "子",
    }.items()
}

# 羊刃 month branch (yang day stems only)
YANG_REN_BRANCH = {
    _s(s): _b(b) for s, b in {
        "甲": "卯", "丙": "午", "戊": "午", "庚": "酉", "壬": "子",
    }.items()
}

# 月劫 month branch (yin day stems only)
MONTH_ROB_BRANCH = {
    _s(s): _b(b) for s, b in {
        "乙": "寅", "丁": "巳", "辛": "申", "癸": "亥",
    }.items()
}

# 建祿: (day stem, month branch) pairs
JIAN_LU_PAIRS = frozenset(
    (_s(s), _b(b)) for s, b in [
        ("乙", "卯"), ("丙", "巳"), ("丁", "午"), ("庚", "申"),
        ("壬", "亥"), ("癸", "子"), ("戊", "巳"), ("己", "午"),
    ]
)

# 羊刃 month branch for every day stem (structure tags)
YANG_REN_MONTH_BY_DAY_STEM = {
    _s(s): _b(b) for s, b in {
        "甲": "卯", "乙": "寅", "丙": "午", "丁": "巳", "戊": "午",
        "己": "巳", "庚": "酉", "辛": "申", "壬": "子", "癸": "亥",
    }.items()
}

# Stem combinations (天干合) → transformed element
STEM_COMBINATIONS = [
    (_s("甲"), _s("己"), Element.EARTH),
    (_s("乙"), _s("庚"), Element.METAL),
    (_s("丙"), _s("辛"), Element.WATER),
    (_s("丁"), _s("壬"), Element.WOOD),
    (_s("戊"), _s("癸"), Element.FIRE),
]

# Stem clashes (天干沖)
STEM_CLASHES = [
    (_s("甲"), _s("庚")),
    (_s("乙"), _s("辛")),
    (_s("丙"), _s("壬")),
    (_s("丁"), _s("癸")),
]


# ============================================================
# BRANCH RELATIONS
# ============================================================

def _pairs(text: str) -> list:
    """Parse "子丑 寅亥" into branch pairs."""
    return [(_b(p[0]), _b(p[1])) for p in text.split()]


SIX_HARMONIES = _pairs("子丑 寅亥 卯戌 辰酉 巳申 午未")         # 六合
BRANCH_CLASHES = _pairs("子午 丑未 寅申 卯酉 辰戌 巳亥")        # 沖
BRANCH_DESTRUCTIONS = _pairs("子酉 卯午 辰丑 戌未 申亥 寅巳")   # 破
BRANCH_HARMS = _pairs("子未 丑午 寅亥 卯辰 巳申 酉戌")          # 害
BRANCH_RESENTMENTS = _pairs("子未 寅酉 丑午 卯申 辰亥 巳戌")    # 元嗔
GHOST_GATES = _pairs("寅未 卯申 辰亥 巳戌 子酉 丑午")           # 鬼門
BRANCH_PUNISHMENTS = _pairs("寅申 寅巳 巳申 丑戌 丑未 戌未")    # 相刑
RUDE_PUNISHMENTS = _pairs("子卯")                               # 子卯刑
SELF_PUNISHMENT_BRANCHES = tuple(_b(c) for c in "辰午酉亥")      # 自刑
BRANCH_HIDDEN_COMBINATIONS = _pairs("子戌 丑寅 卯申 寅未 午亥")  # 暗合

# Half triads (半合): pairs out of a triad; only those holding its cardinal count
HALF_TRIADS = _pairs("亥卯 卯未 亥未 寅午 午戌 寅戌 巳酉 酉丑 巳丑 申子 子辰 申辰")

# Three punishments (三刑)
PUNISHMENT_TRIADS = [(_b("寅"), _b("巳"), _b("申")), (_b("丑"), _b("戌"), _b("未"))]

# Pillars whose own stem and branch combine in secret (干支暗合)
PILLAR_HIDDEN_COMBINATIONS = frozenset(["丁亥", "戊子", "辛巳", "壬午"])


# ============================================================
# SOLAR TERMS AND SEASONS
# ============================================================

# Jie (節) that opens each branch month, by pinyin term name
BRANCH_TO_TERM = {
    _b(b): term for b, term in {
        "子": "Da Xue", "丑": "Xiao Han", "寅": "Li Chun", "卯": "Jing Zhe",
        "辰": "Qing Ming", "巳": "Li Xia", "午": "Mang Zhong", "未": "Xiao Shu",
        "申": "Li Qiu", "酉": "Bai Lu", "戌": "Han Lu", "亥": "Li Dong",
    }.items()
}


class Season(Enum):
    WINTER = "winter"
    SUMMER = "summer"
    SPRING = "spring"
    AUTUMN = "autumn"
    UNKNOWN = "unknown"


SEASON_BY_BRANCH = {
    **{_b(c): Season.WINTER for c in "亥子丑"},
    **{_b(c): Season.SPRING for c in "寅卯辰"},
    **{_b(c): Season.SUMMER for c in "巳午未"},
    **{_b(c): Season.AUTUMN for c in "申酉戌"},
}

# Seasonal (調候) preference: (element, base score, why)
SEASONAL_PREFERENCES = {
    Season.WINTER: [
        (Element.FIRE, 110, "climate (cold): warmth needed, fire first"),
        (Element.EARTH, 60, "climate support: earth steadies the cold damp"),
    ],
    Season.SUMMER: [
        (Element.WATER, 110, "climate (hot-dry): cooling needed, water first"),
        (Element.METAL, 70, "climate support: metal feeds water"),
    ],
    Season.SPRING: [
        (Element.FIRE, 90, "climate (early spring chill): raise warmth with fire"),
        (Element.WOOD, 55, "climate support: wood drives growth"),
    ],
    Season.AUTUMN: [
        (Element.FIRE, 85, "climate (cool autumn): fire for warmth"),
        (Element.WATER, 75, "climate (dry autumn): water for moisture"),
    ],
    Season.UNKNOWN: [
        (Element.FIRE, 60, "climate: month branch unreadable, default fire"),
        (Element.WATER, 60, "climate: month branch unreadable, default water"),
    ],
}

# Month-branch climate tendency: (temperature, moisture)
MONTH_BRANCH_CLIMATE = {
    _b(b): v for b, v in {
        "亥": ("cold", "wet"), "子": ("cold", "wet"), "丑": ("cold", "wet"),
        "寅": ("mild", "normal"), "卯": ("mild", "normal"), "辰": ("mild", "wet"),
        "巳": ("hot", "normal"), "午": ("hot", "dry"), "未": ("hot", "wet"),
        "申": ("mild", "dry"), "酉": ("mild", "dry"), "戌": ("mild", "dry"),
    }.items()
}
