import pytest

from fourpillars.power import (
    Criteria,
    LuckOverlay,
    LuckTab,
    compute_power,
    largest_remainder,
    normalize_to_100,
    round_half_up,
)
from fourpillars.tables import Element, HiddenMode
from fourpillars.ten_gods import SUBTYPE_PAIRS, TenGodCategory, element_of_category

CHARTS = [
    ["丙寅", "甲午", "甲子", "庚午"],
    ["庚午", "壬午", "丙午", "甲午"],
    ["癸亥", "癸亥", "癸亥", "癸亥"],
    ["甲子", "丙寅", "戊辰", "庚申"],
    ["己丑", "丁卯", "辛巳", "乙未"],
]


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.25, 1) == 0.3
    assert isinstance(round_half_up(1.2), int)


def test_largest_remainder():
    assert largest_remainder([1, 1, 1], 100) == [34, 33, 33]
    assert largest_remainder([0, 0], 5) == [3, 2]
    assert largest_remainder([], 10) == []
    assert normalize_to_100([0, 0, 0]) == [0, 0, 0]


@pytest.mark.parametrize("pillars", CHARTS)
@pytest.mark.parametrize("criteria", list(Criteria))
@pytest.mark.parametrize("mode", list(HiddenMode))
def test_percentages_reconcile(pillars, criteria, mode):
    result = compute_power(pillars, criteria=criteria, hidden_mode=mode)
    assert sum(result.element_percent.values()) == 100
    assert sum(result.category_percent.values()) == 100
    for cat, (a, b) in SUBTYPE_PAIRS.items():
        assert result.subtype_percent[a] + result.subtype_percent[b] == result.category_percent[cat]


@pytest.mark.parametrize("pillars", CHARTS)
def test_per_stem_tenths_match_categories(pillars):
    result = compute_power(pillars)
    day_el = result.day_stem.element
    assert sum(round(v * 10) for v in result.per_stem.values()) == 1000
    for cat in TenGodCategory:
        el = element_of_category(day_el, cat)
        units = sum(round(v * 10) for s, v in result.per_stem.items() if s.element == el)
        assert units == result.category_percent[cat] * 10


def test_element_view_follows_categories():
    result = compute_power(CHARTS[0])
    assert result.element_percent[Element.WOOD] == result.category_percent[TenGodCategory.PEER]
    assert result.element_percent[Element.WATER] == result.category_percent[TenGodCategory.RESOURCE]


@pytest.mark.parametrize("pillars", [[], ["甲子", "丙寅", "戊辰"], ["甲子", "丙寅", "戊辰", "xx"]])
def test_short_chart_is_all_zero(pillars):
    result = compute_power(pillars)
    assert result.is_empty
    assert sum(result.element_percent.values()) == 0
    assert result.day_stem is None


def test_scores_are_non_negative_and_deterministic():
    a = compute_power(CHARTS[3], use_harmony=True)
    b = compute_power(CHARTS[3], use_harmony=True)
    assert a == b
    assert all(v >= 0 for v in a.element_scores.values())


def test_day_stem_override():
    result = compute_power(CHARTS[0], day_stem="庚")
    assert result.day_stem.chinese == "庚"
    assert result.element_percent[Element.METAL] == result.category_percent[TenGodCategory.PEER]


def test_luck_overlay_only_counts_enabled_scopes():
    natal = compute_power(CHARTS[0])
    luck = {"decade": "甲寅"}
    ignored = compute_power(CHARTS[0], luck=luck, tab=LuckTab.NATAL)
    applied = compute_power(CHARTS[0], luck=luck, tab="decade")
    assert ignored.element_scores == natal.element_scores
    assert applied.element_scores[Element.WOOD] > natal.element_scores[Element.WOOD]
    assert applied.element_scores[Element.FIRE] == natal.element_scores[Element.FIRE]


def test_luck_overlay_dataclass_and_year_scope():
    natal = compute_power(CHARTS[0])
    overlay = LuckOverlay(decade=None, year="壬子")
    applied = compute_power(CHARTS[0], luck=overlay, tab=LuckTab.YEAR)
    assert applied.element_scores[Element.WATER] > natal.element_scores[Element.WATER]


def test_harmony_overlay_is_reported():
    result = compute_power(["庚申", "壬子", "甲辰", "丙寅"], use_harmony=True)
    assert [(h.kind, h.element, h.strength) for h in result.harmony] == [
        ("triad", Element.WATER, "strong"),
    ]
    plain = compute_power(["庚申", "壬子", "甲辰", "丙寅"])
    assert plain.harmony == ()


def test_support_flags():
    # 甲 day: 寅 month is wood, 子 day branch is water (resource)
    result = compute_power(["甲子", "丙寅", "甲子", "丙寅"])
    assert result.support.month
    assert result.support.ground
    assert result.support.to_dict()["得令"] is True


def test_to_dict_is_plain():
    d = compute_power(CHARTS[1]).to_dict()
    assert d["day_stem"] == "丙"
    assert sum(d["element_percent"].values()) == 100
    assert set(d["support"]) == {"得令", "得地", "得勢"}
