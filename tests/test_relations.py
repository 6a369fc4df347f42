from fourpillars.relations import combination_neutralizer, harmony_overlay, triad_with_month
from fourpillars.tables import ELEMENTS, Element, parse_chart


def test_triad_anchored_on_month_is_strong():
    chart = parse_chart(["庚申", "壬子", "甲辰", "丙寅"])
    scores = {el: 10.0 for el in ELEMENTS}
    applied = harmony_overlay(chart, scores)
    assert len(applied) == 1
    assert applied[0].members == "申子辰"
    assert applied[0].strength == "strong"
    assert scores[Element.METAL] == 8.0
    assert scores[Element.WATER] == 12.0


def test_triad_off_month_is_medium():
    chart = parse_chart(["庚申", "丁卯", "壬子", "甲辰"])
    scores = {el: 10.0 for el in ELEMENTS}
    applied = harmony_overlay(chart, scores)
    assert [a.strength for a in applied] == ["medium"]
    assert scores[Element.WATER] == 11.0


def test_directional_set_and_clamp():
    chart = parse_chart(["甲寅", "丁卯", "壬辰", "甲子"])
    scores = {el: 0.0 for el in ELEMENTS}
    applied = harmony_overlay(chart, scores)
    assert [(a.kind, a.element) for a in applied] == [("directional", Element.WOOD)]
    # water (wood's producer) would go negative
    assert scores[Element.WATER] == 0.0
    assert scores[Element.WOOD] == 2.0


def test_triad_with_month():
    assert triad_with_month("辰", ["申", "子", "午"])
    assert not triad_with_month("辰", ["申", "午", "午"])
    assert not triad_with_month("?", ["申", "子"])


def test_combination_neutralizer():
    is_neutralized = combination_neutralizer(parse_chart(["甲子", "己丑", "丙寅", "丁卯"]))
    assert is_neutralized("甲")  # 甲己 side by side
    assert is_neutralized("乙")  # same element as the bound 甲
    assert not is_neutralized("丙")
    assert not is_neutralized("庚")  # no metal stem in the chart
    assert not is_neutralized("?")
