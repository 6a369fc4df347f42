from fourpillars.outer import detect_outer_structures, rough_element_strength
from fourpillars.tables import Element, parse_chart


def outer(keys, mode="classic"):
    chart = parse_chart(keys)
    return detect_outer_structures(chart, chart[2].stem, chart[1].branch, mode)


def test_cardinal_set_and_jian_lu():
    labels = outer(["甲子", "丙午", "丁卯", "己酉"])
    assert "四正格" in labels
    assert "建祿格" in labels


def test_uniform_pillars():
    labels = outer(["甲子"] * 4)
    for label in ("地支元一氣格", "鳳凰池格", "干支同體格"):
        assert label in labels
    assert len(labels) == len(set(labels))


def test_dominant_element_label():
    assert "專旺格 (wood)" in outer(["甲寅"] * 4)
    assert rough_element_strength(parse_chart(["甲寅"] * 4))[Element.WOOD] == 64


def test_three_wonders():
    assert "天上三奇格" in outer(["甲子", "戊辰", "庚午", "丙子"])


def test_incomplete_chart():
    chart = parse_chart(["甲子", "丙午", "丁卯"])
    assert detect_outer_structures(chart, "丁", "午") == []
