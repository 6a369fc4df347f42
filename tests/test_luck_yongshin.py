from fourpillars.chart import LuckPillar
from fourpillars.luck_yongshin import compare_luck_yongshin
from fourpillars.power import LuckTab, compute_power
from fourpillars.tables import Element, HiddenMode, parse_chart, parse_pillar

NATAL = ["甲子", "丙寅", "甲午", "甲子"]
DECADES = [
    LuckPillar(1, parse_pillar("丁卯", "decade"), 3, 12),
    LuckPillar(2, parse_pillar("戊辰", "decade"), 13, 22),
]


def test_rows_follow_the_decades_and_their_years():
    table = compare_luck_yongshin(NATAL, DECADES, 1984, Element.WATER, years_per_decade=2)
    assert [r.label for r in table.rows] == [
        "1987~ 丁卯",
        "1987~ 丁卯 / 1987 丁卯",
        "1987~ 丁卯 / 1988 戊辰",
        "1997~ 戊辰",
        "1997~ 戊辰 / 1997 丁丑",
        "1997~ 戊辰 / 1998 戊寅",
    ]
    assert [r.year for r in table.rows] == [None, 1987, 1988, None, 1997, 1998]
    for row in table.rows:
        assert row.best_method is not None
        assert row.changed == (row.element != Element.WATER)
    assert table.changed_rows == [r for r in table.rows if r.changed]


def test_rows_use_the_luck_power():
    chart = parse_chart(NATAL)
    table = compare_luck_yongshin(NATAL, DECADES[:1], 1984, years_per_decade=1)
    decade_row, year_row = table.rows

    expected = compute_power(chart, luck={"decade": "丁卯"}, tab=LuckTab.DECADE,
                             hidden_mode=HiddenMode.CLASSIC)
    assert decade_row.element_percent == expected.element_percent

    expected = compute_power(chart, luck={"decade": "丁卯", "year": "丁卯"}, tab=LuckTab.YEAR,
                             hidden_mode=HiddenMode.CLASSIC)
    assert year_row.element_percent == expected.element_percent


def test_without_a_natal_element_nothing_changes():
    table = compare_luck_yongshin(NATAL, DECADES, 1984, years_per_decade=0)
    assert len(table.rows) == 2
    assert table.changed_rows == []
    d = table.to_dict()
    assert d["natal_element"] is None
    assert d["rows"][0]["decade"] == "丁卯"
    assert d["rows"][0]["annual"] is None
