from datetime import date, datetime

import pytest

from fourpillars.astro_calendar import (
    lmt_correction,
    lunar_to_solar,
    solar_term_boundaries,
    solar_to_lunar,
    solar_year_of,
)
from fourpillars.chart import (
    LuckPillar,
    build_chart,
    day_pillar,
    hour_pillar,
    luck_pillar_at,
    month_pillar,
    sun_longitude_to_month_branch_index,
    year_pillar,
)
from fourpillars.tables import Pillar, parse_pillar


def test_year_pillar():
    assert year_pillar(1984).key == "甲子"
    assert year_pillar(2024).key == "甲辰"


def test_month_pillar_five_tigers():
    assert month_pillar(0, 2).key == "丙寅"
    assert month_pillar(0, 1).key == "丁丑"
    assert month_pillar(4, 2).key == "甲寅"


def test_day_pillar():
    assert day_pillar(date(1986, 6, 19)).key == "甲子"
    assert day_pillar(date(1986, 6, 20)).key == "乙丑"


@pytest.mark.parametrize("day_stem, hour, key", [
    (0, 23, "甲子"),
    (0, 0, "甲子"),
    (0, 1, "乙丑"),
    (0, 12, "庚午"),
    (4, 0, "壬子"),
])
def test_hour_pillar(day_stem, hour, key):
    assert hour_pillar(day_stem, hour).key == key


@pytest.mark.parametrize("lon, index", [(315, 2), (344.9, 2), (345, 3), (0, 3), (285, 1), (300, 1)])
def test_sun_longitude_to_month_branch(lon, index):
    assert sun_longitude_to_month_branch_index(lon) == index


def test_lmt_correction():
    assert lmt_correction(126.98, 135.0) == pytest.approx(-32.08)


def test_lunar_conversion():
    assert lunar_to_solar(1990, 1, 1) == date(1990, 1, 27)
    assert solar_to_lunar(date(1990, 1, 27)) == (1990, 1, 1, False)


def test_luck_pillar_at():
    lps = [LuckPillar(1, parse_pillar("乙未"), 3, 12), LuckPillar(2, parse_pillar("丙申"), 13, 22)]
    assert luck_pillar_at(lps, 2) is None
    assert luck_pillar_at(lps, 13).number == 2


def test_solar_term_boundaries():
    bounds = solar_term_boundaries(datetime(2024, 6, 1))
    assert len(bounds) == 12
    assert bounds[0].name == "Li Chun"
    assert bounds[0].moment.date() == date(2024, 2, 4)
    assert bounds[0].branch.chinese == "寅"
    assert bounds[-1].name == "Xiao Han"
    assert bounds[-1].moment.year == 2025
    assert all(a.moment < b.moment for a, b in zip(bounds, bounds[1:]))


def test_solar_year_turns_at_li_chun():
    assert solar_year_of(datetime(2024, 1, 20)) == 2023
    assert solar_year_of(datetime(2024, 3, 1)) == 2024


def test_build_chart():
    chart = build_chart(datetime(1986, 6, 19, 12, 0))
    assert [p.key for p in chart] == ["丙寅", "甲午", "甲子", "庚午"]
    assert all(isinstance(p, Pillar) for p in chart)
    assert [p.position for p in chart] == ["year", "month", "day", "hour"]
