import pytest

from fourpillars.shinsal import natal_shinsal, samjae_years, void_branches


def test_void_branches():
    assert void_branches("甲子") == ("戌", "亥")
    assert void_branches("甲戌") == ("申", "酉")
    assert void_branches("癸亥") == ("子", "丑")
    assert void_branches("??") is None


def test_samjae_years():
    assert samjae_years("子") == ("寅", "卯", "辰")
    assert samjae_years("卯") == ("巳", "午", "未")
    assert samjae_years("") is None


def test_day_stem_and_month_stars_land_on_their_slot():
    r = natal_shinsal(["乙丑", "戊寅", "甲午", "丙寅"])
    assert "#日干X年支_天乙貴人" in r.good["year"]
    # 祿 on both 寅 slots: the month wins
    assert "#日干X月支_十干祿" in r.good["month"]
    assert not any(t.endswith("_十干祿") for t in r.good["hour"])
    # 寅 month needs 丙, found on the hour stem
    assert "#月支X時干_月德貴人" in r.good["hour"]
    assert "#日柱_懸針殺" in r.bad["day"]
    assert "#年柱_曲脚殺" in r.bad["year"]
    assert r.day_void == ("辰", "巳")
    assert r.year_void == ("戌", "亥")
    assert r.samjae == ("申", "酉", "戌")


def test_kuigang_and_heaven_net():
    r = natal_shinsal(["庚辰", "丙戌", "庚辰", "丁亥"])
    assert "#日柱_魁罡殺" in r.bad["day"]
    assert "#年柱_魁罡殺" not in r.bad["year"]
    assert "#月柱X時柱_天羅地網" in r.bad["month"]


def test_month_day_pillar_star():
    r = natal_shinsal(["甲子", "丙寅", "戊寅", "甲寅"])
    assert "#月柱X日柱_天赦" in r.good["day"]


def test_void_marks_follow_the_basis():
    chart = ["壬戌", "癸卯", "甲子", "乙亥"]
    by_day = natal_shinsal(chart)
    assert "#空亡(日空亡)X年支_空亡" in by_day.bad["year"]
    assert "#空亡(日空亡)X時支_空亡" not in by_day.bad["hour"]

    by_year = natal_shinsal(chart, void_basis="year")
    assert by_year.year_void == ("子", "丑")
    assert "#空亡(年空亡)X日支_空亡" in by_year.bad["day"]

    with pytest.raises(ValueError):
        natal_shinsal(chart, void_basis="month")


def test_to_dict_shape():
    d = natal_shinsal(["乙丑", "戊寅", "甲午", "丙寅"]).to_dict()
    assert set(d) == {"good", "bad", "day_void", "year_void", "samjae"}
    assert set(d["good"]) == {"year", "month", "day", "hour"}
    assert d["day_void"] == ["辰", "巳"]
