import json
from datetime import date, datetime

import pytest

from fourpillars.report import analyze_chart, resolve_birth
from fourpillars.run import main

CHART = ["丙寅", "甲午", "甲子", "庚午"]


def test_analyze_chart_from_pillars():
    result = analyze_chart(pillars=CHART, structure_date=date(1986, 6, 19))
    assert result["day_master"]["chinese"] == "甲"
    assert set(result["pillars"]) == {"year", "month", "day", "hour"}
    assert sum(result["power"]["element_percent"].values()) == 100
    assert result["structure"]["month_qi"] == "丁"
    assert result["settings"]["mode"] == "classic"
    assert result["yongshin"]["best_method"] is not None
    assert len(result["balance"]["ordered"]) == 5
    assert "luck_overlay" not in result
    assert result["relations"]["stem_clash"] == ["#日X時_甲庚沖"]
    assert "#月X日_子午沖" in result["relations"]["clash"]
    assert "luck_relations" not in result
    assert set(result["shinsal"]["good"]) == {"year", "month", "day", "hour"}
    json.dumps(result, ensure_ascii=False)


def test_analyze_chart_from_birth_with_overlay():
    result = analyze_chart(birth=datetime(1986, 6, 19, 12, 0), gender="male",
                           on=datetime(2024, 6, 1), tab="year")
    assert [result["pillars"][k]["pillar"] for k in ("year", "month", "day", "hour")] == CHART
    assert result["luck_overlay"]["year"] == "甲辰"
    assert result["luck_overlay"]["decade"] is not None
    assert len(result["luck_pillars"]) == 10
    assert "luck_relations" in result
    assert "luck_yongshin" not in result


def test_analyze_chart_with_luck_table():
    result = analyze_chart(birth=datetime(1986, 6, 19, 12, 0), gender="male", luck_table=True)
    table = result["luck_yongshin"]
    assert table["natal_element"] == result["yongshin"]["best"]["candidates"][0]["element"]
    # one decade row plus ten annual rows per decade
    assert len(table["rows"]) == 110
    assert table["rows"][0]["year"] is None
    assert all(r["changed"] == (r["element"] != table["natal_element"]) for r in table["rows"])


def test_analyze_chart_rejects_incomplete_chart():
    with pytest.raises(ValueError):
        analyze_chart(pillars=["甲子", "丙寅", "甲午"])
    with pytest.raises(ValueError):
        analyze_chart()


def test_resolve_birth_with_explicit_offset():
    resolved = resolve_birth(date(1990, 3, 15), "10:30", utc_offset=9.0)
    assert resolved["moment"] == datetime(1990, 3, 15, 10, 30)
    assert resolved["utc_offset"] == 9.0
    assert resolved["dst_detected"] is False


def test_resolve_birth_strips_dst():
    # Seoul observed DST in the summer of 1987
    resolved = resolve_birth(date(1987, 7, 1), "10:30", latitude=37.57, longitude=126.98)
    assert resolved["timezone"] == "Asia/Seoul"
    assert resolved["dst_detected"] is True
    assert resolved["utc_offset"] == 9.0
    assert resolved["moment"] == datetime(1987, 7, 1, 9, 30)


def test_cli_prints_json(capsys):
    main(["--pillars", *CHART, "--mode", "hgc", "--void-basis", "year"])
    out = json.loads(capsys.readouterr().out)
    assert out["settings"]["mode"] == "hgc"
    assert out["shinsal"]["year_void"] == ["戌", "亥"]
    assert out["day_master"]["element"] == "wood"


def test_cli_requires_input():
    with pytest.raises(SystemExit):
        main([])
