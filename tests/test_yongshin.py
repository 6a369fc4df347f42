from datetime import datetime

import pytest

from fourpillars.astro_calendar import SolarTermBoundary
from fourpillars.balance import compute_balance_candidates
from fourpillars.climate import ClimatePercents
from fourpillars.structure import resolve_chart_structure, resolve_structure
from fourpillars.tables import ELEMENTS, Element
from fourpillars.yongshin import (
    YongshinCandidate,
    YongshinMethod,
    candidates_from_structure,
    compute_yongshin_multi,
    conflict_candidates,
    deficiency_candidates,
    need_adjusted,
    parse_element,
    seasonal_candidates,
)

EVEN = {el: 20 for el in ELEMENTS}
ALL_PRESENT = {el: True for el in ELEMENTS}


def tiger_month_2024(_when):
    return [
        SolarTermBoundary("Li Chun", datetime(2024, 2, 4, 8, 27)),
        SolarTermBoundary("Jing Zhe", datetime(2024, 3, 5, 2, 23)),
    ]


def top(candidates):
    return [(c.element, c.score) for c in candidates]


@pytest.mark.parametrize("score, pct, expected", [(100, 0, 100), (100, 120, 10), (100, 60, 50)])
def test_need_adjusted(score, pct, expected):
    assert need_adjusted(score, pct) == expected


def test_parse_element():
    assert parse_element("木") is Element.WOOD
    assert parse_element("Fire") is Element.FIRE
    assert parse_element("qi") is None


def test_seasonal_table_is_never_empty():
    assert top(seasonal_candidates("", {})) == [(Element.FIRE, 60), (Element.WATER, 60)]


def test_seasonal_winter_table():
    assert top(seasonal_candidates("甲子", EVEN)) == [(Element.FIRE, 92), (Element.EARTH, 50)]


def test_seasonal_follows_strong_climate_lean():
    out = seasonal_candidates("甲午", {}, ClimatePercents(30, 50))
    assert top(out) == [(Element.FIRE, 92), (Element.EARTH, 46)]


def test_seasonal_mild_climate_falls_back_to_table():
    out = seasonal_candidates("甲午", {}, ClimatePercents(55, 45))
    assert out[0].element is Element.WATER
    assert out[0].score == 110


def test_conflict_bridge():
    pct = {"metal": 30, "wood": 30, "fire": 15, "earth": 15, "water": 10}
    assert top(conflict_candidates(pct)) == [(Element.WATER, 101)]
    assert conflict_candidates({"metal": 50, "wood": 25}) == []


def test_deficiency():
    pct = dict(EVEN)
    pct[Element.WOOD] = 5
    assert top(deficiency_candidates(pct, ALL_PRESENT)) == [(Element.WOOD, 84)]
    assert deficiency_candidates(EVEN, ALL_PRESENT) == []


def test_seasonal_wins_without_balance():
    result = compute_yongshin_multi(
        [], "甲子", EVEN, ALL_PRESENT,
        structure_candidates=[YongshinCandidate(Element.EARTH, 60)],
    )
    groups = {g.method: g for g in result.groups}
    assert result.best_method is YongshinMethod.SEASONAL
    assert result.best_group.fit_score == 78
    assert result.best_group.final_score == 78
    assert groups[YongshinMethod.STRUCTURE].fit_score == 33
    assert not groups[YongshinMethod.BALANCE].applicable
    assert [g.priority for g in result.groups] == [1, 2, 3, 3, 4]


def test_tie_goes_to_balance_and_is_lifted():
    result = compute_yongshin_multi(
        [{"element": "fire", "score": 83.2}], "甲子", EVEN, ALL_PRESENT,
        structure_candidates=[YongshinCandidate(Element.EARTH, 60)],
    )
    groups = {g.method: g for g in result.groups}
    assert groups[YongshinMethod.SEASONAL].fit_score == 78
    assert groups[YongshinMethod.BALANCE].fit_score == 78
    assert result.best_method is YongshinMethod.BALANCE
    assert result.best_group.final_score == 79
    assert groups[YongshinMethod.BALANCE].final_score == 79
    assert all(result.best_group.final_score >= g.final_score for g in result.groups)


def test_absent_elements_are_demoted():
    presence = dict(ALL_PRESENT)
    presence[Element.FIRE] = False
    result = compute_yongshin_multi([], "甲子", EVEN, presence, demote_absent=True)
    seasonal = {g.method: g for g in result.groups}[YongshinMethod.SEASONAL]
    assert seasonal.top.element is Element.EARTH
    fire = seasonal.candidates[-1]
    assert fire.element is Element.FIRE
    assert fire.score == 0
    assert "absent in chart → 0" in fire.reasons


def test_candidates_from_structure():
    accepted = resolve_structure("甲", "寅", datetime(2024, 2, 13), emitted_stems=["丙"],
                                 boundaries=tiger_month_2024)
    assert top(candidates_from_structure("甲", accepted)) == [(Element.FIRE, 92), (Element.WATER, 70)]

    yang_ren = resolve_structure("甲", "卯", None)
    assert top(candidates_from_structure("甲", yang_ren)) == [(Element.WOOD, 92), (Element.METAL, 70)]
    assert candidates_from_structure("甲", None) == []


def test_result_to_dict():
    result = compute_yongshin_multi([], "甲子", EVEN, pillars=["甲子", "丙寅", "甲午", "丙寅"])
    d = result.to_dict()
    assert d["best_method"] == "seasonal"
    assert d["best"]["title"] == "調候用神"
    assert len(d["groups"]) == 5


def test_structure_and_balance_compete_in_the_engine():
    chart = ["甲子", "丙寅", "甲午", "甲子"]
    structure = resolve_chart_structure(chart, datetime(2024, 2, 13), boundaries=tiger_month_2024)
    assert structure.inner_structure == "食神格"
    from_structure = candidates_from_structure("甲", structure)

    # even chart: the balance fit is damped, the structure view leads
    even_categories = {"peer": 20, "resource": 20, "output": 20, "wealth": 20, "officer": 20}
    balance = compute_balance_candidates("甲", "寅", even_categories, EVEN)
    assert balance.ordered[0].element is Element.WATER
    assert balance.ordered[0].score == pytest.approx(40.4)
    result = compute_yongshin_multi(balance.ordered, "丙寅", EVEN, ALL_PRESENT,
                                    structure_candidates=from_structure)
    groups = {g.method: g for g in result.groups}
    assert result.best_method is YongshinMethod.STRUCTURE
    assert result.best_group.top.element is Element.FIRE
    assert result.best_group.fit_score == 51
    assert groups[YongshinMethod.BALANCE].fit_score == 38
    assert groups[YongshinMethod.SEASONAL].fit_score == 41

    # lopsided weak chart: the balance view takes over
    weak_categories = {"peer": 10, "resource": 10, "output": 30, "wealth": 30, "officer": 20}
    weak_pct = {"wood": 10, "water": 10, "fire": 30, "earth": 30, "metal": 20}
    balance = compute_balance_candidates("甲", "寅", weak_categories, weak_pct)
    result = compute_yongshin_multi(balance.ordered, "丙寅", weak_pct, ALL_PRESENT,
                                    structure_candidates=from_structure)
    groups = {g.method: g for g in result.groups}
    assert result.best_method is YongshinMethod.BALANCE
    assert result.best_group.top.element is Element.WATER
    assert result.best_group.fit_score == 76
    assert result.best_group.final_score == 76
    assert groups[YongshinMethod.STRUCTURE].fit_score == 51
    assert groups[YongshinMethod.SEASONAL].fit_score == 37
