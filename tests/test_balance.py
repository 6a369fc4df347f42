import pytest

from fourpillars.balance import (
    METHOD_CLIMATE,
    METHOD_REMEDY,
    METHOD_SUPPORT,
    compute_balance_candidates,
    role_bias_points,
    role_of,
    score_remedy,
    strength_band,
    strong_penalty_factor,
)
from fourpillars.tables import ELEMENTS, Element
from fourpillars.ten_gods import TenGodCategory


@pytest.mark.parametrize("pct, band", [
    (9.9, "極弱"),
    (10, "太弱"),
    (34, "身弱"),
    (45, "中和"),
    (55, "中和身強"),
    (80, "極太強"),
])
def test_strength_band(pct, band):
    assert strength_band(pct) == band


def test_strong_penalty_factor():
    assert strong_penalty_factor(60) == 0.0
    assert strong_penalty_factor(24) == 0.62
    assert strong_penalty_factor(23.9) == 1.0


def test_remedy_floor():
    scores = {el: 20.0 for el in ELEMENTS}
    scores[Element.WOOD] = 3.0
    scores[Element.FIRE] = 6.0
    out = score_remedy(scores)
    assert out[Element.WOOD] == 12
    assert out[Element.FIRE] == 12
    assert out[Element.EARTH] == 0


def test_weak_day_master():
    result = compute_balance_candidates(
        "甲", "子",
        {"peer": 10, "resource": 10, "output": 30, "wealth": 30, "officer": 20},
        {"wood": 10, "water": 10, "fire": 30, "earth": 30, "metal": 20},
    )
    assert result.band == "身弱"
    assert result.overall_pct == 20
    assert [(c.element, c.score) for c in result.ordered] == [
        (Element.WATER, pytest.approx(46.2)),
        (Element.WOOD, pytest.approx(35.6)),
        (Element.METAL, pytest.approx(5.9)),
        (Element.FIRE, pytest.approx(2.6)),
        (Element.EARTH, pytest.approx(2.1)),
    ]
    assert result.chosen_type == METHOD_CLIMATE
    water = result.ordered[0]
    assert TenGodCategory.RESOURCE in water.ten_god_hints
    assert "over-represented: penalized" in result.ordered[-1].reasons


def test_strong_day_master():
    result = compute_balance_candidates(
        "甲", "午",
        {TenGodCategory.PEER: 50, TenGodCategory.RESOURCE: 30, TenGodCategory.OUTPUT: 10,
         TenGodCategory.WEALTH: 5, TenGodCategory.OFFICER: 5},
        {Element.WOOD: 50, Element.WATER: 30, Element.FIRE: 10, Element.EARTH: 5, Element.METAL: 5},
    )
    assert result.band == "極太強"
    assert result.chosen_type == METHOD_SUPPORT
    assert [c.element for c in result.ordered] == [
        Element.FIRE, Element.METAL, Element.EARTH, Element.WATER, Element.WOOD,
    ]
    assert result.ordered[0].score == pytest.approx(45.2)
    assert result.ordered[-1].score == 0


def test_without_inputs_every_element_is_scored():
    result = compute_balance_candidates(None, None)
    assert len(result.ordered) == 5
    assert result.chosen_type == METHOD_REMEDY
    assert result.band == "中和"
    assert all(c.score == 12 for c in result.ordered)
    d = result.to_dict()
    assert d["ordered"][0]["element"] == "wood"


def test_role_of():
    assert role_of(Element.WOOD, Element.WOOD) == "peer"
    assert role_of(Element.WOOD, Element.FIRE) == "leak"
    assert role_of(Element.WOOD, Element.EARTH) == "wealth"
    assert role_of(Element.WOOD, Element.METAL) == "officer"
    assert role_of(Element.WOOD, Element.WATER) == "resource"
    assert role_of(None, Element.WOOD) is None


def test_role_bias_in_the_exact_middle():
    even = {el: 20 for el in ELEMENTS}
    assert role_bias_points(Element.WOOD, 50.0, Element.FIRE, even) == pytest.approx(-0.3)
    assert role_bias_points(Element.WOOD, 50.0, Element.WATER, even) == 0
    assert role_bias_points(None, 50.0, Element.FIRE, even) == 0


def test_role_bias_weak_and_strong_sides():
    weak = {Element.WOOD: 10, Element.WATER: 10, Element.FIRE: 30, Element.EARTH: 30, Element.METAL: 20}
    assert role_bias_points(Element.WOOD, 20.0, Element.WATER, weak) == pytest.approx(2.2)
    assert role_bias_points(Element.WOOD, 20.0, Element.WOOD, weak) == pytest.approx(1.6)
    assert role_bias_points(Element.WOOD, 20.0, Element.FIRE, weak) == pytest.approx(-2.5)

    strong = {Element.WOOD: 50, Element.WATER: 30, Element.FIRE: 10, Element.EARTH: 5, Element.METAL: 5}
    assert role_bias_points(Element.WOOD, 80.0, Element.FIRE, strong) == pytest.approx(1.2)
    assert role_bias_points(Element.WOOD, 80.0, Element.METAL, strong) == pytest.approx(1.9)
    assert role_bias_points(Element.WOOD, 80.0, Element.WATER, strong) == pytest.approx(-2.7)
