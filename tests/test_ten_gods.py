import pytest

from fourpillars.tables import ELEMENTS
from fourpillars.ten_gods import (
    CATEGORIES,
    SUBTYPE_PAIRS,
    TenGod,
    TenGodCategory,
    branch_ten_god,
    category_of_element,
    element_of_category,
    element_relationship,
    ten_god,
)


@pytest.mark.parametrize("other, expected", [
    ("甲", TenGod.COMPANION),
    ("乙", TenGod.ROB_WEALTH),
    ("丙", TenGod.EATING_GOD),
    ("丁", TenGod.HURTING_OFFICER),
    ("戊", TenGod.INDIRECT_WEALTH),
    ("己", TenGod.DIRECT_WEALTH),
    ("庚", TenGod.SEVEN_KILLINGS),
    ("辛", TenGod.DIRECT_OFFICER),
    ("壬", TenGod.INDIRECT_RESOURCE),
    ("癸", TenGod.DIRECT_RESOURCE),
])
def test_ten_gods_of_jia(other, expected):
    assert ten_god("甲", other) is expected


def test_ten_god_unparseable():
    assert ten_god("甲", "?") is None
    assert ten_god(None, "甲") is None


def test_branch_surface_reads_main_stem():
    # 子 → 癸, 午 → 丁
    assert branch_ten_god("甲", "子") is TenGod.DIRECT_RESOURCE
    assert branch_ten_god("丙", "午") is TenGod.ROB_WEALTH


def test_element_relationship_names():
    wood, fire, earth, metal, water = ELEMENTS
    assert element_relationship(wood, wood) == "same"
    assert element_relationship(wood, water) == "produces_me"
    assert element_relationship(wood, fire) == "i_produce"
    assert element_relationship(wood, earth) == "i_control"
    assert element_relationship(wood, metal) == "controls_me"


def test_category_element_round_trip():
    for day_el in ELEMENTS:
        for cat in CATEGORIES:
            assert category_of_element(day_el, element_of_category(day_el, cat)) is cat


def test_subtype_pairs_cover_every_ten_god():
    gods = [g for pair in SUBTYPE_PAIRS.values() for g in pair]
    assert sorted(g.value for g in gods) == sorted(g.value for g in TenGod)
    for cat, pair in SUBTYPE_PAIRS.items():
        assert all(g.category is cat for g in pair)
    assert TenGod.SEVEN_KILLINGS.category is TenGodCategory.OFFICER
