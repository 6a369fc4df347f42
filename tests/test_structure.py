from datetime import datetime

import pytest

from fourpillars.astro_calendar import SolarTermBoundary
from fourpillars.structure import (
    EXCLUDED,
    ReasonKind,
    ReasonToken,
    jeolip_info,
    pick_by_day_offset,
    resolve_chart_structure,
    resolve_structure,
    supporting_stem_of,
)
from fourpillars.tables import Phase, lookup_hidden_phases, parse_branch, parse_stem


def tiger_month_2024(_when):
    return [
        SolarTermBoundary("Li Chun", datetime(2024, 2, 4, 8, 27)),
        SolarTermBoundary("Jing Zhe", datetime(2024, 3, 5, 2, 23)),
    ]


def no_boundaries(_when):
    return []


def kinds(result):
    return [t.kind for t in result.reason_trace]


def test_day_offset_classic_picks_middle_phase():
    r = resolve_structure("甲", "寅", datetime(2024, 2, 13), boundaries=tiger_month_2024)
    assert r.month_qi == parse_stem("甲")
    assert r.command_phase == parse_stem("丙")
    assert r.reason_trace[0] == ReasonToken(ReasonKind.DAY_OFFSET_PICK, Phase.MIDDLE)
    assert r.accepted is None
    assert r.true_stem == parse_stem("丙")
    assert r.supporting_stem == parse_stem("壬")
    assert r.inner_structure == "食神格"
    assert r.jeolip.day_index == 10
    assert r.jeolip.span_days == 30


def test_day_offset_hgc_rescales_to_main_phase():
    r = resolve_structure("甲", "寅", datetime(2024, 2, 13), mode="hgc", boundaries=tiger_month_2024)
    assert r.command_phase == parse_stem("甲")
    assert r.inner_structure == EXCLUDED
    assert kinds(r)[-1] is ReasonKind.EXCLUDED_PEER


def test_cardinal_month_takes_main_qi():
    r = resolve_structure("甲", "子", datetime(2024, 12, 20), boundaries=no_boundaries)
    assert r.command_phase == parse_stem("癸")
    assert kinds(r)[0] is ReasonKind.CARDINAL_FIXED_MONTH_QI
    assert r.jeolip is None
    assert r.inner_structure == "正印格"


def test_storage_month_with_triad_takes_middle():
    r = resolve_structure("甲", "辰", None, other_branches=["申", "子", "午"])
    assert r.command_phase == parse_stem("癸")
    assert kinds(r)[0] is ReasonKind.STORAGE_TRIAD_USE_MIDDLE


def test_unknown_month_branch():
    r = resolve_structure("甲", "X", datetime(2024, 2, 13))
    assert kinds(r) == [ReasonKind.NO_DISTRIBUTION_TABLE]
    assert r.inner_structure == EXCLUDED
    assert r.command_phase is None


@pytest.mark.parametrize("when", [None, datetime(2024, 2, 13)])
def test_missing_boundaries_fall_back_to_month_qi(when):
    r = resolve_structure("甲", "寅", when, boundaries=no_boundaries)
    assert r.command_phase == parse_stem("甲")
    assert kinds(r)[0] is ReasonKind.DAY_OFFSET_FALLBACK_MONTH_QI


def test_acceptance_by_same_element_stem():
    r = resolve_structure("甲", "寅", datetime(2024, 2, 13), emitted_stems=["丁"],
                          boundaries=tiger_month_2024)
    assert r.accepted == parse_stem("丙")
    assert ReasonKind.ACCEPTED_BY_EMITTED_STEM in kinds(r)


def test_neutralized_command_is_not_accepted():
    r = resolve_structure("甲", "寅", datetime(2024, 2, 13), emitted_stems=["丙"],
                          is_neutralized=lambda _s: True, boundaries=tiger_month_2024)
    assert r.accepted is None
    assert ReasonKind.NEUTRALIZED in kinds(r)
    assert r.true_stem == parse_stem("丙")


@pytest.mark.parametrize("dm, month, when, label, kind", [
    ("丁", "午", None, "建祿格", ReasonKind.EXCEPTION_JIAN_LU),
    ("甲", "卯", None, "羊刃格", ReasonKind.EXCEPTION_YANG_REN),
    ("乙", "寅", datetime(2024, 2, 25), "月劫格", ReasonKind.EXCEPTION_MONTH_ROB),
])
def test_peer_exceptions(dm, month, when, label, kind):
    r = resolve_structure(dm, month, when, boundaries=tiger_month_2024)
    assert r.inner_structure == label
    assert kinds(r)[-1] is kind


def test_jeolip_retries_previous_solar_year():
    def provider(when):
        if when.year == 2024:
            return tiger_month_2024(when)
        return [
            SolarTermBoundary("Li Chun", datetime(2023, 2, 4)),
            SolarTermBoundary("Da Xue", datetime(2023, 12, 7)),
            SolarTermBoundary("Xiao Han", datetime(2024, 1, 6)),
        ]

    info = jeolip_info("丑", datetime(2024, 1, 10), provider)
    assert info.term == "Xiao Han"
    assert info.day_index == 5
    assert info.span_days == 30


def test_jeolip_without_date():
    assert jeolip_info("寅", None, tiger_month_2024) is None


def test_pick_by_day_offset_walks_cumulative_weight():
    phases = lookup_hidden_phases(parse_branch("寅"), "classic")
    assert pick_by_day_offset(phases, 1, 30).stem == parse_stem("戊")
    assert pick_by_day_offset(phases, 7, 30).stem == parse_stem("戊")
    assert pick_by_day_offset(phases, 8, 30).stem == parse_stem("丙")
    assert pick_by_day_offset(phases, 99, 30).stem == parse_stem("甲")


def test_supporting_stem_matches_polarity():
    assert supporting_stem_of(parse_stem("丁")) == parse_stem("癸")
    assert supporting_stem_of(None) is None


def test_chart_structure_accepts_visible_stem():
    chart = ["甲子", "丙寅", "甲午", "丙寅"]
    r = resolve_chart_structure(chart, datetime(2024, 2, 13), boundaries=tiger_month_2024)
    assert r.accepted == parse_stem("丙")
    assert r.inner_structure == "食神格"
    again = resolve_chart_structure(chart, datetime(2024, 2, 13), boundaries=tiger_month_2024)
    assert again == r
    d = r.to_dict()
    assert d["accepted"] == "丙"
    assert d["jeolip"]["term"] == "Li Chun"
    assert d["reasons"]


@pytest.mark.parametrize("month", ["子", "午", "卯", "酉"])
@pytest.mark.parametrize("when", [None, datetime(2024, 2, 5), datetime(2024, 2, 28)])
def test_cardinal_months_ignore_the_date(month, when):
    r = resolve_structure("庚", month, when, mode="hgc", boundaries=tiger_month_2024)
    assert r.command_phase == r.month_qi


def test_default_provider_reads_the_birth_clock(monkeypatch):
    seen = []

    def recording_provider(when, utc_offset=0.0):
        seen.append(utc_offset)
        return tiger_month_2024(when)

    monkeypatch.setattr("fourpillars.structure.solar_term_boundaries", recording_provider)
    info = jeolip_info("寅", datetime(2024, 2, 13), utc_offset=9.0)
    assert seen == [9.0]
    assert info.day_index == 10

    r = resolve_chart_structure(["甲子", "丙寅", "甲午", "甲子"], datetime(2024, 2, 13), utc_offset=-5.0)
    assert seen[-1] == -5.0
    assert r.command_phase == parse_stem("丙")
