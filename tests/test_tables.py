import pytest

from fourpillars.tables import (
    BRANCH_MAIN_STEM,
    EARTHLY_BRANCHES,
    HIDDEN_PHASES,
    SEXAGENARY_CYCLE,
    HiddenMode,
    Phase,
    Polarity,
    hidden_mode,
    hidden_stems,
    lookup_hidden_phases,
    parse_branch,
    parse_chart,
    parse_pillar,
    parse_stem,
    total_weight,
)


def test_parse_pillar_chinese_and_hangul():
    assert parse_pillar("甲子").key == "甲子"
    assert parse_pillar("갑자").key == "甲子"
    assert parse_pillar(" 丙午 ", "day").position == "day"


@pytest.mark.parametrize("text", ["", "甲", "甲子丑", "XY", None, 12])
def test_parse_pillar_rejects_bad_text(text):
    assert parse_pillar(text) is None


def test_parse_stem_and_branch_readings():
    assert parse_stem("Jia").chinese == "甲"
    assert parse_stem("계").chinese == "癸"
    assert parse_branch("Hai").chinese == "亥"
    assert parse_branch("?") is None


def test_parse_chart_pads_and_labels_positions():
    chart = parse_chart(["甲子", "bad"])
    assert len(chart) == 4
    assert chart[0].position == "year"
    assert chart[1:] == [None, None, None]


def test_sexagenary_cycle():
    assert len(SEXAGENARY_CYCLE) == 60
    assert SEXAGENARY_CYCLE[0] == "甲子"
    assert SEXAGENARY_CYCLE[59] == "癸亥"


@pytest.mark.parametrize("mode, total", [(HiddenMode.CLASSIC, 30), (HiddenMode.HGC, 100)])
def test_hidden_phase_totals(mode, total):
    for branch in EARTHLY_BRANCHES:
        phases = lookup_hidden_phases(branch, mode)
        assert 1 <= len(phases) <= 3
        assert total_weight(phases) == total


@pytest.mark.parametrize("mode", list(HiddenMode))
def test_month_qi_is_main_stem(mode):
    for branch in EARTHLY_BRANCHES:
        phases = HIDDEN_PHASES[mode][branch]
        assert phases[-1].stem == BRANCH_MAIN_STEM[branch]
        assert phases[-1].phase is Phase.MAIN


def test_growth_branch_classic_distribution():
    phases = lookup_hidden_phases("寅", "classic")
    assert [(p.stem.chinese, p.weight) for p in phases] == [("戊", 7), ("丙", 7), ("甲", 16)]
    assert hidden_stems("寅", HiddenMode.HGC) == [parse_stem("丙"), parse_stem("甲")]


def test_unknown_branch_has_no_phases():
    assert lookup_hidden_phases("X") == ()


def test_hidden_mode_coercion():
    assert hidden_mode("HGC") is HiddenMode.HGC
    assert hidden_mode(" hgc ") is HiddenMode.HGC
    assert hidden_mode("anything") is HiddenMode.CLASSIC
    assert hidden_mode(None) is HiddenMode.CLASSIC


def test_functional_polarity_follows_main_stem():
    assert parse_branch("子").functional_polarity is Polarity.YIN
    assert parse_branch("午").functional_polarity is Polarity.YIN
    assert parse_branch("巳").functional_polarity is Polarity.YANG
    assert parse_branch("亥").functional_polarity is Polarity.YANG
    assert parse_branch("寅").functional_polarity is Polarity.YANG
