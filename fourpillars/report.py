"""
End-to-end analysis of one chart.

Runs power → structure → tags → balance → climate → multi-method engine,
adds the relation tags and shinsal, and assembles a JSON-ready dict, the
way the chart builder assembles its chart dict.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fourpillars.astro_calendar import solar_year_of
from fourpillars.balance import compute_balance_candidates
from fourpillars.chart import (
    annual_pillar,
    build_chart,
    daily_pillar,
    local_birth_time,
    luck_pillars,
    monthly_pillar,
    time_overlay,
)
from fourpillars.climate import climate_percents, element_presence
from fourpillars.luck_yongshin import luck_yongshin
from fourpillars.power import Criteria, LuckTab, compute_power
from fourpillars.relation_tags import luck_relation_tags, natal_relation_tags
from fourpillars.shinsal import natal_shinsal
from fourpillars.structure import resolve_chart_structure
from fourpillars.structure_tags import detect_structure_tags
from fourpillars.tables import HiddenMode, hidden_mode as coerce_hidden_mode, parse_chart
from fourpillars.ten_gods import map_ten_gods
from fourpillars.yongshin import candidates_from_structure, compute_yongshin_multi

logger = logging.getLogger(__name__)


def resolve_birth(birth_date: date, birth_time: str, latitude: Optional[float] = None,
                  longitude: Optional[float] = None, utc_offset: Optional[float] = None) -> dict:
    """
    Birth moment in standard (non-DST) clock time and its UTC offset.

    With coordinates and no explicit offset the timezone is looked up and
    any DST in force is taken off the clock time.
    """
    hour, minute = map(int, birth_time.split(":"))
    moment = datetime(birth_date.year, birth_date.month, birth_date.day, hour, minute)
    tz_name = None
    dst = False
    if utc_offset is None:
        if latitude is None or longitude is None:
            utc_offset = 0.0
        else:
            clock, standard, tz_name, dst = local_birth_time(latitude, longitude, birth_date, birth_time)
            if dst:
                moment -= timedelta(hours=clock - standard)
                logger.debug("DST stripped: %s %s → %s", tz_name, birth_time, moment.time())
            utc_offset = standard
    return {"moment": moment, "utc_offset": utc_offset, "timezone": tz_name, "dst_detected": dst}


def _overlay_for(chart, tab: LuckTab, birth, gender, on, utc_offset) -> Optional[dict]:
    if tab is LuckTab.NATAL or on is None:
        return None
    if birth is not None and gender:
        return time_overlay(birth, gender, on, chart, utc_offset)
    return {
        "decade": None,
        "year": annual_pillar(solar_year_of(on, utc_offset)),
        "month": monthly_pillar(on, utc_offset),
        "day": daily_pillar(on),
    }


def analyze_chart(pillars=None, birth: Optional[datetime] = None, gender: Optional[str] = None,
                  longitude: Optional[float] = None, utc_offset: float = 0.0,
                  on: Optional[datetime] = None, mode=HiddenMode.CLASSIC,
                  criteria=Criteria.MODERN, tab=LuckTab.NATAL, use_harmony: bool = False,
                  demote_absent: bool = False, structure_date=None,
                  void_basis: str = "day", luck_table: bool = False) -> dict:
    """
    Analyze a chart given as pillars or as a birth moment.

    Args:
        pillars: 4 pillars; takes precedence over birth for the chart itself
        birth: standard clock time of birth; builds the chart when no pillars
        gender: "male" / "female", for the decade luck pillars
        longitude: birth longitude for the LMT correction
        utc_offset: hours east of UTC of the birth clock
        on: date of the luck overlay (tabs other than natal)
        mode: hidden-stem table for structure, tags and root rates
        criteria: power weighting table
        tab: which luck scopes the power scorer adds
        use_harmony: apply the 三合/方合 overlay
        demote_absent: sink favorable elements missing from the chart
        structure_date: date for the structure day offset when no birth moment is given
        void_basis: "day" or "year" pillar for the 空亡 marks
        luck_table: add the per-decade and per-year yongshin comparison
            (needs birth and gender)

    Raises:
        ValueError: when no complete chart can be formed
    """
    mode = coerce_hidden_mode(mode)
    criteria = criteria if isinstance(criteria, Criteria) else Criteria(criteria)
    tab = tab if isinstance(tab, LuckTab) else LuckTab(tab)

    if pillars:
        chart = parse_chart(pillars)
    elif birth is not None:
        chart = build_chart(birth, longitude=longitude, utc_offset=utc_offset)
    else:
        chart = [None] * 4
    if any(p is None for p in chart):
        raise ValueError(f"need four valid pillars, got {pillars!r}")

    dm = chart[2].stem
    overlay = _overlay_for(chart, tab, birth, gender, on, utc_offset)

    power = compute_power(chart, luck=overlay, tab=tab, use_harmony=use_harmony,
                          criteria=criteria, hidden_mode=mode)
    structure = resolve_chart_structure(chart, birth or structure_date, mode=mode, utc_offset=utc_offset)
    tags = detect_structure_tags(chart, mode, power.element_percent)
    balance = compute_balance_candidates(dm, chart[1].branch, power.category_percent,
                                         power.element_percent)
    climate = climate_percents(chart)
    presence = element_presence(chart)
    structure_candidates = candidates_from_structure(dm, structure)
    multi = compute_yongshin_multi(
        balance.ordered, chart[1], power.element_percent, presence, demote_absent, chart,
        structure_candidates=structure_candidates, climate=climate,
    )
    shinsal = natal_shinsal(chart, decade=overlay.get("decade") if overlay else None,
                            void_basis=void_basis)

    result = {
        "day_master": {
            "chinese": dm.chinese,
            "pinyin": dm.pinyin,
            "element": dm.element.value,
            "polarity": dm.polarity.value,
        },
        "pillars": {p.position: p.to_dict() for p in chart},
        "ten_gods": map_ten_gods(dm, chart),
        "settings": {
            "mode": mode.value,
            "criteria": criteria.value,
            "tab": tab.value,
            "harmony": use_harmony,
            "demote_absent": demote_absent,
        },
        "power": power.to_dict(),
        "structure": structure.to_dict(),
        "structure_tags": tags,
        "balance": balance.to_dict(),
        "climate": climate.to_dict(),
        "presence": {el.value: v for el, v in presence.items()},
        "yongshin": multi.to_dict(),
        "relations": natal_relation_tags(chart),
        "shinsal": shinsal.to_dict(),
    }
    if overlay is not None:
        result["luck_overlay"] = {k: (p.key if p is not None else None) for k, p in overlay.items()}
        result["luck_relations"] = luck_relation_tags(chart, overlay)
    if birth is not None and gender:
        result["luck_pillars"] = [lp.to_dict() for lp in luck_pillars(chart, gender, birth, utc_offset)]
        if luck_table:
            natal_element = multi.best_group.top.element if multi.best_group else None
            result["luck_yongshin"] = luck_yongshin(
                chart, birth, gender, utc_offset, natal_element, mode=mode, criteria=criteria,
                use_harmony=use_harmony, demote_absent=demote_absent,
                structure_candidates=structure_candidates,
            ).to_dict()
    return result
