"""
Yongshin under the luck chain.

Re-runs power → balance → multi-method engine with each decade pillar
(大運) added, and with each of the ten annual pillars (歲運) of that
decade on top, so the favorable element of every period can be compared
with the natal one.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fourpillars.balance import compute_balance_candidates
from fourpillars.chart import LuckPillar, annual_pillar, luck_pillars
from fourpillars.climate import climate_percents, element_presence
from fourpillars.power import Criteria, LuckTab, compute_power
from fourpillars.tables import HiddenMode, parse_chart
from fourpillars.yongshin import compute_yongshin_multi

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LuckYongshinRow:
    label: str
    decade: object
    year: Optional[int]
    annual: object
    element_percent: dict
    best_method: object
    element: object
    fit_score: int
    changed: bool

    def to_dict(self):
        return {
            "label": self.label,
            "decade": self.decade.key,
            "year": self.year,
            "annual": self.annual.key if self.annual is not None else None,
            "element_percent": {el.value: v for el, v in self.element_percent.items()},
            "best_method": self.best_method.value if self.best_method else None,
            "element": self.element.value if self.element else None,
            "fit_score": self.fit_score,
            "changed": self.changed,
        }


@dataclass(frozen=True)
class LuckYongshinTable:
    natal_element: object
    rows: list = field(default_factory=list)

    @property
    def changed_rows(self) -> list:
        return [r for r in self.rows if r.changed]

    def to_dict(self):
        return {
            "natal_element": self.natal_element.value if self.natal_element else None,
            "rows": [r.to_dict() for r in self.rows],
        }


def _best(chart, luck, tab, mode, criteria, use_harmony, presence, demote_absent,
          structure_candidates, climate):
    power = compute_power(chart, luck=luck, tab=tab, use_harmony=use_harmony,
                          criteria=criteria, hidden_mode=mode)
    balance = compute_balance_candidates(chart[2].stem, chart[1].branch, power.category_percent,
                                         power.element_percent)
    multi = compute_yongshin_multi(balance.ordered, chart[1], power.element_percent, presence,
                                   demote_absent, chart, structure_candidates=structure_candidates,
                                   climate=climate)
    return power, multi


def compare_luck_yongshin(pillars, decades: list, birth_year: int, natal_element=None,
                          years_per_decade: int = 10, mode=HiddenMode.CLASSIC,
                          criteria=Criteria.MODERN, use_harmony: bool = False,
                          demote_absent: bool = False,
                          structure_candidates=None) -> LuckYongshinTable:
    """
    Best yongshin for each decade and for each year inside it.

    Args:
        pillars: the 4 natal pillars
        decades: LuckPillar list; a decade starts in birth_year + age_start
        birth_year: calendar year of birth
        natal_element: natal best element that rows are compared with
        years_per_decade: annual rows per decade; 0 for decade rows only
        structure_candidates: natal structure candidates, reused for every row

    Returns:
        LuckYongshinTable, one decade row followed by its annual rows
    """
    chart = parse_chart(pillars)
    if any(p is None for p in chart):
        raise ValueError(f"need four valid pillars, got {pillars!r}")
    presence = element_presence(chart)
    climate = climate_percents(chart)
    common = (mode, criteria, use_harmony, presence, demote_absent, structure_candidates, climate)

    rows = []
    for lp in decades:
        start_year = birth_year + lp.age_start
        scopes = [(None, None)] + [(start_year + k, annual_pillar(start_year + k))
                                   for k in range(years_per_decade)]
        for year, annual in scopes:
            luck = {"decade": lp.pillar, "year": annual}
            tab = LuckTab.DECADE if annual is None else LuckTab.YEAR
            power, multi = _best(chart, luck, tab, *common)
            top = multi.best_group.top if multi.best_group else None
            element = top.element if top else None
            label = f"{start_year}~ {lp.pillar.key}"
            if annual is not None:
                label += f" / {year} {annual.key}"
            rows.append(LuckYongshinRow(
                label=label,
                decade=lp.pillar,
                year=year,
                annual=annual,
                element_percent=power.element_percent,
                best_method=multi.best_method,
                element=element,
                fit_score=multi.best_group.fit_score if multi.best_group else 0,
                changed=natal_element is not None and element != natal_element,
            ))
    logger.debug("luck yongshin: %d rows, %d differ from natal %s", len(rows),
                 sum(r.changed for r in rows), natal_element)
    return LuckYongshinTable(natal_element, rows)


def luck_yongshin(pillars, birth: datetime, gender: str, utc_offset: float = 0.0,
                  natal_element=None, count: int = 10, **kwargs) -> LuckYongshinTable:
    """compare_luck_yongshin over the first `count` decade pillars of a birth."""
    chart = parse_chart(pillars)
    decades: list[LuckPillar] = luck_pillars(chart, gender, birth, utc_offset, count=count)
    return compare_luck_yongshin(chart, decades, birth.year, natal_element, **kwargs)


if __name__ == "__main__":
    from fourpillars.tables import parse_pillar

    natal = ["甲子", "丙寅", "甲午", "甲子"]
    decade = LuckPillar(1, parse_pillar("丁卯", "decade"), 3, 12)
    table = compare_luck_yongshin(natal, [decade], 1984, years_per_decade=3)
    for row in table.rows:
        print(row.label, row.best_method, row.element, row.fit_score)
