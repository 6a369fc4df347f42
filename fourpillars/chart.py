"""
Chart construction from birth data.

Computes the four natal pillars (年月日時) and the time-scoped pillars used
by the luck overlay chain:

    大運 decade luck  → luck_pillars / luck_pillar_at
    歲運 annual       → annual_pillar
    月運 monthly      → monthly_pillar
    日運 daily        → daily_pillar

Month boundaries follow the Sun's ecliptic longitude (節 solar terms), not
the lunar calendar. The hour pillar uses Local Mean Time when a longitude is
supplied.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, date
from typing import Optional, Union
from zoneinfo import ZoneInfo

from timezonefinder import TimezoneFinder

from fourpillars.astro_calendar import (
    apply_lmt,
    find_nearest_jie,
    julian_day,
    solar_year_of,
    sun_longitude,
)
from fourpillars.tables import EARTHLY_BRANCHES, HEAVENLY_STEMS, Pillar

import swisseph as swe

logger = logging.getLogger(__name__)

_tf = TimezoneFinder()


# ============================================================
# TIMEZONE
# ============================================================

def local_birth_time(latitude: float, longitude: float, birth_date: date, birth_time: str):
    """
    Determine UTC offset from coordinates and date.
    Detects historical DST (e.g., Korea 1987-1988).

    Returns:
        (clock_offset, standard_offset, timezone_name, dst_detected)

        clock_offset:    what the clock was actually set to (includes DST if active)
        standard_offset: the zone's standard (non-DST) offset
        dst_detected:    True if DST was active at birth time

    Pillars use standard_offset: DST is stripped before the LMT correction.
    """
    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise ValueError(f"Could not determine timezone for ({latitude}, {longitude})")

    hour, minute = map(int, birth_time.split(":"))
    local_dt = datetime(birth_date.year, birth_date.month, birth_date.day,
                        hour, minute, tzinfo=ZoneInfo(tz_name))
    clock_offset = local_dt.utcoffset().total_seconds() / 3600

    dst_seconds = local_dt.dst()
    dst_detected = dst_seconds is not None and dst_seconds.total_seconds() > 0

    if dst_detected:
        standard_offset = clock_offset - (dst_seconds.total_seconds() / 3600)
    else:
        standard_offset = clock_offset

    return clock_offset, standard_offset, tz_name, dst_detected


# ============================================================
# PILLAR COMPUTATION
# ============================================================

def year_pillar(solar_year: int, position: str = "year") -> Pillar:
    """
    Year Pillar of a solar year (the year that began at Li Chun).

    (year - 4) % 60 is the sexagenary index: year 4 CE was Jia Zi.
    """
    return Pillar(
        stem=HEAVENLY_STEMS[(solar_year - 4) % 10],
        branch=EARTHLY_BRANCHES[(solar_year - 4) % 12],
        position=position,
    )


def sun_longitude_to_month_branch_index(sun_lon: float) -> int:
    """
    Map Sun's ecliptic longitude to the month branch index.

    315° (Li Chun) opens Yin (Tiger, index 2); every 30° after it opens the
    next branch, ending with 285° (Xiao Han) → Chou (Ox, index 1).
    """
    adjusted = (sun_lon - 315) % 360
    month_num = int(adjusted / 30)
    branch_indices = [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 0, 1]
    return branch_indices[month_num]


def month_pillar(year_stem_index: int, month_branch_index: int, position: str = "month") -> Pillar:
    """
    Month Pillar by the Five Tigers Escape (五虎遁) rule.

    - Year stem Jia/Ji → Tiger month stem Bing
    - Year stem Yi/Geng → Wu
    - Year stem Bing/Xin → Geng
    - Year stem Ding/Ren → Ren
    - Year stem Wu/Gui → Jia
    """
    tiger_start_stems = {
        0: 2, 5: 2,
        1: 4, 6: 4,
        2: 6, 7: 6,
        3: 8, 8: 8,
        4: 0, 9: 0,
    }
    months_from_tiger = (month_branch_index - 2) % 12
    stem_index = (tiger_start_stems[year_stem_index] + months_from_tiger) % 10
    return Pillar(
        stem=HEAVENLY_STEMS[stem_index],
        branch=EARTHLY_BRANCHES[month_branch_index],
        position=position,
    )


def day_pillar(when: Union[datetime, date], position: str = "day") -> Pillar:
    """
    Day Pillar from the Julian Day Number.

    (int(jdn) + 20) % 60 gives the sexagenary index; e.g. 1986-06-19 = 甲子.
    """
    jdn = int(swe.julday(when.year, when.month, when.day, 0))
    sexagenary = (jdn + 20) % 60
    return Pillar(
        stem=HEAVENLY_STEMS[sexagenary % 10],
        branch=EARTHLY_BRANCHES[sexagenary % 12],
        position=position,
    )


def hour_pillar(day_stem_index: int, hour: int) -> Pillar:
    """
    Hour Pillar by the Five Rats Escape (五鼠遁) rule.

    Two-hour blocks start at 23:00 (Zi). Pass the LMT-corrected hour.
    """
    if hour == 23 or hour == 0:
        branch_index = 0
    else:
        branch_index = ((hour + 1) // 2) % 12

    zi_start_stems = {
        0: 0, 5: 0,   # Jia/Ji day → Jia Zi hour
        1: 2, 6: 2,   # Yi/Geng day → Bing Zi hour
        2: 4, 7: 4,   # Bing/Xin day → Wu Zi hour
        3: 6, 8: 6,   # Ding/Ren day → Geng Zi hour
        4: 8, 9: 8,   # Wu/Gui day → Ren Zi hour
    }
    stem_index = (zi_start_stems[day_stem_index] + branch_index) % 10
    return Pillar(
        stem=HEAVENLY_STEMS[stem_index],
        branch=EARTHLY_BRANCHES[branch_index],
        position="hour",
    )


def build_chart(birth: datetime, longitude: Optional[float] = None,
                standard_meridian: Optional[float] = None,
                utc_offset: float = 0.0) -> list[Pillar]:
    """
    Compute the four natal pillars from a birth moment.

    Args:
        birth: local clock time of birth (naive, DST already stripped)
        longitude: birth longitude, east positive; enables the LMT correction
        standard_meridian: meridian of the clock time; defaults to utc_offset × 15
        utc_offset: hours east of UTC of the clock time

    Returns:
        [year, month, day, hour] pillars
    """
    jd = julian_day(birth, utc_offset)

    yp = year_pillar(solar_year_of(birth, utc_offset))
    month_idx = sun_longitude_to_month_branch_index(sun_longitude(jd))
    mp = month_pillar(yp.stem.index, month_idx)

    local = birth
    if longitude is not None:
        meridian = standard_meridian if standard_meridian is not None else utc_offset * 15.0
        local = apply_lmt(birth, longitude, meridian)
        logger.debug("LMT correction: %s → %s (meridian %.1f)", birth, local, meridian)

    dp = day_pillar(local)
    hp = hour_pillar(dp.stem.index, local.hour)
    return [yp, mp, dp, hp]


# ============================================================
# LUCK PILLAR CHAIN
# ============================================================

@dataclass(frozen=True)
class LuckPillar:
    number: int
    pillar: Pillar
    age_start: int
    age_end: int

    def to_dict(self):
        return {
            "number": self.number,
            "pillar": self.pillar.key,
            "age_start": self.age_start,
            "age_end": self.age_end,
            "description": f"LP{self.number}: {self.pillar.key} ages {self.age_start}-{self.age_end}",
        }


def luck_pillars(chart: list, gender: str, birth: datetime,
                 utc_offset: float = 0.0, count: int = 10) -> list[LuckPillar]:
    """
    Compute Luck Pillars (大運).

    Direction of count depends on gender + year stem polarity:
    - Yang year + male, or yin year + female → forward
    - otherwise → backward

    Starting age is the distance to the next/previous Jie in days,
    divided by 3 (3 days ≈ 1 year).
    """
    yp, mp = chart[0], chart[1]
    year_yang = yp.stem.is_yang
    forward = (year_yang and gender == "male") or (not year_yang and gender == "female")

    birth_jd = julian_day(birth, utc_offset)
    days_to_jie = abs(find_nearest_jie(birth_jd, forward=forward) - birth_jd)
    start_age = round(days_to_jie / 3)

    out = []
    for i in range(count):
        step = i + 1 if forward else -(i + 1)
        p = Pillar(
            stem=HEAVENLY_STEMS[(mp.stem.index + step) % 10],
            branch=EARTHLY_BRANCHES[(mp.branch.index + step) % 12],
            position="decade",
        )
        age_start = start_age + i * 10
        out.append(LuckPillar(i + 1, p, age_start, age_start + 9))
    return out


def luck_pillar_at(pillars: list[LuckPillar], age: int) -> Optional[LuckPillar]:
    """The decade pillar running at a given age, or None before the first starts."""
    for lp in pillars:
        if lp.age_start <= age <= lp.age_end:
            return lp
    return None


def annual_pillar(year: int) -> Pillar:
    """Annual (歲運) pillar for a solar year."""
    return year_pillar(year, position="annual")


def monthly_pillar(when: datetime, utc_offset: float = 0.0) -> Pillar:
    """Monthly (月運) pillar in force at a moment."""
    yp = year_pillar(solar_year_of(when, utc_offset))
    month_idx = sun_longitude_to_month_branch_index(sun_longitude(julian_day(when, utc_offset)))
    return month_pillar(yp.stem.index, month_idx, position="monthly")


def daily_pillar(when: Union[datetime, date]) -> Pillar:
    """Daily (日運) pillar."""
    return day_pillar(when, position="daily")


def time_overlay(birth: datetime, gender: str, on: datetime,
                 chart: Optional[list] = None, utc_offset: float = 0.0) -> dict:
    """
    The luck chain in force on a given date, keyed by overlay scope.

    Returns:
        {"decade": Pillar or None, "year": Pillar, "month": Pillar, "day": Pillar}
    """
    chart = chart or build_chart(birth, utc_offset=utc_offset)
    age = on.year - birth.year - ((on.month, on.day) < (birth.month, birth.day))
    decade = luck_pillar_at(luck_pillars(chart, gender, birth, utc_offset), age)
    return {
        "decade": decade.pillar if decade else None,
        "year": annual_pillar(solar_year_of(on, utc_offset)),
        "month": monthly_pillar(on, utc_offset),
        "day": daily_pillar(on),
    }


# Quick verification
if __name__ == "__main__":
    birth = datetime(1990, 3, 15, 10, 30)
    pillars = build_chart(birth, longitude=126.98, utc_offset=9.0)
    print("Pillars:", " ".join(p.key for p in pillars))
    for lp in luck_pillars(pillars, "male", birth, utc_offset=9.0)[:4]:
        print(" ", lp.to_dict()["description"])
    print("2026 annual:", annual_pillar(2026))
