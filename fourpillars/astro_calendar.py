"""
Calendar utilities for Four Pillars calculations.
Handles solar term (節) boundaries, Sun longitude, LMT correction
and lunar → solar date conversion.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional, Union
import swisseph as swe
from lunardate import LunarDate

from fourpillars.tables import BRANCH_BY_PINYIN, EarthlyBranch

# Point Swiss Ephemeris to data files (falls back to the built-in
# Moshier ephemeris when the directory is absent)
_ephe_path = str(Path(__file__).parent.parent / "ephe")
swe.set_ephe_path(_ephe_path)


# ============================================================
# SOLAR TERM COMPUTATION
# ============================================================
#
# The 12 Jie (節) solar terms mark month boundaries.
# Each Jie is defined by the Sun reaching a specific ecliptic longitude.
# Swiss Ephemeris swe.solcross_ut() finds the exact crossing moment.
#
# A solar year runs from Li Chun (315°, Tiger month) through Xiao Han
# (285°, Ox month) of the following Gregorian year.

# (longitude, term_name, branch_pinyin), in solar-year order
JIE_DEFINITIONS = [
    (315, "Li Chun", "Yin"),
    (345, "Jing Zhe", "Mao"),
    (15,  "Qing Ming", "Chen"),
    (45,  "Li Xia", "Si"),
    (75,  "Mang Zhong", "Wu"),
    (105, "Xiao Shu", "Wei"),
    (135, "Li Qiu", "Shen"),
    (165, "Bai Lu", "You"),
    (195, "Han Lu", "Xu"),
    (225, "Li Dong", "Hai"),
    (255, "Da Xue", "Zi"),
    (285, "Xiao Han", "Chou"),
]


@dataclass(frozen=True)
class SolarTermBoundary:
    name: str  # pinyin term name, e.g. "Li Chun"
    moment: datetime  # crossing moment, naive, in the requested UTC offset
    branch: Optional[EarthlyBranch] = None  # month branch this term opens

    def to_dict(self):
        return {
            "name": self.name,
            "moment": self.moment.isoformat(timespec="minutes"),
            "branch": self.branch.chinese if self.branch else None,
        }


def julian_day(moment: datetime, utc_offset: float = 0.0) -> float:
    """Julian Day (UT) of a naive local datetime at the given UTC offset."""
    utc = moment - timedelta(hours=utc_offset)
    hours = utc.hour + utc.minute / 60.0 + utc.second / 3600.0
    return swe.julday(utc.year, utc.month, utc.day, hours)


def jd_to_datetime(jd: float, utc_offset: float = 0.0) -> datetime:
    y, m, d, h = swe.revjul(jd)
    base = datetime(y, m, d) + timedelta(hours=h)
    return (base + timedelta(hours=utc_offset)).replace(microsecond=0)


def sun_longitude(jd: float) -> float:
    """Apparent tropical ecliptic longitude of the Sun, in degrees."""
    pos, _flags = swe.calc_ut(jd, swe.SUN)
    return pos[0]


def solar_year_of(moment: datetime, utc_offset: float = 0.0) -> int:
    """Gregorian year in which the solar year containing `moment` began (at Li Chun)."""
    li_chun = swe.solcross_ut(315.0, swe.julday(moment.year, 1, 1, 0), 0)
    if julian_day(moment, utc_offset) < li_chun:
        return moment.year - 1
    return moment.year


def solar_term_boundaries(when: Union[datetime, date], utc_offset: float = 0.0) -> list[SolarTermBoundary]:
    """
    The 12 Jie boundaries of the Gregorian year of `when`, in order.

    The list starts at Li Chun of `when.year` and ends with Xiao Han of the
    next year. Callers handling dates before Li Chun retry with the prior
    year, as the structure resolver does.

    Args:
        when: any datetime or date inside the wanted Gregorian year
        utc_offset: hours east of UTC for the returned moments

    Returns:
        List of SolarTermBoundary, chronological
    """
    results = []
    jd = swe.julday(when.year, 1, 1, 0)

    for lon, name, branch in JIE_DEFINITIONS:
        jd = swe.solcross_ut(float(lon), jd, 0)
        results.append(SolarTermBoundary(
            name=name,
            moment=jd_to_datetime(jd, utc_offset),
            branch=BRANCH_BY_PINYIN[branch],
        ))
    return results


def find_nearest_jie(birth_jd: float, forward: bool) -> float:
    """
    Find the nearest Jie solar term JD in the given direction from birth.

    Args:
        birth_jd: Julian Day of birth
        forward: True = find next Jie after birth, False = find previous

    Returns:
        Julian Day of the nearest Jie solar term
    """
    lon = sun_longitude(birth_jd)
    # Jie sit on odd multiples of 15° (15, 45, 75, ...)
    if forward:
        target = (int((lon - 15) // 30) + 1) * 30 + 15
        return swe.solcross_ut(float(target % 360), birth_jd, 0)
    target = int((lon - 15) // 30) * 30 + 15
    # step back far enough that the crossing search starts before the term
    return swe.solcross_ut(float(target % 360), birth_jd - 35, 0)


# ============================================================
# LOCAL MEAN TIME
# ============================================================

def lmt_correction(longitude: float, standard_meridian: float = 120.0) -> float:
    """
    Calculate Local Mean Time correction in minutes.

    Args:
        longitude: birth location longitude in degrees (east positive)
        standard_meridian: timezone standard meridian (120.0 for UTC+8)

    Returns:
        Correction in minutes (negative = subtract from clock time)

    Example:
        Seoul (126.98°E) on KST (135°E): (126.98 - 135.0) * 4 = -32.1 min
    """
    return (longitude - standard_meridian) * 4.0


def apply_lmt(clock_time: datetime, longitude: float,
              standard_meridian: float = 120.0) -> datetime:
    """Convert clock time to Local Mean Time."""
    correction_minutes = lmt_correction(longitude, standard_meridian)
    return clock_time + timedelta(minutes=correction_minutes)


# ============================================================
# LUNAR CALENDAR
# ============================================================

def lunar_to_solar(year: int, month: int, day: int, leap: bool = False) -> date:
    """
    Convert a Chinese lunar date to the Gregorian calendar.

    Raises ValueError (from lunardate) for dates outside its table or a
    leap month that does not exist that year.
    """
    return LunarDate(year, month, day, leap).toSolarDate()


def solar_to_lunar(when: Union[datetime, date]) -> tuple:
    """Gregorian → (lunar year, month, day, is_leap_month)."""
    ld = LunarDate.fromSolarDate(when.year, when.month, when.day)
    return ld.year, ld.month, ld.day, bool(ld.isLeapMonth)


# Quick verification
if __name__ == "__main__":
    print("2026 Jie Solar Terms (UTC+8):")
    for term in solar_term_boundaries(datetime(2026, 6, 1), utc_offset=8.0):
        print(f"  {term.name:12s} → {term.branch.chinese}: {term.moment:%Y-%m-%d %H:%M}")

    correction = lmt_correction(126.98, 135.0)
    print(f"\nSeoul LMT correction: {correction:.1f} minutes")

    print(f"\nLunar 1990-01-01 → {lunar_to_solar(1990, 1, 1)}")
