"""
CLI wrapper for analyze_chart().

Usage:
    python3 fourpillars/run.py --pillars 庚午 壬午 丙午 甲午 [--birth-date YYYY-MM-DD]
    python3 fourpillars/run.py --birth-date YYYY-MM-DD --birth-time HH:MM \
        [--latitude LAT --longitude LON | --utc-offset OFFSET] [--gender GENDER] \
        [--mode classic|hgc] [--criteria modern|classic] \
        [--tab natal|decade|year|month|day --on YYYY-MM-DD] [--harmony] [--demote-absent] \
        [--void-basis day|year] [--luck-table]
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fourpillars.power import Criteria, LuckTab
from fourpillars.report import analyze_chart, resolve_birth
from fourpillars.tables import HiddenMode


def main(argv=None):
    parser = argparse.ArgumentParser(description="Analyze a Four Pillars chart and print it as JSON.")
    parser.add_argument("--pillars", nargs=4, metavar=("YEAR", "MONTH", "DAY", "HOUR"))
    parser.add_argument("--birth-date", dest="birth_date")
    parser.add_argument("--birth-time", dest="birth_time")
    parser.add_argument("--latitude", type=float)
    parser.add_argument("--longitude", type=float)
    parser.add_argument("--utc-offset", dest="utc_offset", type=float, default=None)
    parser.add_argument("--gender", choices=["male", "female"])
    parser.add_argument("--mode", default=HiddenMode.CLASSIC.value, choices=[m.value for m in HiddenMode])
    parser.add_argument("--criteria", default=Criteria.MODERN.value, choices=[c.value for c in Criteria])
    parser.add_argument("--tab", default=LuckTab.NATAL.value, choices=[t.value for t in LuckTab])
    parser.add_argument("--on", help="luck overlay date, YYYY-MM-DD (defaults to today)")
    parser.add_argument("--harmony", action="store_true", help="apply the 三合/方合 overlay")
    parser.add_argument("--demote-absent", dest="demote_absent", action="store_true")
    parser.add_argument("--void-basis", dest="void_basis", default="day", choices=["day", "year"])
    parser.add_argument("--luck-table", dest="luck_table", action="store_true",
                        help="compare the yongshin of every decade and year (needs --gender)")
    parser.add_argument("--verbose", action="store_true")

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if not args.pillars and not (args.birth_date and args.birth_time):
        parser.error("give --pillars or both --birth-date and --birth-time")

    try:
        birth_day = date.fromisoformat(args.birth_date) if args.birth_date else None
        on = datetime.fromisoformat(args.on) if args.on else None
    except ValueError as e:
        parser.error(str(e))
    if on is None and args.tab != LuckTab.NATAL.value:
        on = datetime.now().replace(second=0, microsecond=0)

    birth = None
    utc_offset = args.utc_offset if args.utc_offset is not None else 0.0
    extra = {}
    if birth_day is not None and args.birth_time:
        try:
            resolved = resolve_birth(birth_day, args.birth_time, args.latitude, args.longitude,
                                     args.utc_offset)
        except ValueError as e:
            parser.error(str(e))
        birth = resolved["moment"]
        utc_offset = resolved["utc_offset"]
        extra = {"timezone": resolved["timezone"], "dst_detected": resolved["dst_detected"],
                 "utc_offset": utc_offset}

    try:
        result = analyze_chart(
            pillars=args.pillars,
            birth=birth,
            gender=args.gender,
            longitude=args.longitude,
            utc_offset=utc_offset,
            on=on,
            mode=args.mode,
            criteria=args.criteria,
            tab=args.tab,
            use_harmony=args.harmony,
            demote_absent=args.demote_absent,
            structure_date=birth_day,
            void_basis=args.void_basis,
            luck_table=args.luck_table,
        )
    except ValueError as e:
        parser.error(str(e))

    if extra:
        result["birth"] = extra
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
