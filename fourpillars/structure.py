"""
Structure Resolver (格局).

Resolves the classical structure of a chart from its month branch:

    1. month-qi (月令)      main hidden stem of the month branch, date independent
    2. command phase (司令) hidden stem ruling on the given date
         - cardinal branches 子午卯酉 keep the month-qi
         - storage branches 辰戌丑未 with their triad present take the middle phase
         - otherwise the day offset since the opening solar term picks a phase
    3. accepted (當令)      command stem emitted among the visible stems, not neutralized
    4. true stem (眞神)     accepted stem, else the command stem
       supporting stem (假神) same-polarity stem controlling the true stem
    5. inner structure (內格) true stem's ten god, with the peer exceptions
         建祿格 / 羊刃格 / 月劫格, otherwise excluded
    6. outer structures (外格) the special-pattern battery in outer.py

Every decision appends a ReasonToken; nothing here raises for bad input.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from functools import partial
from enum import Enum
from typing import Callable, Optional

from fourpillars.astro_calendar import solar_term_boundaries
from fourpillars.outer import detect_outer_structures
from fourpillars.relations import combination_neutralizer, triad_with_month
from fourpillars.tables import (
    BRANCH_TO_TERM,
    CARDINAL_BRANCHES,
    CONTROLLED_BY,
    HEAVENLY_STEMS,
    JIAN_LU_PAIRS,
    MONTH_ROB_BRANCH,
    STORAGE_BRANCHES,
    YANG_REN_BRANCH,
    HiddenMode,
    Phase,
    hidden_mode as coerce_hidden_mode,
    lookup_hidden_phases,
    parse_branch,
    parse_chart,
    parse_stem,
    total_weight,
)
from fourpillars.ten_gods import TenGod, TenGodCategory, ten_god

logger = logging.getLogger(__name__)

DEFAULT_SPAN_DAYS = 30


# ============================================================
# REASON TRACE
# ============================================================

class ReasonKind(Enum):
    NO_DISTRIBUTION_TABLE = "no_distribution_table"
    CARDINAL_FIXED_MONTH_QI = "cardinal_fixed_month_qi"
    STORAGE_TRIAD_USE_MIDDLE = "storage_triad_use_middle"
    DAY_OFFSET_PICK = "day_offset_pick"
    DAY_OFFSET_FALLBACK_MONTH_QI = "day_offset_fallback_month_qi"
    ACCEPTED_BY_EMITTED_STEM = "accepted_by_emitted_stem"
    NEUTRALIZED = "neutralized"
    EXCEPTION_JIAN_LU = "exception_jian_lu"
    EXCEPTION_YANG_REN = "exception_yang_ren"
    EXCEPTION_MONTH_ROB = "exception_month_rob"
    EXCLUDED_PEER = "excluded_peer"


@dataclass(frozen=True)
class ReasonToken:
    kind: ReasonKind
    phase: Optional[Phase] = None  # only for DAY_OFFSET_PICK

    def to_dict(self):
        d = {"kind": self.kind.value}
        if self.phase is not None:
            d["phase"] = self.phase.value
        return d


def format_reasons(tokens) -> list[str]:
    """Render reason tokens as display strings."""
    out = []
    for t in tokens:
        k = t.kind
        if k is ReasonKind.NO_DISTRIBUTION_TABLE:
            out.append("No hidden-stem table for the month branch")
        elif k is ReasonKind.CARDINAL_FIXED_MONTH_QI:
            out.append("Cardinal month: main qi taken as is")
        elif k is ReasonKind.STORAGE_TRIAD_USE_MIDDLE:
            out.append("Storage month: triad complete, middle phase taken")
        elif k is ReasonKind.DAY_OFFSET_PICK:
            out.append(f"Day offset: {t.phase.value} phase taken")
        elif k is ReasonKind.DAY_OFFSET_FALLBACK_MONTH_QI:
            out.append("Day offset unavailable: main qi taken")
        elif k is ReasonKind.ACCEPTED_BY_EMITTED_STEM:
            out.append("Command stem emitted among the heavenly stems")
        elif k is ReasonKind.NEUTRALIZED:
            out.append("Exception: candidate neutralized by combination or clash")
        elif k is ReasonKind.EXCEPTION_JIAN_LU:
            out.append("Exception: peer, but day stem and month branch form 建祿")
        elif k is ReasonKind.EXCEPTION_YANG_REN:
            out.append("Exception: peer, but 羊刃 conditions met")
        elif k is ReasonKind.EXCEPTION_MONTH_ROB:
            out.append("Exception: rob wealth, but 月劫 conditions met")
        elif k is ReasonKind.EXCLUDED_PEER:
            out.append("Exception: peers are excluded from the inner structure")
    return out


# ============================================================
# LABELS
# ============================================================

EXCLUDED = "-"

INNER_LABELS = {
    TenGod.EATING_GOD: "食神格",
    TenGod.HURTING_OFFICER: "傷官格",
    TenGod.DIRECT_WEALTH: "正財格",
    TenGod.INDIRECT_WEALTH: "偏財格",
    TenGod.DIRECT_OFFICER: "正官格",
    TenGod.SEVEN_KILLINGS: "偏官格(七殺格)",
    TenGod.DIRECT_RESOURCE: "正印格",
    TenGod.INDIRECT_RESOURCE: "偏印格",
}

JIAN_LU_LABEL = "建祿格"
YANG_REN_LABEL = "羊刃格"
MONTH_ROB_LABEL = "月劫格"

# inner label → the ten god it was derived from
LABEL_TEN_GOD = {label: god for god, label in INNER_LABELS.items()}
LABEL_TEN_GOD.update({
    JIAN_LU_LABEL: TenGod.COMPANION,
    YANG_REN_LABEL: TenGod.ROB_WEALTH,
    MONTH_ROB_LABEL: TenGod.ROB_WEALTH,
})


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class JeolipInfo:
    term: str  # opening solar term of the month branch
    start: datetime
    day_index: int  # 1-based day since the term
    span_days: int  # days until the next term (30 when unknown)

    def to_dict(self):
        return {
            "term": self.term,
            "start": self.start.isoformat(timespec="minutes"),
            "day_index": self.day_index,
            "span_days": self.span_days,
        }


@dataclass(frozen=True)
class StructureResult:
    month_qi: Optional[object]
    command_phase: Optional[object]
    accepted: Optional[object]
    true_stem: Optional[object]
    supporting_stem: Optional[object]
    inner_structure: str
    outer_structures: tuple = ()
    reason_trace: tuple = ()
    jeolip: Optional[JeolipInfo] = None

    @property
    def reasons(self) -> list[str]:
        return format_reasons(self.reason_trace)

    def to_dict(self):
        def ch(s):
            return s.chinese if s is not None else None
        return {
            "month_qi": ch(self.month_qi),
            "command_phase": ch(self.command_phase),
            "accepted": ch(self.accepted),
            "true_stem": ch(self.true_stem),
            "supporting_stem": ch(self.supporting_stem),
            "inner_structure": self.inner_structure,
            "outer_structures": list(self.outer_structures),
            "reason_trace": [t.to_dict() for t in self.reason_trace],
            "reasons": self.reasons,
            "jeolip": self.jeolip.to_dict() if self.jeolip else None,
        }


def _no_table_result() -> StructureResult:
    return StructureResult(
        month_qi=None,
        command_phase=None,
        accepted=None,
        true_stem=None,
        supporting_stem=None,
        inner_structure=EXCLUDED,
        reason_trace=(ReasonToken(ReasonKind.NO_DISTRIBUTION_TABLE),),
    )


# ============================================================
# SOLAR-TERM OFFSET
# ============================================================

def _as_datetime(when) -> datetime:
    if isinstance(when, datetime):
        return when
    return datetime(when.year, when.month, when.day)


def _one_year_earlier(when: datetime) -> datetime:
    try:
        return when.replace(year=when.year - 1)
    except ValueError:  # Feb 29
        return when.replace(year=when.year - 1, day=28)


def _day_of(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def jeolip_info(month_branch, when, boundaries: Optional[Callable] = None,
                utc_offset: float = 0.0) -> Optional[JeolipInfo]:
    """
    Day offset of `when` inside the month opened by the month branch's solar term.

    `when` is local clock time at `utc_offset` hours from UTC. Without an
    injected provider the ephemeris boundaries are computed at that offset;
    an injected provider must already return moments in the same clock.

    Returns None without a date or when the provider has no boundary for that term.
    """
    if boundaries is None:
        boundaries = partial(solar_term_boundaries, utc_offset=utc_offset)
    mb = parse_branch(month_branch)
    term = BRANCH_TO_TERM.get(mb) if mb else None
    if term is None:
        return None
    if when is None:
        return None

    moment = _as_datetime(when)
    bounds = list(boundaries(moment) or [])
    if bounds and moment < _as_datetime(bounds[0].moment):
        bounds = list(boundaries(_one_year_earlier(moment)) or [])

    idx = next((i for i, b in enumerate(bounds) if b.name == term), None)
    if idx is None:
        return None

    start = _as_datetime(bounds[idx].moment)
    day_index = max(1, (_day_of(moment) - _day_of(start)).days + 1)
    if idx + 1 < len(bounds):
        end = _as_datetime(bounds[idx + 1].moment)
        span_days = max(1, (_day_of(end) - _day_of(start)).days)
    else:
        span_days = DEFAULT_SPAN_DAYS
    return JeolipInfo(term, start, day_index, span_days)


def pick_by_day_offset(phases, day_index: int, span_days: int):
    """
    Pick the ruling hidden phase for a day offset.

    The 1..span_days day range is rescaled onto the table's own 1..total
    weight range, then the phases are walked by cumulative weight.
    """
    total = max(1, total_weight(phases))
    span_days = max(1, span_days)
    clamped = max(1, min(span_days, day_index))
    pos = max(1, min(total, math.ceil(clamped * total / span_days)))

    cumulative = 0
    for p in phases:
        cumulative += p.weight
        if pos <= cumulative:
            return p
    return phases[-1]


# ============================================================
# RESOLVER
# ============================================================

def supporting_stem_of(true_stem):
    """First stem in cycle order that controls the true stem's element with the same polarity."""
    if true_stem is None:
        return None
    need = CONTROLLED_BY[true_stem.element]
    for s in HEAVENLY_STEMS:
        if s.element == need and s.polarity == true_stem.polarity:
            return s
    return None


def _emitted(stem, emitted) -> bool:
    return any(s == stem or s.element == stem.element for s in emitted)


def resolve_structure(day_stem, month_branch, when, pillars=(), emitted_stems=(),
                      other_branches=(), is_neutralized=None, mode=HiddenMode.CLASSIC,
                      boundaries: Optional[Callable] = None, utc_offset: float = 0.0) -> StructureResult:
    """
    Resolve the inner and outer structure of a chart.

    Args:
        day_stem: Day Master (HeavenlyStem or text)
        month_branch: month branch (EarthlyBranch or text)
        when: birth moment (datetime or date) used for the day offset
        pillars: the 4 chart pillars; needed for the outer battery and defaults
        emitted_stems: visible stems; defaults to the 4 chart stems
        other_branches: non-month branches; defaults to year/day/hour branches
        is_neutralized: predicate stem → bool; defaults to the chart's 合/沖 test
        mode: hidden-stem table, classic or hgc
        boundaries: solar-term provider, when → list of boundaries; defaults to
            the ephemeris at `utc_offset`
        utc_offset: hours from UTC of the clock `when` is read in

    Returns:
        StructureResult
    """
    mode = coerce_hidden_mode(mode)
    dm = parse_stem(day_stem)
    mb = parse_branch(month_branch)
    phases = lookup_hidden_phases(mb, mode) if mb else ()
    if dm is None or not phases:
        logger.debug("resolver: no distribution table for %r", month_branch)
        return _no_table_result()

    chart = parse_chart(pillars) if pillars else [None] * 4
    complete = all(p is not None for p in chart)

    emitted = [s for s in (parse_stem(x) for x in emitted_stems) if s is not None]
    if not emitted and complete:
        emitted = [p.stem for p in chart]
    others = [b for b in (parse_branch(x) for x in other_branches) if b is not None]
    if not others and complete:
        others = [chart[0].branch, chart[2].branch, chart[3].branch]
    if is_neutralized is None:
        is_neutralized = combination_neutralizer(chart) if complete else (lambda _stem: False)

    tokens = []
    month_qi = phases[-1].stem
    middle = next((p for p in phases if p.phase is Phase.MIDDLE), None)
    jeolip = None

    # command phase
    if mb in CARDINAL_BRANCHES:
        command = month_qi
        tokens.append(ReasonToken(ReasonKind.CARDINAL_FIXED_MONTH_QI))
    elif mb in STORAGE_BRANCHES and middle is not None and triad_with_month(mb, others):
        command = middle.stem
        tokens.append(ReasonToken(ReasonKind.STORAGE_TRIAD_USE_MIDDLE))
    else:
        jeolip = jeolip_info(mb, when, boundaries, utc_offset)
        if jeolip is not None:
            picked = pick_by_day_offset(phases, jeolip.day_index, jeolip.span_days)
            command = picked.stem
            tokens.append(ReasonToken(ReasonKind.DAY_OFFSET_PICK, picked.phase))
        else:
            command = month_qi
            tokens.append(ReasonToken(ReasonKind.DAY_OFFSET_FALLBACK_MONTH_QI))
            logger.debug("resolver: no solar-term boundary for %s, using month qi", mb.chinese)
    logger.debug("resolver: month %s command phase %s (%s)", mb.chinese, command.chinese, tokens[-1].kind.value)

    # acceptance
    accepted = None
    neutralized = bool(is_neutralized(command))
    if _emitted(command, emitted) and not neutralized:
        accepted = command
        tokens.append(ReasonToken(ReasonKind.ACCEPTED_BY_EMITTED_STEM))
    elif neutralized:
        tokens.append(ReasonToken(ReasonKind.NEUTRALIZED))

    true_stem = accepted or command
    supporting = supporting_stem_of(true_stem)

    # inner structure
    god = ten_god(dm, true_stem)
    if god.category is TenGodCategory.PEER:
        if (dm, mb) in JIAN_LU_PAIRS:
            inner = JIAN_LU_LABEL
            tokens.append(ReasonToken(ReasonKind.EXCEPTION_JIAN_LU))
        elif dm.is_yang and YANG_REN_BRANCH.get(dm) == mb:
            inner = YANG_REN_LABEL
            tokens.append(ReasonToken(ReasonKind.EXCEPTION_YANG_REN))
        elif not dm.is_yang and MONTH_ROB_BRANCH.get(dm) == mb:
            inner = MONTH_ROB_LABEL
            tokens.append(ReasonToken(ReasonKind.EXCEPTION_MONTH_ROB))
        else:
            inner = EXCLUDED
            tokens.append(ReasonToken(ReasonKind.EXCLUDED_PEER))
    else:
        inner = INNER_LABELS[god]

    outer = tuple(detect_outer_structures(chart, dm, mb, mode)) if complete else ()

    return StructureResult(
        month_qi=month_qi,
        command_phase=command,
        accepted=accepted,
        true_stem=true_stem,
        supporting_stem=supporting,
        inner_structure=inner,
        outer_structures=outer,
        reason_trace=tuple(tokens),
        jeolip=jeolip,
    )


def resolve_chart_structure(pillars, when, mode=HiddenMode.CLASSIC,
                            boundaries: Optional[Callable] = None, utc_offset: float = 0.0) -> StructureResult:
    """Convenience wrapper: day stem and month branch taken from the chart."""
    chart = parse_chart(pillars)
    if chart[1] is None or chart[2] is None:
        return _no_table_result()
    return resolve_structure(chart[2].stem, chart[1].branch, when, pillars=chart,
                             mode=mode, boundaries=boundaries, utc_offset=utc_offset)
