"""
Branch and stem interactions consumed by the scoring and structure layers.

- harmony_overlay: complete Three Harmony (三合) and Directional (方合) sets
  move points from the producing element to the set's element
- triad_with_month: storage-month triad test used by the structure resolver
- combination_neutralizer: default predicate deciding whether a stem is
  tied up by a stem combination (合) or stem clash (沖) with a neighbour
"""

import logging
from dataclasses import dataclass
from typing import Callable

from fourpillars.tables import (
    DIRECTIONAL_SETS,
    PRODUCED_BY,
    STEM_CLASHES,
    STEM_COMBINATIONS,
    TRIADS,
    Element,
    parse_branch,
    parse_stem,
)

logger = logging.getLogger(__name__)

MONTH_SLOT = 1

# Points moved per complete set
HARMONY_DELTA = {"strong": 2.0, "medium": 1.0}


@dataclass(frozen=True)
class HarmonyApplied:
    kind: str  # "triad" or "directional"
    members: str  # e.g. "申子辰"
    element: Element
    strength: str  # "strong" or "medium"

    def to_dict(self):
        return {
            "kind": self.kind,
            "members": self.members,
            "element": self.element.value,
            "strength": self.strength,
        }


def _set_strength(indices: list[int]) -> str:
    """A complete set that includes the month branch is strong, any other complete set medium."""
    return "strong" if MONTH_SLOT in indices else "medium"


def harmony_overlay(pillars, scores: dict) -> list[HarmonyApplied]:
    """
    Apply complete triads and directional sets to an element accumulator in place.

    Args:
        pillars: chart pillars (None entries are skipped)
        scores: Element → float accumulator, mutated

    Returns:
        The sets applied, triads first
    """
    branches = [p.branch if p is not None else None for p in pillars]
    applied = []

    for kind, table in (("triad", TRIADS), ("directional", DIRECTIONAL_SETS)):
        for members, element in table.items():
            if not all(m in branches for m in members):
                continue
            indices = [i for i, b in enumerate(branches) if b in members]
            strength = _set_strength(indices)
            delta = HARMONY_DELTA[strength]
            source = PRODUCED_BY[element]
            scores[source] = scores.get(source, 0.0) - delta
            scores[element] = scores.get(element, 0.0) + delta
            label = "".join(m.chinese for m in members)
            logger.debug("%s %s → %s (%s, %.1f)", kind, label, element.value, strength, delta)
            applied.append(HarmonyApplied(kind, label, element, strength))

    for el in list(scores):
        if scores[el] < 0:
            scores[el] = 0.0
    return applied


def triad_with_month(month_branch, other_branches) -> bool:
    """True when the other branches hold the two remaining members of the month branch's triad."""
    mb = parse_branch(month_branch)
    if mb is None:
        return False
    others = {parse_branch(b) for b in other_branches}
    for members in TRIADS:
        if mb in members:
            return all(m in others for m in members if m != mb)
    return False


# ============================================================
# STEM NEUTRALIZATION
# ============================================================

_PARTNERS = {}
for _a, _b, _ in STEM_COMBINATIONS:
    _PARTNERS.setdefault(_a, set()).add(_b)
    _PARTNERS.setdefault(_b, set()).add(_a)
for _a, _b in STEM_CLASHES:
    _PARTNERS.setdefault(_a, set()).add(_b)
    _PARTNERS.setdefault(_b, set()).add(_a)


def combination_neutralizer(pillars) -> Callable:
    """
    Build the default neutralization predicate for a chart.

    A stem is neutralized when every visible stem of its element sits directly
    beside its combination or clash partner. A stem whose element never shows
    among the four stems is not neutralized.
    """
    stems = [p.stem if p is not None else None for p in pillars]

    def is_neutralized(stem) -> bool:
        target = parse_stem(stem)
        if target is None:
            return False
        slots = [i for i, s in enumerate(stems) if s is not None and s.element == target.element]
        if not slots:
            return False
        for i in slots:
            partners = _PARTNERS.get(stems[i], set())
            neighbours = [stems[j] for j in (i - 1, i + 1) if 0 <= j < len(stems)]
            if not any(n in partners for n in neighbours):
                return False
        return True

    return is_neutralized
