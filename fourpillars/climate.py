"""
Climate and element-presence providers.

climate_percents accumulates a (cold, warm, dry, wet) vector per slot,
weighted by position, and reports:
- temperature_bias: warm share of cold + warm, 0..100
- humidity_bias: wet share of dry + wet, 0..100
Both default to 50 when nothing contributes. The day pillar's stem carries
no climate weight.
"""

from dataclasses import dataclass

from fourpillars.tables import ELEMENTS, parse_chart

# Position weights: branches sum to 1.4, stems to 0.5
BRANCH_WEIGHTS = (0.30, 0.50, 0.30, 0.30)
STEM_WEIGHTS = (0.15, 0.20, 0.0, 0.15)

# (cold, warm, dry, wet)
BRANCH_CLIMATE_VECTORS = {
    # winter: cold, damp
    "亥": (2, 0, 0.5, 2), "子": (2, 0, 0, 2), "丑": (2, 0, 0, 2),
    # spring: warm
    "寅": (0, 2, 2, 0), "卯": (0, 2, 2, 0), "辰": (0, 2, 1, 2),
    # summer: hot, dry
    "巳": (0, 2, 2, 0.5), "午": (0, 2, 2, 0), "未": (0, 2, 2, 1),
    # autumn: cool
    "申": (2, 0, 0, 2), "酉": (2, 0, 0, 2), "戌": (2, 0, 1, 1),
}

STEM_CLIMATE_VECTORS = {
    "甲": (0, 1, 1, 0), "乙": (0, 1, 1, 0),
    "丙": (0, 2, 2, 0), "丁": (0, 2, 2, 0),
    "戊": (0, 0, 1, 0), "己": (0, 0, 0, 1),
    "庚": (1, 0, 0, 1), "辛": (1, 0, 0, 1),
    "壬": (2, 0, 0, 2), "癸": (2, 0, 0, 2),
}


@dataclass(frozen=True)
class ClimatePercents:
    temperature_bias: float = 50.0  # 0 = cold, 100 = hot
    humidity_bias: float = 50.0     # 0 = dry, 100 = wet

    def to_dict(self):
        return {
            "temperature_bias": round(self.temperature_bias, 1),
            "humidity_bias": round(self.humidity_bias, 1),
        }


def _share(left: float, right: float) -> float:
    """Right side's share in percent; 50 when both sides are empty."""
    left, right = max(0.0, left), max(0.0, right)
    total = left + right
    if total <= 0:
        return 50.0
    return min(100.0, max(0.0, right / total * 100))


def climate_vector(pillars) -> tuple:
    """Weighted (cold, warm, dry, wet) totals; unparseable slots contribute nothing."""
    acc = [0.0, 0.0, 0.0, 0.0]
    for i, p in enumerate(parse_chart(pillars)):
        if p is None:
            continue
        for vec, w in ((BRANCH_CLIMATE_VECTORS[p.branch.chinese], BRANCH_WEIGHTS[i]),
                       (STEM_CLIMATE_VECTORS[p.stem.chinese], STEM_WEIGHTS[i])):
            if w <= 0:
                continue
            for k in range(4):
                acc[k] += vec[k] * w
    return tuple(acc)


def climate_percents(pillars) -> ClimatePercents:
    cold, warm, dry, wet = climate_vector(pillars)
    return ClimatePercents(
        temperature_bias=_share(cold, warm),
        humidity_bias=_share(dry, wet),
    )


def element_presence(pillars) -> dict:
    """Element → True when it shows as a stem element or a branch main element."""
    present = {el: False for el in ELEMENTS}
    for p in parse_chart(pillars):
        if p is None:
            continue
        present[p.stem.element] = True
        present[p.branch.element] = True
    return present


if __name__ == "__main__":
    chart = ["庚午", "壬午", "丙午", "甲午"]
    print(climate_percents(chart).to_dict())
    print({el.value: v for el, v in element_presence(chart).items()})
