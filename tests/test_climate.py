import pytest

from fourpillars.climate import climate_percents, climate_vector, element_presence
from fourpillars.tables import Element


def test_summer_chart_is_hot_and_dry():
    chart = ["庚午", "壬午", "丙午", "甲午"]
    cold, warm, dry, wet = climate_vector(chart)
    assert warm == pytest.approx(2.95)
    assert wet == pytest.approx(0.55)
    c = climate_percents(chart)
    assert c.temperature_bias == pytest.approx(2.95 / 3.5 * 100)
    assert c.humidity_bias == pytest.approx(0.55 / 3.5 * 100)
    assert c.to_dict() == {"temperature_bias": 84.3, "humidity_bias": 15.7}


def test_day_stem_carries_no_weight():
    a = climate_vector(["甲子", "丙寅", "甲午", "丙寅"])
    b = climate_vector(["甲子", "丙寅", "壬午", "丙寅"])
    assert a == b


def test_empty_chart_is_centred():
    c = climate_percents([])
    assert (c.temperature_bias, c.humidity_bias) == (50.0, 50.0)


def test_element_presence():
    present = element_presence(["甲子", "丙寅", "甲午", "丙寅"])
    assert present[Element.WOOD] and present[Element.WATER] and present[Element.FIRE]
    assert not present[Element.EARTH]
    assert not present[Element.METAL]
