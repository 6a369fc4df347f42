from fourpillars.structure_tags import detect_structure_tags


def test_incomplete_chart_has_no_tags():
    assert detect_structure_tags(["甲子", "丙寅"]) == []


def test_water_fire_balance_from_percentages():
    pct = {"water": 25, "fire": 25, "earth": 20, "wood": 15, "metal": 15}
    assert "坎離相持" in detect_structure_tags(["甲子", "丙寅", "甲午", "丙寅"], element_percent=pct)
    assert "坎離相持" not in detect_structure_tags(["甲子", "丙寅", "甲午", "丙寅"])


def test_excess_resource_and_absences():
    assert detect_structure_tags(["甲子"] * 4) == [
        "印綬過多",
        "天地無食傷",
        "天地無財星",
        "天地無官星",
    ]


def test_absence_depends_on_hidden_table():
    hgc = detect_structure_tags(["甲寅"] * 4, "hgc")
    classic = detect_structure_tags(["甲寅"] * 4, "classic")
    assert "無食傷" in hgc
    assert "天地無財星" in hgc
    assert "無財星" in classic
    assert "天地無財星" not in classic


def test_hurting_officer_sees_officer():
    tags = detect_structure_tags(["丁卯", "丁未", "甲午", "辛未"])
    assert "傷官見官" in tags
    assert "傷官傷盡" not in tags
