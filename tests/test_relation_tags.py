from fourpillars.relation_tags import NONE_TAG, luck_relation_tags, natal_relation_tags


def test_natal_tags_keep_the_closest_pair():
    tags = natal_relation_tags(["庚午", "壬午", "丙子", "甲午"])
    assert tags["stem_clash"] == ["#月X日_丙壬沖"]
    assert tags["clash"] == ["#月X日_子午沖"]
    assert tags["punishment"] == ["#年X月_午自刑"]
    assert tags["pillar_hidden_combination"] == ["#月柱_壬午暗合"]
    assert tags["stem_combination"] == [NONE_TAG]
    assert tags["triad"] == [NONE_TAG]
    assert tags["directional"] == [NONE_TAG]


def test_year_hour_pair_is_marked_weak():
    tags = natal_relation_tags(["甲子", "丙寅", "戊辰", "庚午"])
    assert tags["clash"] == ["#年X時_子午沖(弱)"]
    # half triads need the cardinal branch, in table order
    assert tags["half_triad"] == ["#月X時_寅午半合", "#年X日_子辰半合"]


def test_weak_pair_is_listed_beside_a_close_one():
    tags = natal_relation_tags(["甲子", "乙丑", "丙子", "戊午"])
    assert tags["clash"] == ["#日X時_子午沖", "#年X時_子午沖(弱)"]
    assert tags["six_harmony"] == ["#年X月_子丑合"]
    assert tags["harm"] == ["#月X時_丑午害"]
    assert tags["resentment"] == ["#月X時_丑午元嗔"]
    assert tags["ghost_gate"] == ["#月X時_丑午鬼門"]


def test_natal_triads():
    tags = natal_relation_tags(["庚申", "壬子", "甲辰", "丙寅"])
    assert tags["triad"] == ["#年X月X日_申子辰三合"]
    assert tags["half_triad"] == ["#年X月_申子半合", "#月X日_子辰半合"]
    assert tags["clash"] == ["#年X時_寅申沖(弱)"]

    spread = natal_relation_tags(["庚申", "丁卯", "壬子", "甲辰"])
    assert spread["triad"] == ["#年X日X時_申子辰三合(弱)"]


def test_natal_without_none_fill():
    tags = natal_relation_tags(["庚午", "壬午", "丙子", "甲午"], pillar_hidden=False, fill_none=False)
    assert tags["pillar_hidden_combination"] == []
    assert tags["triad"] == []


def test_luck_pillar_against_natal():
    tags = luck_relation_tags(["甲寅", "己巳", "庚午", "丙子"], {"decade": "壬申"})
    assert tags["stem_clash"] == ["#大運X時_丙壬沖"]
    assert tags["clash"] == ["#大運X年_寅申沖"]
    assert tags["six_harmony"] == ["#大運X月_巳申合"]
    assert tags["harm"] == ["#大運X月_巳申害"]
    assert tags["half_triad"] == ["#年X日_寅午半合"]
    # the three-way punishment swallows its pair punishments
    assert tags["punishment"] == ["#大運X年X月_寅巳申三刑"]
    assert tags["triad"] == []


def test_two_luck_pillars_close_a_punishment():
    tags = luck_relation_tags(["甲寅", "丙子", "戊辰", "庚午"], {"decade": "己巳", "year": "壬申"})
    assert tags["punishment"] == ["#年X大運X歲運_寅巳申三刑"]
    assert tags["triad"] == ["#歲運X月X日_申子辰三合"]


def test_directional_set_needs_a_luck_pillar():
    natal = ["甲寅", "丁卯", "壬辰", "甲子"]
    assert luck_relation_tags(natal, None)["directional"] == []
    assert luck_relation_tags(natal, {"year": "丙午"})["directional"] == ["#年X月X日_寅卯辰方合"]


def test_luck_pillar_hidden_combination():
    tags = luck_relation_tags(["庚午", "壬午", "丙子", "甲午"], {"decade": "丁亥"}, pillar_hidden=True)
    assert tags["pillar_hidden_combination"] == ["#月柱_壬午暗合", "#大運_丁亥暗合"]
