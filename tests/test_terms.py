import json

import pytest

from sketchsolve import TermAllocator, TermRef, TermType, Variable


def test_features_share_a_base():
    terms = TermAllocator()
    assert str(terms.get_feature_term("p1", TermType.POSITION_X)) == "x0"
    assert str(terms.get_feature_term("p1", TermType.POSITION_Y)) == "y0"
    assert str(terms.get_feature_term("p2", TermType.POSITION_X)) == "x1"
    assert str(terms.get_feature_term("line", TermType.SCALAR_DISTANCE)) == "d2"
    assert terms.top == 3


def test_deleted_bases_are_reused_last_in_first_out():
    terms = TermAllocator()
    for feature in ("a", "b", "c"):
        terms.get_feature_term(feature, TermType.POSITION_X)
    terms.delete("a")
    terms.delete("b")
    assert terms.free == [0, 1]

    assert terms.get_feature_term("d", TermType.POSITION_X).base == 1
    assert terms.get_feature_term("e", TermType.POSITION_X).base == 0
    assert terms.get_feature_term("f", TermType.POSITION_X).base == 3


def test_delete_unknown_feature_is_ignored():
    terms = TermAllocator()
    terms.delete("missing")
    assert terms.free == []


def test_term_ref_identity_ignores_feature():
    assert TermRef(2, TermType.SCALAR_RADIUS, "circle") == TermRef(2, TermType.SCALAR_RADIUS)
    assert TermRef(2, TermType.SCALAR_RADIUS) != TermRef(2, TermType.SCALAR_DISTANCE)
    assert TermRef(4, TermType.SCALAR_GLOBAL_COS).variable == Variable("c4")


def test_var_ref():
    terms = TermAllocator()
    terms.get_feature_term("p0", TermType.POSITION_X)
    terms.get_feature_term("p1", TermType.POSITION_X)

    ref = terms.get_var_ref("y1")
    assert ref == TermRef(1, TermType.POSITION_Y)
    assert ref.feature == "p1"

    unowned = terms.get_var_ref("x3")
    assert unowned == TermRef(3, TermType.POSITION_X)
    assert unowned.feature is None


@pytest.mark.parametrize("name", ["q1", "x", "xa", "x-1", "d1.5"])
def test_var_ref_rejects_other_names(name):
    assert TermAllocator().get_var_ref(name) is None


def test_json_round_trip():
    terms = TermAllocator()
    terms.get_feature_term("p", TermType.POSITION_X)
    terms.get_feature_term(("line", 7), TermType.SCALAR_DISTANCE)
    terms.get_feature_term("q", TermType.POSITION_X)
    terms.delete("p")

    restored = TermAllocator.from_dict(json.loads(json.dumps(terms.to_dict())))
    assert restored.top == 3
    assert restored.free == [0]
    assert restored.by_feature == {("line", 7): 1, "q": 2}
    assert restored.get_feature_term("r", TermType.POSITION_Y).base == 0


def test_from_dict_rejects_bases_beyond_top():
    with pytest.raises(ValueError):
        TermAllocator.from_dict({"top": 1, "features": [["p", 3]], "free": []})
    with pytest.raises(ValueError):
        TermAllocator.from_dict({"top": 1, "features": [], "free": [1]})
