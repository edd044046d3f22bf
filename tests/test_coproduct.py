from __future__ import annotations

import pytest

from gradtensor.exceptions import CoherenceViolation, MissingCapability, NeverThrown
from gradtensor.monoidal.coproduct import (
    desc,
    ext,
    flatten,
    map_obj,
    require_ext,
    singleton,
)
from gradtensor.monoidal.indexing import Integers


def _family(entry: tuple[int, int]) -> frozenset:
    i, j = entry
    return frozenset({f"{i}{j}"})


def test_map_obj_collects_one_summand_per_fiber_tuple(finset, nat) -> None:
    mapped = map_obj(finset, _family, nat, 2, 2)
    assert mapped.witness.tags == ((0, 2), (1, 1), (2, 0))
    assert mapped.obj == frozenset({((0, 2), "02"), ((1, 1), "11"), ((2, 0), "20")})
    assert mapped.iota((1, 1)).table == {"11": ((1, 1), "11")}


def test_iota_rejects_tuples_outside_the_fiber(finset, nat) -> None:
    mapped = map_obj(finset, _family, nat, 2, 2)
    with pytest.raises(NeverThrown):
        mapped.iota((1, 2))


def test_pruned_summands_inject_from_initial(finset) -> None:
    def family(entry: tuple[int, int]) -> frozenset:
        return frozenset({"x"}) if entry == (0, 0) else frozenset()

    mapped = map_obj(finset, family, Integers(), 0, 2, supports=[{0}, {0}])
    assert mapped.witness.tags == ((0, 0),)
    leg = mapped.iota((3, -3))
    assert leg.source == frozenset()
    assert leg.target == mapped.obj


def test_pruned_summand_that_is_not_initial_is_rejected(finset) -> None:
    mapped = map_obj(finset, _family, Integers(), 0, 2, supports=[{0}, {0}])
    with pytest.raises(NeverThrown):
        mapped.iota((1, -1))


def test_map_obj_requires_coproducts(nat) -> None:
    class NoCoproducts:
        name = "bare"

    with pytest.raises(MissingCapability):
        map_obj(NoCoproducts(), _family, nat, 0, 2)


def test_desc_restricts_to_its_handlers(finset, nat) -> None:
    mapped = map_obj(finset, _family, nat, 1, 2)
    target = finset.obj("left", "right")
    handlers = {
        (0, 1): finset.function(mapped.witness.summands[(0, 1)], target, {"01": "left"}),
        (1, 0): finset.function(mapped.witness.summands[(1, 0)], target, {"10": "right"}),
    }
    out = desc(mapped.witness, handlers, target)
    for tag, handler in handlers.items():
        assert finset.equal(finset.compose(mapped.iota(tag), out), handler)


def test_desc_needs_exactly_the_summands(finset, nat) -> None:
    mapped = map_obj(finset, _family, nat, 1, 2)
    target = finset.obj("t")
    partial = {
        (0, 1): finset.function(mapped.witness.summands[(0, 1)], target, {"01": "t"}),
    }
    with pytest.raises(NeverThrown):
        desc(mapped.witness, partial, target)


def test_desc_checks_handler_targets_under_proof_mode(finset, nat) -> None:
    mapped = map_obj(finset, _family, nat, 0, 2)
    handlers = {(0, 0): finset.function(finset.obj("00"), finset.obj("t"), {"00": "t"})}
    with pytest.raises(NeverThrown):
        desc(mapped.witness, handlers, finset.obj("t", "u"))


def test_ext_reports_first_separating_injection(finset, nat) -> None:
    mapped = map_obj(finset, _family, nat, 1, 2)
    target = finset.obj("t", "u")
    constant = finset.function(mapped.obj, target, {element: "t" for element in mapped.obj})
    split = finset.function(
        mapped.obj,
        target,
        {element: "u" if element[0] == (1, 0) else "t" for element in mapped.obj},
    )
    assert ext(finset, mapped.witness, constant, constant) is None
    counterexample = ext(finset, mapped.witness, constant, split)
    assert counterexample is not None
    assert counterexample.tag == (1, 0)
    assert counterexample.as_dict()["tag"] == "(1, 0)"
    with pytest.raises(CoherenceViolation) as excinfo:
        require_ext(mapped.witness, constant, split, name="constant_split", degree=1)
    assert excinfo.value.obligation.name == "constant_split"
    assert not excinfo.value.obligation.ok


def test_singleton_is_its_own_coproduct(finset) -> None:
    obj = finset.obj("a", "b")
    witness = singleton(finset, "only", obj)
    assert witness.tags == ("only",)
    handler = finset.function(obj, finset.obj("t"), {"a": "t", "b": "t"})
    assert witness.desc({"only": handler}, finset.obj("t")) is handler


def test_flatten_presents_a_coproduct_of_coproducts(finset) -> None:
    inner_left = finset.coproduct({"p": finset.obj(1), "q": finset.obj(2)})
    inner_right = finset.coproduct({"r": finset.obj(3)})
    outer = finset.coproduct({"L": inner_left.obj, "R": inner_right.obj})
    flat = flatten(finset, outer, {"L": inner_left, "R": inner_right})
    assert flat.tags == (("L", "p"), ("L", "q"), ("R", "r"))
    assert flat.obj == outer.obj
    assert flat.legs[("L", "q")].table == {2: ("L", ("q", 2))}
    target = finset.obj("t1", "t2", "t3")
    handlers = {
        ("L", "p"): finset.function(finset.obj(1), target, {1: "t1"}),
        ("L", "q"): finset.function(finset.obj(2), target, {2: "t2"}),
        ("R", "r"): finset.function(finset.obj(3), target, {3: "t3"}),
    }
    out = flat.desc(handlers, target)
    for tag, handler in handlers.items():
        assert finset.equal(finset.compose(flat.leg(tag), out), handler)


def test_flatten_rejects_colliding_tags(finset) -> None:
    inner = finset.coproduct({"p": finset.obj(1)})
    other = finset.coproduct({"p": finset.obj(2)})
    outer = finset.coproduct({"L": inner.obj, "R": other.obj})
    with pytest.raises(NeverThrown):
        flatten(finset, outer, {"L": inner, "R": other}, retag=lambda outer_tag, inner_tag: inner_tag)
