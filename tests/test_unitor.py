from __future__ import annotations

import pytest

from gradtensor.exceptions import MissingCapability
from gradtensor.monoidal.graded import GradedObject, compose, identity, mismatched_degrees
from gradtensor.monoidal.tensor import TensorBuilder
from gradtensor.monoidal.unitor import UnitorBuilder


def test_unit_is_concentrated_in_degree_zero(finset, nat) -> None:
    unitors = UnitorBuilder(TensorBuilder(finset, nat))
    assert unitors.unit(0) == finset.unit
    assert unitors.unit(3) == finset.initial
    assert unitors.unit.support == frozenset({0})


def test_left_unitor_strips_the_unit(finset, nat, make_sets) -> None:
    unitors = UnitorBuilder(TensorBuilder(finset, nat))
    x = make_sets("X", d0=["a"], d2=["c", "d"])
    lam = unitors.left_unitor(x)
    assert lam.hom.source is unitors.tensor.tensor_obj(unitors.unit, x)
    assert lam.hom.at(2)(((0, 2), ((), "d"))) == "d"
    assert lam.inv.at(2)("c") == ((0, 2), ((), "c"))
    assert unitors.left_unitor(x) is lam


def test_right_unitor_strips_the_unit(finset, nat, make_sets) -> None:
    unitors = UnitorBuilder(TensorBuilder(finset, nat))
    x = make_sets("X", d1=["b"])
    rho = unitors.right_unitor(x)
    assert rho.hom.at(1)(((1, 0), ("b", ()))) == "b"
    assert rho.hom.label == "ρ[X]"


def test_unitors_are_isomorphisms(finset, nat, make_sets) -> None:
    unitors = UnitorBuilder(TensorBuilder(finset, nat))
    x = make_sets("X", d0=["a"], d1=["b", "c"])
    for iso in (unitors.left_unitor(x), unitors.right_unitor(x)):
        degrees = [0, 1, 2]
        assert mismatched_degrees(
            finset, compose(finset, iso.hom, iso.inv), identity(finset, iso.hom.source), degrees
        ) == []
        assert mismatched_degrees(
            finset, compose(finset, iso.inv, iso.hom), identity(finset, x), degrees
        ) == []


def test_unitors_over_total_objects(finset, nat) -> None:
    unitors = UnitorBuilder(TensorBuilder(finset, nat))
    total = GradedObject(nat, lambda index: finset.obj(*range(index)), label="T")
    lam = unitors.left_unitor(total)
    component = lam.hom.at(3)
    assert component.target == finset.obj(0, 1, 2)
    assert component(((0, 3), ((), 1))) == 1


def test_unitors_require_a_unit(nat) -> None:
    from gradtensor.categories.finset import FinSet

    class NoUnit(FinSet):
        left_unitor = None
        right_unitor = None

    with pytest.raises(MissingCapability) as excinfo:
        UnitorBuilder(TensorBuilder(NoUnit(), nat))
    assert excinfo.value.capability == "HasUnit"
