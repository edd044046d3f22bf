from __future__ import annotations

import numpy as np
import pytest

from gradtensor.categories.finset import FinSet
from gradtensor.exceptions import MissingCapability
from gradtensor.monoidal.graded import GradedObject, mismatched_degrees
from gradtensor.monoidal.indexing import CyclicGroup, Integers
from gradtensor.monoidal.structure import build_monoidal_structure


def test_structure_exposes_the_monoidal_operations(finset_structure, make_sets) -> None:
    x = make_sets("X", d0=["a"], d1=["b"])
    y = make_sets("Y", d0=["c"])
    xy = finset_structure.tensor_obj(x, y)
    assert xy is finset_structure.tensor_obj(x, y)
    ident = finset_structure.tensor_hom(finset_structure.identity(x), finset_structure.identity(y))
    assert mismatched_degrees(finset_structure.category, ident, finset_structure.identity(xy)) == []
    assert finset_structure.iota(x, y, 1, 0, 1)(("b", "c")) == ((1, 0), ("b", "c"))
    assert finset_structure.unit.support == frozenset({0})
    assert finset_structure.left_unitor(x).hom.target is x
    assert finset_structure.right_unitor(x).inv.source is x
    alpha = finset_structure.associator(x, y, x)
    assert finset_structure.compose(alpha.hom, alpha.inv).source is alpha.hom.source
    assert all(item.ok for item in finset_structure.pentagon(x, y, x, y))
    assert all(item.ok for item in finset_structure.triangle(x, y))


def test_structure_without_unit_rejects_unit_operations(nat) -> None:
    class NoUnit(FinSet):
        left_unitor = None
        right_unitor = None

    structure = build_monoidal_structure(NoUnit(), nat)
    assert structure.unitors is None
    with pytest.raises(MissingCapability):
        structure.unit
    x = GradedObject.finitely_supported(NoUnit(), nat, {0: frozenset({"a"})}, label="X")
    with pytest.raises(MissingCapability):
        structure.left_unitor(x)
    with pytest.raises(MissingCapability):
        structure.triangle(x, x)


def test_structure_requires_coproducts(nat) -> None:
    class NoCoproducts(FinSet):
        coproduct = None
        recognize_coproduct = None

    with pytest.raises(MissingCapability):
        build_monoidal_structure(NoCoproducts(), nat)


def test_finvect_structure_is_coherent(finvect, nat) -> None:
    structure = build_monoidal_structure(finvect, nat)
    x = GradedObject.finitely_supported(finvect, nat, {0: 1, 1: 2}, label="X")
    y = GradedObject.finitely_supported(finvect, nat, {0: 2}, label="Y")
    report = structure.check_all([x, y])
    assert report.ok, [failure.describe() for failure in report.failures]
    lam = structure.left_unitor(y)
    assert np.allclose(lam.hom.at(0).data, np.eye(2))


def test_cyclic_structure_is_coherent(finset) -> None:
    z3 = CyclicGroup(3)
    structure = build_monoidal_structure(finset, z3)
    x = GradedObject.finitely_supported(
        finset, z3, {1: frozenset({"a"}), 2: frozenset({"b", "c"})}, label="X"
    )
    report = structure.check_all([x], degrees=[0, 1, 2])
    assert report.ok


def test_integer_structure_with_supported_objects(finset) -> None:
    z = Integers()
    structure = build_monoidal_structure(finset, z)
    x = GradedObject.finitely_supported(
        finset, z, {-1: frozenset({"m"}), 1: frozenset({"p"})}, label="X"
    )
    report = structure.check_all([x])
    assert report.ok
    assert -3 in {obligation.degree for obligation in report.obligations}
