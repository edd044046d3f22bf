"""Associator of the graded tensor product.

`α(X, Y, Z) : (X ⊗ Y) ⊗ Z ≅ X ⊗ (Y ⊗ Z)` is assembled degreewise: both sides
are coproducts over the triples `(i, j, l)` with `i + j + l = k`, and on the
summand of a triple the isomorphism is the base associator
`α_C(X(i), Y(j), Z(l))` followed by the triple injection of the other
bracketing.
"""

from __future__ import annotations

import logging

from gradtensor.monoidal.brackets import BracketEngine, Bracketing, Leaf, Node, left_nested
from gradtensor.monoidal.category import Mor
from gradtensor.monoidal.graded import GradedIso, GradedMorphism, GradedObject
from gradtensor.monoidal.indexing import Index, IndexTuple
from gradtensor.monoidal.tensor import TensorBuilder

logger = logging.getLogger(__name__)


def left_bracket(first: GradedObject, second: GradedObject, third: GradedObject) -> Bracketing:
    return Node(Node(Leaf(first), Leaf(second)), Leaf(third))


def right_bracket(first: GradedObject, second: GradedObject, third: GradedObject) -> Bracketing:
    return Node(Leaf(first), Node(Leaf(second), Leaf(third)))


class AssociatorBuilder:
    def __init__(self, tensor: TensorBuilder, brackets: BracketEngine | None = None) -> None:
        self.tensor = tensor
        self.category = tensor.category
        self.brackets = brackets or BracketEngine(tensor)
        self._isos: dict[tuple[GradedObject, GradedObject, GradedObject], GradedIso] = {}

    def iota3(
        self,
        first: GradedObject,
        second: GradedObject,
        third: GradedObject,
        i: Index,
        j: Index,
        l: Index,
    ) -> Mor:
        """`X(i) ⊗ Y(j) ⊗ Z(l) → ((X ⊗ Y) ⊗ Z)(i + j + l)`, left bracketed."""
        return self.brackets.iota(left_bracket(first, second, third), (i, j, l))

    def iota3_prime(
        self,
        first: GradedObject,
        second: GradedObject,
        third: GradedObject,
        i: Index,
        j: Index,
        l: Index,
    ) -> Mor:
        """`X(i) ⊗ (Y(j) ⊗ Z(l)) → (X ⊗ (Y ⊗ Z))(i + j + l)`, right bracketed."""
        return self.brackets.iota(right_bracket(first, second, third), (i, j, l))

    def iota4(
        self,
        first: GradedObject,
        second: GradedObject,
        third: GradedObject,
        fourth: GradedObject,
        indices: IndexTuple,
    ) -> Mor:
        return self.brackets.iota(left_nested(first, second, third, fourth), indices)

    def associator(
        self, first: GradedObject, second: GradedObject, third: GradedObject
    ) -> GradedIso:
        key = (first, second, third)
        cached = self._isos.get(key)
        if cached is not None:
            return cached
        category = self.category
        brackets = self.brackets
        source_tree = left_bracket(first, second, third)
        target_tree = right_bracket(first, second, third)
        source = brackets.graded(source_tree)
        target = brackets.graded(target_tree)

        def _base(indices: IndexTuple):
            i, j, l = indices
            return category.associator(first(i), second(j), third(l))

        def _hom(degree: Index) -> Mor:
            witness = brackets.witness(source_tree, degree)
            handlers = {
                indices: category.compose(
                    _base(indices).hom, brackets.iota(target_tree, indices)
                )
                for indices in witness.tags
            }
            return witness.desc(handlers, target(degree))

        def _inv(degree: Index) -> Mor:
            witness = brackets.witness(target_tree, degree)
            handlers = {
                indices: category.compose(
                    _base(indices).inv, brackets.iota(source_tree, indices)
                )
                for indices in witness.tags
            }
            return witness.desc(handlers, source(degree))

        name = f"α[{first.label}, {second.label}, {third.label}]"
        iso = GradedIso(
            hom=GradedMorphism(source=source, target=target, component_fn=_hom, label=name),
            inv=GradedMorphism(
                source=target, target=source, component_fn=_inv, label=f"{name}⁻¹"
            ),
        )
        self._isos[key] = iso
        logger.debug("associator %s built", name)
        return iso
