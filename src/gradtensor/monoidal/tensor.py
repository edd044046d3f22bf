"""Tensor product of graded objects.

`(X ⊗ Y)(k)` is the coproduct of `X(i) ⊗ Y(j)` over the pairs with
`i + j = k`. Tensor objects and their per-degree coproducts are memoised on the
builder, so every request for `X ⊗ Y` returns the same graded object and
graded morphisms built from them compose.
"""

from __future__ import annotations

import logging

from gradtensor.exceptions import MissingCapability
from gradtensor.invariants import never
from gradtensor.monoidal.category import (
    HasCoproducts,
    HasInitial,
    Mor,
    TensorCategory,
    require_capability,
)
from gradtensor.monoidal.coproduct import MappedObject, map_obj
from gradtensor.monoidal.graded import GradedMorphism, GradedObject
from gradtensor.monoidal.indexing import Index, IndexSet, sum_support

logger = logging.getLogger(__name__)


class TensorBuilder:
    def __init__(self, category: TensorCategory, index_set: IndexSet) -> None:
        self.category = require_capability(category, TensorCategory, site="TensorBuilder")
        require_capability(category, HasCoproducts, site="TensorBuilder")
        self.index_set = index_set
        self._objects: dict[tuple[GradedObject, GradedObject], GradedObject] = {}
        self._coproducts: dict[tuple[GradedObject, GradedObject, Index], MappedObject] = {}

    def _supports(
        self, left: GradedObject, right: GradedObject
    ) -> tuple[frozenset[Index], frozenset[Index]] | None:
        if left.support is not None and right.support is not None:
            return (left.support, right.support)
        return None

    def tensor_obj(self, left: GradedObject, right: GradedObject) -> GradedObject:
        key = (left, right)
        cached = self._objects.get(key)
        if cached is not None:
            return cached
        for factor in (left, right):
            if factor.index_set != self.index_set:
                never(
                    "graded object lives over another index set",
                    label=factor.label,
                    expected=self.index_set.name,
                    actual=factor.index_set.name,
                )
        supports = self._supports(left, right)
        if supports is None and not self.index_set.enumerates_fibers:
            raise MissingCapability(
                "finite fiber enumeration",
                site="tensor_obj",
                detail=(
                    f"{left.label} ⊗ {right.label} over {self.index_set.name!r} "
                    "needs finitely supported factors"
                ),
            )
        support = None
        if supports is not None:
            require_capability(self.category, HasInitial, site="tensor_obj")
            support = sum_support(self.index_set, supports)
        tensor = GradedObject(
            index_set=self.index_set,
            component_fn=lambda degree: self.coproduct_at(left, right, degree).obj,
            support=support,
            label=f"({left.label} ⊗ {right.label})",
        )
        self._objects[key] = tensor
        logger.debug("tensor object %s built", tensor.label)
        return tensor

    def coproduct_at(self, left: GradedObject, right: GradedObject, degree: Index) -> MappedObject:
        self.tensor_obj(left, right)
        key = (left, right, degree)
        cached = self._coproducts.get(key)
        if cached is not None:
            return cached
        category = self.category
        mapped = map_obj(
            category,
            lambda entry: category.tensor_obj(left(entry[0]), right(entry[1])),
            self.index_set,
            degree,
            2,
            supports=self._supports(left, right),
        )
        self._coproducts[key] = mapped
        logger.debug(
            "coproduct of %s ⊗ %s at %r over %d summands",
            left.label,
            right.label,
            degree,
            len(mapped.witness.tags),
        )
        return mapped

    def iota(
        self,
        left: GradedObject,
        right: GradedObject,
        i: Index,
        j: Index,
        k: Index,
    ) -> Mor:
        """Injection `X(i) ⊗ Y(j) → (X ⊗ Y)(k)`; requires `i + j = k`."""
        if self.index_set.add(i, j) != k:
            never("injection indices do not sum to the degree", i=i, j=j, k=k)
        return self.coproduct_at(left, right, k).iota((i, j))

    def tensor_hom(self, left: GradedMorphism, right: GradedMorphism) -> GradedMorphism:
        """`f ⊗ g`, sending the `(i, j)` summand through `f(i) ⊗ g(j)`."""
        category = self.category
        source = self.tensor_obj(left.source, right.source)
        target = self.tensor_obj(left.target, right.target)

        def _component(degree: Index) -> Mor:
            witness = self.coproduct_at(left.source, right.source, degree).witness
            handlers = {
                (i, j): category.compose(
                    category.tensor_hom(left.at(i), right.at(j)),
                    self.iota(left.target, right.target, i, j, degree),
                )
                for (i, j) in witness.tags
            }
            return witness.desc(handlers, target(degree))

        return GradedMorphism(
            source=source,
            target=target,
            component_fn=_component,
            label=f"({left.label} ⊗ {right.label})",
        )
