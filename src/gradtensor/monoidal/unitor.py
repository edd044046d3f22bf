"""Unit graded object and the left/right unitors."""

from __future__ import annotations

import logging

from gradtensor.invariants import never
from gradtensor.monoidal.category import HasInitial, HasUnit, Mor, Obj, require_capability
from gradtensor.monoidal.graded import GradedIso, GradedMorphism, GradedObject
from gradtensor.monoidal.indexing import Index
from gradtensor.monoidal.tensor import TensorBuilder

logger = logging.getLogger(__name__)


class UnitorBuilder:
    """Unitors for the unit concentrated in degree zero.

    `𝟙(0)` is the unit of the base category and `𝟙(i)` is initial for
    `i ≠ 0`. In the fiber of `k` only the summand `(0, k)` of `𝟙 ⊗ X` survives;
    the others are tensors with an initial object, which the base category
    must keep initial.
    """

    def __init__(self, tensor: TensorBuilder) -> None:
        self.tensor = tensor
        self.category = tensor.category
        self._units = require_capability(tensor.category, HasUnit, site="UnitorBuilder")
        self._initial = require_capability(tensor.category, HasInitial, site="UnitorBuilder")
        index_set = tensor.index_set
        zero = index_set.zero
        base_unit = self._units.unit
        empty = self._initial.initial
        self.unit = GradedObject(
            index_set=index_set,
            component_fn=lambda index: base_unit if index == zero else empty,
            support=frozenset({zero}),
            label="𝟙",
        )
        self._left: dict[GradedObject, GradedIso] = {}
        self._right: dict[GradedObject, GradedIso] = {}

    def _from_initial_summand(
        self, summand: Obj, target: Obj, entry: tuple[Index, Index]
    ) -> Mor:
        if not self._initial.is_initial(summand):
            never("tensor with an initial object is not initial", entry=entry)
        return self._initial.from_initial(summand, target)

    def left_unitor(self, obj: GradedObject) -> GradedIso:
        cached = self._left.get(obj)
        if cached is not None:
            return cached
        category = self.category
        tensor = self.tensor
        zero = tensor.index_set.zero
        source = tensor.tensor_obj(self.unit, obj)

        def _hom(degree: Index) -> Mor:
            witness = tensor.coproduct_at(self.unit, obj, degree).witness
            target = obj(degree)
            handlers: dict[tuple[Index, Index], Mor] = {}
            for entry in witness.tags:
                i, j = entry
                if i == zero:
                    handlers[entry] = self._units.left_unitor(obj(j)).hom
                else:
                    handlers[entry] = self._from_initial_summand(
                        witness.summands[entry], target, entry
                    )
            return witness.desc(handlers, target)

        def _inv(degree: Index) -> Mor:
            return category.compose(
                self._units.left_unitor(obj(degree)).inv,
                tensor.iota(self.unit, obj, zero, degree, degree),
            )

        name = f"λ[{obj.label}]"
        iso = GradedIso(
            hom=GradedMorphism(source=source, target=obj, component_fn=_hom, label=name),
            inv=GradedMorphism(source=obj, target=source, component_fn=_inv, label=f"{name}⁻¹"),
        )
        self._left[obj] = iso
        logger.debug("left unitor %s built", name)
        return iso

    def right_unitor(self, obj: GradedObject) -> GradedIso:
        cached = self._right.get(obj)
        if cached is not None:
            return cached
        category = self.category
        tensor = self.tensor
        zero = tensor.index_set.zero
        source = tensor.tensor_obj(obj, self.unit)

        def _hom(degree: Index) -> Mor:
            witness = tensor.coproduct_at(obj, self.unit, degree).witness
            target = obj(degree)
            handlers: dict[tuple[Index, Index], Mor] = {}
            for entry in witness.tags:
                i, j = entry
                if j == zero:
                    handlers[entry] = self._units.right_unitor(obj(i)).hom
                else:
                    handlers[entry] = self._from_initial_summand(
                        witness.summands[entry], target, entry
                    )
            return witness.desc(handlers, target)

        def _inv(degree: Index) -> Mor:
            return category.compose(
                self._units.right_unitor(obj(degree)).inv,
                tensor.iota(obj, self.unit, degree, zero, degree),
            )

        name = f"ρ[{obj.label}]"
        iso = GradedIso(
            hom=GradedMorphism(source=source, target=obj, component_fn=_hom, label=name),
            inv=GradedMorphism(source=obj, target=source, component_fn=_inv, label=f"{name}⁻¹"),
        )
        self._right[obj] = iso
        logger.debug("right unitor %s built", name)
        return iso
