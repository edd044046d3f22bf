"""Finite-dimensional real vector spaces and matrices.

An object is a dimension; a morphism `n → m` is an `m × n` array acting on
column vectors. The tensor is the Kronecker product, which is strictly
associative and unital on the standard bases, so the associator and unitors
are identity matrices. Coproducts are direct sums with block injections.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np

from gradtensor.exceptions import MissingCapability
from gradtensor.invariants import never
from gradtensor.monoidal.category import Iso, Tag
from gradtensor.monoidal.coproduct import CoproductWitness

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Matrix:
    source: int
    target: int
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.data.shape != (self.target, self.source):
            never(
                "matrix shape does not match its dimensions",
                shape=tuple(self.data.shape),
                source=self.source,
                target=self.target,
            )


@dataclass(frozen=True)
class FinVect:
    atol: float = 1e-9
    name: str = field(default="finvect", compare=False)

    def matrix(self, rows) -> Matrix:
        data = np.atleast_2d(np.asarray(rows, dtype=float))
        return Matrix(source=data.shape[1], target=data.shape[0], data=data)

    def identity(self, obj: int) -> Matrix:
        return Matrix(source=obj, target=obj, data=np.eye(obj))

    def compose(self, first: Matrix, second: Matrix) -> Matrix:
        if first.target != second.source:
            never(
                "matrices are not composable",
                first_target=first.target,
                second_source=second.source,
            )
        return Matrix(source=first.source, target=second.target, data=second.data @ first.data)

    def source(self, morphism: Matrix) -> int:
        return morphism.source

    def target(self, morphism: Matrix) -> int:
        return morphism.target

    def equal(self, left: Matrix, right: Matrix) -> bool:
        return (
            left.source == right.source
            and left.target == right.target
            and bool(np.allclose(left.data, right.data, atol=self.atol))
        )

    def render_obj(self, obj: int) -> str:
        return f"ℝ^{obj}"

    def render_mor(self, morphism: Matrix) -> str:
        body = np.array2string(morphism.data, precision=4, threshold=36, separator=", ")
        return f"{morphism.target}×{morphism.source} {body}"

    # tensor

    def tensor_obj(self, left: int, right: int) -> int:
        return left * right

    def tensor_hom(self, left: Matrix, right: Matrix) -> Matrix:
        return Matrix(
            source=left.source * right.source,
            target=left.target * right.target,
            data=np.kron(left.data, right.data),
        )

    def associator(self, first: int, second: int, third: int) -> Iso:
        same = self.identity(first * second * third)
        return Iso(hom=same, inv=same)

    # unit

    @property
    def unit(self) -> int:
        return 1

    def left_unitor(self, obj: int) -> Iso:
        same = self.identity(obj)
        return Iso(hom=same, inv=same)

    def right_unitor(self, obj: int) -> Iso:
        same = self.identity(obj)
        return Iso(hom=same, inv=same)

    # initial object

    @property
    def initial(self) -> int:
        return 0

    def is_initial(self, obj: int) -> bool:
        return obj == 0

    def from_initial(self, source: int, target: int) -> Matrix:
        if source != 0:
            never("source is not the zero space", source=source)
        return Matrix(source=0, target=target, data=np.zeros((target, 0)))

    # coproducts

    def _stack(self, tags, handlers: Mapping[Tag, Matrix], target: int) -> np.ndarray:
        blocks = [handlers[tag].data for tag in tags]
        if not blocks:
            return np.zeros((target, 0))
        return np.hstack(blocks)

    def coproduct(self, summands: Mapping[Tag, int]) -> CoproductWitness:
        tags = tuple(summands)
        total = sum(summands.values())
        legs: dict[Tag, Matrix] = {}
        offset = 0
        for tag in tags:
            width = summands[tag]
            data = np.zeros((total, width))
            data[offset : offset + width, :] = np.eye(width)
            legs[tag] = Matrix(source=width, target=total, data=data)
            offset += width

        def _descend(handlers: Mapping[Tag, Matrix], target: int) -> Matrix:
            return Matrix(source=total, target=target, data=self._stack(tags, handlers, target))

        return CoproductWitness(
            category=self,
            obj=total,
            summands=dict(summands),
            legs=legs,
            descender=_descend,
        )

    def recognize_coproduct(
        self,
        obj: int,
        summands: Mapping[Tag, int],
        legs: Mapping[Tag, Matrix],
    ) -> CoproductWitness:
        """Legs whose blocks form an invertible square matrix present a direct sum."""
        if set(legs) != set(summands):
            never("one leg per summand required")
        tags = tuple(summands)
        for tag in tags:
            leg = legs[tag]
            if leg.source != summands[tag] or leg.target != obj:
                never("leg does not run from its summand to the cocone object", tag=tag)
        if sum(summands.values()) != obj:
            raise MissingCapability(
                "coproduct cocone",
                site="FinVect.recognize_coproduct",
                detail=f"summand dimensions add to {sum(summands.values())}, not {obj}",
            )
        inverse = np.zeros((0, 0))
        if obj:
            stacked = self._stack(tags, legs, obj)
            if np.linalg.matrix_rank(stacked) < obj:
                raise MissingCapability(
                    "coproduct cocone",
                    site="FinVect.recognize_coproduct",
                    detail="leg images are not independent",
                )
            inverse = np.linalg.inv(stacked)

        def _descend(handlers: Mapping[Tag, Matrix], target: int) -> Matrix:
            if not obj:
                return Matrix(source=0, target=target, data=np.zeros((target, 0)))
            return Matrix(
                source=obj,
                target=target,
                data=self._stack(tags, handlers, target) @ inverse,
            )

        logger.debug("direct sum of %d summands recognized in dimension %d", len(tags), obj)
        return CoproductWitness(
            category=self,
            obj=obj,
            summands=dict(summands),
            legs=dict(legs),
            descender=_descend,
        )
