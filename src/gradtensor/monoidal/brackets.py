"""Iterated tensors of graded objects, for any arity.

A bracketing is a binary tree whose leaves are graded objects; `((X ⊗ Y) ⊗ Z)`
is `Node(Node(Leaf(X), Leaf(Y)), Leaf(Z))`. For a bracketing with `n` leaves
the engine provides, at every degree `k`:

* the `n`-fold injection of `X₁(i₁) ⊗ … ⊗ Xₙ(iₙ)` (bracketed the same way)
  into the tensor object, for every `n`-tuple with sum `k`;
* a coproduct witness exhibiting the tensor object as the coproduct of those
  injections, assembled from the 2-ary coproducts and the category's
  certification that tensoring two coproduct cocones gives a coproduct.

`ext` and `desc` over that witness are how every multi-object law is checked.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass

from gradtensor.invariants import never
from gradtensor.monoidal.category import HasCoproducts, Mor, Obj, Tag, require_capability
from gradtensor.monoidal.coproduct import (
    CoproductWitness,
    Counterexample,
    flatten,
    singleton,
)
from gradtensor.monoidal.graded import GradedObject
from gradtensor.monoidal.indexing import Index, IndexTuple, total
from gradtensor.monoidal.tensor import TensorBuilder


@dataclass(frozen=True, eq=False)
class Leaf:
    obj: GradedObject


@dataclass(frozen=True, eq=False)
class Node:
    left: Leaf | Node
    right: Leaf | Node


Bracketing = Leaf | Node


def leaves(bracketing: Bracketing) -> tuple[GradedObject, ...]:
    match bracketing:
        case Leaf(obj=obj):
            return (obj,)
        case Node(left=left, right=right):
            return leaves(left) + leaves(right)
    never("unknown bracketing", kind=type(bracketing).__name__)


def arity(bracketing: Bracketing) -> int:
    return len(leaves(bracketing))


def shape_key(bracketing: Bracketing) -> Hashable:
    """Structural key: two bracketings of the same graded objects share it."""
    match bracketing:
        case Leaf(obj=obj):
            return obj
        case Node(left=left, right=right):
            return (shape_key(left), shape_key(right))
    never("unknown bracketing", kind=type(bracketing).__name__)


def left_nested(*objects: GradedObject) -> Bracketing:
    if not objects:
        never("bracketing needs at least one graded object")
    tree: Bracketing = Leaf(objects[0])
    for obj in objects[1:]:
        tree = Node(tree, Leaf(obj))
    return tree


def right_nested(*objects: GradedObject) -> Bracketing:
    if not objects:
        never("bracketing needs at least one graded object")
    tree: Bracketing = Leaf(objects[-1])
    for obj in reversed(objects[:-1]):
        tree = Node(Leaf(obj), tree)
    return tree


def render(bracketing: Bracketing) -> str:
    match bracketing:
        case Leaf(obj=obj):
            return obj.label
        case Node(left=left, right=right):
            return f"({render(left)} ⊗ {render(right)})"
    never("unknown bracketing", kind=type(bracketing).__name__)


class BracketEngine:
    def __init__(self, tensor: TensorBuilder) -> None:
        self.tensor = tensor
        self.category = tensor.category
        self._coproducts = require_capability(
            tensor.category, HasCoproducts, site="BracketEngine"
        )
        self._witnesses: dict[tuple[Hashable, Index], CoproductWitness] = {}

    def graded(self, bracketing: Bracketing) -> GradedObject:
        match bracketing:
            case Leaf(obj=obj):
                return obj
            case Node(left=left, right=right):
                return self.tensor.tensor_obj(self.graded(left), self.graded(right))
        never("unknown bracketing", kind=type(bracketing).__name__)

    def _split(self, bracketing: Node, indices: IndexTuple) -> tuple[IndexTuple, IndexTuple]:
        cut = arity(bracketing.left)
        return indices[:cut], indices[cut:]

    def _check_arity(self, bracketing: Bracketing, indices: IndexTuple) -> None:
        if len(indices) != arity(bracketing):
            never(
                "index tuple does not match bracketing arity",
                bracketing=render(bracketing),
                indices=indices,
            )

    def base_component(self, bracketing: Bracketing, indices: IndexTuple) -> Obj:
        """`X₁(i₁) ⊗ … ⊗ Xₙ(iₙ)` in the base category, bracketed like `bracketing`."""
        self._check_arity(bracketing, indices)
        match bracketing:
            case Leaf(obj=obj):
                return obj(indices[0])
            case Node(left=left, right=right):
                left_indices, right_indices = self._split(bracketing, indices)
                return self.category.tensor_obj(
                    self.base_component(left, left_indices),
                    self.base_component(right, right_indices),
                )
        never("unknown bracketing", kind=type(bracketing).__name__)

    def iota(self, bracketing: Bracketing, indices: IndexTuple) -> Mor:
        """The `n`-fold injection into the tensor object at `sum(indices)`."""
        self._check_arity(bracketing, indices)
        match bracketing:
            case Leaf(obj=obj):
                return self.category.identity(obj(indices[0]))
            case Node(left=left, right=right):
                index_set = self.tensor.index_set
                left_indices, right_indices = self._split(bracketing, indices)
                return self.category.compose(
                    self.category.tensor_hom(
                        self.iota(left, left_indices),
                        self.iota(right, right_indices),
                    ),
                    self.tensor.iota(
                        self.graded(left),
                        self.graded(right),
                        total(index_set, left_indices),
                        total(index_set, right_indices),
                        total(index_set, indices),
                    ),
                )
        never("unknown bracketing", kind=type(bracketing).__name__)

    def witness(self, bracketing: Bracketing, degree: Index) -> CoproductWitness:
        """The tensor object at `degree` as a coproduct over `n`-tuples."""
        key = (shape_key(bracketing), degree)
        cached = self._witnesses.get(key)
        if cached is not None:
            return cached
        match bracketing:
            case Leaf(obj=obj):
                built = singleton(self.category, (degree,), obj(degree))
            case Node(left=left, right=right):
                outer = self.tensor.coproduct_at(
                    self.graded(left), self.graded(right), degree
                ).witness
                inners = {
                    (a, c): self._tensor_witness(
                        self.witness(left, a), self.witness(right, c)
                    )
                    for (a, c) in outer.tags
                }
                built = flatten(
                    self.category,
                    outer,
                    inners,
                    retag=lambda _outer_tag, inner_tag: inner_tag[0] + inner_tag[1],
                )
            case _:
                never("unknown bracketing", kind=type(bracketing).__name__)
        self._witnesses[key] = built
        return built

    def _tensor_witness(
        self, left: CoproductWitness, right: CoproductWitness
    ) -> CoproductWitness:
        category = self.category
        summands: dict[Tag, Obj] = {}
        legs: dict[Tag, Mor] = {}
        for left_tag in left.tags:
            for right_tag in right.tags:
                tag = (left_tag, right_tag)
                summands[tag] = category.tensor_obj(
                    left.summands[left_tag], right.summands[right_tag]
                )
                legs[tag] = category.tensor_hom(left.leg(left_tag), right.leg(right_tag))
        return self._coproducts.recognize_coproduct(
            category.tensor_obj(left.obj, right.obj), summands, legs
        )

    def ext(
        self, bracketing: Bracketing, degree: Index, left: Mor, right: Mor
    ) -> Counterexample | None:
        return self.witness(bracketing, degree).ext(left, right)

    def desc(
        self,
        bracketing: Bracketing,
        degree: Index,
        handlers: Mapping[IndexTuple, Mor],
        target: Obj,
    ) -> Mor:
        return self.witness(bracketing, degree).desc(handlers, target)
