"""Coproducts over fibers: injections, descent and extensionality.

A `CoproductWitness` is the universal cocone a category hands back from
`HasCoproducts.coproduct` or `HasCoproducts.recognize_coproduct`. Everything
the engine proves about maps out of a tensor object goes through two
operations on it: `desc` builds the unique map restricting to given handlers,
and `ext` compares two maps on every injection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from gradtensor.budget import budget_loop_iter
from gradtensor.exceptions import CoherenceViolation
from gradtensor.invariants import never, proof_mode
from gradtensor.monoidal.category import (
    Category,
    Descender,
    HasCoproducts,
    HasInitial,
    Mor,
    Obj,
    Tag,
    require_capability,
)
from gradtensor.monoidal.indexing import Fiber, Index, IndexSet, IndexTuple, fiber


@dataclass(frozen=True)
class Counterexample:
    tag: Tag
    left: str
    right: str

    def as_dict(self) -> dict[str, str]:
        return {"tag": repr(self.tag), "left": self.left, "right": self.right}


@dataclass(frozen=True, eq=False)
class CoproductWitness:
    category: Category
    obj: Obj
    summands: Mapping[Tag, Obj]
    legs: Mapping[Tag, Mor]
    descender: Descender

    @property
    def tags(self) -> tuple[Tag, ...]:
        return tuple(self.summands)

    def leg(self, tag: Tag) -> Mor:
        if tag not in self.legs:
            never("no injection for tag", tag=tag)
        return self.legs[tag]

    def desc(self, handlers: Mapping[Tag, Mor], target: Obj) -> Mor:
        """The unique morphism `obj → target` whose restriction to each leg is its handler."""
        if set(handlers) != set(self.summands):
            never(
                "handlers must cover exactly the summands",
                missing=[tag for tag in self.summands if tag not in handlers],
                extra=[tag for tag in handlers if tag not in self.summands],
            )
        if proof_mode():
            for tag, handler in handlers.items():
                if self.category.source(handler) != self.summands[tag]:
                    never("handler source differs from summand", tag=tag)
                if self.category.target(handler) != target:
                    never("handler target differs from descent target", tag=tag)
        return self.descender(handlers, target)

    def ext(self, left: Mor, right: Mor) -> Counterexample | None:
        """First injection on which `left` and `right` disagree, if any."""
        for tag in budget_loop_iter(self.tags, site="CoproductWitness.ext"):
            leg = self.legs[tag]
            restricted_left = self.category.compose(leg, left)
            restricted_right = self.category.compose(leg, right)
            if not self.category.equal(restricted_left, restricted_right):
                return Counterexample(
                    tag=tag,
                    left=self.category.render_mor(restricted_left),
                    right=self.category.render_mor(restricted_right),
                )
        return None


@dataclass(frozen=True, eq=False)
class MappedObject:
    """The coproduct over the fiber of one degree.

    `witness` carries the materialised summands; tuples pruned by a support
    restriction inject from their (initial) summand through `iota` as well.
    """

    category: Category
    family: Callable[[IndexTuple], Obj]
    fiber: Fiber
    witness: CoproductWitness

    @property
    def obj(self) -> Obj:
        return self.witness.obj

    def iota(self, entry: IndexTuple) -> Mor:
        leg = self.witness.legs.get(entry)
        if leg is not None:
            return leg
        if not self.fiber.covers(entry):
            never(
                "tuple outside fiber",
                target=self.fiber.target,
                entry=entry,
            )
        initial = require_capability(self.category, HasInitial, site="MappedObject.iota")
        source = self.family(entry)
        if not initial.is_initial(source):
            never("pruned summand is not initial", entry=entry)
        return initial.from_initial(source, self.obj)


def map_obj(
    category: Category,
    family: Callable[[IndexTuple], Obj],
    index_set: IndexSet,
    target: Index,
    arity: int,
    *,
    supports: Sequence[Iterable[Index]] | None = None,
) -> MappedObject:
    """Coproduct of `family` over the `arity`-ary fiber of `target`."""
    coproducts = require_capability(category, HasCoproducts, site="map_obj")
    if supports is not None:
        require_capability(category, HasInitial, site="map_obj")
    shape = fiber(index_set, target, arity, supports=supports)
    summands = {entry: family(entry) for entry in shape}
    return MappedObject(
        category=category,
        family=family,
        fiber=shape,
        witness=coproducts.coproduct(summands),
    )


def ext(category: Category, witness: CoproductWitness, left: Mor, right: Mor) -> Counterexample | None:
    if witness.category is not category:
        never("witness belongs to another category", category=category.name)
    return witness.ext(left, right)


def require_ext(
    witness: CoproductWitness,
    left: Mor,
    right: Mor,
    *,
    name: str,
    degree: Index,
) -> None:
    from gradtensor.monoidal.coherence import Obligation

    counterexample = witness.ext(left, right)
    if counterexample is not None:
        raise CoherenceViolation(
            Obligation(
                name=name,
                degree=degree,
                legs_checked=len(witness.tags),
                counterexample=counterexample,
            )
        )


def desc(witness: CoproductWitness, handlers: Mapping[Tag, Mor], target: Obj) -> Mor:
    return witness.desc(handlers, target)


def singleton(category: Category, tag: Tag, obj: Obj) -> CoproductWitness:
    """`obj` as the coproduct of itself."""

    def _descend(handlers: Mapping[Tag, Mor], target: Obj) -> Mor:
        return handlers[tag]

    return CoproductWitness(
        category=category,
        obj=obj,
        summands={tag: obj},
        legs={tag: category.identity(obj)},
        descender=_descend,
    )


def flatten(
    category: Category,
    outer: CoproductWitness,
    inners: Mapping[Tag, CoproductWitness],
    retag: Callable[[Tag, Tag], Tag] | None = None,
) -> CoproductWitness:
    """A coproduct of coproducts, re-presented over the combined tags."""
    combine = retag or (lambda outer_tag, inner_tag: (outer_tag, inner_tag))
    summands: dict[Tag, Obj] = {}
    legs: dict[Tag, Mor] = {}
    origins: dict[Tag, tuple[Tag, Tag]] = {}
    for outer_tag in outer.tags:
        inner = inners.get(outer_tag)
        if inner is None:
            never("no inner coproduct for summand", tag=outer_tag)
        if proof_mode() and inner.obj != outer.summands[outer_tag]:
            never("inner coproduct does not present its summand", tag=outer_tag)
        outer_leg = outer.leg(outer_tag)
        for inner_tag in inner.tags:
            tag = combine(outer_tag, inner_tag)
            if tag in summands:
                never("flattened tags collide", tag=tag)
            summands[tag] = inner.summands[inner_tag]
            legs[tag] = category.compose(inner.leg(inner_tag), outer_leg)
            origins[tag] = (outer_tag, inner_tag)

    def _descend(handlers: Mapping[Tag, Mor], target: Obj) -> Mor:
        grouped: dict[Tag, dict[Tag, Mor]] = {tag: {} for tag in outer.tags}
        for tag, handler in handlers.items():
            outer_tag, inner_tag = origins[tag]
            grouped[outer_tag][inner_tag] = handler
        return outer.desc(
            {
                outer_tag: inners[outer_tag].desc(grouped[outer_tag], target)
                for outer_tag in outer.tags
            },
            target,
        )

    return CoproductWitness(
        category=category,
        obj=outer.obj,
        summands=summands,
        legs=legs,
        descender=_descend,
    )
