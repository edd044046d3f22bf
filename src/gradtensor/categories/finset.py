"""Finite sets and total functions.

Objects are frozensets of hashable elements and morphisms are `FinMap`
tables. The tensor is the cartesian product, so an element of `A ⊗ B` is a
pair `(a, b)`; the unit is the one-point set `{()}`. Coproducts are tagged
disjoint unions: the summand tagged `t` contributes the elements `(t, x)`.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from itertools import product

from gradtensor.exceptions import MissingCapability
from gradtensor.invariants import never, proof_mode
from gradtensor.monoidal.category import Iso, Tag
from gradtensor.monoidal.coproduct import CoproductWitness
from gradtensor.order_contract import ordered_or_sorted

FinObj = frozenset

_RENDER_LIMIT = 8


@dataclass(frozen=True, eq=False)
class FinMap:
    source: FinObj
    target: FinObj
    table: Mapping[Hashable, Hashable]

    def __call__(self, element: Hashable) -> Hashable:
        if element not in self.table:
            never("element outside map source", element=element)
        return self.table[element]


def _sorted_elements(elements) -> list:
    return ordered_or_sorted(elements, source="finset.render", key=repr)


def _elided(parts: list[str]) -> str:
    if len(parts) > _RENDER_LIMIT:
        parts = [*parts[:_RENDER_LIMIT], f"… {len(parts) - _RENDER_LIMIT} more"]
    return "{" + ", ".join(parts) + "}"


@dataclass(frozen=True)
class FinSet:
    name: str = field(default="finset", compare=False)

    def obj(self, *elements: Hashable) -> FinObj:
        return frozenset(elements)

    def function(
        self, source: FinObj, target: FinObj, table: Mapping[Hashable, Hashable]
    ) -> FinMap:
        built = FinMap(source=frozenset(source), target=frozenset(target), table=dict(table))
        if set(built.table) != set(built.source):
            never("function table must cover its source exactly", source=self.render_obj(built.source))
        for image in built.table.values():
            if image not in built.target:
                never("function image outside target", image=image)
        return built

    def identity(self, obj: FinObj) -> FinMap:
        return FinMap(source=obj, target=obj, table={element: element for element in obj})

    def compose(self, first: FinMap, second: FinMap) -> FinMap:
        if first.target != second.source:
            never(
                "functions are not composable",
                first_target=self.render_obj(first.target),
                second_source=self.render_obj(second.source),
            )
        return FinMap(
            source=first.source,
            target=second.target,
            table={element: second.table[image] for element, image in first.table.items()},
        )

    def source(self, morphism: FinMap) -> FinObj:
        return morphism.source

    def target(self, morphism: FinMap) -> FinObj:
        return morphism.target

    def equal(self, left: FinMap, right: FinMap) -> bool:
        return (
            left.source == right.source
            and left.target == right.target
            and dict(left.table) == dict(right.table)
        )

    def render_obj(self, obj: FinObj) -> str:
        return _elided([repr(element) for element in _sorted_elements(obj)])

    def render_mor(self, morphism: FinMap) -> str:
        return _elided(
            [
                f"{element!r} ↦ {morphism.table[element]!r}"
                for element in _sorted_elements(morphism.table)
            ]
        )

    # tensor

    def tensor_obj(self, left: FinObj, right: FinObj) -> FinObj:
        return frozenset(product(left, right))

    def tensor_hom(self, left: FinMap, right: FinMap) -> FinMap:
        return FinMap(
            source=self.tensor_obj(left.source, right.source),
            target=self.tensor_obj(left.target, right.target),
            table={
                (a, b): (left.table[a], right.table[b])
                for a, b in product(left.source, right.source)
            },
        )

    def associator(self, first: FinObj, second: FinObj, third: FinObj) -> Iso:
        forward = {
            ((a, b), c): (a, (b, c)) for a, b, c in product(first, second, third)
        }
        left = self.tensor_obj(self.tensor_obj(first, second), third)
        right = self.tensor_obj(first, self.tensor_obj(second, third))
        return Iso(
            hom=FinMap(source=left, target=right, table=forward),
            inv=FinMap(
                source=right,
                target=left,
                table={image: element for element, image in forward.items()},
            ),
        )

    # unit

    @property
    def unit(self) -> FinObj:
        return frozenset({()})

    def left_unitor(self, obj: FinObj) -> Iso:
        forward = {((), element): element for element in obj}
        source = self.tensor_obj(self.unit, obj)
        return Iso(
            hom=FinMap(source=source, target=obj, table=forward),
            inv=FinMap(
                source=obj,
                target=source,
                table={element: ((), element) for element in obj},
            ),
        )

    def right_unitor(self, obj: FinObj) -> Iso:
        forward = {(element, ()): element for element in obj}
        source = self.tensor_obj(obj, self.unit)
        return Iso(
            hom=FinMap(source=source, target=obj, table=forward),
            inv=FinMap(
                source=obj,
                target=source,
                table={element: (element, ()) for element in obj},
            ),
        )

    # initial object

    @property
    def initial(self) -> FinObj:
        return frozenset()

    def is_initial(self, obj: FinObj) -> bool:
        return not obj

    def from_initial(self, source: FinObj, target: FinObj) -> FinMap:
        if source:
            never("source is not initial", source=self.render_obj(source))
        return FinMap(source=source, target=target, table={})

    # coproducts

    def coproduct(self, summands: Mapping[Tag, FinObj]) -> CoproductWitness:
        obj = frozenset(
            (tag, element) for tag, summand in summands.items() for element in summand
        )
        legs = {
            tag: FinMap(
                source=summand,
                target=obj,
                table={element: (tag, element) for element in summand},
            )
            for tag, summand in summands.items()
        }

        def _descend(handlers: Mapping[Tag, FinMap], target: FinObj) -> FinMap:
            return FinMap(
                source=obj,
                target=target,
                table={
                    (tag, element): handlers[tag].table[element]
                    for tag, element in obj
                },
            )

        return CoproductWitness(
            category=self,
            obj=obj,
            summands=dict(summands),
            legs=legs,
            descender=_descend,
        )

    def recognize_coproduct(
        self,
        obj: FinObj,
        summands: Mapping[Tag, FinObj],
        legs: Mapping[Tag, FinMap],
    ) -> CoproductWitness:
        """A cocone of injections with disjoint images covering `obj` is a coproduct."""
        if set(legs) != set(summands):
            never("one leg per summand required")
        origin: dict[Hashable, tuple[Tag, Hashable]] = {}
        for tag, leg in legs.items():
            if leg.source != summands[tag] or leg.target != obj:
                never("leg does not run from its summand to the cocone object", tag=tag)
            for element, image in leg.table.items():
                if image in origin:
                    raise MissingCapability(
                        "coproduct cocone",
                        site="FinSet.recognize_coproduct",
                        detail=f"legs overlap on {image!r}",
                    )
                origin[image] = (tag, element)
        uncovered = [element for element in obj if element not in origin]
        if uncovered:
            raise MissingCapability(
                "coproduct cocone",
                site="FinSet.recognize_coproduct",
                detail=f"{len(uncovered)} elements outside every leg",
            )
        if proof_mode() and len(origin) != len(obj):
            never("leg image outside cocone object")

        def _descend(handlers: Mapping[Tag, FinMap], target: FinObj) -> FinMap:
            return FinMap(
                source=obj,
                target=target,
                table={
                    image: handlers[tag].table[element]
                    for image, (tag, element) in origin.items()
                },
            )

        return CoproductWitness(
            category=self,
            obj=obj,
            summands=dict(summands),
            legs=dict(legs),
            descender=_descend,
        )
