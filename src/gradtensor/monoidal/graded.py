"""Graded objects and their pointwise morphisms."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from gradtensor.exceptions import MissingCapability
from gradtensor.invariants import never
from gradtensor.monoidal.category import Category, HasInitial, Mor, Obj, require_capability
from gradtensor.monoidal.indexing import Index, IndexSet, require_index
from gradtensor.order_contract import ordered_or_sorted

_MISSING = object()


@dataclass(frozen=True, eq=False)
class GradedObject:
    """A total family `I → Obj(C)`.

    Components are computed on first access and memoised. When `support` is
    set, every index outside it carries an initial object. Graded objects are
    compared by identity.
    """

    index_set: IndexSet
    component_fn: Callable[[Index], Obj]
    support: frozenset[Index] | None = None
    label: str = "X"
    _components: dict[Index, Obj] = field(default_factory=dict, init=False, repr=False)

    def component(self, index: Index) -> Obj:
        cached = self._components.get(index, _MISSING)
        if cached is not _MISSING:
            return cached
        require_index(self.index_set, index, site=f"GradedObject[{self.label}]")
        value = self.component_fn(index)
        self._components[index] = value
        return value

    def __call__(self, index: Index) -> Obj:
        return self.component(index)

    @classmethod
    def finitely_supported(
        cls,
        category: Category,
        index_set: IndexSet,
        components: Mapping[Index, Obj],
        *,
        label: str = "X",
    ) -> GradedObject:
        initial = require_capability(
            category, HasInitial, site="GradedObject.finitely_supported"
        )
        table = dict(components)
        for index in table:
            require_index(index_set, index, site=f"GradedObject[{label}]")
        support = frozenset(
            index for index, obj in table.items() if not initial.is_initial(obj)
        )
        empty = initial.initial
        return cls(
            index_set=index_set,
            component_fn=lambda index: table.get(index, empty),
            support=support,
            label=label,
        )


@dataclass(frozen=True, eq=False)
class GradedMorphism:
    source: GradedObject
    target: GradedObject
    component_fn: Callable[[Index], Mor]
    label: str = "f"
    _components: dict[Index, Mor] = field(default_factory=dict, init=False, repr=False)

    def at(self, index: Index) -> Mor:
        cached = self._components.get(index, _MISSING)
        if cached is not _MISSING:
            return cached
        require_index(self.source.index_set, index, site=f"GradedMorphism[{self.label}]")
        value = self.component_fn(index)
        self._components[index] = value
        return value

    def __call__(self, index: Index) -> Mor:
        return self.at(index)


@dataclass(frozen=True)
class GradedIso:
    hom: GradedMorphism
    inv: GradedMorphism

    def symm(self) -> GradedIso:
        return GradedIso(hom=self.inv, inv=self.hom)


def identity(category: Category, obj: GradedObject) -> GradedMorphism:
    return GradedMorphism(
        source=obj,
        target=obj,
        component_fn=lambda index: category.identity(obj(index)),
        label=f"id[{obj.label}]",
    )


def compose(category: Category, first: GradedMorphism, second: GradedMorphism) -> GradedMorphism:
    """Pointwise composite, `first` then `second`."""
    if first.target is not second.source:
        never(
            "graded morphisms are not composable",
            first=first.label,
            first_target=first.target.label,
            second=second.label,
            second_source=second.source.label,
        )
    return GradedMorphism(
        source=first.source,
        target=second.target,
        component_fn=lambda index: category.compose(first.at(index), second.at(index)),
        label=f"{first.label} ; {second.label}",
    )


def resolve_degrees(source: GradedObject, degrees: Iterable[Index] | None) -> tuple[Index, ...]:
    """Degrees on which two morphisms out of `source` must be compared.

    Outside the support of a finitely supported source every component is
    initial and any two morphisms agree, so the support is an exhaustive
    sample. A total source on an infinite index set needs explicit degrees.
    """
    if degrees is not None:
        return tuple(degrees)
    if source.support is not None:
        return tuple(ordered_or_sorted(source.support, source="resolve_degrees.support"))
    raise MissingCapability(
        "finite degree sample",
        site="resolve_degrees",
        detail=f"{source.label} has no finite support; pass degrees explicitly",
    )


def mismatched_degrees(
    category: Category,
    left: GradedMorphism,
    right: GradedMorphism,
    degrees: Iterable[Index] | None = None,
) -> list[Index]:
    if left.source is not right.source or left.target is not right.target:
        never(
            "compared graded morphisms must share source and target",
            left=left.label,
            right=right.label,
        )
    return [
        degree
        for degree in resolve_degrees(left.source, degrees)
        if not category.equal(left.at(degree), right.at(degree))
    ]
