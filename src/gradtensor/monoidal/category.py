"""Capabilities the engine consumes from the ambient category.

Each capability is a runtime-checkable protocol. A construction that needs a
capability asks `require_capability` for it at its call site; a category that
does not implement it is rejected with `MissingCapability` before any work is
done.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

from gradtensor.exceptions import MissingCapability

if TYPE_CHECKING:
    from gradtensor.monoidal.coproduct import CoproductWitness

Obj = Any
Mor = Any
Tag = Hashable

CapabilityT = TypeVar("CapabilityT")


@runtime_checkable
class Category(Protocol):
    name: str

    def identity(self, obj: Obj) -> Mor: ...

    def compose(self, first: Mor, second: Mor) -> Mor:
        """Diagrammatic composition: `first` then `second`."""

    def source(self, morphism: Mor) -> Obj: ...

    def target(self, morphism: Mor) -> Obj: ...

    def equal(self, left: Mor, right: Mor) -> bool: ...

    def render_obj(self, obj: Obj) -> str: ...

    def render_mor(self, morphism: Mor) -> str: ...


@runtime_checkable
class TensorCategory(Category, Protocol):
    """A category with a tensor bifunctor and its associator."""

    def tensor_obj(self, left: Obj, right: Obj) -> Obj: ...

    def tensor_hom(self, left: Mor, right: Mor) -> Mor: ...

    def associator(self, first: Obj, second: Obj, third: Obj) -> Iso:
        """`(first ⊗ second) ⊗ third ≅ first ⊗ (second ⊗ third)`."""


@runtime_checkable
class HasCoproducts(Protocol):
    def coproduct(self, summands: Mapping[Tag, Obj]) -> CoproductWitness:
        """The canonical coproduct of the summands, in the given order."""

    def recognize_coproduct(
        self,
        obj: Obj,
        summands: Mapping[Tag, Obj],
        legs: Mapping[Tag, Mor],
    ) -> CoproductWitness:
        """Certify that the cocone `legs` exhibits `obj` as a coproduct.

        Raises `MissingCapability` when it does not.
        """


@runtime_checkable
class HasInitial(Protocol):
    @property
    def initial(self) -> Obj: ...

    def is_initial(self, obj: Obj) -> bool: ...

    def from_initial(self, source: Obj, target: Obj) -> Mor:
        """The unique morphism out of an initial `source`."""


@runtime_checkable
class HasUnit(Protocol):
    @property
    def unit(self) -> Obj: ...

    def left_unitor(self, obj: Obj) -> Iso:
        """`unit ⊗ obj ≅ obj`."""

    def right_unitor(self, obj: Obj) -> Iso:
        """`obj ⊗ unit ≅ obj`."""


@dataclass(frozen=True)
class Iso:
    hom: Mor
    inv: Mor

    def symm(self) -> Iso:
        return Iso(hom=self.inv, inv=self.hom)

    def is_inverse_pair(self, category: Category) -> bool:
        source = category.source(self.hom)
        target = category.target(self.hom)
        return category.equal(
            category.compose(self.hom, self.inv), category.identity(source)
        ) and category.equal(
            category.compose(self.inv, self.hom), category.identity(target)
        )


def require_capability(
    category: object,
    capability: type[CapabilityT],
    *,
    site: str,
) -> CapabilityT:
    if not isinstance(category, capability):
        raise MissingCapability(
            capability.__name__,
            site=site,
            detail=f"category {getattr(category, 'name', type(category).__name__)!r}",
        )
    return category


def compose_all(category: Category, first: Mor, *rest: Mor) -> Mor:
    composed = first
    for morphism in rest:
        composed = category.compose(composed, morphism)
    return composed


Descender = Callable[[Mapping[Tag, Mor], Obj], Mor]
