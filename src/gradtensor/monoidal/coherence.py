"""Coherence obligations for the graded monoidal structure.

Each obligation compares two graded morphisms out of an iterated tensor. At a
degree `k` the comparison is never made on the assembled components directly:
the source is presented as a coproduct over the `n`-ary fiber of `k` and the
two morphisms are compared after every injection (`ext`). A degree passes when
no injection separates them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from gradtensor.exceptions import CoherenceViolation, MissingCapability
from gradtensor.invariants import never
from gradtensor.monoidal.associator import AssociatorBuilder, left_bracket
from gradtensor.monoidal.brackets import Bracketing, Leaf, Node, left_nested, render
from gradtensor.monoidal.coproduct import Counterexample
from gradtensor.monoidal.graded import (
    GradedMorphism,
    GradedObject,
    compose,
    identity,
    resolve_degrees,
)
from gradtensor.monoidal.indexing import Index
from gradtensor.monoidal.tensor import TensorBuilder
from gradtensor.monoidal.unitor import UnitorBuilder
from gradtensor.schema import CoherenceReportDTO, CounterexampleDTO, ObligationDTO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Obligation:
    name: str
    degree: Index
    legs_checked: int
    counterexample: Counterexample | None = None

    @property
    def ok(self) -> bool:
        return self.counterexample is None

    def describe(self) -> str:
        if self.counterexample is None:
            return f"{self.name} holds in degree {self.degree!r} ({self.legs_checked} injections)"
        return (
            f"{self.name} fails in degree {self.degree!r} on injection "
            f"{self.counterexample.tag!r}: {self.counterexample.left} != "
            f"{self.counterexample.right}"
        )

    def to_dto(self) -> ObligationDTO:
        counterexample = None
        if self.counterexample is not None:
            counterexample = CounterexampleDTO(**self.counterexample.as_dict())
        return ObligationDTO(
            name=self.name,
            degree=repr(self.degree),
            legs_checked=self.legs_checked,
            ok=self.ok,
            counterexample=counterexample,
        )


def require(obligations: Iterable[Obligation]) -> None:
    for obligation in obligations:
        if not obligation.ok:
            raise CoherenceViolation(obligation)


@dataclass(frozen=True)
class CoherenceReport:
    category: str
    index_set: str
    objects: tuple[str, ...]
    obligations: tuple[Obligation, ...]

    @property
    def ok(self) -> bool:
        return all(obligation.ok for obligation in self.obligations)

    @property
    def failures(self) -> tuple[Obligation, ...]:
        return tuple(obligation for obligation in self.obligations if not obligation.ok)

    def require(self) -> None:
        require(self.obligations)

    def to_dto(self) -> CoherenceReportDTO:
        return CoherenceReportDTO(
            category=self.category,
            index_set=self.index_set,
            objects=list(self.objects),
            obligations=[obligation.to_dto() for obligation in self.obligations],
            ok=self.ok,
        )


class CoherenceChecker:
    def __init__(
        self,
        tensor: TensorBuilder,
        associators: AssociatorBuilder,
        unitors: UnitorBuilder | None = None,
    ) -> None:
        self.tensor = tensor
        self.category = tensor.category
        self.associators = associators
        self.brackets = associators.brackets
        self.unitors = unitors

    def _require_unitors(self, site: str) -> UnitorBuilder:
        if self.unitors is None:
            raise MissingCapability("HasUnit", site=site, detail="no unitors were built")
        return self.unitors

    def _id(self, obj: GradedObject) -> GradedMorphism:
        return identity(self.category, obj)

    def _then(self, first: GradedMorphism, *rest: GradedMorphism) -> GradedMorphism:
        composed = first
        for morphism in rest:
            composed = compose(self.category, composed, morphism)
        return composed

    def _check(
        self,
        name: str,
        source: Bracketing,
        left: GradedMorphism,
        right: GradedMorphism,
        degrees: Iterable[Index] | None,
    ) -> list[Obligation]:
        if left.source is not right.source or left.target is not right.target:
            never(
                "obligation sides must share source and target",
                obligation=name,
                left=left.label,
                right=right.label,
            )
        if self.brackets.graded(source) is not left.source:
            never("obligation source does not match its bracketing", obligation=name)
        obligations: list[Obligation] = []
        for degree in resolve_degrees(left.source, degrees):
            witness = self.brackets.witness(source, degree)
            obligation = Obligation(
                name=name,
                degree=degree,
                legs_checked=len(witness.tags),
                counterexample=witness.ext(left.at(degree), right.at(degree)),
            )
            logger.debug("%s [%s]: %s", name, render(source), obligation.describe())
            obligations.append(obligation)
        return obligations

    def tensor_id(
        self, first: GradedObject, second: GradedObject, degrees: Iterable[Index] | None = None
    ) -> list[Obligation]:
        """`id ⊗ id = id`."""
        source = Node(Leaf(first), Leaf(second))
        return self._check(
            "tensor_id",
            source,
            self.tensor.tensor_hom(self._id(first), self._id(second)),
            self._id(self.brackets.graded(source)),
            degrees,
        )

    def tensor_comp(
        self,
        f1: GradedMorphism,
        g1: GradedMorphism,
        f2: GradedMorphism,
        g2: GradedMorphism,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        """`(f₁ ⊗ g₁) ; (f₂ ⊗ g₂) = (f₁ ; f₂) ⊗ (g₁ ; g₂)`."""
        tensor = self.tensor
        return self._check(
            "tensor_comp",
            Node(Leaf(f1.source), Leaf(g1.source)),
            self._then(tensor.tensor_hom(f1, g1), tensor.tensor_hom(f2, g2)),
            tensor.tensor_hom(self._then(f1, f2), self._then(g1, g2)),
            degrees,
        )

    def tensor_hom_def(
        self, f: GradedMorphism, g: GradedMorphism, degrees: Iterable[Index] | None = None
    ) -> list[Obligation]:
        """`(f ⊗ id) ; (id ⊗ g) = f ⊗ g = (id ⊗ g) ; (f ⊗ id)`."""
        tensor = self.tensor
        source = Node(Leaf(f.source), Leaf(g.source))
        both = tensor.tensor_hom(f, g)
        return self._check(
            "tensor_hom_def",
            source,
            self._then(
                tensor.tensor_hom(f, self._id(g.source)),
                tensor.tensor_hom(self._id(f.target), g),
            ),
            both,
            degrees,
        ) + self._check(
            "tensor_hom_def_symm",
            source,
            self._then(
                tensor.tensor_hom(self._id(f.source), g),
                tensor.tensor_hom(f, self._id(g.target)),
            ),
            both,
            degrees,
        )

    def associator_iso(
        self,
        first: GradedObject,
        second: GradedObject,
        third: GradedObject,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        alpha = self.associators.associator(first, second, third)
        return self._check(
            "associator_hom_inv",
            left_bracket(first, second, third),
            self._then(alpha.hom, alpha.inv),
            self._id(alpha.hom.source),
            degrees,
        ) + self._check(
            "associator_inv_hom",
            Node(Leaf(first), Node(Leaf(second), Leaf(third))),
            self._then(alpha.inv, alpha.hom),
            self._id(alpha.hom.target),
            degrees,
        )

    def associator_naturality(
        self,
        f: GradedMorphism,
        g: GradedMorphism,
        h: GradedMorphism,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        """`((f ⊗ g) ⊗ h) ; α = α ; (f ⊗ (g ⊗ h))`."""
        tensor = self.tensor
        associator = self.associators.associator
        return self._check(
            "associator_naturality",
            left_bracket(f.source, g.source, h.source),
            self._then(
                tensor.tensor_hom(tensor.tensor_hom(f, g), h),
                associator(f.target, g.target, h.target).hom,
            ),
            self._then(
                associator(f.source, g.source, h.source).hom,
                tensor.tensor_hom(f, tensor.tensor_hom(g, h)),
            ),
            degrees,
        )

    def left_unitor_iso(
        self, obj: GradedObject, degrees: Iterable[Index] | None = None
    ) -> list[Obligation]:
        unitors = self._require_unitors("CoherenceChecker.left_unitor_iso")
        lam = unitors.left_unitor(obj)
        return self._check(
            "left_unitor_hom_inv",
            Node(Leaf(unitors.unit), Leaf(obj)),
            self._then(lam.hom, lam.inv),
            self._id(lam.hom.source),
            degrees,
        ) + self._check(
            "left_unitor_inv_hom",
            Leaf(obj),
            self._then(lam.inv, lam.hom),
            self._id(obj),
            degrees,
        )

    def right_unitor_iso(
        self, obj: GradedObject, degrees: Iterable[Index] | None = None
    ) -> list[Obligation]:
        unitors = self._require_unitors("CoherenceChecker.right_unitor_iso")
        rho = unitors.right_unitor(obj)
        return self._check(
            "right_unitor_hom_inv",
            Node(Leaf(obj), Leaf(unitors.unit)),
            self._then(rho.hom, rho.inv),
            self._id(rho.hom.source),
            degrees,
        ) + self._check(
            "right_unitor_inv_hom",
            Leaf(obj),
            self._then(rho.inv, rho.hom),
            self._id(obj),
            degrees,
        )

    def left_unitor_naturality(
        self, f: GradedMorphism, degrees: Iterable[Index] | None = None
    ) -> list[Obligation]:
        """`(id ⊗ f) ; λ = λ ; f`."""
        unitors = self._require_unitors("CoherenceChecker.left_unitor_naturality")
        return self._check(
            "left_unitor_naturality",
            Node(Leaf(unitors.unit), Leaf(f.source)),
            self._then(
                self.tensor.tensor_hom(self._id(unitors.unit), f),
                unitors.left_unitor(f.target).hom,
            ),
            self._then(unitors.left_unitor(f.source).hom, f),
            degrees,
        )

    def right_unitor_naturality(
        self, f: GradedMorphism, degrees: Iterable[Index] | None = None
    ) -> list[Obligation]:
        """`(f ⊗ id) ; ρ = ρ ; f`."""
        unitors = self._require_unitors("CoherenceChecker.right_unitor_naturality")
        return self._check(
            "right_unitor_naturality",
            Node(Leaf(f.source), Leaf(unitors.unit)),
            self._then(
                self.tensor.tensor_hom(f, self._id(unitors.unit)),
                unitors.right_unitor(f.target).hom,
            ),
            self._then(unitors.right_unitor(f.source).hom, f),
            degrees,
        )

    def pentagon(
        self,
        first: GradedObject,
        second: GradedObject,
        third: GradedObject,
        fourth: GradedObject,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        """The two re-bracketings `((X₁X₂)X₃)X₄ → X₁(X₂(X₃X₄))` agree."""
        tensor = self.tensor
        associator = self.associators.associator
        second_third = tensor.tensor_obj(second, third)
        third_fourth = tensor.tensor_obj(third, fourth)
        first_second = tensor.tensor_obj(first, second)
        return self._check(
            "pentagon",
            left_nested(first, second, third, fourth),
            self._then(
                tensor.tensor_hom(associator(first, second, third).hom, self._id(fourth)),
                associator(first, second_third, fourth).hom,
                tensor.tensor_hom(self._id(first), associator(second, third, fourth).hom),
            ),
            self._then(
                associator(first_second, third, fourth).hom,
                associator(first, second, third_fourth).hom,
            ),
            degrees,
        )

    def triangle(
        self,
        first: GradedObject,
        second: GradedObject,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        """`α(X, 𝟙, Y) ; (id ⊗ λ) = ρ ⊗ id`."""
        unitors = self._require_unitors("CoherenceChecker.triangle")
        tensor = self.tensor
        return self._check(
            "triangle",
            left_bracket(first, unitors.unit, second),
            self._then(
                self.associators.associator(first, unitors.unit, second).hom,
                tensor.tensor_hom(self._id(first), unitors.left_unitor(second).hom),
            ),
            tensor.tensor_hom(unitors.right_unitor(first).hom, self._id(second)),
            degrees,
        )

    def run_all(
        self,
        objects: Sequence[GradedObject],
        degrees: Iterable[Index] | None = None,
    ) -> CoherenceReport:
        """Every obligation, on graded objects drawn cyclically from `objects`."""
        if not objects:
            never("coherence run needs at least one graded object")
        pick: Callable[[int], GradedObject] = lambda position: objects[position % len(objects)]
        first, second, third, fourth = pick(0), pick(1), pick(2), pick(3)
        sample = None if degrees is None else tuple(degrees)
        alpha = self.associators.associator(first, second, third)
        other = self.associators.associator(second, third, fourth)
        obligations: list[Obligation] = []
        obligations += self.tensor_id(first, second, sample)
        obligations += self.tensor_comp(
            alpha.hom, self._id(fourth), alpha.inv, self._id(fourth), sample
        )
        obligations += self.tensor_hom_def(alpha.hom, other.hom, sample)
        obligations += self.associator_iso(first, second, third, sample)
        obligations += self.associator_naturality(
            alpha.hom, self._id(second), self._id(third), sample
        )
        obligations += self.pentagon(first, second, third, fourth, sample)
        if self.unitors is not None:
            obligations += self.left_unitor_iso(first, sample)
            obligations += self.right_unitor_iso(first, sample)
            obligations += self.left_unitor_naturality(alpha.hom, sample)
            obligations += self.right_unitor_naturality(alpha.hom, sample)
            obligations += self.triangle(first, second, sample)
        report = CoherenceReport(
            category=self.category.name,
            index_set=self.tensor.index_set.name,
            objects=tuple(obj.label for obj in objects),
            obligations=tuple(obligations),
        )
        logger.info(
            "%d coherence obligations checked, %d failed",
            len(report.obligations),
            len(report.failures),
        )
        return report
