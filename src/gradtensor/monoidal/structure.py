"""The graded monoidal structure assembled from one base category."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from gradtensor.exceptions import MissingCapability
from gradtensor.monoidal.associator import AssociatorBuilder
from gradtensor.monoidal.brackets import BracketEngine
from gradtensor.monoidal.category import HasInitial, HasUnit, Mor, TensorCategory
from gradtensor.monoidal.coherence import CoherenceChecker, CoherenceReport, Obligation
from gradtensor.monoidal.graded import GradedIso, GradedMorphism, GradedObject, compose, identity
from gradtensor.monoidal.indexing import Index, IndexSet
from gradtensor.monoidal.tensor import TensorBuilder
from gradtensor.monoidal.unitor import UnitorBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradedMonoidalStructure:
    category: TensorCategory
    index_set: IndexSet
    tensor: TensorBuilder
    brackets: BracketEngine
    associators: AssociatorBuilder
    unitors: UnitorBuilder | None
    checker: CoherenceChecker

    def _require_unitors(self, site: str) -> UnitorBuilder:
        if self.unitors is None:
            raise MissingCapability(
                "HasUnit",
                site=site,
                detail=f"category {self.category.name!r} has no unit or no initial object",
            )
        return self.unitors

    def identity(self, obj: GradedObject) -> GradedMorphism:
        return identity(self.category, obj)

    def compose(self, first: GradedMorphism, second: GradedMorphism) -> GradedMorphism:
        return compose(self.category, first, second)

    def tensor_obj(self, left: GradedObject, right: GradedObject) -> GradedObject:
        return self.tensor.tensor_obj(left, right)

    def tensor_hom(self, left: GradedMorphism, right: GradedMorphism) -> GradedMorphism:
        return self.tensor.tensor_hom(left, right)

    def iota(
        self, left: GradedObject, right: GradedObject, i: Index, j: Index, k: Index
    ) -> Mor:
        return self.tensor.iota(left, right, i, j, k)

    def associator(
        self, first: GradedObject, second: GradedObject, third: GradedObject
    ) -> GradedIso:
        return self.associators.associator(first, second, third)

    @property
    def unit(self) -> GradedObject:
        return self._require_unitors("GradedMonoidalStructure.unit").unit

    def left_unitor(self, obj: GradedObject) -> GradedIso:
        return self._require_unitors("GradedMonoidalStructure.left_unitor").left_unitor(obj)

    def right_unitor(self, obj: GradedObject) -> GradedIso:
        return self._require_unitors("GradedMonoidalStructure.right_unitor").right_unitor(obj)

    def pentagon(
        self,
        first: GradedObject,
        second: GradedObject,
        third: GradedObject,
        fourth: GradedObject,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        return self.checker.pentagon(first, second, third, fourth, degrees)

    def triangle(
        self,
        first: GradedObject,
        second: GradedObject,
        degrees: Iterable[Index] | None = None,
    ) -> list[Obligation]:
        return self.checker.triangle(first, second, degrees)

    def check_all(
        self,
        objects: Sequence[GradedObject],
        degrees: Iterable[Index] | None = None,
    ) -> CoherenceReport:
        return self.checker.run_all(objects, degrees)


def build_monoidal_structure(
    category: TensorCategory, index_set: IndexSet
) -> GradedMonoidalStructure:
    tensor = TensorBuilder(category, index_set)
    brackets = BracketEngine(tensor)
    associators = AssociatorBuilder(tensor, brackets)
    unitors = None
    if isinstance(category, HasUnit) and isinstance(category, HasInitial):
        unitors = UnitorBuilder(tensor)
    checker = CoherenceChecker(tensor, associators, unitors)
    logger.info(
        "graded monoidal structure over %s indexed by %s (unitors: %s)",
        category.name,
        index_set.name,
        "yes" if unitors is not None else "no",
    )
    return GradedMonoidalStructure(
        category=category,
        index_set=index_set,
        tensor=tensor,
        brackets=brackets,
        associators=associators,
        unitors=unitors,
        checker=checker,
    )
