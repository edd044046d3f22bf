"""Graded tensor products over a base monoidal category."""

from gradtensor.monoidal.associator import AssociatorBuilder
from gradtensor.monoidal.brackets import BracketEngine, Leaf, Node, left_nested, right_nested
from gradtensor.monoidal.category import (
    Category,
    HasCoproducts,
    HasInitial,
    HasUnit,
    Iso,
    TensorCategory,
    require_capability,
)
from gradtensor.monoidal.coherence import (
    CoherenceChecker,
    CoherenceReport,
    Obligation,
)
from gradtensor.monoidal.coproduct import CoproductWitness, Counterexample
from gradtensor.monoidal.graded import GradedIso, GradedMorphism, GradedObject
from gradtensor.monoidal.indexing import (
    CyclicGroup,
    Fiber,
    Integers,
    NaturalNumbers,
    fiber,
    index_set_from_name,
)
from gradtensor.monoidal.structure import GradedMonoidalStructure, build_monoidal_structure
from gradtensor.monoidal.tensor import TensorBuilder
from gradtensor.monoidal.unitor import UnitorBuilder

__all__ = [
    "AssociatorBuilder",
    "BracketEngine",
    "Category",
    "CoherenceChecker",
    "CoherenceReport",
    "CoproductWitness",
    "Counterexample",
    "CyclicGroup",
    "Fiber",
    "GradedIso",
    "GradedMonoidalStructure",
    "GradedMorphism",
    "GradedObject",
    "HasCoproducts",
    "HasInitial",
    "HasUnit",
    "Integers",
    "Iso",
    "Leaf",
    "NaturalNumbers",
    "Node",
    "Obligation",
    "TensorBuilder",
    "TensorCategory",
    "UnitorBuilder",
    "build_monoidal_structure",
    "fiber",
    "index_set_from_name",
    "left_nested",
    "require_capability",
    "right_nested",
]
