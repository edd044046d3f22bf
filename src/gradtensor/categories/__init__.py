"""Concrete base categories for the graded tensor engine."""

from gradtensor.categories.finset import FinMap, FinSet
from gradtensor.categories.finvect import FinVect, Matrix

__all__ = ["FinMap", "FinSet", "FinVect", "Matrix"]
