"""Graded tensor products and their coherence checks."""

from gradtensor.exceptions import (
    CoherenceViolation,
    MissingCapability,
    NeverRaise,
    NeverThrown,
)
from gradtensor.invariants import never

__all__ = [
    "__version__",
    "CoherenceViolation",
    "MissingCapability",
    "NeverRaise",
    "NeverThrown",
    "never",
]

__version__ = "0.1.0"
