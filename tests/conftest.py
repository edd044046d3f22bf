from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT / "src", ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from gradtensor.budget import GasMeter, budget_scope
from gradtensor.categories.finset import FinSet
from gradtensor.categories.finvect import FinVect
from gradtensor.monoidal.graded import GradedObject
from gradtensor.monoidal.indexing import NaturalNumbers
from gradtensor.monoidal.structure import build_monoidal_structure


@pytest.fixture(autouse=True)
def _gas_scope_fixture():
    with budget_scope(GasMeter(limit=100_000_000)):
        yield


@pytest.fixture
def finset() -> FinSet:
    return FinSet()


@pytest.fixture
def finvect() -> FinVect:
    return FinVect()


@pytest.fixture
def nat() -> NaturalNumbers:
    return NaturalNumbers()


@pytest.fixture
def finset_structure(finset, nat):
    return build_monoidal_structure(finset, nat)


@pytest.fixture
def make_sets(finset, nat):
    def _make(label: str, **components: list[str]) -> GradedObject:
        return GradedObject.finitely_supported(
            finset,
            nat,
            {int(key.lstrip("d")): frozenset(value) for key, value in components.items()},
            label=label,
        )

    return _make
