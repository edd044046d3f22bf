"""Concrete categories and graded objects built from configuration tables."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from gradtensor.categories.finset import FinSet
from gradtensor.categories.finvect import FinVect
from gradtensor.config import TomlTable, TomlValue
from gradtensor.invariants import never
from gradtensor.monoidal.category import TensorCategory
from gradtensor.monoidal.graded import GradedObject
from gradtensor.monoidal.indexing import Index, IndexSet
from gradtensor.order_contract import ordered_or_sorted

logger = logging.getLogger(__name__)

CATEGORY_NAMES: tuple[str, ...] = ("finset", "finvect")

DEFAULT_OBJECTS: dict[str, TomlTable] = {
    "finset": {
        "X": {"0": ["a"], "1": ["a1", "a2"]},
        "Y": {"0": ["b"], "2": ["b2"]},
        "Z": {"0": ["c"], "1": ["c1"]},
    },
    "finvect": {
        "X": {"0": 1, "1": 2},
        "Y": {"0": 2},
        "Z": {"0": 1, "1": 1},
    },
}


def category_from_name(name: str) -> TensorCategory:
    normalized = name.strip().lower()
    if normalized == "finset":
        return FinSet()
    if normalized == "finvect":
        return FinVect()
    never("unknown category", name=name, allowed=list(CATEGORY_NAMES))


def _parse_index(raw: str, *, label: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        never("graded object index is not an integer", label=label, index=raw)


def _component(category: TensorCategory, value: TomlValue, *, label: str, index: Index):
    if isinstance(category, FinSet):
        if not isinstance(value, list):
            never("finset component must be a list of elements", label=label, index=index)
        return frozenset(str(element) for element in value)
    if isinstance(category, FinVect):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            never("finvect component must be a dimension", label=label, index=index)
        return value
    never("no component parser for category", category=category.name)


def objects_from_table(
    category: TensorCategory,
    index_set: IndexSet,
    table: Mapping[str, TomlValue],
) -> dict[str, GradedObject]:
    """Finitely supported graded objects, one per `[objects.<label>]` table."""
    objects: dict[str, GradedObject] = {}
    for label in ordered_or_sorted(table, source="scenarios.objects"):
        entries = table[label]
        if not isinstance(entries, dict):
            never("graded object table must map indices to components", label=label)
        components = {}
        for raw_index, value in entries.items():
            index = _parse_index(raw_index, label=label)
            components[index] = _component(category, value, label=label, index=index)
        objects[label] = GradedObject.finitely_supported(
            category, index_set, components, label=label
        )
        logger.debug("graded object %s supported on %s", label, sorted(objects[label].support))
    return objects


def default_objects(category: TensorCategory, index_set: IndexSet) -> dict[str, GradedObject]:
    return objects_from_table(category, index_set, DEFAULT_OBJECTS[category.name])
