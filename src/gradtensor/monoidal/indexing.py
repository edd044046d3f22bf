"""Index sets and the sum-projection reindexer.

An index set is a commutative monoid of hashable, orderable indices. The
reindexer groups `n`-tuples of indices by their sum: the fiber of `k` is the
set of tuples whose components add up to `k`.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from functools import reduce
from itertools import product
from typing import Protocol, runtime_checkable

from gradtensor.budget import budget_loop_iter, consume_budget
from gradtensor.exceptions import MissingCapability
from gradtensor.invariants import never, proof_mode
from gradtensor.order_contract import ordered_or_sorted

Index = Hashable
IndexTuple = tuple[Index, ...]


@runtime_checkable
class IndexSet(Protocol):
    """Commutative monoid of indices with decidable equality."""

    name: str

    @property
    def zero(self) -> Index: ...

    @property
    def enumerates_fibers(self) -> bool: ...

    def add(self, left: Index, right: Index) -> Index: ...

    def contains(self, value: object) -> bool: ...

    def fiber_tuples(self, target: Index, arity: int) -> Iterable[IndexTuple]: ...


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _compositions(total: int, parts: int) -> Iterator[IndexTuple]:
    if parts == 1:
        yield (total,)
        return
    for head in range(total + 1):
        for tail in _compositions(total - head, parts - 1):
            yield (head, *tail)


@dataclass(frozen=True)
class NaturalNumbers:
    name: str = field(default="nat", compare=False)

    @property
    def zero(self) -> int:
        return 0

    @property
    def enumerates_fibers(self) -> bool:
        return True

    def add(self, left: int, right: int) -> int:
        return left + right

    def contains(self, value: object) -> bool:
        return _is_int(value) and value >= 0

    def fiber_tuples(self, target: int, arity: int) -> Iterable[IndexTuple]:
        return _compositions(target, arity)


@dataclass(frozen=True)
class CyclicGroup:
    order: int
    name: str = field(default="cyclic", compare=False)

    def __post_init__(self) -> None:
        if not _is_int(self.order) or self.order <= 0:
            never("invalid cyclic group order", order=self.order)

    @property
    def zero(self) -> int:
        return 0

    @property
    def enumerates_fibers(self) -> bool:
        return True

    def add(self, left: int, right: int) -> int:
        return (left + right) % self.order

    def contains(self, value: object) -> bool:
        return _is_int(value) and 0 <= value < self.order

    def fiber_tuples(self, target: int, arity: int) -> Iterable[IndexTuple]:
        for head in product(range(self.order), repeat=arity - 1):
            yield (*head, (target - sum(head)) % self.order)


@dataclass(frozen=True)
class Integers:
    """The integers; fibers are infinite, so only support-restricted fibers exist."""

    name: str = field(default="int", compare=False)

    @property
    def zero(self) -> int:
        return 0

    @property
    def enumerates_fibers(self) -> bool:
        return False

    def add(self, left: int, right: int) -> int:
        return left + right

    def contains(self, value: object) -> bool:
        return _is_int(value)

    def fiber_tuples(self, target: int, arity: int) -> Iterable[IndexTuple]:
        raise MissingCapability(
            "finite fiber enumeration",
            site="Integers.fiber_tuples",
            detail="fibers of the sum projection on the integers are infinite",
        )


def index_set_from_name(name: str) -> IndexSet:
    normalized = name.strip().lower()
    if normalized in {"nat", "n", "naturals"}:
        return NaturalNumbers()
    if normalized in {"int", "z", "integers"}:
        return Integers()
    if normalized.startswith("cyclic:"):
        _, _, raw_order = normalized.partition(":")
        try:
            order = int(raw_order)
        except ValueError:
            never("invalid cyclic group order", order=raw_order)
        return CyclicGroup(order=order, name=normalized)
    never("unknown index set", name=name)


def total(index_set: IndexSet, indices: Iterable[Index]) -> Index:
    return reduce(index_set.add, indices, index_set.zero)


def require_index(index_set: IndexSet, value: object, *, site: str) -> None:
    if not index_set.contains(value):
        never("index outside index set", site=site, index=value, index_set=index_set.name)


@dataclass(frozen=True)
class Fiber:
    """Tuples of a fixed arity whose sum is `target`.

    `tuples` lists the summands the engine materialises; when the fiber was
    restricted to supports it is a subset of the mathematical fiber, and
    `covers` still answers membership in the full fiber.
    """

    index_set: IndexSet
    target: Index
    arity: int
    tuples: tuple[IndexTuple, ...]
    restricted: bool = False

    def __post_init__(self) -> None:
        if not proof_mode():
            return
        seen: set[IndexTuple] = set()
        for entry in self.tuples:
            if not self.covers(entry):
                never(
                    "tuple outside fiber",
                    target=self.target,
                    arity=self.arity,
                    entry=entry,
                )
            if entry in seen:
                never("duplicate tuple in fiber", target=self.target, entry=entry)
            seen.add(entry)

    def covers(self, entry: Sequence[Index]) -> bool:
        if len(entry) != self.arity:
            return False
        if not all(self.index_set.contains(part) for part in entry):
            return False
        return total(self.index_set, entry) == self.target

    def __iter__(self) -> Iterator[IndexTuple]:
        return iter(self.tuples)

    def __len__(self) -> int:
        return len(self.tuples)

    def __contains__(self, entry: object) -> bool:
        return entry in self.tuples


def fiber(
    index_set: IndexSet,
    target: Index,
    arity: int,
    *,
    supports: Sequence[Iterable[Index]] | None = None,
) -> Fiber:
    """All `arity`-tuples summing to `target`, optionally restricted to supports."""
    require_index(index_set, target, site="fiber")
    if arity < 1:
        never("fiber arity must be positive", arity=arity)
    if supports is not None:
        if len(supports) != arity:
            never("one support per fiber component required", arity=arity, supports=len(supports))
        ordered = [
            ordered_or_sorted(set(support), source="fiber.support")
            for support in supports
        ]
        tuples = tuple(
            entry
            for entry in budget_loop_iter(product(*ordered), site="fiber.supported")
            if total(index_set, entry) == target
        )
        return Fiber(index_set, target, arity, tuples, restricted=True)
    if not index_set.enumerates_fibers:
        raise MissingCapability(
            "finite fiber enumeration",
            site="fiber",
            detail=f"index set {index_set.name!r} needs supports to enumerate fibers",
        )
    tuples = tuple(
        budget_loop_iter(index_set.fiber_tuples(target, arity), site="fiber.enumerate")
    )
    return Fiber(index_set, target, arity, tuples)


def partition(
    index_set: IndexSet,
    tuples: Iterable[IndexTuple],
    projection: Callable[[IndexTuple], Index] | None = None,
) -> dict[Index, tuple[IndexTuple, ...]]:
    """Group a finite shape by its image under `projection` (default: the sum)."""
    project = projection or (lambda entry: total(index_set, entry))
    groups: dict[Index, list[IndexTuple]] = {}
    for entry in tuples:
        consume_budget(site="partition")
        groups.setdefault(project(entry), []).append(entry)
    return {key: tuple(values) for key, values in groups.items()}


def sum_support(index_set: IndexSet, supports: Sequence[Iterable[Index]]) -> frozenset[Index]:
    """Indices reachable as a sum of one index from each support."""
    return frozenset(
        partition(index_set, product(*[tuple(support) for support in supports]))
    )
