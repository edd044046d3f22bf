"""Gas budget for fiber enumeration and extensionality checks.

Every enumeration of a fiber and every per-injection comparison consumes one
tick from the scoped meter. Without a scoped meter the engine is unbounded.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Protocol, TypeVar

from gradtensor.invariants import never

_LoopItem = TypeVar("_LoopItem")


class BudgetClock(Protocol):
    def consume(self, ticks: int = 1) -> None:
        """Consume logical work units."""

    def get_mark(self) -> int:
        """Return the number of units consumed so far."""


class GasExhausted(RuntimeError):
    """Raised by a clock when its available ticks are exhausted."""


class BudgetExceeded(TimeoutError):
    def __init__(self, site: str, consumed: int, limit: int) -> None:
        super().__init__(f"Gas budget exhausted at {site}: {consumed}/{limit}")
        self.site = site
        self.consumed = consumed
        self.limit = limit


@dataclass
class GasMeter:
    """Deterministic logical clock driven by consumed ticks."""

    limit: int
    current: int = 0

    def __post_init__(self) -> None:
        if int(self.limit) <= 0:
            never("invalid gas meter limit", limit=self.limit)
        self.limit = int(self.limit)
        self.current = int(self.current)
        if self.current < 0:
            never("invalid gas meter current", current=self.current)

    def consume(self, ticks: int = 1) -> None:
        ticks_value = int(ticks)
        if ticks_value <= 0:
            never("invalid gas meter ticks", ticks=ticks)
        self.current += ticks_value
        if self.current >= self.limit:
            raise GasExhausted(f"Gas exhausted: {self.current}/{self.limit}")

    def get_mark(self) -> int:
        return self.current


_budget_clock_var: ContextVar[BudgetClock | None] = ContextVar(
    "gradtensor_budget_clock", default=None
)


def get_budget_clock() -> BudgetClock | None:
    return _budget_clock_var.get()


@contextmanager
def budget_scope(clock: BudgetClock):
    if clock is None:
        never("budget clock missing")
    token = _budget_clock_var.set(clock)
    try:
        yield clock
    finally:
        _budget_clock_var.reset(token)


def consume_budget(ticks: int = 1, *, site: str = "") -> None:
    clock = _budget_clock_var.get()
    if clock is None:
        return
    try:
        clock.consume(ticks)
    except GasExhausted as exc:
        limit = getattr(clock, "limit", -1)
        raise BudgetExceeded(site or "engine", clock.get_mark(), int(limit)) from exc


def budget_loop_iter(values: Iterable[_LoopItem], *, site: str = "") -> Iterator[_LoopItem]:
    for value in values:
        consume_budget(site=site)
        yield value
