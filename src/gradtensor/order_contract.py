"""Deterministic ordering of supports, fibers and rendered elements.

Sets of indices and elements have no stable iteration order, yet fibers,
coproduct tags and reports must come out the same on every run. Every place
that turns an unordered collection into a sequence goes through
`ordered_or_sorted`, whose behaviour is chosen by an `OrderPolicy`:

* `sort` (default) always sorts;
* `check` keeps an already ordered input and sorts (recording a telemetry
  event) when it is not;
* `trust` keeps the caller's order untouched;
* `enforce` keeps an ordered input and treats anything else as a broken
  invariant.

The policy comes from, in order: the `policy` argument, the innermost
`order_policy(...)` scope, the `GRADTENSOR_ORDER_POLICY` environment variable.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from gradtensor.invariants import never

T = TypeVar("T")

ORDER_POLICY_ENV = "GRADTENSOR_ORDER_POLICY"


class OrderPolicy(str, Enum):
    SORT = "sort"
    CHECK = "check"
    TRUST = "trust"
    ENFORCE = "enforce"


@dataclass(frozen=True)
class OrderViolation:
    previous_position: int
    position: int
    previous_key: Any
    key: Any
    kind: str

    def payload(self, *, source: str, policy: OrderPolicy, reverse: bool) -> dict[str, object]:
        return {
            "source": source,
            "previous_index": self.previous_position,
            "current_index": self.position,
            "previous_key": repr(self.previous_key),
            "current_key": repr(self.key),
            "violation_kind": self.kind,
            "reverse": reverse,
            "policy": policy.value,
        }


_policy_var: ContextVar[OrderPolicy | None] = ContextVar(
    "gradtensor_order_policy", default=None
)
_telemetry_var: ContextVar[list[dict[str, object]] | None] = ContextVar(
    "gradtensor_order_telemetry", default=None
)


def normalize_policy(policy: OrderPolicy | str) -> OrderPolicy:
    if isinstance(policy, OrderPolicy):
        return policy
    try:
        return OrderPolicy(policy.strip().lower())
    except ValueError:
        never(
            "unknown order policy",
            policy=policy,
            allowed=[candidate.value for candidate in OrderPolicy],
        )


def get_order_policy(policy: OrderPolicy | str | None = None) -> OrderPolicy:
    if policy is not None:
        return normalize_policy(policy)
    scoped = _policy_var.get()
    if scoped is not None:
        return scoped
    raw = os.environ.get(ORDER_POLICY_ENV, "").strip()
    if raw:
        return normalize_policy(raw)
    return OrderPolicy.SORT


def set_order_policy(policy: OrderPolicy | str) -> Token[OrderPolicy | None]:
    return _policy_var.set(normalize_policy(policy))


def reset_order_policy(token: Token[OrderPolicy | None]) -> None:
    _policy_var.reset(token)


@contextmanager
def order_policy(policy: OrderPolicy | str) -> Iterator[None]:
    token = set_order_policy(policy)
    try:
        yield
    finally:
        reset_order_policy(token)


@contextmanager
def order_telemetry() -> Iterator[list[dict[str, object]]]:
    """Collect the fallback sorts performed under the `check` policy."""
    events: list[dict[str, object]] = []
    token = _telemetry_var.set(events)
    try:
        yield events
    finally:
        _telemetry_var.reset(token)


def first_order_violation(
    items: Iterable[T],
    *,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
) -> OrderViolation | None:
    marker = key or (lambda item: item)
    previous: tuple[int, Any] | None = None
    for position, item in enumerate(items):
        current = marker(item)
        if previous is not None:
            previous_position, previous_key = previous
            try:
                regressed = previous_key < current if reverse else previous_key > current
            except TypeError:
                return OrderViolation(previous_position, position, previous_key, current, "incomparable")
            if regressed:
                return OrderViolation(previous_position, position, previous_key, current, "out_of_order")
        previous = (position, current)
    return None


def ordered_or_sorted(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
    policy: OrderPolicy | str | None = None,
    on_unsorted: Callable[[dict[str, object]], None] | None = None,
) -> list[T]:
    items = list(values)
    resolved = get_order_policy(policy)
    if resolved is OrderPolicy.SORT:
        return sorted(items, key=key, reverse=reverse)
    if resolved is OrderPolicy.TRUST:
        return items
    violation = first_order_violation(items, key=key, reverse=reverse)
    if violation is None:
        return items
    payload = violation.payload(source=source, policy=resolved, reverse=reverse)
    if resolved is OrderPolicy.ENFORCE:
        if violation.kind == "incomparable":
            never("ordered input has incomparable keys", **payload)
        never("ordered input is out of order", **payload)
    sink = _telemetry_var.get()
    if sink is not None:
        sink.append({**payload, "action": "fallback_sort"})
    if on_unsorted is not None:
        on_unsorted(payload)
    return sorted(items, key=key, reverse=reverse)
