"""Exception protocol for the graded tensor engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gradtensor.monoidal.coherence import Obligation


@dataclass(frozen=True)
class MarkerPayload:
    marker_kind: str
    reason: str
    env: dict[str, object] = field(default_factory=dict)

    def as_dict(self) -> dict[str, object]:
        return {
            "marker_kind": self.marker_kind,
            "reason": self.reason,
            "env": {key: repr(value) for key, value in self.env.items()},
        }


class NeverRaise(RuntimeError):
    """Sentinel exception for code paths that must be unreachable.

    Reaching one means an internal invariant of the engine was broken by the
    caller (a tuple outside its fiber, non-composable morphisms, a handler set
    that does not match the summands of a coproduct).
    """

    def __init__(self, message: str, *, marker_payload: MarkerPayload | None = None):
        super().__init__(message)
        payload = marker_payload or MarkerPayload(marker_kind="never", reason=message)
        self.marker_payload = payload
        self.marker_kind = payload.marker_kind

    @property
    def marker_payload_dict(self) -> dict[str, object]:
        return self.marker_payload.as_dict()


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""


class MissingCapability(TypeError):
    """A construction asked for structure the category or index set lacks.

    This is the Python rendition of a missing type-class constraint: it is
    raised at the call site that requested the construction and is never
    recovered from by approximating the missing structure.
    """

    def __init__(self, capability: str, *, site: str, detail: str = "") -> None:
        message = f"{site}: missing capability {capability}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.capability = capability
        self.site = site
        self.detail = detail


class CoherenceViolation(AssertionError):
    """A coherence obligation has a counterexample."""

    def __init__(self, obligation: Obligation) -> None:
        super().__init__(obligation.describe())
        self.obligation = obligation
