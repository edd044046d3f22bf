"""Invariant markers for the graded tensor engine."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import NoReturn

from gradtensor.exceptions import MarkerPayload, NeverThrown

_PROOF_MODE_OVERRIDE: ContextVar[bool | None] = ContextVar(
    "gradtensor_proof_mode_override",
    default=None,
)


@dataclass(frozen=True)
class ProofModeConfig:
    enabled: bool = True


_PROOF_MODE_CONFIG: ContextVar[ProofModeConfig] = ContextVar(
    "gradtensor_proof_mode_config",
    default=ProofModeConfig(),
)


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as unreachable.

    The env payload is carried on the raised exception for diagnostics only.
    """
    payload = MarkerPayload(
        marker_kind="never",
        reason=reason or "never() marker reached",
        env=dict(env),
    )
    raise NeverThrown(payload.reason, marker_payload=payload)


def proof_mode() -> bool:
    """Whether construction-time invariants (fiber sums, coproduct cocones) are verified."""
    override = _PROOF_MODE_OVERRIDE.get()
    if override is not None:
        return bool(override)
    return bool(_PROOF_MODE_CONFIG.get().enabled)


def set_proof_mode_config(config: ProofModeConfig) -> Token[ProofModeConfig]:
    return _PROOF_MODE_CONFIG.set(config)


def reset_proof_mode_config(token: Token[ProofModeConfig]) -> None:
    _PROOF_MODE_CONFIG.reset(token)


@contextmanager
def proof_mode_config_scope(config: ProofModeConfig):
    token = set_proof_mode_config(config)
    try:
        yield
    finally:
        reset_proof_mode_config(token)


@contextmanager
def proof_mode_scope(enabled: bool):
    token = _PROOF_MODE_OVERRIDE.set(bool(enabled))
    try:
        yield
    finally:
        _PROOF_MODE_OVERRIDE.reset(token)
