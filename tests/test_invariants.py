from __future__ import annotations

import pytest

from gradtensor.exceptions import CoherenceViolation, MissingCapability, NeverRaise, NeverThrown
from gradtensor.invariants import (
    ProofModeConfig,
    never,
    proof_mode,
    proof_mode_config_scope,
    proof_mode_scope,
)
from gradtensor.monoidal.coherence import Obligation


def test_never_carries_its_environment() -> None:
    with pytest.raises(NeverThrown) as excinfo:
        never("tuple outside fiber", target=2, entry=(1, 0))
    error = excinfo.value
    assert isinstance(error, NeverRaise)
    assert isinstance(error, RuntimeError)
    assert error.marker_kind == "never"
    assert error.marker_payload_dict == {
        "marker_kind": "never",
        "reason": "tuple outside fiber",
        "env": {"target": "2", "entry": "(1, 0)"},
    }


def test_never_without_reason_uses_default_message() -> None:
    with pytest.raises(NeverThrown, match="never\\(\\) marker reached"):
        never()


def test_proof_mode_scopes_nest() -> None:
    assert proof_mode()
    with proof_mode_config_scope(ProofModeConfig(enabled=False)):
        assert not proof_mode()
        with proof_mode_scope(True):
            assert proof_mode()
    assert proof_mode()


def test_missing_capability_is_a_type_error() -> None:
    error = MissingCapability("HasUnit", site="UnitorBuilder", detail="category 'x'")
    assert isinstance(error, TypeError)
    assert str(error) == "UnitorBuilder: missing capability HasUnit (category 'x')"
    assert str(MissingCapability("HasInitial", site="map_obj")) == (
        "map_obj: missing capability HasInitial"
    )


def test_coherence_violation_is_an_assertion_error() -> None:
    obligation = Obligation(name="pentagon", degree=0, legs_checked=1)
    error = CoherenceViolation(obligation)
    assert isinstance(error, AssertionError)
    assert error.obligation is obligation
