from __future__ import annotations

import textwrap
from pathlib import Path

from gradtensor.config import (
    DEFAULT_DEGREES,
    DEFAULT_GAS_LIMIT,
    budget_defaults,
    coherence_defaults,
    coherence_degrees,
    engine_defaults,
    gas_limit,
    load_config,
    merge_payload,
    objects_table,
    proof_mode_enabled,
)


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "gradtensor.toml"
    config_path.write_text(
        textwrap.dedent(
            """
            [engine]
            proof_mode = false
            order_policy = "check"

            [budget]
            gas_limit = 1234

            [coherence]
            category = "finvect"
            index = "cyclic:3"
            degrees = [0, 2]

            [objects.X]
            0 = 1
            2 = 3
            """
        ).strip()
        + "\n"
    )
    return config_path


def test_sections_read_from_toml(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    engine = engine_defaults(root=tmp_path, config_path=config_path)
    assert engine == {"proof_mode": False, "order_policy": "check"}
    assert proof_mode_enabled(engine) is False
    assert gas_limit(budget_defaults(root=tmp_path, config_path=config_path)) == 1234
    coherence = coherence_defaults(root=tmp_path, config_path=config_path)
    assert coherence["category"] == "finvect"
    assert coherence_degrees(coherence) == [0, 2]
    assert objects_table(root=tmp_path, config_path=config_path) == {"X": {"0": 1, "2": 3}}


def test_default_config_name_is_found_under_root(tmp_path: Path) -> None:
    _write_config(tmp_path)
    assert load_config(root=tmp_path)["budget"] == {"gas_limit": 1234}


def test_missing_or_invalid_config_yields_empty_table(tmp_path: Path) -> None:
    assert load_config(root=tmp_path) == {}
    broken = tmp_path / "broken.toml"
    broken.write_text("[engine\nproof_mode = ")
    assert load_config(config_path=broken) == {}
    assert engine_defaults(config_path=broken) == {}


def test_defaults_when_values_are_absent_or_invalid() -> None:
    assert proof_mode_enabled({}) is True
    assert proof_mode_enabled({"proof_mode": "off"}) is False
    assert proof_mode_enabled({"proof_mode": "yes"}) is True
    assert gas_limit({}) == DEFAULT_GAS_LIMIT
    assert gas_limit({"gas_limit": -5}) == DEFAULT_GAS_LIMIT
    assert gas_limit({"gas_limit": True}) == DEFAULT_GAS_LIMIT
    assert coherence_degrees({}) == list(DEFAULT_DEGREES)
    assert coherence_degrees({"degrees": "3, 1,x"}) == [3, 1]
    assert coherence_degrees({"degrees": 4}) == [4]


def test_coherence_degrees_reports_rejected_entries() -> None:
    rejected: list[str] = []
    assert coherence_degrees({"degrees": "3, 1,x"}, rejected) == [3, 1]
    assert rejected == ["x"]
    rejected = []
    assert coherence_degrees({"degrees": "abc"}, rejected) == []
    assert rejected == ["abc"]
    rejected = []
    assert coherence_degrees({"degrees": [0, 2]}, rejected) == [0, 2]
    assert rejected == []


def test_merge_payload_prefers_explicit_values() -> None:
    defaults = {"category": "finset", "index": "nat", "degrees": [0]}
    merged = merge_payload({"category": "finvect", "index": None}, defaults)
    assert merged == {"category": "finvect", "index": "nat", "degrees": [0]}
