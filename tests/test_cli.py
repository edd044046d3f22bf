from __future__ import annotations

import json
import logging
import textwrap
from pathlib import Path

from typer.testing import CliRunner

from gradtensor import cli
from gradtensor.categories.finset import FinSet
from gradtensor.exceptions import NeverThrown


def _write_config(tmp_path: Path, body: str) -> Path:
    config_path = tmp_path / "gradtensor.toml"
    config_path.write_text(textwrap.dedent(body).strip() + "\n")
    return config_path


def test_cli_help_lists_commands() -> None:
    result = CliRunner().invoke(cli.app, ["--help"])
    assert result.exit_code == 0
    assert "check" in result.output
    assert "show" in result.output


def test_check_passes_on_default_objects(tmp_path: Path) -> None:
    report = tmp_path / "out" / "report.json"
    result = CliRunner().invoke(
        cli.app, ["check", "--root", str(tmp_path), "--report", str(report)]
    )
    assert result.exit_code == 0, result.output
    assert "0 failed" in result.output
    payload = json.loads(report.read_text())
    assert payload["ok"] is True
    assert payload["category"] == "finset"
    assert payload["objects"] == ["X", "Y", "Z"]


def test_check_reads_config(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [coherence]
        category = "finvect"
        index = "cyclic:2"
        degrees = [0, 1, 5]

        [objects.V]
        0 = 1
        1 = 2
        """,
    )
    result = CliRunner().invoke(cli.app, ["check", "--config", str(config_path)])
    assert result.exit_code == 0, result.output
    assert "finvect over cyclic:2" in result.output


def test_check_command_line_overrides_config(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [coherence]
        category = "finvect"
        """,
    )
    result = CliRunner().invoke(
        cli.app,
        ["check", "--config", str(config_path), "--category", "finset", "--degrees", "0,1"],
    )
    assert result.exit_code == 0, result.output
    assert result.output.strip().startswith("finset over nat")


def test_check_exit_code_for_missing_capability(tmp_path: Path, monkeypatch) -> None:
    class NoCoproducts(FinSet):
        coproduct = None
        recognize_coproduct = None

    monkeypatch.setattr(cli, "category_from_name", lambda name: NoCoproducts())
    result = CliRunner().invoke(cli.app, ["check", "--root", str(tmp_path)])
    assert result.exit_code == 2


def test_check_exit_code_for_exhausted_budget(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [budget]
        gas_limit = 10
        """,
    )
    result = CliRunner().invoke(cli.app, ["check", "--config", str(config_path)])
    assert result.exit_code == 3


def test_show_prints_component_and_summands(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app, ["show", "--root", str(tmp_path), "--objects", "X,Y,Z", "--degree", "1"]
    )
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith("((X ⊗ Y) ⊗ Z)(1) = {")
    assert any(line.strip().startswith("(0, 0, 1):") for line in lines[1:])


def test_show_json(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app,
        ["show", "--root", str(tmp_path), "--objects", "X,Y", "--degree", "0", "--json"],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["label"] == "(X ⊗ Y)"
    assert payload["summands"] == {"(0, 0)": "{('a', 'b')}"}
    assert payload["component"].startswith("{((0, 0), ('a', 'b'))")


def test_show_rejects_unknown_objects(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app, ["show", "--root", str(tmp_path), "--objects", "X,Q"]
    )
    _assert_invalid_input(result)


def test_verbose_flag_is_accepted(tmp_path: Path) -> None:
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    try:
        result = CliRunner().invoke(
            cli.app, ["--verbose", "show", "--root", str(tmp_path), "--objects", "X"]
        )
    finally:
        for handler in root_logger.handlers[:]:
            if handler not in handlers:
                root_logger.removeHandler(handler)
        root_logger.setLevel(level)
    assert result.exit_code == 0, result.output
    assert "X(0) = {'a'}" in result.output


def _assert_invalid_input(result) -> None:
    assert result.exit_code == cli.EXIT_INVALID_INPUT, result.output
    assert not isinstance(result.exception, NeverThrown)


def test_check_rejects_object_index_outside_index_set(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [coherence]
        index = "cyclic:2"

        [objects.X]
        0 = ["a"]

        [objects.Y]
        2 = ["b2"]
        """,
    )
    result = CliRunner().invoke(cli.app, ["check", "--config", str(config_path)])
    _assert_invalid_input(result)


def test_check_rejects_unknown_order_policy(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [engine]
        order_policy = "bogus"
        """,
    )
    result = CliRunner().invoke(cli.app, ["check", "--config", str(config_path)])
    _assert_invalid_input(result)


def test_check_rejects_unknown_category_and_index(tmp_path: Path) -> None:
    runner = CliRunner()
    _assert_invalid_input(
        runner.invoke(cli.app, ["check", "--root", str(tmp_path), "--category", "groups"])
    )
    _assert_invalid_input(
        runner.invoke(cli.app, ["check", "--root", str(tmp_path), "--index", "cyclic:x"])
    )


def test_check_rejects_degrees_outside_index_set(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [coherence]
        degrees = [-1, -2]
        """,
    )
    result = CliRunner().invoke(cli.app, ["check", "--config", str(config_path)])
    _assert_invalid_input(result)
    assert "0 obligations" not in result.output


def test_check_rejects_unparsable_degrees(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app, ["check", "--root", str(tmp_path), "--degrees", "abc"]
    )
    _assert_invalid_input(result)
    assert "obligations" not in result.output


def test_check_keeps_degrees_inside_index_set(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app, ["check", "--root", str(tmp_path), "--degrees", "0,-1"]
    )
    assert result.exit_code == 0, result.output
    assert "0 failed" in result.output


def test_show_rejects_degree_outside_index_set(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.app, ["show", "--root", str(tmp_path), "--objects", "X,Y", "--degree=-1"]
    )
    _assert_invalid_input(result)
