from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

DEFAULT_CONFIG_NAME = "gradtensor.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

DEFAULT_DEGREES: tuple[int, ...] = (0, 1, 2)
DEFAULT_GAS_LIMIT = 5_000_000


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def engine_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "engine")


def budget_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "budget")


def coherence_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "coherence")


def objects_table(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "objects")


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _normalize_int_list(
    value: TomlValue, rejected: list[str] | None = None
) -> list[int]:
    items: list[int] = []
    if value is None:
        return items
    if isinstance(value, bool):
        return items
    if isinstance(value, int):
        return [value]
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple)):
        parts = [str(item).strip() for item in value if not isinstance(item, bool)]
    else:
        return items
    for part in parts:
        try:
            items.append(int(part))
        except ValueError:
            if rejected is not None:
                rejected.append(part)
            continue
    return items


def proof_mode_enabled(section: TomlTable | None) -> bool:
    if not isinstance(section, dict) or "proof_mode" not in section:
        return True
    return _as_bool(section.get("proof_mode"))


def gas_limit(section: TomlTable | None) -> int:
    if not isinstance(section, dict):
        return DEFAULT_GAS_LIMIT
    value = section.get("gas_limit")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return DEFAULT_GAS_LIMIT
    return value


def coherence_degrees(
    section: TomlTable | None, rejected: list[str] | None = None
) -> list[int]:
    """Configured degrees; entries that are not integers go to `rejected`."""
    if not isinstance(section, dict):
        return list(DEFAULT_DEGREES)
    degrees = _normalize_int_list(section.get("degrees"), rejected)
    if rejected:
        return degrees
    return degrees or list(DEFAULT_DEGREES)


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged
