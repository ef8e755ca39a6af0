"""Shared TOML/JSON configuration file helpers."""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, Collection, Mapping, MutableMapping

__all__ = [
    "ConfigFileError",
    "load_config_document",
    "merge_tables",
    "write_toml_template",
]


class ConfigFileError(RuntimeError):
    """Raised when config file IO or validation fails."""


def load_config_document(path: Path) -> Mapping[str, Any]:
    """Load a TOML or JSON document from ``path``.

    The format is picked from the suffix; anything other than ``.json`` is
    parsed as TOML.
    """

    try:
        if path.suffix.lower() == ".json":
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        else:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigFileError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(f"Failed to parse config TOML: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigFileError(f"Failed to parse config JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigFileError(
            f"Config file must contain a table at the top level: {path}"
        )
    return data


def merge_tables(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    open_tables: Collection[str] = (),
) -> None:
    """Merge ``override`` into ``base`` rejecting unknown top-level keys.

    Keys named in ``open_tables`` hold free-form tables: they are merged
    field by field and accept any nested key.
    """

    for key, value in override.items():
        if key not in base:
            raise ConfigFileError(f"Unknown configuration key '{key}'.")
        if key in open_tables:
            if not isinstance(value, Mapping):
                found = type(value).__name__
                raise ConfigFileError(
                    f"Expected table for '{key}', found {found}."
                )
            merged = dict(base[key] or {})
            merged.update(value)
            base[key] = merged
            continue
        base[key] = value


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o644,
) -> Path:
    """Write a config template, refusing to clobber unless ``overwrite``."""

    if path.exists() and not overwrite:
        raise ConfigFileError(
            f"Config already exists: {path} (use --force to replace it)"
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    path.chmod(mode)
    return path
