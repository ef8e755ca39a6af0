"""Configuration model and layered merge for md-to-pdf conversions.

Three layers feed a conversion, lowest precedence first:

1. built-in defaults, optionally replaced by a config file;
2. front matter parsed from the Markdown document;
3. invocation overrides keyed by CLI flag (``--pdf-options``).

Front matter is merged key by key, with ``pdf_options`` merged field by
field, and list options repaired when a scalar was written. Invocation
overrides land last and are stored as given; only the JSON-carrying flags
are decoded.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from .core import config as core_config
from .errors import ConfigError, FrontMatterError

logger = logging.getLogger(__name__)

LIST_OPTIONS: tuple[str, ...] = (
    "body_class",
    "script",
    "stylesheet",
    "marked_extensions",
)

JSON_FLAGS: frozenset[str] = frozenset(
    {
        "--marked-options",
        "--pdf-options",
        "--launch-options",
        "--math-engine-options",
    }
)

STDOUT = "stdout"


def _default_pdf_options() -> dict[str, Any]:
    return {
        "printBackground": True,
        "format": "a4",
        "margin": {
            "top": "30mm",
            "right": "40mm",
            "bottom": "30mm",
            "left": "20mm",
        },
    }


@dataclass(eq=False)
class Config:
    """Resolved options for a single conversion.

    Instances compare and hash by identity so they can be tracked in weak
    sets while the pipeline mutates them.
    """

    basedir: Path = field(default_factory=Path.cwd)
    stylesheet: list[str] = field(default_factory=list)
    css: str = ""
    document_title: str = ""
    body_class: list[str] = field(default_factory=list)
    page_media_type: str = "screen"
    highlight_style: str = "default"
    marked_options: dict[str, Any] = field(default_factory=dict)
    pdf_options: dict[str, Any] = field(default_factory=_default_pdf_options)
    launch_options: dict[str, Any] = field(default_factory=dict)
    front_matter_options: dict[str, Any] = field(default_factory=dict)
    md_file_encoding: str = "utf-8"
    stylesheet_encoding: str = "utf-8"
    as_html: bool = False
    devtools: bool = False
    dest: Optional[str] = None
    script: list[Any] = field(default_factory=list)
    marked_extensions: list[Any] = field(default_factory=list)
    math_engine: Optional[str] = None
    math_engine_options: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "Config":
        """Return a new instance with its own lists and tables."""

        values = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            values[item.name] = value
        return Config(**values)


OPTION_NAMES: tuple[str, ...] = tuple(item.name for item in fields(Config))

_FLAG_TO_OPTION: Mapping[str, str] = {
    "--" + name.replace("_", "-"): name for name in OPTION_NAMES
}


def default_config() -> Config:
    return Config()


def option_for_flag(flag: str) -> str:
    """Map ``--flag-name`` to its option name (``flag_name``)."""

    try:
        return _FLAG_TO_OPTION[flag]
    except KeyError as exc:
        raise ConfigError(f"Unknown option flag '{flag}'.") from exc


def load_config_file(path: Path, *, base: Optional[Config] = None) -> Config:
    """Layer a TOML or JSON config file over ``base`` (or the defaults)."""

    start = base.copy() if base is not None else default_config()
    table: MutableMapping[str, Any] = {
        name: getattr(start, name) for name in OPTION_NAMES
    }
    try:
        document = core_config.load_config_document(path)
        core_config.merge_tables(
            table, document, open_tables=("pdf_options",)
        )
    except core_config.ConfigFileError as exc:
        raise ConfigError(str(exc)) from exc
    table["basedir"] = Path(table["basedir"]).expanduser()
    return Config(**table)


def merge_config(
    defaults: Config,
    front_matter: Mapping[str, Any] | FrontMatterError | None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Config:
    """Combine the three configuration layers into a new ``Config``."""

    config = defaults.copy()

    if isinstance(front_matter, FrontMatterError):
        logger.warning(
            "Front matter was ignored because it could not be parsed",
            extra={"error": str(front_matter)},
        )
    elif front_matter:
        _apply_front_matter(config, front_matter)

    pdf_options = config.pdf_options
    if (
        pdf_options.get("headerTemplate") or pdf_options.get("footerTemplate")
    ) and "displayHeaderFooter" not in pdf_options:
        pdf_options["displayHeaderFooter"] = True

    for name in LIST_OPTIONS:
        setattr(config, name, _coerce_list(getattr(config, name)))

    # Overrides are assumed well-typed and skip the list repair above.
    for flag, value in (overrides or {}).items():
        setattr(config, option_for_flag(flag), _decode_override(flag, value))

    return config


def margin_object(margin: str) -> dict[str, str]:
    """Expand a CSS margin shorthand into its four sides."""

    parts = margin.split()
    if not parts:
        raise ConfigError("Margin shorthand must contain at least one value.")
    if len(parts) == 1:
        top = right = bottom = left = parts[0]
    elif len(parts) == 2:
        top, right = parts
        bottom, left = top, right
    elif len(parts) == 3:
        top, right, bottom = parts
        left = right
    elif len(parts) == 4:
        top, right, bottom, left = parts
    else:
        raise ConfigError(
            f"Margin accepts 1-4 CSS values, got {len(parts)}: '{margin}'."
        )
    return {"top": top, "right": right, "bottom": bottom, "left": left}


def _apply_front_matter(config: Config, data: Mapping[str, Any]) -> None:
    for key, value in data.items():
        if key not in OPTION_NAMES:
            logger.warning(
                "Ignoring unknown front matter option",
                extra={"option": str(key)},
            )
            continue
        if key == "pdf_options":
            if not isinstance(value, Mapping):
                logger.warning(
                    "Ignoring pdf_options front matter that is not a table",
                    extra={"value": value},
                )
                continue
            merged = dict(config.pdf_options)
            merged.update(value)
            config.pdf_options = merged
            continue
        if key == "basedir" and value is not None:
            value = Path(str(value)).expanduser()
        setattr(config, key, value)


def _coerce_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value] if value else []


def _decode_override(flag: str, value: Any) -> Any:
    if flag not in JSON_FLAGS or not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{flag} expects a JSON value: {exc}") from exc


__all__ = [
    "Config",
    "JSON_FLAGS",
    "LIST_OPTIONS",
    "OPTION_NAMES",
    "STDOUT",
    "default_config",
    "load_config_file",
    "margin_object",
    "merge_config",
    "option_for_flag",
]
