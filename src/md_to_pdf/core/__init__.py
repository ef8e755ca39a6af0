"""Core shared helpers for md-to-pdf."""

from __future__ import annotations

from .config import (
    ConfigFileError,
    load_config_document,
    merge_tables,
    write_toml_template,
)
from .logging import JsonLogFormatter, configure_logger, default_log_dir

__all__ = [
    "ConfigFileError",
    "load_config_document",
    "merge_tables",
    "write_toml_template",
    "JsonLogFormatter",
    "configure_logger",
    "default_log_dir",
]
