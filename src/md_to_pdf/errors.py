"""Exception types raised by the md-to-pdf pipeline."""

from __future__ import annotations


class MdToPdfError(RuntimeError):
    """Base class for md-to-pdf failures."""


class ConfigError(MdToPdfError):
    """Raised when configuration input is malformed."""


class FrontMatterError(MdToPdfError):
    """Front matter could not be parsed; the pipeline ignores it."""


class OutputError(MdToPdfError):
    """Raised when no output could be produced."""


class DependencyError(MdToPdfError):
    """Raised when an optional runtime dependency is unavailable."""


__all__ = [
    "MdToPdfError",
    "ConfigError",
    "FrontMatterError",
    "OutputError",
    "DependencyError",
]
