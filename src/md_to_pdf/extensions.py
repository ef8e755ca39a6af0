"""Markdown extension descriptors and lookup helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import import_module
from typing import Any, Callable, Iterable, Mapping, Sequence

from markdown_it import MarkdownIt

from .errors import ConfigError

MATH_INLINE_RULE = "math_inline"

# Extension names accepted in config, mapped to mdit-py-plugins entry points.
_NAMED_PLUGINS: Mapping[str, tuple[str, str]] = {
    "anchors": ("mdit_py_plugins.anchors", "anchors_plugin"),
    "attrs": ("mdit_py_plugins.attrs", "attrs_plugin"),
    "container": ("mdit_py_plugins.container", "container_plugin"),
    "deflist": ("mdit_py_plugins.deflist", "deflist_plugin"),
    "dollarmath": ("mdit_py_plugins.dollarmath", "dollarmath_plugin"),
    "footnote": ("mdit_py_plugins.footnote", "footnote_plugin"),
    "tasklists": ("mdit_py_plugins.tasklists", "tasklists_plugin"),
}


@dataclass(frozen=True)
class SubExtension:
    """A named syntax rule contributed by an extension."""

    name: str


@dataclass
class MarkdownExtension:
    """A markdown-it plugin bundled with its options and rule names."""

    name: str
    plugin: Callable[..., None]
    options: Mapping[str, Any] = field(default_factory=dict)
    extensions: Sequence[SubExtension] = ()

    def apply(self, md: MarkdownIt) -> None:
        md.use(self.plugin, **dict(self.options))


def sub_extension_names(entry: Any) -> list[str]:
    """Names of the sub-extensions an entry exposes, if any.

    Entries may be descriptors with an ``extensions`` attribute or plain
    mappings with an ``extensions`` key; anything else exposes nothing.
    """

    if isinstance(entry, Mapping):
        candidates = entry.get("extensions")
    else:
        candidates = getattr(entry, "extensions", None)
    if not isinstance(candidates, (list, tuple)):
        return []
    names = []
    for candidate in candidates:
        if isinstance(candidate, Mapping):
            name = candidate.get("name")
        else:
            name = getattr(candidate, "name", None)
        if isinstance(name, str):
            names.append(name)
    return names


def is_math_extension(entry: Any) -> bool:
    return MATH_INLINE_RULE in sub_extension_names(entry)


def has_math_extension(entries: Iterable[Any]) -> bool:
    return any(is_math_extension(entry) for entry in entries)


def resolve_plugin(name: str) -> Callable[..., None]:
    """Import the mdit-py-plugins plugin registered under ``name``."""

    try:
        module_name, attribute = _NAMED_PLUGINS[name.strip().lower()]
    except KeyError as exc:
        expected = ", ".join(sorted(_NAMED_PLUGINS))
        raise ConfigError(
            f"Unknown markdown extension '{name}'. "
            f"Expected one of: {expected}."
        ) from exc
    return getattr(import_module(module_name), attribute)


def apply_extension(md: MarkdownIt, entry: Any) -> None:
    """Register one configured extension entry on ``md``."""

    if isinstance(entry, str):
        md.use(resolve_plugin(entry))
    elif isinstance(entry, Mapping) and isinstance(entry.get("name"), str):
        options = entry.get("options") or {}
        md.use(resolve_plugin(entry["name"]), **options)
    elif hasattr(entry, "apply"):
        entry.apply(md)
    elif callable(entry):
        md.use(entry)
    else:
        raise ConfigError(
            f"Unsupported markdown extension entry: {entry!r}."
        )


__all__ = [
    "MATH_INLINE_RULE",
    "MarkdownExtension",
    "SubExtension",
    "apply_extension",
    "has_math_extension",
    "is_math_extension",
    "resolve_plugin",
    "sub_extension_names",
]
