"""KaTeX-style math support for conversions."""

from __future__ import annotations

import logging
import weakref
from html import escape
from typing import Any, Mapping, Optional

import latex2mathml.converter
from markdown_it import MarkdownIt
from mdit_py_plugins.dollarmath import dollarmath_plugin

from .assets import MATH_STYLESHEET, InlinedStylesheet
from .config import Config
from .extensions import (
    MATH_INLINE_RULE,
    MarkdownExtension,
    SubExtension,
    has_math_extension,
)

logger = logging.getLogger(__name__)

KATEX = "katex"

_DOLLARMATH_OPTIONS = frozenset(
    {
        "allow_labels",
        "allow_space",
        "allow_digits",
        "allow_blank_lines",
        "double_inline",
    }
)

# Configs whose css already carries the math stylesheet.
_ACTIVATED: "weakref.WeakSet[Config]" = weakref.WeakSet()


def render_tex(tex: str, *, display: bool, throw_on_error: bool) -> str:
    """Typeset ``tex`` as MathML wrapped in a ``katex`` span."""

    mode = "block" if display else "inline"
    try:
        mathml = latex2mathml.converter.convert(tex.strip(), display=mode)
    except Exception as exc:
        if throw_on_error:
            raise
        logger.debug(
            "Leaving math unrendered",
            extra={"tex": tex, "error": str(exc)},
        )
        return (
            f'<span class="katex-error" title="{escape(str(exc))}">'
            f"{escape(tex)}</span>"
        )
    css_class = "katex-display" if display else "katex"
    return f'<span class="{css_class}">{mathml}</span>'


def _katex_plugin(md: MarkdownIt, **options: Any) -> None:
    throw_on_error = bool(
        options.pop("throw_on_error", options.pop("throwOnError", False))
    )
    plugin_options = {
        key: value
        for key, value in options.items()
        if key in _DOLLARMATH_OPTIONS
    }
    ignored = sorted(set(options) - _DOLLARMATH_OPTIONS)
    if ignored:
        logger.debug(
            "Ignoring unsupported math engine options",
            extra={"options": ignored},
        )

    def renderer(content: str, env: Mapping[str, Any]) -> str:
        return render_tex(
            content,
            display=bool(env.get("display_mode")),
            throw_on_error=throw_on_error,
        )

    dollarmath_plugin(md, renderer=renderer, **plugin_options)


def katex_extension(
    options: Optional[Mapping[str, Any]] = None,
) -> MarkdownExtension:
    return MarkdownExtension(
        name=KATEX,
        plugin=_katex_plugin,
        options=dict(options or {}),
        extensions=(
            SubExtension(MATH_INLINE_RULE),
            SubExtension("math_block"),
        ),
    )


def is_activated(config: Config) -> bool:
    return config in _ACTIVATED


async def ensure_math_support(
    config: Config,
    *,
    stylesheet: InlinedStylesheet = MATH_STYLESHEET,
) -> None:
    """Wire the math extension and stylesheet into ``config`` once."""

    engine = config.math_engine
    if not isinstance(engine, str) or engine.strip().lower() != KATEX:
        return

    if not has_math_extension(config.marked_extensions):
        config.marked_extensions = [
            *config.marked_extensions,
            katex_extension(config.math_engine_options),
        ]

    if config in _ACTIVATED:
        return
    css = await stylesheet.get()
    if config in _ACTIVATED:
        return
    config.css = f"{config.css}\n{css}" if config.css else css
    _ACTIVATED.add(config)


__all__ = [
    "KATEX",
    "ensure_math_support",
    "is_activated",
    "katex_extension",
    "render_tex",
]
