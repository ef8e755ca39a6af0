"""Markdown to HTML rendering (markdown-it-py + Pygments)."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from jinja2 import Environment
from markdown_it import MarkdownIt
from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.util import ClassNotFound

from .config import Config
from .extensions import apply_extension

HIGHLIGHT_CLASS = "highlight"
DEFAULT_LANG_PREFIX = "hljs language-"

# marked option name -> markdown-it option name
_FORWARDED_OPTIONS: Mapping[str, str] = {
    "html": "html",
    "breaks": "breaks",
    "typographer": "typographer",
    "xhtmlOut": "xhtmlOut",
    "langPrefix": "langPrefix",
}

_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
  <head><title>{{ title }}</title><meta charset="utf-8"></head>
  <body class="{{ body_class | join(' ') }}">
{{ body | safe }}
  </body>
</html>
"""

_environment = Environment(autoescape=True)


def highlight_code(code: str, lang: str, lang_prefix: str) -> str:
    """Highlight a fenced block, falling back to plain text lexing."""

    name = (lang or "").strip()
    try:
        lexer = get_lexer_by_name(name) if name else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    spans = pygments_highlight(code, lexer, HtmlFormatter(nowrap=True))
    css_name = name or "plaintext"
    return (
        f'<pre class="{HIGHLIGHT_CLASS}">'
        f'<code class="{lang_prefix}{css_name}">{spans}</code></pre>\n'
    )


def build_markdown_it(
    options: Optional[Mapping[str, Any]] = None,
    extensions: Iterable[Any] = (),
) -> MarkdownIt:
    """Create a parser with highlighting, options and extensions applied."""

    update: dict[str, Any] = {"html": True, "langPrefix": DEFAULT_LANG_PREFIX}
    for key, value in (options or {}).items():
        target = _FORWARDED_OPTIONS.get(key)
        if target is not None:
            update[target] = value
    lang_prefix = str(update["langPrefix"])
    update["highlight"] = (
        lambda code, lang, _attrs: highlight_code(code, lang, lang_prefix)
    )

    md = MarkdownIt("commonmark", options_update=update)
    md.enable(["table", "strikethrough"])
    for entry in extensions:
        apply_extension(md, entry)
    return md


def get_html(markdown: str, config: Config) -> str:
    """Render ``markdown`` into a complete HTML document."""

    md = build_markdown_it(config.marked_options, config.marked_extensions)
    template = _environment.from_string(_DOCUMENT_TEMPLATE)
    return template.render(
        title=config.document_title,
        body_class=config.body_class,
        body=md.render(markdown),
    )


def highlight_css(style: str) -> str:
    return HtmlFormatter(style=style).get_style_defs(f".{HIGHLIGHT_CLASS}")


__all__ = [
    "build_markdown_it",
    "get_html",
    "highlight_code",
    "highlight_css",
]
