"""Self-contained stylesheet assets.

A KaTeX stylesheet references its fonts with relative ``url(fonts/...)``
entries. Rendering happens from an in-memory page, so every font is
embedded as a base64 ``data:`` URI before the CSS is handed over. The
rewritten stylesheet is computed once per process.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import re
import threading
from importlib import resources
from pathlib import Path
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)

KATEX_CSS_ENV = "MD_TO_PDF_KATEX_CSS"

_FONT_MIME_TYPES: Mapping[str, str] = {
    ".woff2": "font/woff2",
    ".woff": "font/woff",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".eot": "application/vnd.ms-fontobject",
    ".svg": "image/svg+xml",
}

_FONT_URL_RE = re.compile(r"""url\((['"]?)(fonts/[^'")]+)\1\)""")


def mime_type_for(path: str | Path) -> str:
    """Return the MIME type for a font file name or bare suffix."""

    text = str(path)
    suffix = text if text.startswith(".") else Path(text).suffix
    return _FONT_MIME_TYPES.get(suffix.lower(), "application/octet-stream")


def font_references(css: str) -> list[str]:
    """Distinct ``fonts/...`` references in order of first appearance."""

    matches = _FONT_URL_RE.finditer(css)
    return list(dict.fromkeys(match.group(2) for match in matches))


def read_font(path: Path) -> bytes:
    return path.read_bytes()


def inline_font_references(stylesheet: Path) -> str:
    """Return ``stylesheet`` with every relative font embedded as data.

    A missing stylesheet or font raises the underlying ``OSError``.
    """

    css = stylesheet.read_text(encoding="utf-8")
    base_dir = stylesheet.parent
    references = font_references(css)
    for reference in references:
        font_path = (base_dir / reference).resolve()
        encoded = base64.b64encode(read_font(font_path)).decode("ascii")
        data_uri = f'url("data:{mime_type_for(font_path)};base64,{encoded}")'
        escaped = re.escape(reference)
        for quote in ("", "'", '"'):
            css = re.sub(
                rf"url\({quote}{escaped}{quote}\)",
                lambda _match: data_uri,
                css,
            )
    logger.debug(
        "Inlined stylesheet fonts",
        extra={"stylesheet": str(stylesheet), "font_count": len(references)},
    )
    return css


def _packaged_resource(*parts: str) -> Path:
    packaged = resources.files("md_to_pdf").joinpath("resources", *parts)
    return Path(str(packaged))


def locate_math_stylesheet(env: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the math stylesheet to embed.

    Lookup order:

    1. ``MD_TO_PDF_KATEX_CSS``, a ``katex.min.css`` whose ``fonts/``
       directory sits next to it.
    2. A KaTeX distribution dropped into ``resources/katex``.
    3. The packaged ``resources/math/math.css`` for the generated MathML.
    """

    env_map = os.environ if env is None else env
    override = env_map.get(KATEX_CSS_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    katex = _packaged_resource("katex", "katex.min.css")
    if katex.is_file():
        return katex
    return _packaged_resource("math", "math.css")


class InlinedStylesheet:
    """Process-wide, lazily computed inlined stylesheet.

    The first caller computes the value while later and concurrent callers
    wait on the same lock and reuse it. A failed computation caches
    nothing.
    """

    def __init__(self, locate: Callable[[], Path]) -> None:
        self._locate = locate
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self._value is not None

    async def get(self) -> str:
        if self._value is not None:
            return self._value
        return await asyncio.to_thread(self.load)

    def load(self) -> str:
        if self._value is not None:
            return self._value
        with self._lock:
            if self._value is None:
                self._value = inline_font_references(self._locate())
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = None


MATH_STYLESHEET = InlinedStylesheet(locate_math_stylesheet)


__all__ = [
    "KATEX_CSS_ENV",
    "InlinedStylesheet",
    "MATH_STYLESHEET",
    "font_references",
    "inline_font_references",
    "locate_math_stylesheet",
    "mime_type_for",
    "read_font",
]
