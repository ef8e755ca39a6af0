"""Output destination resolution and writing."""

from __future__ import annotations

import os
import re
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional, Union

import pygments
from pygments.util import ClassNotFound

from .config import STDOUT, Config
from .errors import ConfigError
from .markdown import highlight_css

_STYLE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class MarkdownInput:
    """Either a Markdown file on disk or in-memory Markdown text."""

    path: Optional[Path] = None
    content: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.path is None) == (self.content is None):
            raise ValueError("Provide exactly one of 'path' or 'content'.")

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "MarkdownInput":
        return cls(path=Path(path))

    @classmethod
    def from_content(cls, content: str) -> "MarkdownInput":
        return cls(content=content)

    @property
    def is_file(self) -> bool:
        return self.path is not None


@dataclass(frozen=True)
class RenderOutput:
    """Rendered document plus where it should go."""

    filename: Optional[str]
    content: Union[bytes, str]


def output_file_path(source: Path, extension: str) -> Path:
    """Sibling of ``source`` with ``extension`` as its suffix."""

    return source.with_suffix(f".{extension}")


def default_style_dir() -> Path:
    """Per-Pygments-release cache of generated highlight stylesheets."""

    name = f"md-to-pdf-styles-{pygments.__version__}"
    return Path(tempfile.gettempdir()) / name


def highlight_stylesheet_path(
    style: str, *, style_dir: Optional[Path] = None
) -> Path:
    """Return a CSS file holding the Pygments rules for ``style``.

    The file is generated on first use and reused afterwards.
    """

    if not _STYLE_NAME_RE.match(style or ""):
        raise ConfigError(f"Invalid highlight style name '{style}'.")
    directory = style_dir or default_style_dir()
    target = directory / f"{style}.css"
    if target.exists():
        return target
    try:
        css = highlight_css(style)
    except ClassNotFound as exc:
        raise ConfigError(f"Unknown highlight style '{style}'.") from exc
    directory.mkdir(parents=True, exist_ok=True)
    fd, scratch = tempfile.mkstemp(dir=directory, suffix=".css.tmp")
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(css)
    os.replace(scratch, target)
    return target


def resolve_output(
    config: Config,
    source: MarkdownInput,
    *,
    style_dir: Optional[Path] = None,
) -> None:
    """Fill in ``config.dest`` and add the highlight stylesheet."""

    if config.dest is None:
        if source.path is not None:
            extension = "html" if config.as_html else "pdf"
            config.dest = str(output_file_path(source.path, extension))
        else:
            config.dest = STDOUT

    sheet = str(
        highlight_stylesheet_path(config.highlight_style, style_dir=style_dir)
    )
    current = config.stylesheet
    if isinstance(current, str):
        current = [current]
    config.stylesheet = list(dict.fromkeys([*current, sheet]))


def write_output(output: RenderOutput, *, stdout: Optional[IO] = None) -> None:
    """Write ``output`` to its file or to standard output."""

    if not output.filename:
        return
    if output.filename == STDOUT:
        stream = stdout or sys.stdout
        if isinstance(output.content, bytes):
            buffer = getattr(stream, "buffer", stream)
            buffer.write(output.content)
        else:
            stream.write(output.content)
        stream.flush()
        return
    target = Path(output.filename)
    if isinstance(output.content, bytes):
        target.write_bytes(output.content)
    else:
        target.write_text(output.content, encoding="utf-8")


__all__ = [
    "MarkdownInput",
    "RenderOutput",
    "default_style_dir",
    "highlight_stylesheet_path",
    "output_file_path",
    "resolve_output",
    "write_output",
]
