"""Shared testing fixtures for the md_to_pdf test suite."""

from .assets import (  # noqa: F401
    FONT_BYTES,
    KATEX_CSS,
    KatexDist,
    build_katex_dist,
    build_tree,
)
from .renderer import FakeRenderer, RecordingWriter, RenderCall  # noqa: F401

__all__ = [
    "FONT_BYTES",
    "KATEX_CSS",
    "KatexDist",
    "build_katex_dist",
    "build_tree",
    "FakeRenderer",
    "RecordingWriter",
    "RenderCall",
]
