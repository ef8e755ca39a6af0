"""Convert Markdown documents to PDF or HTML with headless Chromium."""

from __future__ import annotations

from .assets import (
    MATH_STYLESHEET,
    InlinedStylesheet,
    inline_font_references,
    mime_type_for,
)
from .config import (
    Config,
    default_config,
    load_config_file,
    margin_object,
    merge_config,
)
from .errors import (
    ConfigError,
    DependencyError,
    FrontMatterError,
    MdToPdfError,
    OutputError,
)
from .extensions import MarkdownExtension, SubExtension, has_math_extension
from .math_support import ensure_math_support, katex_extension
from .output import MarkdownInput, RenderOutput, resolve_output
from .pipeline import PipelineDependencies, convert_many, convert_md_to_pdf

__all__ = [
    "MATH_STYLESHEET",
    "InlinedStylesheet",
    "inline_font_references",
    "mime_type_for",
    "Config",
    "default_config",
    "load_config_file",
    "margin_object",
    "merge_config",
    "ConfigError",
    "DependencyError",
    "FrontMatterError",
    "MdToPdfError",
    "OutputError",
    "MarkdownExtension",
    "SubExtension",
    "has_math_extension",
    "ensure_math_support",
    "katex_extension",
    "MarkdownInput",
    "RenderOutput",
    "resolve_output",
    "PipelineDependencies",
    "convert_many",
    "convert_md_to_pdf",
]
