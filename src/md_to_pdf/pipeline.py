"""Markdown to PDF/HTML conversion pipeline."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from .config import Config, margin_object, merge_config
from .errors import ConfigError, MdToPdfError, OutputError
from .front_matter import extract_front_matter
from .markdown import get_html
from .math_support import ensure_math_support
from .output import MarkdownInput, RenderOutput, resolve_output, write_output
from .renderer import generate_output

logger = logging.getLogger(__name__)

RenderCallable = Callable[
    [str, str, Config, Optional[Any]], Awaitable[Optional[RenderOutput]]
]


@dataclass(frozen=True)
class PipelineDependencies:
    """Seams for the browser renderer and the output writer."""

    render: RenderCallable = generate_output
    write: Callable[[RenderOutput], None] = write_output
    style_dir: Optional[Path] = None


async def convert_md_to_pdf(
    source: MarkdownInput,
    config: Config,
    *,
    args: Optional[Mapping[str, Any]] = None,
    browser: Optional[Any] = None,
    dependencies: Optional[PipelineDependencies] = None,
) -> RenderOutput:
    """Convert ``source`` to PDF (or HTML) and write it to its destination.

    ``config`` is the defaults layer; front matter and ``args`` (invocation
    overrides keyed by ``--flag-name``) are merged over it into a new
    configuration. The rendered output is returned after it is written.
    """

    deps = dependencies or PipelineDependencies()
    overrides = dict(args or {})

    if source.content is not None:
        text = source.content
    else:
        encoding = (
            overrides.get("--md-file-encoding") or config.md_file_encoding
        )
        text = await asyncio.to_thread(
            Path(source.path).read_text, encoding=encoding
        )

    front_matter_options = _front_matter_options(overrides, config)
    if "--front-matter-options" in overrides:
        overrides["--front-matter-options"] = front_matter_options
    front_matter = extract_front_matter(text, front_matter_options)
    config = merge_config(config, front_matter.data, overrides)

    await ensure_math_support(config)

    margin = config.pdf_options.get("margin")
    if isinstance(margin, str):
        config.pdf_options["margin"] = margin_object(margin)

    resolve_output(config, source, style_dir=deps.style_dir)

    html = get_html(front_matter.content, config)
    relative_path = (
        os.path.relpath(source.path, config.basedir)
        if source.path is not None
        else "."
    )
    target = "HTML" if config.as_html else "PDF"

    # A shared browser is headless; devtools needs its own headed one.
    if config.devtools and browser is not None:
        logger.debug(
            "Launching a separate browser for devtools",
            extra={"source": relative_path},
        )
        browser = None

    try:
        output = await deps.render(html, relative_path, config, browser)
    except (MdToPdfError, OSError):
        raise
    except Exception as exc:
        raise OutputError(f"Failed to create {target}: {exc}") from exc

    if output is None:
        if config.devtools:
            raise OutputError("No file is generated with --devtools.")
        raise OutputError(f"Failed to create {target}.")
    if not output.filename and not output.content:
        raise OutputError(f"Failed to create {target}.")

    if output.filename:
        await asyncio.to_thread(deps.write, output)

    logger.info(
        "Converted document",
        extra={
            "source": str(source.path) if source.path else "<content>",
            "dest": output.filename,
            "format": target.lower(),
        },
    )
    return output


async def convert_many(
    sources: Sequence[MarkdownInput],
    config: Config,
    *,
    args: Optional[Mapping[str, Any]] = None,
    browser: Optional[Any] = None,
    dependencies: Optional[PipelineDependencies] = None,
) -> list[RenderOutput]:
    """Convert ``sources`` concurrently, sharing ``browser`` when given."""

    return list(
        await asyncio.gather(
            *(
                convert_md_to_pdf(
                    source,
                    config,
                    args=args,
                    browser=browser,
                    dependencies=dependencies,
                )
                for source in sources
            )
        )
    )


def _front_matter_options(
    overrides: Mapping[str, Any], config: Config
) -> Mapping[str, Any]:
    raw = overrides.get("--front-matter-options")
    if raw is None:
        return config.front_matter_options
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"--front-matter-options expects a JSON value: {exc}"
        ) from exc


__all__ = [
    "PipelineDependencies",
    "convert_many",
    "convert_md_to_pdf",
]
