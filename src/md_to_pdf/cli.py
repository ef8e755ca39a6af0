"""CLI entry point for md-to-pdf."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Sequence

from .config import (
    OPTION_NAMES,
    Config,
    default_config,
    load_config_file,
)
from .core.config import ConfigFileError, write_toml_template
from .core.logging import configure_logger
from .errors import ConfigError, MdToPdfError
from .output import MarkdownInput
from .pipeline import PipelineDependencies, convert_many
from .renderer import generate_output, launch_browser

DEFAULT_CONFIG_FILENAME = "md-to-pdf.toml"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md-to-pdf",
        description=(
            "Convert Markdown files to PDF (or HTML) with headless Chromium. "
            "Reads from stdin when no files are given."
        ),
        epilog=(
            "Run `md-to-pdf config init` to scaffold a config file with the "
            "default options."
        ),
    )
    parser.add_argument(
        "files", nargs="*", type=Path, help="Markdown files to convert."
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        help="TOML or JSON file whose options replace the built-in defaults.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print debug logs to stderr.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Level for the JSON log file (defaults to INFO).",
    )

    options = parser.add_argument_group(
        "conversion options",
        "Override config file and front matter values.",
    )
    suppress: dict[str, Any] = {"default": argparse.SUPPRESS}
    options.add_argument("--basedir", **suppress)
    options.add_argument(
        "--stylesheet",
        action="append",
        help="Stylesheet path or URL (repeatable).",
        **suppress,
    )
    options.add_argument("--css", help="Inline CSS.", **suppress)
    options.add_argument("--document-title", **suppress)
    options.add_argument(
        "--body-class", action="append", help="(repeatable)", **suppress
    )
    options.add_argument(
        "--page-media-type",
        choices=["screen", "print"],
        **suppress,
    )
    options.add_argument(
        "--highlight-style", help="Pygments style name.", **suppress
    )
    options.add_argument("--marked-options", metavar="JSON", **suppress)
    options.add_argument("--pdf-options", metavar="JSON", **suppress)
    options.add_argument("--launch-options", metavar="JSON", **suppress)
    options.add_argument(
        "--front-matter-options", metavar="JSON", **suppress
    )
    options.add_argument("--md-file-encoding", **suppress)
    options.add_argument("--stylesheet-encoding", **suppress)
    options.add_argument(
        "--as-html",
        action="store_true",
        help="Write HTML instead of PDF.",
        **suppress,
    )
    options.add_argument(
        "--devtools",
        action="store_true",
        help="Open a headed browser with devtools instead of writing output.",
        **suppress,
    )
    options.add_argument(
        "--script",
        action="append",
        help="Script path or URL (repeatable).",
        **suppress,
    )
    options.add_argument("--math-engine", choices=["katex"], **suppress)
    options.add_argument("--math-engine-options", metavar="JSON", **suppress)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    logger, _ = configure_logger(
        "md_to_pdf", level=args.log_level, verbose=args.verbose
    )
    logger.debug("md-to-pdf CLI invoked")

    try:
        defaults = _load_defaults(args.config_file)
    except ConfigError as exc:
        parser.error(str(exc))

    sources = _collect_sources(args.files)
    if not sources:
        parser.print_help(sys.stderr)
        return 1

    overrides = _overrides_from_args(args)
    try:
        asyncio.run(
            _convert(sources, defaults, overrides, _build_dependencies())
        )
    except (MdToPdfError, OSError) as exc:
        logger.error(
            "Conversion failed",
            extra={"error": str(exc), "type": type(exc).__name__},
        )
        sys.stderr.write(f"md-to-pdf: {exc}\n")
        return 1
    return 0


def _build_dependencies() -> PipelineDependencies:
    return PipelineDependencies()


def _load_defaults(config_file: Optional[Path]) -> Config:
    if config_file is None:
        return default_config()
    return load_config_file(config_file.expanduser())


def _collect_sources(files: Sequence[Path]) -> list[MarkdownInput]:
    if files:
        return [MarkdownInput.from_path(path) for path in files]
    if sys.stdin is None or sys.stdin.isatty():
        return []
    return [MarkdownInput.from_content(sys.stdin.read())]


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "--" + key.replace("_", "-"): value
        for key, value in vars(args).items()
        if key in OPTION_NAMES
    }


async def _convert(
    sources: Sequence[MarkdownInput],
    defaults: Config,
    overrides: dict[str, Any],
    dependencies: PipelineDependencies,
) -> None:
    share_browser = (
        len(sources) > 1
        and dependencies.render is generate_output
        and not overrides.get("--devtools", defaults.devtools)
    )
    if not share_browser:
        await convert_many(
            sources, defaults, args=overrides, dependencies=dependencies
        )
        return

    launch_options = _launch_options(defaults, overrides)
    async with launch_browser(launch_options) as browser:
        await convert_many(
            sources,
            defaults,
            args=overrides,
            browser=browser,
            dependencies=dependencies,
        )


def _launch_options(defaults: Config, overrides: dict[str, Any]) -> Any:
    raw = overrides.get("--launch-options")
    if raw is None:
        return defaults.launch_options
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"--launch-options expects a JSON value: {exc}"
        ) from exc


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)
    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md-to-pdf config",
        description="Manage md-to-pdf configuration files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help=f"Write the default {DEFAULT_CONFIG_FILENAME} template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to "
            f"./{DEFAULT_CONFIG_FILENAME})."
        ),
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    target = args.path or Path(DEFAULT_CONFIG_FILENAME)
    target = target.expanduser()
    if not target.is_absolute():
        target = (Path.cwd() / target).resolve()

    template = (
        resources.files("md_to_pdf")
        .joinpath("resources", "config_template.toml")
        .read_text(encoding="utf-8")
    )
    try:
        written = write_toml_template(
            target, template=template, overwrite=args.force
        )
    except ConfigFileError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote md-to-pdf config to {written}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
