"""Headless Chromium rendering via Playwright."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Mapping, Optional

from .config import Config
from .errors import DependencyError
from .output import RenderOutput

logger = logging.getLogger(__name__)

# puppeteer-style pdf option -> Playwright ``page.pdf`` keyword
_PDF_OPTION_NAMES: Mapping[str, str] = {
    "displayHeaderFooter": "display_header_footer",
    "footerTemplate": "footer_template",
    "format": "format",
    "headerTemplate": "header_template",
    "height": "height",
    "landscape": "landscape",
    "margin": "margin",
    "outline": "outline",
    "pageRanges": "page_ranges",
    "path": "path",
    "preferCSSPageSize": "prefer_css_page_size",
    "printBackground": "print_background",
    "scale": "scale",
    "tagged": "tagged",
    "width": "width",
}
_PLAYWRIGHT_PDF_KEYWORDS = frozenset(_PDF_OPTION_NAMES.values())


def pdf_keywords(pdf_options: Mapping[str, Any]) -> dict[str, Any]:
    """Translate ``pdf_options`` into ``page.pdf`` keyword arguments."""

    keywords: dict[str, Any] = {}
    dropped = []
    for key, value in pdf_options.items():
        name = _PDF_OPTION_NAMES.get(key)
        if name is None and key in _PLAYWRIGHT_PDF_KEYWORDS:
            name = key
        if name is None:
            dropped.append(key)
            continue
        keywords[name] = value
    if dropped:
        logger.debug(
            "Dropping unsupported pdf options",
            extra={"options": sorted(dropped)},
        )
    return keywords


def is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def page_url(basedir: Path, relative_path: str) -> str:
    """Directory URL the page is opened at so relative links resolve.

    Chromium downloads rather than displays a ``.md`` file, so the page is
    opened at the document's directory instead of the document itself.
    """

    target = (Path(basedir) / relative_path).resolve()
    if not target.is_dir():
        target = target.parent
    uri = target.as_uri()
    return uri if uri.endswith("/") else uri + "/"


def _load_playwright():
    try:
        from playwright.async_api import async_playwright
    except ImportError as exc:
        raise DependencyError(
            "Playwright is required. Install the 'playwright' package and run "
            "`playwright install chromium`."
        ) from exc
    return async_playwright


async def generate_output(
    html: str,
    relative_path: str,
    config: Config,
    browser: Optional[Any] = None,
) -> Optional[RenderOutput]:
    """Render ``html`` to PDF (or HTML) bytes in Chromium.

    Returns ``None`` in devtools mode, where the page stays open for
    inspection until it is closed.
    """

    if browser is not None:
        return await _render_page(browser, html, relative_path, config)

    async with launch_browser(
        config.launch_options, devtools=config.devtools
    ) as launched:
        return await _render_page(launched, html, relative_path, config)


@asynccontextmanager
async def launch_browser(
    launch_options: Optional[Mapping[str, Any]] = None,
    *,
    devtools: bool = False,
) -> AsyncIterator[Any]:
    """Launch Chromium with ``launch_options`` and close it on exit."""

    async_playwright = _load_playwright()
    options = dict(launch_options or {})
    if devtools:
        options["headless"] = False
        options["args"] = [
            *options.get("args", []),
            "--auto-open-devtools-for-tabs",
        ]
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(**options)
        try:
            yield browser
        finally:
            await browser.close()


async def _render_page(
    browser: Any, html: str, relative_path: str, config: Config
) -> Optional[RenderOutput]:
    page = await browser.new_page()
    try:
        await page.goto(page_url(config.basedir, relative_path))
        await page.set_content(html)

        for sheet in config.stylesheet:
            if is_http_url(sheet):
                await page.add_style_tag(url=sheet)
            else:
                content = await asyncio.to_thread(
                    Path(sheet).read_text, encoding=config.stylesheet_encoding
                )
                await page.add_style_tag(content=content)
        if config.css:
            await page.add_style_tag(content=config.css)
        for script in config.script:
            await page.add_script_tag(**_script_tag(script))

        await page.wait_for_load_state("networkidle")

        if config.devtools:
            await page.wait_for_event("close", timeout=0)
            return None
        if config.as_html:
            content = await page.content()
            return RenderOutput(filename=config.dest, content=content)

        await page.emulate_media(media=config.page_media_type)
        pdf = await page.pdf(**pdf_keywords(config.pdf_options))
        return RenderOutput(filename=config.dest, content=pdf)
    finally:
        if not page.is_closed():
            await page.close()


def _script_tag(script: Any) -> dict[str, Any]:
    if isinstance(script, Mapping):
        return dict(script)
    text = str(script)
    if is_http_url(text):
        return {"url": text}
    return {"path": text}


__all__ = [
    "generate_output",
    "is_http_url",
    "launch_browser",
    "page_url",
    "pdf_keywords",
]
