from __future__ import annotations

import asyncio
import base64
import threading
from pathlib import Path

import pytest

from fixtures import FONT_BYTES, build_katex_dist, build_tree
from md_to_pdf import assets
from md_to_pdf.assets import (
    InlinedStylesheet,
    font_references,
    inline_font_references,
    locate_math_stylesheet,
    mime_type_for,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("fonts/KaTeX_Main-Regular.woff2", "font/woff2"),
        ("fonts/KaTeX_Main-Regular.woff", "font/woff"),
        ("KaTeX_Math-Italic.ttf", "font/ttf"),
        ("Face.OTF", "font/otf"),
        (".eot", "application/vnd.ms-fontobject"),
        ("glyphs.svg", "image/svg+xml"),
        ("fonts/readme.txt", "application/octet-stream"),
        ("fonts/noext", "application/octet-stream"),
    ],
)
def test_mime_type_for(name: str, expected: str) -> None:
    assert mime_type_for(name) == expected


def test_font_references_dedupes_in_order() -> None:
    css = (
        "url(fonts/a.woff2) url('fonts/b.woff') "
        'url("fonts/a.woff2") url(images/c.png) url(fonts/c.ttf)'
    )

    assert font_references(css) == [
        "fonts/a.woff2",
        "fonts/b.woff",
        "fonts/c.ttf",
    ]


def test_inline_font_references_embeds_every_quote_style(
    tmp_path: Path,
) -> None:
    dist = build_katex_dist(tmp_path / "dist")

    css = inline_font_references(dist.stylesheet)

    assert "url(fonts/" not in css
    assert "url('fonts/" not in css
    assert 'url("fonts/' not in css
    main = base64.b64encode(
        FONT_BYTES["fonts/KaTeX_Main-Regular.woff2"]
    ).decode("ascii")
    expected = f'url("data:font/woff2;base64,{main}")'
    # Unquoted and double-quoted references to the same file match.
    assert css.count(expected) == 2
    italic = base64.b64encode(
        FONT_BYTES["fonts/KaTeX_Math-Italic.ttf"]
    ).decode("ascii")
    assert f'url("data:font/ttf;base64,{italic}")' in css
    assert "data:font/woff;base64," in css
    assert ".katex{font:normal 1.21em KaTeX_Main" in css


def test_inline_font_references_leaves_other_urls(tmp_path: Path) -> None:
    build_tree(
        tmp_path,
        {
            "style.css": (
                "a{background:url(images/x.png)}"
                "b{background:url(https://example.com/fonts/y.woff)}"
            ),
        },
    )

    css = inline_font_references(tmp_path / "style.css")

    assert "url(images/x.png)" in css
    assert "url(https://example.com/fonts/y.woff)" in css


def test_inline_font_references_missing_font(tmp_path: Path) -> None:
    build_tree(tmp_path, {"style.css": "a{src:url(fonts/gone.woff2)}"})

    with pytest.raises(FileNotFoundError):
        inline_font_references(tmp_path / "style.css")


def test_inline_font_references_reads_each_font_once(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    dist = build_katex_dist(tmp_path / "dist")
    reads: list[str] = []
    original = assets.read_font

    def counting_read(path: Path) -> bytes:
        reads.append(path.name)
        return original(path)

    monkeypatch.setattr(assets, "read_font", counting_read)

    inline_font_references(dist.stylesheet)

    assert sorted(reads) == sorted(
        Path(name).name for name in FONT_BYTES
    )


def test_locate_math_stylesheet_env_override(tmp_path: Path) -> None:
    target = tmp_path / "katex.min.css"

    located = locate_math_stylesheet(
        env={assets.KATEX_CSS_ENV: f"  {target}  "}
    )

    assert located == target


def test_locate_math_stylesheet_packaged_default() -> None:
    located = locate_math_stylesheet(env={})

    assert located.is_file()
    assert located.parent.parent.name == "resources"
    assert located.name in {"katex.min.css", "math.css"}


def test_locate_math_stylesheet_prefers_dropped_in_katex(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    build_katex_dist(tmp_path / "resources" / "katex")
    build_tree(tmp_path / "resources", {"math": {"math.css": ".katex{}"}})
    monkeypatch.setattr(
        assets,
        "_packaged_resource",
        lambda *parts: tmp_path.joinpath("resources", *parts),
    )

    assert locate_math_stylesheet(env={}) == (
        tmp_path / "resources" / "katex" / "katex.min.css"
    )

    (tmp_path / "resources" / "katex" / "katex.min.css").unlink()

    assert locate_math_stylesheet(env={}) == (
        tmp_path / "resources" / "math" / "math.css"
    )


def test_packaged_math_stylesheet_inlines_without_env() -> None:
    css = assets.MATH_STYLESHEET.load()

    assert ".katex" in css
    assert "url(fonts/" not in css


def test_inlined_stylesheet_computes_once(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    dist = build_katex_dist(tmp_path / "dist")
    calls: list[Path] = []
    original = assets.inline_font_references

    def counting_inline(path: Path) -> str:
        calls.append(path)
        return original(path)

    monkeypatch.setattr(assets, "inline_font_references", counting_inline)
    sheet = InlinedStylesheet(lambda: dist.stylesheet)

    assert sheet.loaded is False
    first = sheet.load()
    second = asyncio.run(sheet.get())

    assert first == second
    assert sheet.loaded is True
    assert calls == [dist.stylesheet]


def test_inlined_stylesheet_concurrent_callers_share_one_load(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    dist = build_katex_dist(tmp_path / "dist")
    release = threading.Event()
    calls: list[Path] = []
    original = assets.inline_font_references

    def slow_inline(path: Path) -> str:
        calls.append(path)
        release.wait(timeout=5)
        return original(path)

    monkeypatch.setattr(assets, "inline_font_references", slow_inline)
    sheet = InlinedStylesheet(lambda: dist.stylesheet)

    async def run() -> list[str]:
        pending = [asyncio.create_task(sheet.get()) for _ in range(5)]
        await asyncio.sleep(0.05)
        release.set()
        return await asyncio.gather(*pending)

    results = asyncio.run(run())

    assert len(set(results)) == 1
    assert len(calls) == 1


def test_inlined_stylesheet_failure_caches_nothing(tmp_path: Path) -> None:
    target = tmp_path / "katex.min.css"
    sheet = InlinedStylesheet(lambda: target)

    with pytest.raises(FileNotFoundError):
        sheet.load()
    assert sheet.loaded is False

    build_katex_dist(tmp_path)
    assert "data:font/woff2" in sheet.load()


def test_inlined_stylesheet_reset(tmp_path: Path) -> None:
    dist = build_katex_dist(tmp_path / "dist")
    sheet = InlinedStylesheet(lambda: dist.stylesheet)

    sheet.load()
    sheet.reset()

    assert sheet.loaded is False


def test_math_stylesheet_uses_env_override(katex_dist) -> None:
    css = asyncio.run(assets.MATH_STYLESHEET.get())

    assert "data:font/woff2;base64," in css
    assert assets.MATH_STYLESHEET.loaded is True
