from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from fixtures import KatexDist, build_katex_dist  # noqa: E402
from md_to_pdf import assets  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_process_state(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    monkeypatch.setenv("MD_TO_PDF_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv(assets.KATEX_CSS_ENV, raising=False)
    assets.MATH_STYLESHEET.reset()
    yield
    assets.MATH_STYLESHEET.reset()
    package_logger = logging.getLogger("md_to_pdf")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def katex_dist(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> KatexDist:
    """A fake KaTeX distribution that the math stylesheet loader uses."""

    dist = build_katex_dist(tmp_path / "katex")
    monkeypatch.setenv(assets.KATEX_CSS_ENV, str(dist.stylesheet))
    return dist


@pytest.fixture
def style_dir(tmp_path: Path) -> Path:
    return tmp_path / "styles"
