from __future__ import annotations

import stat
from pathlib import Path

import pytest

from md_to_pdf.core import config as core_config
from md_to_pdf.core.config import ConfigFileError


def test_load_config_document_reads_toml(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text(
        'css = "body { color: red; }"\n[pdf_options]\nformat = "letter"\n',
        encoding="utf-8",
    )

    data = core_config.load_config_document(path)

    assert data["css"] == "body { color: red; }"
    assert data["pdf_options"] == {"format": "letter"}


def test_load_config_document_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text('{"as_html": true}', encoding="utf-8")

    assert core_config.load_config_document(path) == {"as_html": True}


@pytest.mark.parametrize(
    ("name", "text", "message"),
    [
        ("broken.toml", "css = ", "TOML"),
        ("broken.json", "{", "JSON"),
        ("list.json", "[1, 2]", "top level"),
    ],
)
def test_load_config_document_rejects_bad_documents(
    tmp_path: Path, name: str, text: str, message: str
) -> None:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigFileError, match=message):
        core_config.load_config_document(path)


def test_load_config_document_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError, match="not found"):
        core_config.load_config_document(tmp_path / "absent.toml")


def test_merge_tables_rejects_unknown_keys() -> None:
    base = {"css": ""}

    with pytest.raises(ConfigFileError, match="Unknown configuration key"):
        core_config.merge_tables(base, {"colour": "red"})


def test_merge_tables_merges_open_tables_field_wise() -> None:
    base = {"pdf_options": {"format": "a4", "printBackground": True}}

    core_config.merge_tables(
        base,
        {"pdf_options": {"format": "letter", "landscape": True}},
        open_tables=("pdf_options",),
    )

    assert base["pdf_options"] == {
        "format": "letter",
        "printBackground": True,
        "landscape": True,
    }


def test_merge_tables_open_table_requires_mapping() -> None:
    with pytest.raises(ConfigFileError, match="Expected table"):
        core_config.merge_tables(
            {"pdf_options": {}},
            {"pdf_options": "a4"},
            open_tables=("pdf_options",),
        )


def test_write_toml_template_honours_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "md-to-pdf.toml"

    written = core_config.write_toml_template(target, template="css = ''\n")
    assert written == target
    assert target.read_text(encoding="utf-8") == "css = ''\n"
    assert stat.S_IMODE(target.stat().st_mode) == 0o644

    with pytest.raises(ConfigFileError, match="already exists"):
        core_config.write_toml_template(target, template="x = 1\n")

    core_config.write_toml_template(
        target, template="x = 1\n", overwrite=True
    )
    assert target.read_text(encoding="utf-8") == "x = 1\n"
