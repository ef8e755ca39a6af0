"""YAML front matter extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

import yaml

from .errors import FrontMatterError

FrontMatterData = Union[dict[str, Any], FrontMatterError]


@dataclass(frozen=True)
class FrontMatter:
    """Markdown body plus the parsed front matter (or the parse error)."""

    content: str
    data: FrontMatterData = field(default_factory=dict)


def extract_front_matter(
    text: str, options: Optional[Mapping[str, Any]] = None
) -> FrontMatter:
    """Split a leading ``---`` fenced YAML block from ``text``.

    Parse failures and non-mapping documents are returned as a
    :class:`FrontMatterError` in ``data`` so callers can decide to carry on
    without it. The block is stripped from the content either way.
    """

    delimiter = str((options or {}).get("delimiter") or "---")
    text = text.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != delimiter:
        return FrontMatter(content=text)

    end_index = -1
    for index in range(1, len(lines)):
        if lines[index].rstrip() == delimiter:
            end_index = index
            break
    if end_index < 0:
        return FrontMatter(content=text)

    block = "".join(lines[1:end_index])
    content = "".join(lines[end_index + 1 :])
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        return FrontMatter(content=content, data=FrontMatterError(str(exc)))
    if data is None:
        return FrontMatter(content=content)
    if not isinstance(data, dict):
        error = FrontMatterError(
            f"Front matter must be a mapping, found {type(data).__name__}."
        )
        return FrontMatter(content=content, data=error)
    return FrontMatter(content=content, data=data)


__all__ = ["FrontMatter", "FrontMatterData", "extract_front_matter"]
