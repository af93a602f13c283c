"""Markdown helpers: YAML frontmatter, body extraction, code fences, imports."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_INLINE_CODE_RE = re.compile(r"`[^`]*`")
_IMPORT_RE = re.compile(r"(?:^|\s)@([^\s]+)")


@dataclass(frozen=True)
class FrontmatterResult:
    """Parsed frontmatter of a Markdown document.

    ``data`` is None when there is no frontmatter block or when the block is
    not a YAML mapping; ``error`` then carries the parser message, if any.
    ``body_line_offset`` is the number of lines preceding the body.
    """

    data: dict[str, Any] | None
    body: str
    has_frontmatter: bool
    body_line_offset: int = 0
    error: str | None = None
    raw: str = field(default="", repr=False)


@dataclass(frozen=True)
class ImportRef:
    path: str
    line: int


def extract_frontmatter(content: str) -> FrontmatterResult:
    """Split *content* into frontmatter mapping and body.

    Malformed YAML does not raise; the error text is returned instead so
    callers can report it as an issue.
    """
    match = _FRONTMATTER_RE.match(content)
    if match is None:
        return FrontmatterResult(data=None, body=content, has_frontmatter=False)

    raw = match.group(1)
    body = content[match.end() :]
    offset = content[: match.end()].count("\n")

    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        return FrontmatterResult(
            data=None,
            body=body,
            has_frontmatter=True,
            body_line_offset=offset,
            error=f"Failed to parse YAML frontmatter: {exc}",
            raw=raw,
        )

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        return FrontmatterResult(
            data=None,
            body=body,
            has_frontmatter=True,
            body_line_offset=offset,
            error="Frontmatter must be a YAML mapping",
            raw=raw,
        )
    return FrontmatterResult(
        data=loaded, body=body, has_frontmatter=True, body_line_offset=offset, raw=raw
    )


def strip_code_blocks(content: str) -> str:
    """Blank out fenced code blocks (fence lines included), keeping line numbers."""
    out: list[str] = []
    fence: str | None = None
    for line in content.split("\n"):
        marker = _FENCE_RE.match(line)
        if fence is None:
            if marker is not None:
                fence = marker.group(1)
                out.append("")
                continue
            out.append(line)
        else:
            if marker is not None and marker.group(1) == fence:
                fence = None
            out.append("")
    return "\n".join(out)


def fenced_lines(content: str) -> list[tuple[int, str]]:
    """Return ``(line_number, text)`` for every line inside a fenced block."""
    result: list[tuple[int, str]] = []
    fence: str | None = None
    for index, line in enumerate(content.split("\n"), start=1):
        marker = _FENCE_RE.match(line)
        if fence is None:
            if marker is not None:
                fence = marker.group(1)
            continue
        if marker is not None and marker.group(1) == fence:
            fence = None
            continue
        result.append((index, line))
    return result


def extract_imports(content: str) -> list[ImportRef]:
    """Find ``@path`` imports outside code fences and inline code."""
    imports: list[ImportRef] = []
    for index, line in enumerate(strip_code_blocks(content).split("\n"), start=1):
        for match in _IMPORT_RE.finditer(_INLINE_CODE_RE.sub("", line)):
            imports.append(ImportRef(path=match.group(1), line=index))
    return imports


def count_lines(content: str) -> int:
    return len(content.split("\n"))


def frontmatter_field_line(content: str, key: str) -> int | None:
    """Line number of ``key:`` inside the leading frontmatter block, if present."""
    match = _FRONTMATTER_RE.match(content)
    if match is None:
        return None
    field_re = re.compile(rf"^{re.escape(key)}\s*:")
    for index, line in enumerate(match.group(1).split("\n"), start=2):
        if field_re.match(line):
            return index
    return None
