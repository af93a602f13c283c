"""Rules for CLAUDE.md instruction files."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from lintloom.formats.markdown import extract_imports, fenced_lines
from lintloom.rules.catalog import Rule, RuleCategory, RuleMetadata, Severity

if TYPE_CHECKING:
    from lintloom.engine.context import RuleContext

SIZE_ERROR_BYTES = 40000
SIZE_WARNING_BYTES = 35000

_HEADING_RE = re.compile(r"^#{1,6}\s+\S")
_IMPORT_TOKEN_RE = re.compile(r"@([^\s]+)")

# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class SizeOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    maxSize: int = Field(default=SIZE_ERROR_BYTES, gt=0)  # noqa: N815


class SizeWarningOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    maxSize: int = Field(default=SIZE_WARNING_BYTES, gt=0)  # noqa: N815


class SectionOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    maxSections: int = Field(default=20, gt=0)  # noqa: N815


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _size_in_bytes(content: str) -> int:
    return len(content.encode("utf-8"))


def _format_limit(size: int) -> str:
    return f"{size / 1000:g}KB"


def check_size(context: RuleContext) -> None:
    max_size = int(context.options.get("maxSize", SIZE_ERROR_BYTES))
    size = _size_in_bytes(context.file_content)
    if size >= max_size:
        context.report(
            f"File exceeds {_format_limit(max_size)} limit ({size} bytes)",
            fix="Split content into smaller files in .claude/rules/ and use @imports",
        )


def check_size_warning(context: RuleContext) -> None:
    max_size = int(context.options.get("maxSize", SIZE_WARNING_BYTES))
    size = _size_in_bytes(context.file_content)
    # Files over the hard limit are left to size-error.
    if max_size <= size < SIZE_ERROR_BYTES:
        context.report(
            f"File is approaching the size limit: {size} bytes "
            f"(warning at {_format_limit(max_size)}, "
            f"limit {_format_limit(SIZE_ERROR_BYTES)})",
            fix="Consider moving sections into .claude/rules/ before the limit is reached",
        )


def check_import_in_code_block(context: RuleContext) -> None:
    for line_no, text in fenced_lines(context.file_content):
        for match in _IMPORT_TOKEN_RE.finditer(text):
            context.report(f"Import inside code block: {match.group(1)}", line=line_no)


def check_too_many_sections(context: RuleContext) -> None:
    posix = Path(context.file_path).as_posix()
    if not posix.endswith("CLAUDE.md") or ".claude/rules/" in posix:
        return

    max_sections = int(context.options.get("maxSections", 20))
    headings = [
        line for line in context.without_code_blocks.get().split("\n") if _HEADING_RE.match(line)
    ]
    if len(headings) > max_sections:
        context.report(
            f"CLAUDE.md has {len(headings)} sections (>{max_sections} is hard to navigate)",
            fix="Split content into topic-specific files in .claude/rules/ directory",
        )


async def check_import_missing(context: RuleContext) -> None:
    base = Path(context.file_path).parent
    for ref in extract_imports(context.file_content):
        target = Path(ref.path).expanduser()
        if not target.is_absolute():
            target = base / target
        exists = await asyncio.to_thread(target.exists)
        if not exists:
            context.report(
                f"Imported file not found: {ref.path}",
                line=ref.line,
                how_to_fix="Fix the @path or create the referenced file",
            )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

RULES: list[Rule] = [
    Rule(
        RuleMetadata(
            id="size-error",
            name="CLAUDE.md File Size",
            description="CLAUDE.md exceeds the maximum file size",
            category=RuleCategory.CLAUDE_MD,
            severity=Severity.ERROR,
            options_model=SizeOptions,
        ),
        check_size,
    ),
    Rule(
        RuleMetadata(
            id="size-warning",
            name="CLAUDE.md File Size Warning",
            description="CLAUDE.md is close to the maximum file size",
            category=RuleCategory.CLAUDE_MD,
            severity=Severity.WARN,
            options_model=SizeWarningOptions,
        ),
        check_size_warning,
    ),
    Rule(
        RuleMetadata(
            id="claude-md-import-missing",
            name="Import Missing",
            description="@import points to a file that does not exist",
            category=RuleCategory.CLAUDE_MD,
            severity=Severity.ERROR,
        ),
        check_import_missing,
    ),
    Rule(
        RuleMetadata(
            id="claude-md-import-in-code-block",
            name="Import In Code Block",
            description="@import inside a fenced code block is never processed",
            category=RuleCategory.CLAUDE_MD,
            severity=Severity.WARN,
        ),
        check_import_in_code_block,
    ),
    Rule(
        RuleMetadata(
            id="claude-md-content-too-many-sections",
            name="CLAUDE.md Too Many Sections",
            description="CLAUDE.md has too many headings to navigate",
            category=RuleCategory.CLAUDE_MD,
            severity=Severity.WARN,
            options_model=SectionOptions,
        ),
        check_too_many_sections,
    ),
]
