"""Rules for subagent definitions (``agents/*.md``)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from lintloom.formats.markdown import frontmatter_field_line
from lintloom.rules.catalog import Rule, RuleCategory, RuleMetadata, Severity

if TYPE_CHECKING:
    from lintloom.engine.context import RuleContext


class BodyLengthOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    minLength: int = Field(default=50, gt=0)  # noqa: N815


def check_required_fields(context: RuleContext) -> None:
    parsed = context.frontmatter.get()
    if not parsed.has_frontmatter:
        context.report("Agent file is missing YAML frontmatter", line=1)
        return
    if parsed.data is None:
        context.report(parsed.error or "Invalid agent frontmatter", line=1)
        return
    for key in ("name", "description"):
        value = parsed.data.get(key)
        if not isinstance(value, str) or not value.strip():
            context.report(f'Agent frontmatter is missing "{key}"', line=1)


def check_name_matches_filename(context: RuleContext) -> None:
    data = context.frontmatter.get().data
    if not data or not isinstance(data.get("name"), str):
        return
    stem = Path(context.file_path).stem
    if data["name"] != stem:
        context.report(
            f'Agent name "{data["name"]}" does not match filename "{stem}"',
            line=frontmatter_field_line(context.file_content, "name"),
        )


def check_body_length(context: RuleContext) -> None:
    if not context.frontmatter.get().has_frontmatter:
        return
    body = context.body.get().strip()
    min_length = int(context.options.get("minLength", 50))
    if len(body) < min_length:
        context.report(
            f"Agent system prompt is too short ({len(body)} characters, minimum {min_length})",
            how_to_fix="Describe the agent's role and instructions in the body",
        )


RULES: list[Rule] = [
    Rule(
        RuleMetadata(
            id="agent-frontmatter",
            name="Agent Frontmatter",
            description="Agent files need frontmatter with name and description",
            category=RuleCategory.AGENTS,
            severity=Severity.ERROR,
        ),
        check_required_fields,
    ),
    Rule(
        RuleMetadata(
            id="agent-name-filename-mismatch",
            name="Agent Name Filename Mismatch",
            description="Agent name must match its filename",
            category=RuleCategory.AGENTS,
            severity=Severity.ERROR,
        ),
        check_name_matches_filename,
    ),
    Rule(
        RuleMetadata(
            id="agent-body-too-short",
            name="Agent Body Too Short",
            description="Agent system prompt body is too short to be useful",
            category=RuleCategory.AGENTS,
            severity=Severity.WARN,
            options_model=BodyLengthOptions,
        ),
        check_body_length,
    ),
]
