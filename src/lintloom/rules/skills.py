"""Rules for skill definitions (``SKILL.md`` with YAML frontmatter)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from lintloom.formats.markdown import frontmatter_field_line
from lintloom.rules.catalog import Rule, RuleCategory, RuleMetadata, Severity

if TYPE_CHECKING:
    from lintloom.engine.context import RuleContext

_SKILL_NAME_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class DescriptionLengthOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    maxLength: int = Field(default=1024, gt=0)  # noqa: N815


def _is_skill_file(context: RuleContext) -> bool:
    return Path(context.file_path).name == "SKILL.md"


def _frontmatter(context: RuleContext) -> dict[str, Any] | None:
    """Parsed frontmatter of a SKILL.md file, or None when absent or broken."""
    if not _is_skill_file(context):
        return None
    return context.frontmatter.get().data


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def check_frontmatter(context: RuleContext) -> None:
    if not _is_skill_file(context):
        return
    parsed = context.frontmatter.get()
    if not parsed.has_frontmatter:
        context.report(
            "SKILL.md is missing YAML frontmatter",
            line=1,
            fix="Start the file with a --- block defining name and description",
        )
    elif parsed.error is not None:
        context.report(parsed.error, line=1)


def check_name(context: RuleContext) -> None:
    data = _frontmatter(context)
    if data is None:
        return
    name = data.get("name")
    if not name:
        context.report('Skill frontmatter is missing "name"', line=1)
        return
    if not isinstance(name, str) or not _SKILL_NAME_RE.match(name):
        context.report(
            f'Skill name "{name}" must be lowercase letters, digits and hyphens',
            line=frontmatter_field_line(context.file_content, "name"),
        )
        return
    directory = Path(context.file_path).parent.name
    if directory and name != directory:
        context.report(
            f'Skill name "{name}" does not match directory "{directory}"',
            line=frontmatter_field_line(context.file_content, "name"),
            fix=f"Rename the directory or set name: {directory}",
        )


def check_description(context: RuleContext) -> None:
    data = _frontmatter(context)
    if data is None:
        return
    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        context.report('Skill frontmatter is missing "description"', line=1)


def check_description_length(context: RuleContext) -> None:
    data = _frontmatter(context)
    if data is None or not isinstance(data.get("description"), str):
        return
    description = data["description"].strip()
    max_length = int(context.options.get("maxLength", 1024))
    if len(description) > max_length:
        context.report(
            f"Description too long ({len(description)}/{max_length} characters)",
            line=frontmatter_field_line(context.file_content, "description"),
        )


def check_version(context: RuleContext) -> None:
    data = _frontmatter(context)
    if data is not None and not data.get("version"):
        context.report(
            'Skill frontmatter lacks "version" field',
            fix='Add "version: 1.0.0" to the SKILL.md frontmatter',
        )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

RULES: list[Rule] = [
    Rule(
        RuleMetadata(
            id="skill-frontmatter-invalid",
            name="Skill Frontmatter",
            description="SKILL.md must start with a valid YAML frontmatter mapping",
            category=RuleCategory.SKILLS,
            severity=Severity.ERROR,
        ),
        check_frontmatter,
    ),
    Rule(
        RuleMetadata(
            id="skill-name",
            name="Skill Name",
            description="Skill name is required, kebab-case and matches its directory",
            category=RuleCategory.SKILLS,
            severity=Severity.ERROR,
        ),
        check_name,
    ),
    Rule(
        RuleMetadata(
            id="skill-description",
            name="Skill Description",
            description="Skill description is required",
            category=RuleCategory.SKILLS,
            severity=Severity.ERROR,
        ),
        check_description,
    ),
    Rule(
        RuleMetadata(
            id="skill-description-max-length",
            name="Skill Description Max Length",
            description="Skill description exceeds maximum character length",
            category=RuleCategory.SKILLS,
            severity=Severity.WARN,
            since="0.3.0",
            options_model=DescriptionLengthOptions,
        ),
        check_description_length,
    ),
    Rule(
        RuleMetadata(
            id="skill-missing-version",
            name="Skill Missing Version",
            description="Skill frontmatter has no version field",
            category=RuleCategory.SKILLS,
            severity=Severity.WARN,
        ),
        check_version,
    ),
]
