"""Rules for ``settings.json`` files."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from lintloom.rules.catalog import Rule, RuleCategory, RuleMetadata, Severity

if TYPE_CHECKING:
    from lintloom.engine.context import RuleContext

_TOOL_PATTERN_RE = re.compile(r"^([^(]+)\(([^)]*)\)$")
_ENV_NAME_RE = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_SECRET_HINTS = ("secret", "key", "token", "password")


class EmptyPatternOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    allowEmpty: bool = False  # noqa: N815


def _load(context: RuleContext) -> dict[str, Any]:
    try:
        data = json.loads(context.file_content)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def check_empty_permission_pattern(context: RuleContext) -> None:
    if context.options.get("allowEmpty"):
        return
    permissions = _load(context).get("permissions")
    if not isinstance(permissions, dict):
        return
    for bucket in ("allow", "deny", "ask"):
        for entry in permissions.get(bucket) or []:
            match = _TOOL_PATTERN_RE.match(entry) if isinstance(entry, str) else None
            if match is not None and not match.group(2).strip():
                context.report(
                    f'Empty inline pattern in permissions.{bucket}: "{entry}". '
                    f'Use "{match.group(1)}" instead',
                )


def check_env_vars(context: RuleContext) -> None:
    env = _load(context).get("env")
    if not isinstance(env, dict):
        return
    for key, value in env.items():
        if not _ENV_NAME_RE.match(key):
            context.report(
                f"Environment variable name should be uppercase with underscores: {key}"
            )
        if not isinstance(value, str) or not value.strip():
            context.report(f"Empty value for environment variable: {key}")
            continue
        lowered = key.lower()
        if any(hint in lowered for hint in _SECRET_HINTS) and not value.startswith("${"):
            if len(value) > 10:
                context.report(
                    f"Possible hardcoded secret in environment variable: {key}",
                    how_to_fix="Reference the value with ${VAR} expansion instead",
                )


RULES: list[Rule] = [
    Rule(
        RuleMetadata(
            id="settings-permission-empty-pattern",
            name="Settings Permission Empty Pattern",
            description="Tool(pattern) permission entries should not have empty patterns",
            category=RuleCategory.SETTINGS,
            severity=Severity.WARN,
            since="0.4.0",
            options_model=EmptyPatternOptions,
        ),
        check_empty_permission_pattern,
    ),
    Rule(
        RuleMetadata(
            id="settings-invalid-env-var",
            name="Settings Invalid Env Var",
            description="Environment variables in settings must be well named and non-empty",
            category=RuleCategory.SETTINGS,
            severity=Severity.WARN,
        ),
        check_env_vars,
    ),
]
