"""Rules for MCP server configuration (``.mcp.json``)."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, field_validator

from lintloom.rules.catalog import DeprecationInfo, Rule, RuleCategory, RuleMetadata, Severity

if TYPE_CHECKING:
    from lintloom.engine.context import RuleContext

VALID_TRANSPORTS = ("stdio", "sse", "http", "websocket")

_EXPANSION_RE = re.compile(r"\$\{([^}]*)\}")
_BARE_VAR_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")
_PLUGIN_ROOT = "CLAUDE_PLUGIN_ROOT"


class EnvVarOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pattern: str = "^[A-Z_][A-Z0-9_]*$"

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            msg = f"not a valid regular expression: {exc}"
            raise ValueError(msg) from exc
        return v


def _servers(context: RuleContext) -> dict[str, dict[str, Any]]:
    """Server mapping from the file, empty when it is not valid JSON."""
    try:
        data = json.loads(context.file_content)
    except json.JSONDecodeError:
        return {}
    if not isinstance(data, dict) or not isinstance(data.get("mcpServers"), dict):
        return {}
    return {k: v for k, v in data["mcpServers"].items() if isinstance(v, dict)}


def check_transport(context: RuleContext) -> None:
    for name, server in _servers(context).items():
        transport = server.get("type")
        if transport and transport not in VALID_TRANSPORTS:
            context.report(
                f"Invalid transport type for server '{name}': {transport}",
                how_to_fix=f"Use one of: {', '.join(VALID_TRANSPORTS)}",
            )


def _check_expansion(
    context: RuleContext, value: str, where: str, name_re: re.Pattern[str]
) -> None:
    for match in _EXPANSION_RE.finditer(value):
        var = match.group(1).split(":-")[0].strip()
        if not var:
            context.report(f"Invalid variable expansion syntax in {where}: {match.group(0)}")
        elif var != _PLUGIN_ROOT and not name_re.match(var):
            context.report(f'Invalid environment variable name in {where}: "{var}"')
    for match in _BARE_VAR_RE.finditer(value):
        context.report(f"Unbraced variable expansion in {where}: ${match.group(1)}")


def check_env_vars(context: RuleContext) -> None:
    name_re = re.compile(str(context.options.get("pattern", EnvVarOptions().pattern)))
    for name, server in _servers(context).items():
        if isinstance(server.get("command"), str):
            _check_expansion(context, server["command"], f"'{name}' command", name_re)
        for arg in server.get("args") or []:
            if isinstance(arg, str):
                _check_expansion(context, arg, f"'{name}' argument", name_re)
        if isinstance(server.get("url"), str):
            _check_expansion(context, server["url"], f"'{name}' URL", name_re)
        env = server.get("env")
        if not isinstance(env, dict):
            continue
        for key, value in env.items():
            if not isinstance(value, str) or not value.strip():
                context.report(f"Empty value for environment variable {key} in '{name}'")
            else:
                _check_expansion(context, value, f"'{name}' env {key}", name_re)


def check_nothing(context: RuleContext) -> None:
    """Server names are object keys now, so duplicates cannot occur."""


RULES: list[Rule] = [
    Rule(
        RuleMetadata(
            id="mcp-invalid-transport",
            name="MCP Invalid Transport",
            description="MCP transport type must be one of the supported values",
            category=RuleCategory.MCP,
            severity=Severity.ERROR,
        ),
        check_transport,
    ),
    Rule(
        RuleMetadata(
            id="mcp-invalid-env-var",
            name="MCP Invalid Env Var",
            description="Environment variable expansions in MCP servers must be well formed",
            category=RuleCategory.MCP,
            severity=Severity.WARN,
            options_model=EnvVarOptions,
        ),
        check_env_vars,
    ),
    Rule(
        RuleMetadata(
            id="mcp-invalid-server",
            name="MCP Invalid Server",
            description="MCP server names must be unique",
            category=RuleCategory.MCP,
            severity=Severity.ERROR,
            deprecation=DeprecationInfo(
                reason="Server names are object keys, so duplicates are impossible",
                replaced_by=("mcp-invalid-transport",),
                deprecated_since="0.3.0",
                remove_in_version="1.0.0",
            ),
        ),
        check_nothing,
    ),
]
