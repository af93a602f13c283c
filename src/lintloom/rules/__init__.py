"""Rule catalog and the built-in rules."""

from lintloom.rules import agents, claude_md, mcp, settings, skills
from lintloom.rules.catalog import (
    DeprecationInfo,
    Rule,
    RuleCategory,
    RuleMetadata,
    RuleRegistry,
    Severity,
    ValidateFn,
)

BUILTIN_RULES: tuple[Rule, ...] = (
    *claude_md.RULES,
    *skills.RULES,
    *agents.RULES,
    *mcp.RULES,
    *settings.RULES,
)


def register_builtin_rules(registry: RuleRegistry) -> RuleRegistry:
    """Register every built-in rule into *registry* and return it."""
    for rule in BUILTIN_RULES:
        registry.register(rule)
    return registry


def create_registry() -> RuleRegistry:
    """Build a fresh registry holding the built-in rules."""
    return register_builtin_rules(RuleRegistry())


__all__ = [
    "BUILTIN_RULES",
    "DeprecationInfo",
    "Rule",
    "RuleCategory",
    "RuleMetadata",
    "RuleRegistry",
    "Severity",
    "ValidateFn",
    "create_registry",
    "register_builtin_rules",
]
