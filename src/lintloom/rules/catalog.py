"""Rule catalog: rule metadata, the rule plugin shape, and the registry."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import BaseModel

    from lintloom.engine.context import RuleContext

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """Configured severity of a rule."""

    OFF = "off"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def parse(cls, value: object) -> Severity:
        """Coerce a config value into a Severity.

        ``"warning"`` is accepted as an alias of ``"warn"``.
        """
        if isinstance(value, Severity):
            return value
        text = str(value).strip().lower()
        if text == "warning":
            return cls.WARN
        try:
            return cls(text)
        except ValueError:
            valid = sorted(s.value for s in cls)
            msg = f"invalid severity '{value}', must be one of {valid}"
            raise ValueError(msg) from None


class RuleCategory(str, Enum):
    """The file families rules apply to."""

    CLAUDE_MD = "CLAUDE.md"
    SKILLS = "Skills"
    AGENTS = "Agents"
    SETTINGS = "Settings"
    HOOKS = "Hooks"
    MCP = "MCP"
    PLUGIN = "Plugin"
    COMMANDS = "Commands"
    OUTPUT_STYLES = "OutputStyles"
    LSP = "LSP"

    @classmethod
    def parse(cls, value: object) -> RuleCategory:
        if isinstance(value, RuleCategory):
            return value
        try:
            return cls(str(value))
        except ValueError:
            valid = sorted(c.value for c in cls)
            msg = f"unknown rule category '{value}', must be one of {valid}"
            raise ValueError(msg) from None


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeprecationInfo:
    """Why a rule is deprecated and what replaces it."""

    reason: str
    replaced_by: tuple[str, ...] = ()
    deprecated_since: str | None = None
    remove_in_version: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class RuleMetadata:
    """Static facts about one rule.

    ``options_model`` is an optional pydantic model describing the options the
    rule accepts.  Field defaults on the model are the rule's default options.
    """

    id: str
    name: str
    description: str
    category: RuleCategory
    severity: Severity = Severity.ERROR
    fixable: bool = False
    since: str = "0.1.0"
    options_model: type[BaseModel] | None = None
    deprecation: DeprecationInfo | None = None

    @property
    def deprecated(self) -> bool:
        return self.deprecation is not None

    @property
    def default_options(self) -> dict[str, Any]:
        if self.options_model is None:
            return {}
        return self.options_model().model_dump()


ValidateFn = Callable[["RuleContext"], "Awaitable[None] | None"]


@dataclass(frozen=True)
class Rule:
    """A registered check: metadata plus a ``validate(context)`` callable.

    ``validate`` may be a plain function or a coroutine function.
    """

    meta: RuleMetadata
    validate: ValidateFn


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Mapping of rule id to rule, kept in registration order.

    One registry is built at startup and handed to the resolver and the
    runner.  Tests construct their own.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def register(self, rule: Rule) -> None:
        """Add *rule*, replacing any earlier rule with the same id.

        Raises
        ------
        ValueError
            When the category or default severity is not a known value.
        """
        meta = rule.meta
        category = RuleCategory.parse(meta.category)
        severity = Severity.parse(meta.severity)
        if category is not meta.category or severity is not meta.severity:
            meta = replace(meta, category=category, severity=severity)
            rule = Rule(meta=meta, validate=rule.validate)

        if meta.id in self._rules:
            # Replacing keeps the original position, so execution order is stable.
            logger.debug("Rule '%s' re-registered, replacing previous definition", meta.id)
        self._rules[meta.id] = rule

    def get(self, rule_id: str) -> RuleMetadata | None:
        rule = self._rules.get(rule_id)
        return rule.meta if rule is not None else None

    def get_rule(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def get_by_category(self, category: RuleCategory | str) -> list[Rule]:
        """Return the rules of *category* in registration order."""
        wanted = RuleCategory.parse(category)
        return [r for r in self._rules.values() if r.meta.category is wanted]

    def get_all(self) -> list[Rule]:
        return list(self._rules.values())

    def exists(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def ids(self) -> list[str]:
        return list(self._rules)

    def clear(self) -> None:
        self._rules.clear()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules
