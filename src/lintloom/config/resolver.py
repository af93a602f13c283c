"""Per-file rule configuration: severity, enablement and options.

Layers are applied in order: the base ``rules`` mapping, then every override
block whose ``files`` patterns match the path, in declaration order.  The last
layer that mentions a rule decides both its severity and its options; a rule
no layer mentions falls back to its registered defaults.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from lintloom.rules.catalog import Severity

if TYPE_CHECKING:
    from lintloom.config.loader import LintConfig, RuleConfig
    from lintloom.engine.diagnostics import DiagnosticCollector
    from lintloom.rules.catalog import RuleRegistry

logger = logging.getLogger(__name__)

# Severity for rules that are neither configured nor registered.
UNKNOWN_RULE_SEVERITY = Severity.ERROR


def _posix(path: str | PurePath) -> str:
    text = PurePath(path).as_posix()
    return text[2:] if text.startswith("./") else text


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a regex where only ``**`` crosses ``/``."""
    parts: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif char == "*":
            parts.append("[^/]*")
            i += 1
        elif char == "?":
            parts.append("[^/]")
            i += 1
        elif char == "[" and "]" in pattern[i + 2 :]:
            end = pattern.index("]", i + 2)
            body = pattern[i + 1 : end].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            i = end + 1
        else:
            parts.append(re.escape(char))
            i += 1
    return re.compile("".join(parts))


def glob_match(path: str | PurePath, pattern: str) -> bool:
    """Match *path* against a glob pattern.

    ``*`` and ``?`` stay within one path segment; ``**`` spans any number of
    segments, so a leading ``**/`` also matches files at the root.
    """
    return _compile_glob(_posix(pattern)).fullmatch(_posix(path)) is not None


@dataclass(frozen=True)
class ResolvedRuleConfig:
    """Effective setting for one rule at one path."""

    rule_id: str
    severity: Severity
    options: dict[str, Any] = field(default_factory=dict)


class ConfigResolver:
    """Answers severity, enablement and options queries for (rule, path) pairs.

    Results per path are memoised.  Invalid option payloads are replaced by the
    rule's defaults and reported once through *diagnostics*.
    """

    def __init__(
        self,
        config: LintConfig | None,
        registry: RuleRegistry,
        diagnostics: DiagnosticCollector | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.diagnostics = diagnostics
        self._cache: dict[str, dict[str, ResolvedRuleConfig]] = {}
        self._checked_options: dict[tuple[int, str], dict[str, Any] | None] = {}

    # -- layering ----------------------------------------------------------

    def _layers_for(self, path: str) -> list[tuple[int, dict[str, RuleConfig]]]:
        if self.config is None:
            return []
        layers: list[tuple[int, dict[str, RuleConfig]]] = [(-1, self.config.rules)]
        for index, block in enumerate(self.config.overrides):
            if any(glob_match(path, pattern) for pattern in block.files):
                layers.append((index, block.rules))
        return layers

    def _checked(self, layer: int, rule_id: str, options: dict[str, Any]) -> dict[str, Any] | None:
        """Validate *options* against the rule's model; None when invalid."""
        key = (layer, rule_id)
        if key in self._checked_options:
            return self._checked_options[key]

        meta = self.registry.get(rule_id)
        checked: dict[str, Any] | None = dict(options)
        if meta is not None and meta.options_model is not None:
            try:
                checked = meta.options_model.model_validate(options).model_dump()
            except ValidationError as exc:
                checked = None
                detail = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                    for err in exc.errors()
                )
                message = (
                    f"Invalid options for rule '{rule_id}': {detail}. Using default options."
                )
                if self.diagnostics is not None:
                    self.diagnostics.warn(message, "ConfigResolver", "CONFIG_INVALID_OPTIONS")
                else:
                    logger.warning(message)

        self._checked_options[key] = checked
        return checked

    def _compute(self, path: str) -> dict[str, ResolvedRuleConfig]:
        winners: dict[str, tuple[int, RuleConfig]] = {}
        for layer, rules in self._layers_for(path):
            for rule_id, rule_config in rules.items():
                winners[rule_id] = (layer, rule_config)

        resolved: dict[str, ResolvedRuleConfig] = {}
        for rule_id, (layer, rule_config) in winners.items():
            options: dict[str, Any] | None = None
            if rule_config.options is not None:
                options = self._checked(layer, rule_id, rule_config.options)
            if options is None:
                options = self._default_options(rule_id)
            resolved[rule_id] = ResolvedRuleConfig(rule_id, rule_config.severity, options)
        return resolved

    def _default_options(self, rule_id: str) -> dict[str, Any]:
        meta = self.registry.get(rule_id)
        return meta.default_options if meta is not None else {}

    # -- public queries ----------------------------------------------------

    def resolve_for_file(self, path: str | PurePath) -> dict[str, ResolvedRuleConfig]:
        """Return the configured rules for *path* (unconfigured rules are absent)."""
        key = _posix(path)
        cached = self._cache.get(key)
        if cached is None:
            cached = self._compute(key)
            self._cache[key] = cached
        return cached

    def severity(self, rule_id: str, path: str | PurePath) -> Severity:
        configured = self.resolve_for_file(path).get(rule_id)
        if configured is not None:
            return configured.severity
        meta = self.registry.get(rule_id)
        return meta.severity if meta is not None else UNKNOWN_RULE_SEVERITY

    def is_enabled(self, rule_id: str, path: str | PurePath) -> bool:
        return self.severity(rule_id, path) is not Severity.OFF

    def options(self, rule_id: str, path: str | PurePath) -> dict[str, Any]:
        configured = self.resolve_for_file(path).get(rule_id)
        if configured is not None:
            return dict(configured.options)
        return self._default_options(rule_id)

    def clear_cache(self) -> None:
        self._cache.clear()
        self._checked_options.clear()

    def cache_stats(self) -> dict[str, Any]:
        return {"size": len(self._cache), "files": sorted(self._cache)}
