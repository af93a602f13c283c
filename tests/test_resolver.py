"""Tests for lintloom.config.resolver: layered severity and options per path."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import BaseModel, ConfigDict, Field

from lintloom.config.loader import parse_config
from lintloom.config.resolver import ConfigResolver, glob_match
from lintloom.engine.diagnostics import DiagnosticCollector
from lintloom.rules.catalog import Severity

if TYPE_CHECKING:
    from collections.abc import Callable

    from lintloom.rules.catalog import Rule, RuleRegistry


class LimitOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    limit: int = Field(default=10, gt=0)
    mode: str = "strict"


@pytest.fixture()
def populated(registry: RuleRegistry, rule_factory: Callable[..., Rule]) -> RuleRegistry:
    registry.register(rule_factory("r", severity=Severity.WARN, options_model=LimitOptions))
    registry.register(rule_factory("quiet", severity=Severity.OFF))
    return registry


class TestGlobMatch:
    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            ("docs/a.md", "docs/*.md", True),
            ("docs/deep/a.md", "docs/**/*.md", True),
            ("CLAUDE.md", "**/CLAUDE.md", True),
            ("pkg/CLAUDE.md", "**/CLAUDE.md", True),
            ("./docs/a.md", "docs/*.md", True),
            ("src/a.md", "docs/*.md", False),
            ("claude.md", "CLAUDE.md", False),
            ("docs/deep/CLAUDE.md", "*.md", False),
            (".claude/agents/archive/old/x.md", "**/agents/*.md", False),
            (".claude/agents/x.md", "**/agents/*.md", True),
            ("docs/a.md", "docs/**", True),
            ("docs/deep/a.md", "docs/**", True),
            ("docs/a/b.md", "docs/?/b.md", True),
            ("docs/ab/b.md", "docs/?/b.md", False),
            ("a.json", "[!.]*.json", True),
            ("a.md", "*.md", True),
        ],
    )
    def test_patterns(self, path: str, pattern: str, expected: bool) -> None:
        assert glob_match(path, pattern) is expected


class TestSeverity:
    def test_registered_default(self, populated: RuleRegistry) -> None:
        resolver = ConfigResolver(None, populated)
        assert resolver.severity("r", "a.md") is Severity.WARN
        assert resolver.is_enabled("r", "a.md")
        assert not resolver.is_enabled("quiet", "a.md")

    def test_unknown_rule_is_enabled(self, populated: RuleRegistry) -> None:
        resolver = ConfigResolver(None, populated)
        assert resolver.is_enabled("made-up", "a.md")

    def test_base_config(self, populated: RuleRegistry) -> None:
        config = parse_config({"rules": {"r": "error", "quiet": "warn"}})
        resolver = ConfigResolver(config, populated)
        assert resolver.severity("r", "a.md") is Severity.ERROR
        assert resolver.is_enabled("quiet", "a.md")

    def test_override_precedence(self, populated: RuleRegistry) -> None:
        config = parse_config(
            {
                "rules": {"r": "warn"},
                "overrides": [{"files": ["docs/**"], "rules": {"r": "error"}}],
            }
        )
        resolver = ConfigResolver(config, populated)
        assert resolver.severity("r", "docs/guide.md") is Severity.ERROR
        assert resolver.severity("r", "other.md") is Severity.WARN

    def test_last_matching_override_wins(self, populated: RuleRegistry) -> None:
        config = parse_config(
            {
                "overrides": [
                    {"files": ["*.md"], "rules": {"r": "error"}},
                    {"files": ["*.md"], "rules": {"r": "off"}},
                    {"files": ["*.json"], "rules": {"r": "warn"}},
                ]
            }
        )
        resolver = ConfigResolver(config, populated)
        assert resolver.severity("r", "a.md") is Severity.OFF
        assert not resolver.is_enabled("r", "a.md")

    def test_override_not_mentioning_rule_keeps_previous(self, populated: RuleRegistry) -> None:
        config = parse_config(
            {
                "rules": {"r": "error"},
                "overrides": [{"files": ["*.md"], "rules": {"quiet": "warn"}}],
            }
        )
        resolver = ConfigResolver(config, populated)
        assert resolver.severity("r", "a.md") is Severity.ERROR


class TestOptions:
    def test_defaults(self, populated: RuleRegistry) -> None:
        resolver = ConfigResolver(None, populated)
        assert resolver.options("r", "a.md") == {"limit": 10, "mode": "strict"}

    def test_configured_options_are_filled_with_defaults(self, populated: RuleRegistry) -> None:
        config = parse_config({"rules": {"r": {"severity": "warn", "options": {"limit": 3}}}})
        resolver = ConfigResolver(config, populated)
        assert resolver.options("r", "a.md") == {"limit": 3, "mode": "strict"}

    def test_later_layer_replaces_wholesale(self, populated: RuleRegistry) -> None:
        config = parse_config(
            {
                "rules": {"r": {"severity": "warn", "options": {"limit": 3, "mode": "lax"}}},
                "overrides": [
                    {
                        "files": ["*.md"],
                        "rules": {"r": {"severity": "warn", "options": {"limit": 7}}},
                    }
                ],
            }
        )
        resolver = ConfigResolver(config, populated)
        assert resolver.options("r", "a.md") == {"limit": 7, "mode": "strict"}
        assert resolver.options("r", "a.json") == {"limit": 3, "mode": "lax"}

    def test_bare_severity_layer_resets_options(self, populated: RuleRegistry) -> None:
        config = parse_config(
            {
                "rules": {"r": {"severity": "warn", "options": {"limit": 3}}},
                "overrides": [{"files": ["*.md"], "rules": {"r": "error"}}],
            }
        )
        resolver = ConfigResolver(config, populated)
        assert resolver.options("r", "a.md") == {"limit": 10, "mode": "strict"}

    def test_invalid_options_fall_back_with_one_diagnostic(
        self, populated: RuleRegistry
    ) -> None:
        config = parse_config({"rules": {"r": {"severity": "error", "options": {"limit": 0}}}})
        diagnostics = DiagnosticCollector()
        resolver = ConfigResolver(config, populated, diagnostics)

        assert resolver.options("r", "a.md") == {"limit": 10, "mode": "strict"}
        assert resolver.options("r", "b.md") == {"limit": 10, "mode": "strict"}
        assert resolver.severity("r", "a.md") is Severity.ERROR

        warnings = diagnostics.get_warnings()
        assert len(warnings) == 1
        assert warnings[0].code == "CONFIG_INVALID_OPTIONS"
        assert "Invalid options for rule 'r'" in warnings[0].message

    def test_unknown_option_key_is_invalid(self, populated: RuleRegistry) -> None:
        config = parse_config({"rules": {"r": {"severity": "warn", "options": {"nope": 1}}}})
        diagnostics = DiagnosticCollector()
        resolver = ConfigResolver(config, populated, diagnostics)
        assert resolver.options("r", "a.md") == {"limit": 10, "mode": "strict"}
        assert diagnostics.has_warnings()

    def test_options_returns_copy(self, populated: RuleRegistry) -> None:
        resolver = ConfigResolver(None, populated)
        resolver.options("r", "a.md")["limit"] = 99
        assert resolver.options("r", "a.md")["limit"] == 10


class TestMemoisation:
    def test_cache_stats_and_clear(self, populated: RuleRegistry) -> None:
        resolver = ConfigResolver(parse_config({"rules": {"r": "error"}}), populated)
        resolver.severity("r", "a.md")
        resolver.severity("r", "./a.md")
        resolver.severity("r", "b.md")
        assert resolver.cache_stats() == {"size": 2, "files": ["a.md", "b.md"]}
        resolver.clear_cache()
        assert resolver.cache_stats()["size"] == 0
