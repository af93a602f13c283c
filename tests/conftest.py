"""Shared test fixtures for Lintloom."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from lintloom.rules import create_registry
from lintloom.rules.catalog import Rule, RuleCategory, RuleMetadata, RuleRegistry, Severity

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from lintloom.engine.context import RuleContext


def make_rule(
    rule_id: str,
    validate: Callable[[RuleContext], object] | None = None,
    *,
    category: RuleCategory = RuleCategory.CLAUDE_MD,
    severity: Severity = Severity.ERROR,
    **meta: object,
) -> Rule:
    """Build a rule; without *validate* it reports once per ``BAD`` line."""

    def report_bad_lines(context: RuleContext) -> None:
        for number, line in enumerate(context.file_content.split("\n"), start=1):
            if "BAD" in line:
                context.report(f"bad line {number}", line=number)

    return Rule(
        RuleMetadata(
            id=rule_id,
            name=rule_id.replace("-", " ").title(),
            description=f"{rule_id} test rule",
            category=category,
            severity=severity,
            **meta,  # type: ignore[arg-type]
        ),
        validate or report_bad_lines,
    )


@pytest.fixture()
def registry() -> RuleRegistry:
    """An empty registry, isolated per test."""
    return RuleRegistry()


@pytest.fixture()
def builtin_registry() -> RuleRegistry:
    return create_registry()


@pytest.fixture()
def tmp_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory that is also the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def rule_factory() -> Callable[..., Rule]:
    return make_rule
