"""Validators: pick the files of one kind, run its rule category, cache the result."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from lintloom.config.resolver import ConfigResolver, glob_match
from lintloom.engine.diagnostics import DiagnosticCollector
from lintloom.engine.issues import ValidationIssue, ValidationResult
from lintloom.engine.runner import RuleRunner
from lintloom.rules.catalog import RuleCategory

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from lintloom.cache import ValidationCache
    from lintloom.config.loader import LintConfig
    from lintloom.rules.catalog import RuleRegistry

logger = logging.getLogger(__name__)

# Directories never descended into while collecting files.
SKIP_DIRS = frozenset({".git", "node_modules", ".venv", "__pycache__", ".lintloom-cache"})


@dataclass(frozen=True)
class ValidatorSpec:
    """A named file family: the category its rules live under and how to find it."""

    name: str
    category: RuleCategory
    patterns: tuple[str, ...]
    parse_json: bool = False

    def matches(self, path: str) -> bool:
        return any(glob_match(path, pattern) for pattern in self.patterns)


VALIDATORS: tuple[ValidatorSpec, ...] = (
    ValidatorSpec("claude-md", RuleCategory.CLAUDE_MD, ("**/CLAUDE.md", "**/.claude/rules/*.md")),
    ValidatorSpec("skills", RuleCategory.SKILLS, ("**/skills/*/SKILL.md",)),
    ValidatorSpec("agents", RuleCategory.AGENTS, ("**/agents/*.md",)),
    ValidatorSpec("mcp", RuleCategory.MCP, ("**/.mcp.json",), parse_json=True),
    ValidatorSpec(
        "settings",
        RuleCategory.SETTINGS,
        ("**/.claude/settings.json", "**/.claude/settings.local.json"),
        parse_json=True,
    ),
)


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def collect_files(paths: Iterable[str | Path], *, root: Path | None = None) -> list[str]:
    """Expand files and directories into a sorted list of paths relative to *root*."""
    base = root if root is not None else Path.cwd()
    found: set[str] = set()
    for entry in paths:
        path = Path(entry)
        if path.is_file():
            found.add(_display_path(path, base))
            continue
        if not path.is_dir():
            logger.debug("Skipping missing path %s", path)
            continue
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
            for filename in filenames:
                found.add(_display_path(Path(dirpath) / filename, base))
    return sorted(found)


def select_files(
    spec: ValidatorSpec, files: Iterable[str], ignore_patterns: Sequence[str] = ()
) -> list[str]:
    """Files matching *spec* that no ignore pattern excludes."""
    return [
        f
        for f in files
        if spec.matches(f) and not any(glob_match(f, pattern) for pattern in ignore_patterns)
    ]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class FileValidator:
    """Validates every file of one family against its rule category."""

    def __init__(
        self,
        spec: ValidatorSpec,
        files: Sequence[str],
        *,
        registry: RuleRegistry,
        config: LintConfig | None = None,
        cache: ValidationCache | None = None,
    ) -> None:
        self.spec = spec
        self.files = list(files)
        self.registry = registry
        self.config = config
        self.cache = cache

    async def _read(self, path: str) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")

    async def validate(self) -> ValidationResult:
        """Return the cached result when still fresh, otherwise run the rules.

        Raises
        ------
        RuleExecutionError
            When a rule crashes on one of the files.
        """
        if self.cache is not None:
            cached = await asyncio.to_thread(self.cache.get, self.spec.name, self.config)
            # A cached run that saw a different file set says nothing about this one.
            if cached is not None and set(cached.validated_files) == set(self.files):
                return cached

        diagnostics = DiagnosticCollector()
        resolver = ConfigResolver(self.config, self.registry, diagnostics)
        runner = RuleRunner(
            self.registry,
            resolver,
            diagnostics=diagnostics,
            report_unused_directives=(
                self.config.report_unused_disable_directives if self.config is not None else True
            ),
        )

        for path in self.files:
            try:
                content = await self._read(path)
            except (OSError, UnicodeDecodeError) as exc:
                runner.add_issue(
                    ValidationIssue(
                        message=f"Cannot read file: {exc}", file=path, default_severity="error"
                    )
                )
                continue

            if self.spec.parse_json:
                try:
                    json.loads(content)
                except json.JSONDecodeError as exc:
                    runner.add_issue(
                        ValidationIssue(
                            message=f"Invalid JSON: {exc.msg}",
                            file=path,
                            line=exc.lineno,
                            default_severity="error",
                        )
                    )
                    continue

            logger.debug("Running %s rules on %s", self.spec.category.value, path)
            await runner.run_category(self.spec.category, path, content)

        result = runner.result()
        result.validated_files = list(self.files)
        if self.cache is not None:
            await asyncio.to_thread(self.cache.set, self.spec.name, result, self.config)
        return result


async def validate_all(
    files: Sequence[str],
    *,
    registry: RuleRegistry,
    config: LintConfig | None = None,
    cache: ValidationCache | None = None,
    validators: Sequence[ValidatorSpec] = VALIDATORS,
) -> dict[str, ValidationResult]:
    """Run one task per validator concurrently and collect their results by name."""
    ignore = config.ignore_patterns if config is not None else ()
    tasks = [
        FileValidator(
            spec,
            select_files(spec, files, ignore),
            registry=registry,
            config=config,
            cache=cache,
        ).validate()
        for spec in validators
    ]
    results = await asyncio.gather(*tasks)
    return {spec.name: result for spec, result in zip(validators, results)}


def merge_results(results: dict[str, ValidationResult]) -> ValidationResult:
    merged = ValidationResult()
    for result in results.values():
        merged.extend(result)
    return merged
