"""Rule execution: run a category's rules over a file and classify what they report."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING

from lintloom.engine.context import FileViews, RuleContext, RuleIssue
from lintloom.engine.issues import (
    DeprecatedRuleUsage,
    ValidationError,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)
from lintloom.engine.suppression import ALL_RULES, DirectiveKind, SuppressionTracker
from lintloom.rules.catalog import Severity

if TYPE_CHECKING:
    from lintloom.config.resolver import ConfigResolver
    from lintloom.engine.diagnostics import DiagnosticCollector
    from lintloom.rules.catalog import Rule, RuleCategory, RuleRegistry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RuleExecutionError(RuntimeError):
    """A rule raised while validating a file.

    This is an operational fault, never a reported issue; the original
    exception is chained as ``__cause__``.
    """

    def __init__(self, rule_id: str, file_path: str, cause: BaseException) -> None:
        super().__init__(f"Rule '{rule_id}' failed on {file_path}: {cause}")
        self.rule_id = rule_id
        self.file_path = file_path


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

_DIRECTIVE_LABELS: dict[DirectiveKind, str] = {
    DirectiveKind.FILE: "lintloom-disable-file",
    DirectiveKind.NEXT_LINE: "lintloom-disable-next-line",
    DirectiveKind.LINE: "lintloom-disable-line",
    DirectiveKind.RANGE: "lintloom-disable",
}


class RuleRunner:
    """Runs rules for one validator and accumulates their issues.

    Rules for a file run one after another in registration order; each is
    awaited before the next starts.  Issues are staged without severity and
    classified by :meth:`result`.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        resolver: ConfigResolver,
        *,
        diagnostics: DiagnosticCollector | None = None,
        report_unused_directives: bool = True,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.diagnostics = diagnostics if diagnostics is not None else resolver.diagnostics
        self.report_unused_directives = report_unused_directives
        self._drafts: list[ValidationIssue] = []
        self._trackers: dict[str, SuppressionTracker] = {}
        self._deprecated: dict[str, DeprecatedRuleUsage] = {}
        self._files: list[str] = []

    # -- staging -----------------------------------------------------------

    def _tracker_for(self, file_path: str, content: str) -> SuppressionTracker:
        tracker = self._trackers.get(file_path)
        if tracker is None:
            tracker = SuppressionTracker.parse(file_path, content)
            self._trackers[file_path] = tracker
            self._files.append(file_path)
        return tracker

    def add_issue(self, issue: ValidationIssue) -> None:
        """Stage an issue produced outside a rule (parse failures and the like)."""
        if issue.rule_id is not None and issue.file is not None:
            tracker = self._trackers.get(issue.file)
            if tracker is not None and tracker.is_suppressed(issue.rule_id, issue.line):
                return
        self._drafts.append(issue)

    def _record_deprecation(self, rule: Rule) -> None:
        info = rule.meta.deprecation
        if info is None or rule.meta.id in self._deprecated:
            return
        self._deprecated[rule.meta.id] = DeprecatedRuleUsage(
            rule_id=rule.meta.id,
            reason=info.reason,
            replaced_by=info.replaced_by,
            deprecated_since=info.deprecated_since,
            remove_in_version=info.remove_in_version,
            url=info.url,
        )

    # -- execution ---------------------------------------------------------

    async def run_rule(
        self,
        rule: Rule,
        file_path: str,
        content: str,
        *,
        views: FileViews | None = None,
    ) -> None:
        """Run a single rule against a file.

        Raises
        ------
        RuleExecutionError
            If the rule's ``validate`` raises.
        """
        rule_id = rule.meta.id
        tracker = self._tracker_for(file_path, content)

        if not self.resolver.is_enabled(rule_id, file_path):
            logger.debug("Skipping disabled rule %s for %s", rule_id, file_path)
            return

        self._record_deprecation(rule)

        def report(issue: RuleIssue) -> None:
            if tracker.is_suppressed(rule_id, issue.line):
                return
            self._drafts.append(
                ValidationIssue(
                    message=issue.message,
                    file=file_path,
                    line=issue.line,
                    rule_id=rule_id,
                    fix=issue.fix,
                    explanation=issue.explanation,
                    how_to_fix=issue.how_to_fix,
                    auto_fix=issue.auto_fix,
                )
            )

        context = RuleContext(
            rule_id=rule_id,
            file_path=file_path,
            file_content=content,
            options=self.resolver.options(rule_id, file_path),
            _report=report,
            _views=views if views is not None else FileViews(content),
        )

        try:
            outcome = rule.validate(context)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            raise RuleExecutionError(rule_id, file_path, exc) from exc

    async def run_category(
        self, category: RuleCategory | str, file_path: str, content: str
    ) -> None:
        """Run every registered rule of *category* against one file, in order."""
        views = FileViews(content)
        self._tracker_for(file_path, content)
        for rule in self.registry.get_by_category(category):
            await self.run_rule(rule, file_path, content, views=views)

    def run_category_sync(
        self, category: RuleCategory | str, file_path: str, content: str
    ) -> None:
        asyncio.run(self.run_category(category, file_path, content))

    # -- result ------------------------------------------------------------

    def _severity_of(self, issue: ValidationIssue) -> Severity:
        if issue.rule_id is None:
            return Severity.WARN if issue.default_severity == "warning" else Severity.ERROR
        if issue.file is None:
            meta = self.registry.get(issue.rule_id)
            return meta.severity if meta is not None else Severity.ERROR
        return self.resolver.severity(issue.rule_id, issue.file)

    def _unused_directive_warnings(self) -> list[ValidationWarning]:
        warnings: list[ValidationWarning] = []
        for file_path in self._files:
            for directive in self._trackers[file_path].unused_directives():
                target = (
                    "(all rules)" if directive.rule_id == ALL_RULES else f"'{directive.rule_id}'"
                )
                warnings.append(
                    ValidationWarning(
                        message=f"Unused disable directive for {target}",
                        file=file_path,
                        line=directive.comment_line,
                        explanation=(
                            f"This {_DIRECTIVE_LABELS[directive.kind]} comment "
                            "doesn't suppress any violations"
                        ),
                        how_to_fix="Remove the unused disable comment",
                    )
                )
        return warnings

    def result(self) -> ValidationResult:
        """Classify every staged issue and build the final result."""
        result = ValidationResult(validated_files=list(self._files))

        for issue in self._drafts:
            severity = self._severity_of(issue)
            if severity is Severity.OFF:
                continue
            if severity is Severity.ERROR:
                result.errors.append(ValidationError.from_issue(issue))
            else:
                result.warnings.append(ValidationWarning.from_issue(issue))

        if self.report_unused_directives:
            result.warnings.extend(self._unused_directive_warnings())

        if self.diagnostics is not None:
            for diag in self.diagnostics.get_warnings():
                result.warnings.append(
                    ValidationWarning(message=f"[{diag.source}] {diag.message}", rule_id=diag.code)
                )
            for diag in self.diagnostics.get_errors():
                result.errors.append(
                    ValidationError(message=f"[{diag.source}] {diag.message}", rule_id=diag.code)
                )

        result.deprecated_rules_used = list(self._deprecated.values())
        return result
