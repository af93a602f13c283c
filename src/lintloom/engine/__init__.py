"""Rule execution engine: context, suppression, issues and the runner."""

from lintloom.engine.context import FileViews, Memo, RuleContext, RuleIssue
from lintloom.engine.diagnostics import Diagnostic, DiagnosticCollector
from lintloom.engine.issues import (
    AutoFix,
    DeprecatedRuleUsage,
    ValidationError,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)
from lintloom.engine.runner import RuleExecutionError, RuleRunner
from lintloom.engine.suppression import (
    ALL_RULES,
    DirectiveKind,
    DisabledRuleRange,
    SuppressionTracker,
)

__all__ = [
    "ALL_RULES",
    "AutoFix",
    "DeprecatedRuleUsage",
    "Diagnostic",
    "DiagnosticCollector",
    "DirectiveKind",
    "DisabledRuleRange",
    "FileViews",
    "Memo",
    "RuleContext",
    "RuleExecutionError",
    "RuleIssue",
    "RuleRunner",
    "SuppressionTracker",
    "ValidationError",
    "ValidationIssue",
    "ValidationResult",
    "ValidationWarning",
]
