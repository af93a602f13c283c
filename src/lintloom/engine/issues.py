"""Issue and result types produced by a validation run."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, TypeVar

DefaultSeverity = Literal["error", "warning"]
_F = TypeVar("_F", bound="Finding")


@dataclass
class AutoFix:
    """A fix that rewrites file content.  Never persisted."""

    rule_id: str
    description: str
    file_path: str
    apply: Callable[[str], str]


@dataclass
class ValidationIssue:
    """A reported problem that has no severity yet.

    ``default_severity`` is only consulted when ``rule_id`` is None (e.g. a
    JSON parse failure); rule issues get their severity from configuration.
    """

    message: str
    file: str | None = None
    line: int | None = None
    rule_id: str | None = None
    default_severity: DefaultSeverity | None = None
    fix: str | None = None
    explanation: str | None = None
    how_to_fix: str | None = None
    auto_fix: AutoFix | None = field(default=None, compare=False)


@dataclass
class Finding:
    """Base for a classified issue."""

    severity: ClassVar[str]

    message: str
    file: str | None = None
    line: int | None = None
    rule_id: str | None = None
    fix: str | None = None
    explanation: str | None = None
    how_to_fix: str | None = None
    auto_fix: AutoFix | None = field(default=None, compare=False)

    @classmethod
    def from_issue(cls: type[_F], issue: ValidationIssue) -> _F:
        return cls(
            message=issue.message,
            file=issue.file,
            line=issue.line,
            rule_id=issue.rule_id,
            fix=issue.fix,
            explanation=issue.explanation,
            how_to_fix=issue.how_to_fix,
            auto_fix=issue.auto_fix,
        )

    @property
    def fixable(self) -> bool:
        return self.auto_fix is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialisable form; the autofix callback is dropped."""
        return {
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "severity": self.severity,
            "rule_id": self.rule_id,
            "fix": self.fix,
            "explanation": self.explanation,
            "how_to_fix": self.how_to_fix,
        }

    @classmethod
    def from_dict(cls: type[_F], data: dict[str, Any]) -> _F:
        return cls(
            message=str(data["message"]),
            file=data.get("file"),
            line=data.get("line"),
            rule_id=data.get("rule_id"),
            fix=data.get("fix"),
            explanation=data.get("explanation"),
            how_to_fix=data.get("how_to_fix"),
        )


@dataclass
class ValidationError(Finding):
    severity: ClassVar[str] = "error"


@dataclass
class ValidationWarning(Finding):
    severity: ClassVar[str] = "warning"


@dataclass(frozen=True)
class DeprecatedRuleUsage:
    """A deprecated rule that was enabled and invoked during a run."""

    rule_id: str
    reason: str
    replaced_by: tuple[str, ...] = ()
    deprecated_since: str | None = None
    remove_in_version: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "reason": self.reason,
            "replaced_by": list(self.replaced_by),
            "deprecated_since": self.deprecated_since,
            "remove_in_version": self.remove_in_version,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeprecatedRuleUsage:
        return cls(
            rule_id=str(data["rule_id"]),
            reason=str(data["reason"]),
            replaced_by=tuple(data.get("replaced_by") or ()),
            deprecated_since=data.get("deprecated_since"),
            remove_in_version=data.get("remove_in_version"),
            url=data.get("url"),
        )


@dataclass
class ValidationResult:
    """Outcome of validating one or more files.

    ``validated_files`` lists the files that were consulted; the cache uses it
    to build its fingerprint and does not persist it.
    """

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    deprecated_rules_used: list[DeprecatedRuleUsage] = field(default_factory=list)
    validated_files: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def extend(self, other: ValidationResult) -> None:
        """Fold *other* into this result, keeping deprecated usages unique."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        seen = {u.rule_id for u in self.deprecated_rules_used}
        for usage in other.deprecated_rules_used:
            if usage.rule_id not in seen:
                seen.add(usage.rule_id)
                self.deprecated_rules_used.append(usage)
        for path in other.validated_files:
            if path not in self.validated_files:
                self.validated_files.append(path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "deprecated_rules_used": [u.to_dict() for u in self.deprecated_rules_used],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationResult:
        return cls(
            errors=[ValidationError.from_dict(e) for e in data.get("errors", [])],
            warnings=[ValidationWarning.from_dict(w) for w in data.get("warnings", [])],
            deprecated_rules_used=[
                DeprecatedRuleUsage.from_dict(u) for u in data.get("deprecated_rules_used", [])
            ],
        )
