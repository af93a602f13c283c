"""Plain-text and JSON renderings of validation results."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lintloom.engine.issues import Finding, ValidationResult


def _location(finding: Finding) -> str:
    if finding.file is None:
        return "(config)"
    if finding.line is None:
        return finding.file
    return f"{finding.file}:{finding.line}"


def format_text(results: dict[str, ValidationResult]) -> str:
    """Format results as human-readable text.

    Example output::

        claude-md
          ✗ CLAUDE.md:1  File exceeds 40KB limit (41234 bytes)  [size-error]
          ! CLAUDE.md:12  Import inside code block: docs/a.md  [claude-md-import-in-code-block]

        1 error, 1 warning in 1 file
    """
    lines: list[str] = []
    errors = warnings = 0
    files: set[str] = set()

    for name, result in results.items():
        files.update(result.validated_files)
        findings: list[tuple[str, Finding]] = [("✗", e) for e in result.errors]
        findings.extend(("!", w) for w in result.warnings)
        errors += len(result.errors)
        warnings += len(result.warnings)
        if not findings:
            continue

        lines.append(name)
        for marker, finding in findings:
            suffix = f"  [{finding.rule_id}]" if finding.rule_id else ""
            lines.append(f"  {marker} {_location(finding)}  {finding.message}{suffix}")
            if finding.fix:
                lines.append(f"      fix: {finding.fix}")
        lines.append("")

    deprecated = {u.rule_id: u for r in results.values() for u in r.deprecated_rules_used}
    for usage in deprecated.values():
        hint = f" (use {', '.join(usage.replaced_by)})" if usage.replaced_by else ""
        lines.append(f"Deprecated rule '{usage.rule_id}' is enabled: {usage.reason}{hint}")
    if deprecated:
        lines.append("")

    if errors or warnings:
        lines.append(
            f"{errors} error{'s' if errors != 1 else ''}, "
            f"{warnings} warning{'s' if warnings != 1 else ''} "
            f"in {len(files)} file{'s' if len(files) != 1 else ''}"
        )
    else:
        lines.append(f"✓ No problems found ({len(files)} files checked)")
    return "\n".join(lines)


def format_json(results: dict[str, ValidationResult]) -> str:
    """Format results as JSON with one object per validator and a summary."""
    output: dict[str, object] = {
        "validators": {name: result.to_dict() for name, result in results.items()},
        "summary": {
            "valid": all(r.valid for r in results.values()),
            "errors": sum(len(r.errors) for r in results.values()),
            "warnings": sum(len(r.warnings) for r in results.values()),
        },
    }
    return json.dumps(output, indent=2)
