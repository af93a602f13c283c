"""Inline suppression directives.

Directives are HTML comments, one per line::

    <!-- lintloom-disable-file [rule-id] -->
    <!-- lintloom-disable-next-line [rule-id] -->
    <!-- lintloom-disable-line [rule-id] -->
    <!-- lintloom-disable [rule-id] -->
    ...
    <!-- lintloom-enable [rule-id] -->

Without a rule id a directive applies to every rule.  A ``disable`` that is
never closed by a matching ``enable`` runs to the end of the file.

Ranges are kept in the order they close: line directives where they appear,
``disable`` blocks at their ``enable`` (or at the end of the file).  When
several directives cover one issue, the first in that order is marked used.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

ALL_RULES = "all"

_DIRECTIVE_RE = re.compile(
    r"<!--\s*lintloom-(disable-file|disable-next-line|disable-line|disable|enable)"
    r"(?:\s+([a-z0-9][a-z0-9-]*))?\s*-->"
)


class DirectiveKind(str, Enum):
    FILE = "disable-file"
    NEXT_LINE = "disable-next-line"
    LINE = "disable-line"
    RANGE = "disable"


@dataclass
class DisabledRuleRange:
    """One parsed directive.

    ``start_line``/``end_line`` are both None for a file-wide directive.
    ``used`` flips to True the first time the directive suppresses an issue.
    """

    rule_id: str
    kind: DirectiveKind
    comment_line: int
    start_line: int | None = None
    end_line: int | None = None
    used: bool = False

    @property
    def file_scope(self) -> bool:
        return self.start_line is None and self.end_line is None

    def covers(self, rule_id: str, line: int | None) -> bool:
        if self.rule_id not in (rule_id, ALL_RULES):
            return False
        if self.file_scope:
            return True
        if line is None or self.start_line is None or self.end_line is None:
            return False
        return self.start_line <= line <= self.end_line


class SuppressionTracker:
    """Directives for a single file and their usage state."""

    def __init__(self, file_path: str, ranges: list[DisabledRuleRange]) -> None:
        self.file_path = file_path
        self.ranges = ranges

    @classmethod
    def parse(cls, file_path: str, content: str) -> SuppressionTracker:
        """Scan *content* once, top to bottom, and record every directive."""
        lines = content.split("\n")
        ranges: list[DisabledRuleRange] = []
        open_ranges: dict[str, int] = {}

        for index, text in enumerate(lines):
            line_no = index + 1
            match = _DIRECTIVE_RE.search(text)
            if match is None:
                continue
            directive, rule_id = match.group(1), match.group(2) or ALL_RULES

            if directive == "disable-file":
                ranges.append(DisabledRuleRange(rule_id, DirectiveKind.FILE, line_no))
            elif directive == "disable-next-line":
                if index + 1 < len(lines):
                    ranges.append(
                        DisabledRuleRange(
                            rule_id,
                            DirectiveKind.NEXT_LINE,
                            line_no,
                            start_line=line_no + 1,
                            end_line=line_no + 1,
                        )
                    )
            elif directive == "disable-line":
                ranges.append(
                    DisabledRuleRange(
                        rule_id, DirectiveKind.LINE, line_no, start_line=line_no, end_line=line_no
                    )
                )
            elif directive == "disable":
                # A second disable for the same id restarts the open range.
                open_ranges[rule_id] = line_no
            else:
                start = open_ranges.pop(rule_id, None)
                if start is not None:
                    ranges.append(
                        DisabledRuleRange(
                            rule_id, DirectiveKind.RANGE, start, start_line=start, end_line=line_no
                        )
                    )

        for rule_id, start in open_ranges.items():
            ranges.append(
                DisabledRuleRange(
                    rule_id, DirectiveKind.RANGE, start, start_line=start, end_line=len(lines)
                )
            )

        return cls(file_path, ranges)

    def is_suppressed(self, rule_id: str, line: int | None) -> bool:
        """Return True if a directive covers *rule_id* at *line*, marking it used."""
        for directive in self.ranges:
            if directive.covers(rule_id, line):
                directive.used = True
                return True
        return False

    def unused_directives(self) -> list[DisabledRuleRange]:
        return [d for d in self.ranges if not d.used]
