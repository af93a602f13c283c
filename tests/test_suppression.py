"""Tests for lintloom.engine.suppression: inline disable directives."""

from __future__ import annotations

from lintloom.engine.suppression import ALL_RULES, DirectiveKind, SuppressionTracker


def _tracker(*lines: str) -> SuppressionTracker:
    return SuppressionTracker.parse("CLAUDE.md", "\n".join(lines))


class TestParse:
    def test_no_directives(self) -> None:
        assert _tracker("# Title", "text").ranges == []

    def test_disable_file(self) -> None:
        tracker = _tracker("<!-- lintloom-disable-file size-error -->", "x")
        (directive,) = tracker.ranges
        assert directive.kind is DirectiveKind.FILE
        assert directive.rule_id == "size-error"
        assert directive.file_scope
        assert directive.comment_line == 1

    def test_disable_next_line(self) -> None:
        tracker = _tracker("a", "<!-- lintloom-disable-next-line r -->", "b")
        (directive,) = tracker.ranges
        assert (directive.start_line, directive.end_line) == (3, 3)

    def test_next_line_at_end_of_file_is_dropped(self) -> None:
        tracker = _tracker("a", "<!-- lintloom-disable-next-line r -->")
        assert tracker.ranges == []

    def test_disable_line_without_rule_targets_all(self) -> None:
        tracker = _tracker("text <!-- lintloom-disable-line -->")
        (directive,) = tracker.ranges
        assert directive.rule_id == ALL_RULES
        assert (directive.start_line, directive.end_line) == (1, 1)

    def test_range_includes_marker_lines(self) -> None:
        tracker = _tracker(
            "a",
            "<!-- lintloom-disable r -->",
            "b",
            "<!-- lintloom-enable r -->",
            "c",
        )
        (directive,) = tracker.ranges
        assert directive.kind is DirectiveKind.RANGE
        assert (directive.start_line, directive.end_line) == (2, 4)

    def test_unclosed_range_runs_to_end_of_file(self) -> None:
        tracker = _tracker("<!-- lintloom-disable r -->", "a", "b", "c")
        (directive,) = tracker.ranges
        assert (directive.start_line, directive.end_line) == (1, 4)

    def test_enable_without_disable_is_noop(self) -> None:
        assert _tracker("<!-- lintloom-enable r -->", "a").ranges == []

    def test_independent_open_ranges(self) -> None:
        tracker = _tracker(
            "<!-- lintloom-disable a -->",
            "<!-- lintloom-disable -->",
            "x",
            "<!-- lintloom-enable a -->",
            "y",
        )
        spans = {d.rule_id: (d.start_line, d.end_line) for d in tracker.ranges}
        assert spans == {"a": (1, 4), ALL_RULES: (2, 5)}

    def test_repeated_disable_restarts_range(self) -> None:
        tracker = _tracker(
            "<!-- lintloom-disable r -->",
            "x",
            "<!-- lintloom-disable r -->",
            "<!-- lintloom-enable r -->",
        )
        (directive,) = tracker.ranges
        assert directive.comment_line == 3
        assert (directive.start_line, directive.end_line) == (3, 4)

    def test_ranges_kept_in_closing_order(self) -> None:
        tracker = _tracker(
            "<!-- lintloom-disable r -->",
            "BAD <!-- lintloom-disable-line r -->",
            "<!-- lintloom-enable r -->",
        )
        assert [d.kind for d in tracker.ranges] == [DirectiveKind.LINE, DirectiveKind.RANGE]

    def test_unrelated_comments_ignored(self) -> None:
        assert _tracker("<!-- eslint-disable r -->", "<!-- note -->").ranges == []


class TestIsSuppressed:
    def test_next_line_only_covers_next_line(self) -> None:
        tracker = _tracker("<!-- lintloom-disable-next-line r -->", "BAD", "BAD")
        assert tracker.is_suppressed("r", 2)
        assert not tracker.is_suppressed("r", 3)

    def test_rule_id_must_match(self) -> None:
        tracker = _tracker("<!-- lintloom-disable-line r -->")
        assert not tracker.is_suppressed("other", 1)
        assert tracker.unused_directives() == tracker.ranges

    def test_all_matches_any_rule(self) -> None:
        tracker = _tracker("<!-- lintloom-disable -->", "x")
        assert tracker.is_suppressed("anything", 2)

    def test_file_scope_matches_lineless_issues(self) -> None:
        tracker = _tracker("<!-- lintloom-disable-file r -->")
        assert tracker.is_suppressed("r", None)
        assert tracker.is_suppressed("r", 500)

    def test_ranged_directive_ignores_lineless_issues(self) -> None:
        tracker = _tracker("<!-- lintloom-disable r -->", "x")
        assert not tracker.is_suppressed("r", None)

    def test_used_flag(self) -> None:
        tracker = _tracker(
            "<!-- lintloom-disable-line r -->",
            "<!-- lintloom-disable-line r -->",
        )
        tracker.is_suppressed("r", 1)
        unused = tracker.unused_directives()
        assert [d.comment_line for d in unused] == [2]

    def test_overlap_marks_directive_that_closed_first(self) -> None:
        tracker = _tracker(
            "<!-- lintloom-disable r -->",
            "BAD <!-- lintloom-disable-line r -->",
            "<!-- lintloom-enable r -->",
        )
        assert tracker.is_suppressed("r", 2)
        unused = tracker.unused_directives()
        assert [(d.kind, d.comment_line) for d in unused] == [(DirectiveKind.RANGE, 1)]
