"""Rule execution context with lazily computed views of the file."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from lintloom.formats.markdown import FrontmatterResult, extract_frontmatter, strip_code_blocks

if TYPE_CHECKING:
    from lintloom.engine.issues import AutoFix

T = TypeVar("T")

_UNSET: Any = object()


class Memo(Generic[T]):
    """A value computed on the first ``get()`` and reused afterwards."""

    __slots__ = ("_compute", "_value")

    def __init__(self, compute: Callable[[], T]) -> None:
        self._compute = compute
        self._value: T = _UNSET

    def get(self) -> T:
        if self._value is _UNSET:
            self._value = self._compute()
        return self._value

    @property
    def computed(self) -> bool:
        return self._value is not _UNSET


class FileViews:
    """Derived views of one file's content, shared by every rule run on it."""

    def __init__(self, content: str) -> None:
        self.frontmatter: Memo[FrontmatterResult] = Memo(lambda: extract_frontmatter(content))
        self.body: Memo[str] = Memo(lambda: self.frontmatter.get().body)
        self.without_code_blocks: Memo[str] = Memo(lambda: strip_code_blocks(content))


@dataclass
class RuleIssue:
    """What a rule passes to ``context.report``."""

    message: str
    line: int | None = None
    fix: str | None = None
    explanation: str | None = None
    how_to_fix: str | None = None
    auto_fix: AutoFix | None = None


@dataclass
class RuleContext:
    """Everything a rule sees while validating one file.

    ``frontmatter``, ``body`` and ``without_code_blocks`` are memo cells:
    call ``.get()`` to compute (once) and read the view.
    """

    rule_id: str
    file_path: str
    file_content: str
    options: dict[str, Any]
    _report: Callable[[RuleIssue], None] = field(repr=False)
    _views: FileViews = field(repr=False)

    @property
    def frontmatter(self) -> Memo[FrontmatterResult]:
        return self._views.frontmatter

    @property
    def body(self) -> Memo[str]:
        return self._views.body

    @property
    def without_code_blocks(self) -> Memo[str]:
        return self._views.without_code_blocks

    def report(
        self,
        message: str | RuleIssue,
        *,
        line: int | None = None,
        fix: str | None = None,
        explanation: str | None = None,
        how_to_fix: str | None = None,
        auto_fix: AutoFix | None = None,
    ) -> None:
        """Report a problem found by the current rule."""
        if isinstance(message, RuleIssue):
            issue = message
        else:
            issue = RuleIssue(
                message=message,
                line=line,
                fix=fix,
                explanation=explanation,
                how_to_fix=how_to_fix,
                auto_fix=auto_fix,
            )
        self._report(issue)
