"""Collector for non-fatal problems raised by engine components."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

DiagnosticSeverity = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class Diagnostic:
    """A message from a component (resolver, cache, ...) rather than a rule."""

    message: str
    source: str
    severity: DiagnosticSeverity
    code: str | None = None
    context: dict[str, Any] = field(default_factory=dict, compare=False)


class DiagnosticCollector:
    """Accumulates diagnostics for one validation run.

    Identical diagnostics (same source, severity, code and message) are kept once.
    """

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        if diagnostic in self._items:
            return
        log = logger.warning if diagnostic.severity != "info" else logger.debug
        log("[%s] %s", diagnostic.source, diagnostic.message)
        self._items.append(diagnostic)

    def info(self, message: str, source: str, code: str | None = None, **context: Any) -> None:
        self.add(Diagnostic(message, source, "info", code, context))

    def warn(self, message: str, source: str, code: str | None = None, **context: Any) -> None:
        self.add(Diagnostic(message, source, "warning", code, context))

    def error(self, message: str, source: str, code: str | None = None, **context: Any) -> None:
        self.add(Diagnostic(message, source, "error", code, context))

    def get_all(self) -> list[Diagnostic]:
        return list(self._items)

    def get_warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity == "warning"]

    def get_errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity == "error"]

    def has_warnings(self) -> bool:
        return any(d.severity == "warning" for d in self._items)

    def has_errors(self) -> bool:
        return any(d.severity == "error" for d in self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
