"""Uniform representation of validation and engine outcomes."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .paths import AttributePath


class Severity(enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class SourceLocation:
    filename: str
    line: int = 0
    column: int = 0

    def render(self) -> str:
        return f"{self.filename}#{self.line},{self.column}"


@dataclass(frozen=True)
class Diagnostic:
    """One outcome line.

    Matcher diagnostics carry ``target`` and ``path``; engine diagnostics
    usually carry ``summary`` and ``location`` instead.
    """

    severity: Severity
    detail: str
    summary: str = ""
    path: Optional[AttributePath] = None
    target: Optional[str] = None
    location: Optional[SourceLocation] = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def from_engine(self) -> bool:
        return self.path is None and self.target is None

    def address(self) -> str:
        """Render ``target`` and ``path`` as a single dotted address."""

        rendered_path = self.path.render() if self.path is not None else ""
        if not self.target:
            return rendered_path
        if not rendered_path:
            return self.target
        if rendered_path.startswith("["):
            return f"{self.target}{rendered_path}"
        return f"{self.target}.{rendered_path}"


class Diagnostics(List[Diagnostic]):
    """Ordered diagnostic collection."""

    def __init__(self, items: Iterable[Diagnostic] = ()) -> None:
        super().__init__(items)

    def has_errors(self) -> bool:
        return any(item.is_error for item in self)

    def errors(self) -> "Diagnostics":
        return Diagnostics(item for item in self if item.severity is Severity.ERROR)

    def warnings(self) -> "Diagnostics":
        return Diagnostics(item for item in self if item.severity is Severity.WARNING)


def info(detail: str, *, path: Optional[AttributePath] = None, target: Optional[str] = None) -> Diagnostic:
    return Diagnostic(Severity.INFO, detail, path=path, target=target)


def warning(
    detail: str,
    *,
    summary: str = "",
    path: Optional[AttributePath] = None,
    target: Optional[str] = None,
    location: Optional[SourceLocation] = None,
) -> Diagnostic:
    return Diagnostic(Severity.WARNING, detail, summary=summary, path=path, target=target, location=location)


def error(
    detail: str,
    *,
    summary: str = "",
    path: Optional[AttributePath] = None,
    target: Optional[str] = None,
    location: Optional[SourceLocation] = None,
) -> Diagnostic:
    return Diagnostic(Severity.ERROR, detail, summary=summary, path=path, target=target, location=location)


__all__ = [
    "Severity",
    "SourceLocation",
    "Diagnostic",
    "Diagnostics",
    "info",
    "warning",
    "error",
]
