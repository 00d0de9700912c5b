"""Console rendering of test reports."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from .constants import (
    ANSI_BOLD,
    ANSI_GREEN,
    ANSI_RED,
    ANSI_RESET,
    ANSI_YELLOW,
    MARKER_CASE,
    MARKER_ERROR,
    MARKER_INFO,
    MARKER_WARNING,
)
from .diagnostics import Diagnostic, Severity

if TYPE_CHECKING:
    from .orchestrator import TestReport

_MARKERS = {
    Severity.INFO: MARKER_INFO,
    Severity.WARNING: MARKER_WARNING,
    Severity.ERROR: MARKER_ERROR,
}

_COLORS = {
    Severity.INFO: ANSI_GREEN,
    Severity.WARNING: ANSI_YELLOW,
    Severity.ERROR: ANSI_RED,
}


def _colorize(text: str, code: str, use_color: bool) -> str:
    if not use_color:
        return text
    return f"{code}{text}{ANSI_RESET}"


def render_diagnostic(diagnostic: Diagnostic, use_color: bool = False) -> str:
    """Return one report line for ``diagnostic``."""

    color = _COLORS[diagnostic.severity]
    parts = [_MARKERS[diagnostic.severity]]

    if diagnostic.from_engine:
        if diagnostic.location is not None:
            parts.append(_colorize(f"{diagnostic.location.render()} : ", ANSI_BOLD, use_color))
        if diagnostic.summary:
            parts.append(_colorize(f"{diagnostic.summary} : ", color, use_color))
        parts.append(_colorize(diagnostic.detail, color, use_color))
        return "".join(parts)

    address = diagnostic.address()
    if diagnostic.location is not None and not address:
        address = diagnostic.location.render()
    if address:
        parts.append(_colorize(address, ANSI_BOLD, use_color))
    separator = " = " if diagnostic.severity is Severity.INFO else " : "
    if not address:
        separator = separator.lstrip()
    parts.append(_colorize(f"{separator}{diagnostic.detail}", color, use_color))
    return "".join(parts)


def render_report(report: "TestReport", *, display_plan: bool = False, use_color: bool = False) -> str:
    """Return the text block printed for one test case."""

    lines: List[str] = [f"{MARKER_CASE} {_colorize(report.name, ANSI_BOLD, use_color)}"]
    if display_plan and report.plan:
        lines.append(report.plan.rstrip("\n"))
    lines.extend(render_diagnostic(diagnostic, use_color) for diagnostic in report.diagnostics)
    return "\n".join(lines)


__all__ = ["render_report", "render_diagnostic"]
