"""Exception types raised by terraspec.

Per-case failures never surface as exceptions; they travel as diagnostics
inside a test report. The classes below cover conditions that make a whole
run meaningless.
"""

from __future__ import annotations


class TerraspecError(RuntimeError):
    """Base class for process-level terraspec failures."""


class ConfigError(TerraspecError):
    """Raised when a run setting cannot be resolved."""


class CaseDiscoveryError(TerraspecError):
    """Raised when the spec directory is unreadable or holds no test case."""


class EngineError(TerraspecError):
    """Raised when the planning engine cannot be started at all."""


class ValidationCrash(TerraspecError):
    """Raised when computing a test report fails unexpectedly."""

    def __init__(self, case_name: str, cause: BaseException) -> None:
        super().__init__(f"test case {case_name!r} crashed: {cause}")
        self.case_name = case_name
        self.cause = cause


__all__ = [
    "TerraspecError",
    "ConfigError",
    "CaseDiscoveryError",
    "EngineError",
    "ValidationCrash",
]
