"""Shared constants for the terraspec runner."""

from __future__ import annotations

ANSI_RESET = "\033[0m"
ANSI_GREEN = "\033[32m"
ANSI_RED = "\033[31m"
ANSI_YELLOW = "\033[33m"
ANSI_BOLD = "\033[1m"

DEFAULT_SPEC_DIR = "spec"
DEFAULT_CONFIG_DIR = "."
SPEC_EXTENSION = ".tfspec"
VARIABLES_EXTENSION = ".tfvars"

ENGINE_TERRAFORM = "terraform"
ENGINE_PLAN_JSON = "plan-json"
ENGINE_KINDS = (ENGINE_TERRAFORM, ENGINE_PLAN_JSON)

PLAN_FIXTURE_NAME = "plan.json"
SCHEMA_FIXTURE_NAME = "schemas.json"

MARKER_CASE = "🏷 "
MARKER_INFO = " ✔  "
MARKER_WARNING = " ⚠  "
MARKER_ERROR = " ❌  "

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_FATAL = 2

__all__ = [
    "ANSI_RESET",
    "ANSI_GREEN",
    "ANSI_RED",
    "ANSI_YELLOW",
    "ANSI_BOLD",
    "DEFAULT_SPEC_DIR",
    "DEFAULT_CONFIG_DIR",
    "SPEC_EXTENSION",
    "VARIABLES_EXTENSION",
    "ENGINE_TERRAFORM",
    "ENGINE_PLAN_JSON",
    "ENGINE_KINDS",
    "PLAN_FIXTURE_NAME",
    "SCHEMA_FIXTURE_NAME",
    "MARKER_CASE",
    "MARKER_INFO",
    "MARKER_WARNING",
    "MARKER_ERROR",
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
    "EXIT_FATAL",
]
