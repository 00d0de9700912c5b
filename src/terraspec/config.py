"""Run configuration resolved from CLI flags, environment, and defaults."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .constants import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_SPEC_DIR,
    ENGINE_KINDS,
    ENGINE_TERRAFORM,
)
from .env_flags import color_disabled, color_forced, env_override
from .errors import ConfigError

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class RunConfig:
    spec_dir: Path = Path(DEFAULT_SPEC_DIR)
    config_dir: Path = Path(DEFAULT_CONFIG_DIR)
    display_plan: bool = False
    engine: str = ENGINE_TERRAFORM
    terraform_bin: Optional[str] = None
    use_color: bool = False
    log_level: int = logging.WARNING

    def with_overrides(self, **changes: object) -> "RunConfig":
        return replace(self, **changes)


def resolve_engine(value: Optional[str]) -> str:
    engine = (value or env_override("TERRASPEC_ENGINE") or ENGINE_TERRAFORM).lower()
    if engine not in ENGINE_KINDS:
        raise ConfigError(
            f"Unknown engine {engine!r}; expected one of: {', '.join(ENGINE_KINDS)}"
        )
    return engine


def resolve_log_level(value: Optional[str]) -> int:
    name = (value or env_override("TERRASPEC_LOG") or "WARNING").upper()
    if name not in _LOG_LEVELS:
        raise ConfigError(
            f"Unknown log level {name!r}; expected one of: {', '.join(_LOG_LEVELS)}"
        )
    return getattr(logging, name)


def resolve_color(no_color: bool) -> bool:
    if no_color or color_disabled():
        return False
    if color_forced():
        return True
    return sys.stdout.isatty()


def load_config(
    *,
    spec_dir: Optional[str] = None,
    config_dir: Optional[str] = None,
    display_plan: bool = False,
    engine: Optional[str] = None,
    terraform_bin: Optional[str] = None,
    no_color: bool = False,
    log_level: Optional[str] = None,
) -> RunConfig:
    """Build a :class:`RunConfig`; explicit arguments win over the environment."""

    return RunConfig(
        spec_dir=Path(spec_dir or DEFAULT_SPEC_DIR),
        config_dir=Path(config_dir or DEFAULT_CONFIG_DIR),
        display_plan=display_plan,
        engine=resolve_engine(engine),
        terraform_bin=terraform_bin or env_override("TERRASPEC_TERRAFORM_BIN"),
        use_color=resolve_color(no_color),
        log_level=resolve_log_level(log_level),
    )


def terraform_environment() -> dict:
    """Environment passed to terraform subprocesses."""

    env = dict(os.environ)
    env["TF_IN_AUTOMATION"] = "1"
    env.setdefault("TF_INPUT", "0")
    return env


__all__ = [
    "RunConfig",
    "load_config",
    "resolve_engine",
    "resolve_log_level",
    "resolve_color",
    "terraform_environment",
]
