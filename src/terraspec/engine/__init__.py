"""Planning engines terraspec can drive."""

from __future__ import annotations

from ..config import RunConfig
from ..constants import ENGINE_PLAN_JSON, ENGINE_TERRAFORM
from ..errors import ConfigError
from .base import Engine, EngineContext
from .static import StaticEngine
from .terraform import TerraformEngine


def build_engine(config: RunConfig) -> Engine:
    """Instantiate the engine named by ``config.engine``."""

    if config.engine == ENGINE_TERRAFORM:
        return TerraformEngine(config.terraform_bin)
    if config.engine == ENGINE_PLAN_JSON:
        return StaticEngine()
    raise ConfigError(f"Unknown engine {config.engine!r}")


__all__ = ["Engine", "EngineContext", "StaticEngine", "TerraformEngine", "build_engine"]
