"""Boundary between terraspec and the planning engine."""

from __future__ import annotations

import abc
import json
from pathlib import Path
from typing import FrozenSet, Mapping, Optional, Tuple

from ..addresses import Address
from ..diagnostics import Diagnostics
from ..plan import DataSourceKey, PlanSnapshot
from ..schema import SchemaRegistry
from ..values import GenericValue


class EngineContext(abc.ABC):
    """One configuration loaded with one variables file."""

    @abc.abstractmethod
    def schemas(self) -> SchemaRegistry:
        """Schema registry for every provider the configuration uses."""

    @abc.abstractmethod
    def data_sources(self) -> Optional[FrozenSet[DataSourceKey]]:
        """Data sources declared by the configuration, or None when unknown."""

    @abc.abstractmethod
    def set_data_overrides(self, overrides: Mapping[Address, GenericValue]) -> Diagnostics:
        """Register stand-in read results; must be called before :meth:`refresh`."""

    @abc.abstractmethod
    def refresh(self) -> Diagnostics:
        """Read data sources."""

    @abc.abstractmethod
    def plan(self) -> Tuple[Optional[PlanSnapshot], Diagnostics]:
        """Compute the plan."""

    def render_plan(self, snapshot: PlanSnapshot) -> str:
        planned = snapshot.document.get("planned_values") or {}
        return json.dumps(planned, indent=2, sort_keys=True, default=str)

    def close(self) -> None:
        """Release anything the context holds on disk."""

    def __enter__(self) -> "EngineContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Engine(abc.ABC):
    name = "base"

    @abc.abstractmethod
    def new_context(
        self,
        config_dir: Path,
        variable_file: Optional[Path],
        *,
        case_dir: Optional[Path] = None,
    ) -> Tuple[Optional[EngineContext], Diagnostics]:
        """Load ``config_dir`` with ``variable_file``.

        Returns ``(None, diagnostics)`` when the configuration cannot be
        loaded; ``case_dir`` is the test case directory being run.
        """


__all__ = ["Engine", "EngineContext"]
