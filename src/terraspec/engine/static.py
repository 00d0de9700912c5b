"""In-memory engine serving pre-computed plan and schema documents.

Used for the ``plan-json`` engine kind, where each test case ships the
output of ``terraform show -json`` and ``terraform providers schema -json``,
and as the scripted engine double behind the test suite.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from ..addresses import Address
from ..constants import PLAN_FIXTURE_NAME, SCHEMA_FIXTURE_NAME
from ..diagnostics import Diagnostic, Diagnostics, SourceLocation, error
from ..plan import (
    DataSourceKey,
    PlanFormatError,
    PlanSnapshot,
    configured_data_sources,
    configured_outputs,
    load_json_document,
)
from ..schema import SchemaFormatError, SchemaRegistry
from ..values import GenericValue, to_python
from .base import Engine, EngineContext

logger = logging.getLogger("terraspec.engine.static")

PlanFactory = Callable[[Mapping[Address, GenericValue]], Mapping[str, Any]]


def apply_data_overrides(document: Mapping[str, Any], overrides: Mapping[Address, GenericValue]) -> Dict[str, Any]:
    """Return a copy of ``document`` whose prior-state data sources read ``overrides``."""

    patched = copy.deepcopy(dict(document))
    if not overrides:
        return patched
    prior = patched.setdefault("prior_state", {})
    values = prior.setdefault("values", {})
    root = values.setdefault("root_module", {})

    for address, value in overrides.items():
        module = _find_module(root, address.module)
        resources = module.setdefault("resources", [])
        for entry in resources:
            if entry.get("mode") == "data" and entry.get("type") == address.type and entry.get("name") == address.name:
                entry["values"] = to_python(value)
                break
        else:
            resources.append(
                {
                    "address": str(address),
                    "mode": "data",
                    "type": address.type,
                    "name": address.name,
                    "values": to_python(value),
                }
            )
    return patched


def _find_module(root: Dict[str, Any], module_address: str) -> Dict[str, Any]:
    if not module_address:
        return root
    for child in root.setdefault("child_modules", []):
        if child.get("address") == module_address:
            return child
        if module_address.startswith(f"{child.get('address')}."):
            return _find_module(child, module_address)
    child = {"address": module_address, "resources": []}
    root["child_modules"].append(child)
    return child


class StaticContext(EngineContext):
    def __init__(
        self,
        plan_document: Mapping[str, Any],
        registry: SchemaRegistry,
        *,
        plan_factory: Optional[PlanFactory] = None,
        data_sources: Optional[Iterable[DataSourceKey]] = None,
        refresh_diagnostics: Iterable[Diagnostic] = (),
        plan_diagnostics: Iterable[Diagnostic] = (),
    ) -> None:
        self._plan_document = plan_document
        self._registry = registry
        self._plan_factory = plan_factory
        self._data_sources: Optional[FrozenSet[DataSourceKey]]
        if data_sources is not None:
            self._data_sources = frozenset(data_sources)
        elif "configuration" in plan_document:
            self._data_sources = configured_data_sources(plan_document)
        else:
            self._data_sources = None
        self._refresh_diagnostics = Diagnostics(refresh_diagnostics)
        self._plan_diagnostics = Diagnostics(plan_diagnostics)
        self._overrides: Dict[Address, GenericValue] = {}

    def schemas(self) -> SchemaRegistry:
        return self._registry

    def data_sources(self) -> Optional[FrozenSet[DataSourceKey]]:
        return self._data_sources

    def set_data_overrides(self, overrides: Mapping[Address, GenericValue]) -> Diagnostics:
        self._overrides = dict(overrides)
        return Diagnostics()

    def refresh(self) -> Diagnostics:
        return Diagnostics(self._refresh_diagnostics)

    def plan(self) -> Tuple[Optional[PlanSnapshot], Diagnostics]:
        diagnostics = Diagnostics(self._plan_diagnostics)
        if diagnostics.has_errors():
            return None, diagnostics
        document = self._plan_factory(dict(self._overrides)) if self._plan_factory else self._plan_document
        try:
            snapshot = PlanSnapshot(apply_data_overrides(document, self._overrides))
        except PlanFormatError as exc:
            diagnostics.append(error(str(exc), summary="Invalid plan document"))
            return None, diagnostics
        return snapshot, diagnostics


class StaticEngine(Engine):
    """Engine returning the same plan for every case.

    When built without documents it reads ``plan.json`` and ``schemas.json``
    from each case directory, falling back to the configuration directory.
    """

    name = "plan-json"

    def __init__(
        self,
        plan_document: Optional[Mapping[str, Any]] = None,
        schema_document: Optional[Mapping[str, Any]] = None,
        *,
        registry: Optional[SchemaRegistry] = None,
        plan_factory: Optional[PlanFactory] = None,
        data_sources: Optional[Iterable[DataSourceKey]] = None,
        context_diagnostics: Iterable[Diagnostic] = (),
        refresh_diagnostics: Iterable[Diagnostic] = (),
        plan_diagnostics: Iterable[Diagnostic] = (),
    ) -> None:
        self.plan_document = plan_document
        self.schema_document = schema_document
        self.registry = registry
        self.plan_factory = plan_factory
        self.data_sources = data_sources
        self.context_diagnostics = Diagnostics(context_diagnostics)
        self.refresh_diagnostics = Diagnostics(refresh_diagnostics)
        self.plan_diagnostics = Diagnostics(plan_diagnostics)

    def new_context(
        self,
        config_dir: Path,
        variable_file: Optional[Path],
        *,
        case_dir: Optional[Path] = None,
    ) -> Tuple[Optional[EngineContext], Diagnostics]:
        diagnostics = Diagnostics(self.context_diagnostics)
        if diagnostics.has_errors():
            return None, diagnostics

        plan_document = self.plan_document
        schema_document = self.schema_document
        if plan_document is None:
            plan_document, failure = _load_fixture(PLAN_FIXTURE_NAME, case_dir, config_dir)
            if failure is not None:
                diagnostics.append(failure)
                return None, diagnostics
        registry = self.registry
        if registry is None:
            if schema_document is None:
                schema_document, failure = _load_fixture(SCHEMA_FIXTURE_NAME, case_dir, config_dir)
                if failure is not None:
                    diagnostics.append(failure)
                    return None, diagnostics
            try:
                registry = SchemaRegistry.from_provider_schemas(schema_document)
            except SchemaFormatError as exc:
                diagnostics.append(error(str(exc), summary="Invalid provider schema document"))
                return None, diagnostics

        outputs = configured_outputs(plan_document)
        if outputs is None:
            outputs = frozenset((plan_document.get("planned_values") or {}).get("outputs") or {})
        registry = registry.with_outputs(outputs)

        context = StaticContext(
            plan_document,
            registry,
            plan_factory=self.plan_factory,
            data_sources=self.data_sources,
            refresh_diagnostics=self.refresh_diagnostics,
            plan_diagnostics=self.plan_diagnostics,
        )
        return context, diagnostics


def _load_fixture(
    name: str,
    case_dir: Optional[Path],
    config_dir: Path,
) -> Tuple[Optional[Dict[str, Any]], Optional[Diagnostic]]:
    candidates = [directory / name for directory in (case_dir, config_dir) if directory is not None]
    for candidate in candidates:
        if not candidate.is_file():
            continue
        logger.debug("loading %s", candidate)
        try:
            return load_json_document(candidate.read_text(encoding="utf-8")), None
        except (OSError, PlanFormatError) as exc:
            return None, error(str(exc), summary=f"Cannot load {name}", location=SourceLocation(str(candidate)))
    searched = ", ".join(str(candidate) for candidate in candidates)
    return None, error(f"{name} not found (searched: {searched})", summary="Missing plan fixture")


__all__ = ["StaticEngine", "StaticContext", "PlanFactory", "apply_data_overrides"]
