"""Read-only access to a computed plan.

:class:`PlanSnapshot` indexes the document printed by
``terraform show -json <planfile>``; :class:`PlanAccessor` resolves
addresses inside it to generic values using the engine's schemas.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from .addresses import DATA, OUTPUT, RESOURCE, Address
from .conversion import from_block, output_value
from .schema import OUTPUT_SCHEMA, BlockSchema, SchemaRegistry
from .values import GenericValue

DataSourceKey = Tuple[str, str, str]


class PlanFormatError(ValueError):
    """Raised when a plan document cannot be indexed."""


def load_json_document(text: str) -> Dict[str, Any]:
    try:
        document = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise PlanFormatError(f"invalid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise PlanFormatError("top-level JSON value must be an object")
    return document


def _walk_modules(module: Mapping[str, Any], module_address: str = "") -> Iterator[Tuple[str, Mapping[str, Any]]]:
    for resource in module.get("resources") or []:
        if isinstance(resource, Mapping):
            yield module_address, resource
    for child in module.get("child_modules") or []:
        if isinstance(child, Mapping):
            yield from _walk_modules(child, str(child.get("address") or module_address))


def _walk_configuration(module: Mapping[str, Any], module_address: str = "") -> Iterator[Tuple[str, Mapping[str, Any]]]:
    for resource in module.get("resources") or []:
        if isinstance(resource, Mapping):
            yield module_address, resource
    for call_name, call in (module.get("module_calls") or {}).items():
        if not isinstance(call, Mapping):
            continue
        child_address = f"{module_address}.module.{call_name}" if module_address else f"module.{call_name}"
        yield from _walk_configuration(call.get("module") or {}, child_address)


def _entry_address(module_address: str, entry: Mapping[str, Any]) -> Address:
    kind = DATA if entry.get("mode") == "data" else RESOURCE
    index = entry.get("index")
    if isinstance(index, Decimal):
        index = int(index)
    return Address(kind, str(entry.get("type", "")), str(entry.get("name", "")), index, module_address)


class PlanSnapshot:
    """Immutable index over one plan document."""

    def __init__(self, document: Mapping[str, Any]) -> None:
        if not isinstance(document, Mapping):
            raise PlanFormatError("plan document must be an object")
        self._document = document
        self._instances: Dict[Address, Mapping[str, Any]] = {}
        self._outputs: Dict[str, Mapping[str, Any]] = {}

        planned = document.get("planned_values") or {}
        if not isinstance(planned, Mapping):
            raise PlanFormatError("planned_values must be an object")

        prior_root = ((document.get("prior_state") or {}).get("values") or {}).get("root_module") or {}
        for module_address, entry in _walk_modules(prior_root):
            if entry.get("mode") == "data":
                self._instances[_entry_address(module_address, entry)] = entry
        for module_address, entry in _walk_modules(planned.get("root_module") or {}):
            address = _entry_address(module_address, entry)
            if address.is_data and address in self._instances:
                continue
            self._instances[address] = entry

        for name, entry in (planned.get("outputs") or {}).items():
            if isinstance(entry, Mapping):
                self._outputs[str(name)] = entry

    @classmethod
    def from_json(cls, text: str) -> "PlanSnapshot":
        return cls(load_json_document(text))

    @property
    def document(self) -> Mapping[str, Any]:
        return self._document

    def instance(self, address: Address) -> Optional[Mapping[str, Any]]:
        return self._instances.get(address)

    def output(self, name: str) -> Optional[Mapping[str, Any]]:
        return self._outputs.get(name)

    def addresses(self) -> List[str]:
        rendered = [str(address) for address in self._instances]
        rendered.extend(f"{OUTPUT}.{name}" for name in self._outputs)
        return sorted(rendered)

    def output_names(self) -> FrozenSet[str]:
        return frozenset(self._outputs)


def configured_data_sources(document: Mapping[str, Any]) -> FrozenSet[DataSourceKey]:
    """Data sources declared by the configuration recorded in a plan document."""

    root = (document.get("configuration") or {}).get("root_module") or {}
    found = set()
    for module_address, entry in _walk_configuration(root):
        if entry.get("mode") == "data":
            found.add((module_address, str(entry.get("type", "")), str(entry.get("name", ""))))
    return frozenset(found)


def configured_outputs(document: Mapping[str, Any]) -> Optional[FrozenSet[str]]:
    configuration = document.get("configuration")
    if not isinstance(configuration, Mapping):
        return None
    root = configuration.get("root_module") or {}
    return frozenset(str(name) for name in (root.get("outputs") or {}))


class PlanAccessor:
    """Resolve addresses in a :class:`PlanSnapshot` to generic values."""

    def __init__(self, snapshot: PlanSnapshot, registry: SchemaRegistry) -> None:
        self.snapshot = snapshot
        self.registry = registry

    def schema_for(self, address: Address) -> Optional[BlockSchema]:
        if address.is_output:
            return OUTPUT_SCHEMA
        if address.is_data:
            return self.registry.data_source(address.type)
        return self.registry.resource(address.type)

    def exists(self, address: Address) -> bool:
        if address.is_output:
            return self.snapshot.output(address.name) is not None
        return self.snapshot.instance(address) is not None

    def resolve(self, address: Address) -> Optional[GenericValue]:
        """Return the value tree at ``address`` or None when the plan lacks it."""

        if address.is_output:
            entry = self.snapshot.output(address.name)
            if entry is None:
                return None
            return output_value(entry)
        entry = self.snapshot.instance(address)
        if entry is None:
            return None
        return from_block(entry.get("values") or {}, self.schema_for(address))


__all__ = [
    "PlanFormatError",
    "PlanSnapshot",
    "PlanAccessor",
    "DataSourceKey",
    "load_json_document",
    "configured_data_sources",
    "configured_outputs",
]
