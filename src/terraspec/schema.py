"""Attribute schemas per resource and data-source type.

The registry is built from the document printed by
``terraform providers schema -json``. It is read-only once built and is
shared between concurrently running test cases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

PRIMITIVE_KINDS = ("string", "number", "bool")
SEQUENCE_KINDS = ("list", "set", "tuple")
MAPPING_KINDS = ("map", "object")
REPEATED_NESTING = ("list", "set")
SINGLE_NESTING = ("single", "group")


class SchemaFormatError(ValueError):
    """Raised when a schema document does not have the expected shape."""


@dataclass(frozen=True)
class AttributeType:
    kind: str
    element: Optional["AttributeType"] = None
    attributes: Tuple[Tuple[str, "AttributeType"], ...] = ()
    elements: Tuple["AttributeType", ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> "AttributeType":
        """Decode Terraform's JSON type notation (``"string"``, ``["list", "string"]``...)."""

        if isinstance(raw, str):
            if raw in PRIMITIVE_KINDS or raw == "dynamic":
                return cls(raw)
            raise SchemaFormatError(f"unknown primitive type {raw!r}")
        if isinstance(raw, list) and len(raw) == 2:
            kind, detail = raw
            if kind in ("list", "set", "map"):
                return cls(kind, element=cls.parse(detail))
            if kind == "object" and isinstance(detail, dict):
                return cls(
                    "object",
                    attributes=tuple((name, cls.parse(value)) for name, value in detail.items()),
                )
            if kind == "tuple" and isinstance(detail, list):
                return cls("tuple", elements=tuple(cls.parse(item) for item in detail))
        raise SchemaFormatError(f"unsupported type expression {raw!r}")

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS

    @property
    def is_dynamic(self) -> bool:
        return self.kind == "dynamic"

    def attribute(self, name: str) -> Optional["AttributeType"]:
        for key, value in self.attributes:
            if key == name:
                return value
        return None

    def element_at(self, position: int) -> "AttributeType":
        if self.kind == "tuple":
            if 0 <= position < len(self.elements):
                return self.elements[position]
            return DYNAMIC
        return self.element or DYNAMIC

    def describe(self) -> str:
        if self.element is not None:
            return f"{self.kind}({self.element.describe()})"
        return self.kind


STRING = AttributeType("string")
NUMBER = AttributeType("number")
BOOL = AttributeType("bool")
DYNAMIC = AttributeType("dynamic")


@dataclass(frozen=True)
class NestedBlock:
    nesting_mode: str
    block: "BlockSchema"
    min_items: int = 0
    max_items: int = 0

    @property
    def repeated(self) -> bool:
        return self.nesting_mode in REPEATED_NESTING


@dataclass(frozen=True)
class BlockSchema:
    attributes: Mapping[str, AttributeType] = field(default_factory=dict)
    block_types: Mapping[str, NestedBlock] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> "BlockSchema":
        if not isinstance(raw, Mapping):
            raise SchemaFormatError("block schema must be an object")
        attributes: Dict[str, AttributeType] = {}
        for name, spec in (raw.get("attributes") or {}).items():
            attributes[name] = _parse_attribute(name, spec)
        block_types: Dict[str, NestedBlock] = {}
        for name, spec in (raw.get("block_types") or {}).items():
            if not isinstance(spec, Mapping):
                raise SchemaFormatError(f"block type {name!r} must be an object")
            block_types[name] = NestedBlock(
                nesting_mode=str(spec.get("nesting_mode", "list")),
                block=cls.parse(spec.get("block") or {}),
                min_items=int(spec.get("min_items") or 0),
                max_items=int(spec.get("max_items") or 0),
            )
        return cls(attributes=attributes, block_types=block_types)

    def attribute(self, name: str) -> Optional[AttributeType]:
        return self.attributes.get(name)

    def block_type(self, name: str) -> Optional[NestedBlock]:
        return self.block_types.get(name)

    def knows(self, name: str) -> bool:
        return name in self.attributes or name in self.block_types

    def names(self) -> Tuple[str, ...]:
        return tuple(self.attributes) + tuple(self.block_types)


def _parse_attribute(name: str, spec: Any) -> AttributeType:
    if not isinstance(spec, Mapping):
        raise SchemaFormatError(f"attribute {name!r} must be an object")
    if "type" in spec:
        return AttributeType.parse(spec["type"])
    nested = spec.get("nested_type")
    if isinstance(nested, Mapping):
        inner = AttributeType(
            "object",
            attributes=tuple(
                (key, _parse_attribute(key, value))
                for key, value in (nested.get("attributes") or {}).items()
            ),
        )
        mode = nested.get("nesting_mode", "single")
        if mode in ("list", "set", "map"):
            return AttributeType(mode, element=inner)
        return inner
    return DYNAMIC


OUTPUT_SCHEMA = BlockSchema(attributes={"value": DYNAMIC, "sensitive": BOOL})


class SchemaRegistry:
    """Schema lookup keyed by resource or data-source type name."""

    def __init__(
        self,
        resources: Optional[Mapping[str, BlockSchema]] = None,
        data_sources: Optional[Mapping[str, BlockSchema]] = None,
        outputs: Optional[Iterable[str]] = None,
    ) -> None:
        self._resources = dict(resources or {})
        self._data_sources = dict(data_sources or {})
        self._outputs: Optional[FrozenSet[str]] = frozenset(outputs) if outputs is not None else None

    @classmethod
    def from_provider_schemas(
        cls,
        document: Mapping[str, Any],
        *,
        outputs: Optional[Iterable[str]] = None,
    ) -> "SchemaRegistry":
        if not isinstance(document, Mapping):
            raise SchemaFormatError("provider schema document must be an object")
        resources: Dict[str, BlockSchema] = {}
        data_sources: Dict[str, BlockSchema] = {}
        providers = document.get("provider_schemas") or {}
        if not isinstance(providers, Mapping):
            raise SchemaFormatError("provider_schemas must be an object")
        for provider in sorted(providers):
            entry = providers[provider] or {}
            for type_name, spec in (entry.get("resource_schemas") or {}).items():
                resources[type_name] = BlockSchema.parse((spec or {}).get("block") or {})
            for type_name, spec in (entry.get("data_source_schemas") or {}).items():
                data_sources[type_name] = BlockSchema.parse((spec or {}).get("block") or {})
        return cls(resources, data_sources, outputs)

    def with_outputs(self, outputs: Optional[Iterable[str]]) -> "SchemaRegistry":
        return SchemaRegistry(self._resources, self._data_sources, outputs)

    def resource(self, type_name: str) -> Optional[BlockSchema]:
        return self._resources.get(type_name)

    def data_source(self, type_name: str) -> Optional[BlockSchema]:
        return self._data_sources.get(type_name)

    @property
    def outputs_known(self) -> bool:
        return self._outputs is not None

    def has_output(self, name: str) -> bool:
        if self._outputs is None:
            return True
        return name in self._outputs

    def resource_types(self) -> Tuple[str, ...]:
        return tuple(sorted(self._resources))


__all__ = [
    "SchemaFormatError",
    "AttributeType",
    "NestedBlock",
    "BlockSchema",
    "SchemaRegistry",
    "STRING",
    "NUMBER",
    "BOOL",
    "DYNAMIC",
    "OUTPUT_SCHEMA",
]
