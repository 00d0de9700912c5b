"""Schema-guided conversion of decoded plan JSON into generic values."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .schema import (
    MAPPING_KINDS,
    SEQUENCE_KINDS,
    AttributeType,
    BlockSchema,
    NestedBlock,
)
from .values import (
    NULL,
    BlockSet,
    GenericValue,
    KeyedMap,
    OrderedList,
    Scalar,
    from_python,
)


def from_attribute(raw: Any, attribute_type: Optional[AttributeType]) -> GenericValue:
    if raw is None:
        return NULL
    if attribute_type is None or attribute_type.is_dynamic or attribute_type.is_primitive:
        return from_python(raw)
    if attribute_type.kind in SEQUENCE_KINDS and isinstance(raw, list):
        return OrderedList(
            tuple(from_attribute(item, attribute_type.element_at(position)) for position, item in enumerate(raw))
        )
    if attribute_type.kind in MAPPING_KINDS and isinstance(raw, Mapping):
        if attribute_type.kind == "object":
            return KeyedMap(
                tuple((str(key), from_attribute(value, attribute_type.attribute(str(key)))) for key, value in raw.items())
            )
        return KeyedMap(
            tuple((str(key), from_attribute(value, attribute_type.element)) for key, value in raw.items())
        )
    return from_python(raw)


def from_block(raw: Any, schema: Optional[BlockSchema]) -> GenericValue:
    """Convert one block's attribute object, descending into nested blocks."""

    if raw is None:
        return NULL
    if not isinstance(raw, Mapping):
        return from_python(raw)
    if schema is None:
        return from_python(raw)
    entries = []
    for key, value in raw.items():
        name = str(key)
        nested = schema.block_type(name)
        if nested is not None:
            entries.append((name, from_nested_block(value, nested)))
        else:
            entries.append((name, from_attribute(value, schema.attribute(name))))
    return KeyedMap(tuple(entries))


def from_nested_block(raw: Any, nested: NestedBlock) -> GenericValue:
    if raw is None:
        return NULL
    if nested.repeated:
        if not isinstance(raw, list):
            return from_python(raw)
        blocks = []
        for item in raw:
            converted = from_block(item, nested.block)
            if not isinstance(converted, KeyedMap):
                return from_python(raw)
            blocks.append(converted)
        return BlockSet(tuple(blocks))
    if nested.nesting_mode == "map":
        if not isinstance(raw, Mapping):
            return from_python(raw)
        return KeyedMap(tuple((str(key), from_block(value, nested.block)) for key, value in raw.items()))
    if isinstance(raw, list):
        # Some providers emit single blocks as one-element lists.
        if len(raw) == 1:
            return from_block(raw[0], nested.block)
        if not raw:
            return NULL
        return from_python(raw)
    return from_block(raw, nested.block)


def output_value(raw: Mapping[str, Any]) -> KeyedMap:
    return KeyedMap(
        (
            ("value", from_python(raw.get("value"))),
            ("sensitive", Scalar(bool(raw.get("sensitive", False)))),
        )
    )


__all__ = ["from_attribute", "from_block", "from_nested_block", "output_value"]
