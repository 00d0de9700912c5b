"""Generic value trees shared by plans and assertions.

Every value reachable from a plan or a spec file is one of five shapes:
:data:`NULL`, :class:`Scalar`, :class:`OrderedList`, :class:`KeyedMap` and
:class:`BlockSet`. All of them are immutable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union

ScalarValue = Union[str, int, float, Decimal, bool]


class _Null:
    _instance: Optional["_Null"] = None

    def __new__(cls) -> "_Null":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Null, ())


NULL = _Null()


@dataclass(frozen=True)
class Scalar:
    value: ScalarValue


@dataclass(frozen=True)
class OrderedList:
    items: Tuple["GenericValue", ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["GenericValue"]:
        return iter(self.items)


@dataclass(frozen=True, eq=False)
class KeyedMap:
    """String-keyed mapping; equality ignores insertion order."""

    entries: Tuple[Tuple[str, "GenericValue"], ...] = ()

    @classmethod
    def of(cls, mapping: Dict[str, "GenericValue"]) -> "KeyedMap":
        return cls(tuple(mapping.items()))

    def get(self, key: str) -> Optional["GenericValue"]:
        for name, value in self.entries:
            if name == key:
                return value
        return None

    def keys(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.entries)

    def items(self) -> Tuple[Tuple[str, "GenericValue"], ...]:
        return self.entries

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyedMap):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self) -> int:
        return hash(frozenset(self.entries))


@dataclass(frozen=True)
class BlockSet:
    """Repeated nested configuration blocks, in emitted order."""

    blocks: Tuple[KeyedMap, ...] = ()

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[KeyedMap]:
        return iter(self.blocks)


GenericValue = Union[_Null, Scalar, OrderedList, KeyedMap, BlockSet]


def is_null(value: object) -> bool:
    return value is NULL


def shape_name(value: GenericValue) -> str:
    if value is NULL:
        return "null"
    if isinstance(value, Scalar):
        if isinstance(value.value, bool):
            return "bool"
        if isinstance(value.value, str):
            return "string"
        return "number"
    if isinstance(value, OrderedList):
        return "list"
    if isinstance(value, KeyedMap):
        return "map"
    if isinstance(value, BlockSet):
        return "block list"
    return type(value).__name__


def from_python(raw: Any) -> GenericValue:
    """Convert decoded JSON-like data without schema guidance."""

    if raw is None:
        return NULL
    if isinstance(raw, (str, bool, int, float, Decimal)):
        return Scalar(raw)
    if isinstance(raw, dict):
        return KeyedMap(tuple((str(key), from_python(value)) for key, value in raw.items()))
    if isinstance(raw, (list, tuple)):
        return OrderedList(tuple(from_python(item) for item in raw))
    raise TypeError(f"Unsupported value type: {type(raw).__name__}")


def to_python(value: GenericValue) -> Any:
    if value is NULL:
        return None
    if isinstance(value, Scalar):
        return value.value
    if isinstance(value, OrderedList):
        return [to_python(item) for item in value.items]
    if isinstance(value, KeyedMap):
        return {key: to_python(item) for key, item in value.entries}
    if isinstance(value, BlockSet):
        return [to_python(block) for block in value.blocks]
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def format_number(number: Union[int, float, Decimal]) -> str:
    if isinstance(number, bool):
        return "true" if number else "false"
    if isinstance(number, int):
        return str(number)
    decimal = Decimal(str(number)) if isinstance(number, float) else number
    if not decimal.is_finite():
        return str(number)
    if decimal == decimal.to_integral_value():
        return str(int(decimal))
    return format(decimal.normalize(), "f")


def scalar_text(value: ScalarValue) -> str:
    """Render a scalar the way Terraform converts it to a string."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return format_number(value)


def render(value: GenericValue) -> str:
    """Compact HCL-like rendering used in diagnostic messages."""

    if value is NULL:
        return "null"
    if isinstance(value, Scalar):
        if isinstance(value.value, str):
            return json.dumps(value.value, ensure_ascii=False)
        return scalar_text(value.value)
    if isinstance(value, OrderedList):
        return "[" + ", ".join(render(item) for item in value.items) + "]"
    if isinstance(value, KeyedMap):
        return "{" + ", ".join(f"{key} = {render(item)}" for key, item in value.entries) + "}"
    if isinstance(value, BlockSet):
        return "[" + ", ".join(render(block) for block in value.blocks) + "]"
    return repr(value)


def keyed_map(pairs: Iterable[Tuple[str, GenericValue]]) -> KeyedMap:
    return KeyedMap(tuple(pairs))


__all__ = [
    "NULL",
    "Scalar",
    "OrderedList",
    "KeyedMap",
    "BlockSet",
    "GenericValue",
    "ScalarValue",
    "is_null",
    "shape_name",
    "from_python",
    "to_python",
    "format_number",
    "scalar_text",
    "render",
    "keyed_map",
]
