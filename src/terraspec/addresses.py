"""Resource, data-source and output addresses."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Optional, Union

RESOURCE = "resource"
DATA = "data"
OUTPUT = "output"

_NAME_RE = re.compile(r'^(?P<name>[A-Za-z_][A-Za-z0-9_-]*)(?:\[(?P<key>\d+|"(?:[^"\\]|\\.)*")\])?$')
_TYPE_RE = re.compile(
    r'^(?P<module>(?:module\.[A-Za-z_][A-Za-z0-9_-]*(?:\[(?:\d+|"(?:[^"\\]|\\.)*")\])?\.)*)'
    r"(?P<data>data\.)?(?P<type>[A-Za-z_][A-Za-z0-9_-]*)$"
)

InstanceKey = Union[int, str]


class AddressError(ValueError):
    """Raised when assertion labels do not form a valid address."""


@dataclass(frozen=True)
class Address:
    kind: str
    type: str
    name: str
    index: Optional[InstanceKey] = None
    module: str = ""

    @classmethod
    def from_labels(cls, type_label: str, name_label: str) -> "Address":
        """Build an address from the two labels of an ``assert`` block.

        ``assert "output" "ip"`` names an output; anything else names a
        resource type, optionally prefixed by ``module.<name>.`` and/or
        ``data.``. The name label may end in an instance key.
        """

        if type_label == OUTPUT:
            if not re.match(r"^[A-Za-z_][A-Za-z0-9_-]*$", name_label):
                raise AddressError(f"invalid output name {name_label!r}")
            return cls(OUTPUT, OUTPUT, name_label)

        type_match = _TYPE_RE.match(type_label)
        if not type_match:
            raise AddressError(f"invalid resource type {type_label!r}")
        name_match = _NAME_RE.match(name_label)
        if not name_match:
            raise AddressError(f"invalid resource name {name_label!r}")

        module = type_match.group("module").rstrip(".")
        kind = DATA if type_match.group("data") else RESOURCE
        return cls(
            kind,
            type_match.group("type"),
            name_match.group("name"),
            parse_instance_key(name_match.group("key")),
            module,
        )

    @classmethod
    def data_source(cls, type_name: str, name: str, module: str = "") -> "Address":
        return cls(DATA, type_name, name, module=module)

    @property
    def is_output(self) -> bool:
        return self.kind == OUTPUT

    @property
    def is_data(self) -> bool:
        return self.kind == DATA

    def __str__(self) -> str:
        if self.is_output:
            return f"output.{self.name}"
        parts = []
        if self.module:
            parts.append(self.module)
        if self.is_data:
            parts.append("data")
        parts.append(self.type)
        parts.append(self.name + format_instance_key(self.index))
        return ".".join(parts)


def parse_instance_key(raw: Optional[str]) -> Optional[InstanceKey]:
    if raw is None:
        return None
    if raw.startswith('"'):
        return json.loads(raw)
    return int(raw)


def format_instance_key(key: Optional[InstanceKey]) -> str:
    if key is None:
        return ""
    if isinstance(key, int):
        return f"[{key}]"
    return f"[{json.dumps(key)}]"


__all__ = [
    "RESOURCE",
    "DATA",
    "OUTPUT",
    "Address",
    "AddressError",
    "InstanceKey",
    "parse_instance_key",
    "format_instance_key",
]
