"""Attribute paths addressing a position inside a nested value tree."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class GetAttrStep:
    name: str


@dataclass(frozen=True)
class IndexStep:
    key: Union[int, str]


Step = Union[GetAttrStep, IndexStep]


@dataclass(frozen=True)
class AttributePath:
    """Immutable sequence of steps; descending returns a new path."""

    steps: Tuple[Step, ...] = ()

    def attr(self, name: str) -> "AttributePath":
        return AttributePath(self.steps + (GetAttrStep(name),))

    def index(self, key: Union[int, str]) -> "AttributePath":
        return AttributePath(self.steps + (IndexStep(key),))

    def is_root(self) -> bool:
        return not self.steps

    def render(self) -> str:
        parts = []
        for position, step in enumerate(self.steps):
            if isinstance(step, GetAttrStep):
                if position > 0:
                    parts.append(".")
                parts.append(step.name)
            elif isinstance(step.key, int):
                parts.append(f"[{step.key}]")
            else:
                parts.append(f"[{json.dumps(step.key)}]")
        return "".join(parts)

    def __str__(self) -> str:
        return self.render()

    def __len__(self) -> int:
        return len(self.steps)


ROOT = AttributePath()

__all__ = ["GetAttrStep", "IndexStep", "Step", "AttributePath", "ROOT"]
