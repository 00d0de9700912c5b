from __future__ import annotations

import os
from typing import Optional

_TRUTHY = {"1", "true", "yes", "on"}
_FALSEY = {"0", "false", "no", "off"}


def env_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def env_falsey(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _FALSEY


def env_override(name: str) -> Optional[str]:
    """Return the trimmed value of ``name`` or None when unset or blank."""

    value = os.getenv(name)
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def color_disabled() -> bool:
    if os.getenv("NO_COLOR") is not None:
        return True
    no_color = os.getenv("TERRASPEC_NO_COLOR")
    return no_color is not None and not env_falsey(no_color)


def color_forced() -> bool:
    return env_truthy(os.getenv("TERRASPEC_FORCE_COLOR"))
