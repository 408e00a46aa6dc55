"""Helpers for interpreting environment variables consistently."""

from __future__ import annotations

import os
from typing import Iterable

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def env_flag(
    name: str,
    *,
    default: bool = False,
    legacy: Iterable[str] | None = None,
) -> bool:
    """Return a boolean flag from the environment.

    ``legacy`` names are consulted in order after ``name``. Values default to
    ``default`` when unset, empty, or unrecognised.
    """

    candidates = (name, *tuple(legacy or ()))
    for key in candidates:
        raw = os.getenv(key)
        if raw is None:
            continue
        value = raw.strip()
        if not value:
            continue
        lowered = value.lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    return bool(default)


def env_str(name: str, *, default: str = "", legacy: Iterable[str] | None = None) -> str:
    """Return the first non-empty, stripped value among ``name`` and ``legacy``."""
    for key in (name, *tuple(legacy or ())):
        raw = os.getenv(key)
        if raw and raw.strip():
            return raw.strip()
    return default
