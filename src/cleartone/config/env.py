"""Typed readers for environment variables."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


def _read(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env_vars(names: Iterable[str]) -> dict[str, str]:
    """Read every variable in ``names``; blank counts as missing.

    All missing names are reported in one ``MissingConfigurationError``.
    """

    values = {name: _read(name) for name in names}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in values.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars((name,))[name]


def _optional[T](name: str, default: T, parse: Callable[[str], T], kind: str) -> T:
    raw = _read(name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be {kind}, got {raw!r}") from exc


def optional_float(name: str, default: float) -> float:
    return _optional(name, default, float, "a number")


def optional_int(name: str, default: int) -> int:
    return _optional(name, default, int, "an integer")
