"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = _env_raw(name)
        if value is None:
            missing.append(name)
        else:
            values[name] = value

    if missing:
        missing.sort()
        raise MissingConfigurationError(
            f"Missing configuration for: {', '.join(missing)}", settings=missing
        )

    return values


def env_str(name: str, default: str) -> str:
    value = _env_raw(name)
    return default if value is None else value


def env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    return _env_number(name, default, parse=int, kind="an integer", minimum=minimum)


def env_float(name: str, default: float, *, minimum: float | None = None) -> float:
    return _env_number(name, default, parse=float, kind="a number", minimum=minimum)


def env_bool(name: str, default: bool) -> bool:  # noqa: FBT001
    raw = _env_raw(name)
    if raw is None:
        return default
    normalized = raw.lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {raw!r}", setting=name)


def _env_raw(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_number[N: (int, float)](
    name: str,
    default: N,
    *,
    parse: Callable[[str], N],
    kind: str,
    minimum: N | None,
) -> N:
    raw = _env_raw(name)
    if raw is None:
        return default
    try:
        value = parse(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be {kind}, got {raw!r}", setting=name) from exc
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}", setting=name)
    return value
