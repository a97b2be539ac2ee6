"""Environment-driven defaults for history stores and telemetry."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "HISTORY_ENGINE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}
_UNBOUNDED = {"", "none", "0"}


def env(
    name: str,
    default: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    source = os.environ if environ is None else environ
    return source.get(f"{ENV_PREFIX}{name}", default)


def env_flag(
    name: str, default: bool, *, environ: Optional[Mapping[str, str]] = None
) -> bool:
    raw = env(name, environ=environ)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _parse_capacity(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip().lower() in _UNBOUNDED:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}CAPACITY must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{ENV_PREFIX}CAPACITY cannot be negative, got {value}")
    return value


def _parse_strict_flag(name: str, raw: Optional[str]) -> bool:
    if raw is None:
        return False
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True, slots=True)
class HistorySettings:
    """Construction defaults applied by ``HistoryStore.from_settings``.

    ``capacity`` of ``None`` keeps every entry. ``clamp_navigation`` makes
    ``go_to`` clamp out-of-range indices instead of raising.
    """

    capacity: Optional[int] = None
    clamp_navigation: bool = False

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 1:
            raise ValueError("capacity must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HistorySettings":
        return cls(
            capacity=_parse_capacity(env("CAPACITY", environ=environ)),
            clamp_navigation=_parse_strict_flag(
                "CLAMP_NAVIGATION", env("CLAMP_NAVIGATION", environ=environ)
            ),
        )


__all__ = ["ENV_PREFIX", "HistorySettings", "env", "env_flag"]
