"""Telemetry services built on the standard ``logging`` package.

The rest of the package only touches four entry points:

``configure(...)`` -- install handlers from an explicit config or a named preset
``get_logger(name)`` -- fetch (and cache) a configured logger
``record_event(name, ...)`` -- emit a structured event at a chosen level
``span(name, ...)`` -- time a block and optionally tag it with a component
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional

from .settings import env, env_flag

DEFAULT_LOGGER_NAME = env("LOGGER", "history_engine") or "history_engine"

_TEXT_FORMAT = "[%(asctime)s] [%(levelname)-8s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGGER_CACHE: MutableMapping[str, "ContextLogger"] = {}
_ACTIVE_CONFIG: Optional["TelemetryConfig"] = None
_LOCK = threading.RLock()


@dataclass
class TelemetryConfig:
    """Handler setup applied to every logger handed out by ``get_logger``."""

    min_level: str = "INFO"
    console: bool = True
    json_format: bool = False
    log_file: Optional[str] = None
    buffered: bool = False
    buffer_size: int = 2048


_PRESETS: Dict[str, TelemetryConfig] = {
    "development": TelemetryConfig(min_level="DEBUG", console=True),
    "production": TelemetryConfig(
        min_level="INFO",
        console=False,
        log_file="history_engine.log",
        buffered=True,
    ),
    "performance": TelemetryConfig(
        min_level="DEBUG",
        console=False,
        json_format=True,
        log_file="history_engine-performance.log",
        buffered=True,
    ),
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, _DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(getattr(record, "fields", {}))
        return json.dumps(payload, default=str)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return repr(value) if isinstance(value, (dict, list, tuple, set)) else str(value)


def _format_pairs(data: Dict[str, Any]) -> str:
    return " ".join(f"{key}={_stringify(value)}" for key, value in data.items())


class ContextLogger:
    """Named logger that prefixes messages with transient key/value context."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.log = logging.getLogger(name)
        self._ctx = threading.local()

    def add_context(self, key: str, value: str) -> None:
        if not hasattr(self._ctx, "data"):
            self._ctx.data = {}
        self._ctx.data[key] = value

    def remove_context(self, key: str) -> None:
        getattr(self._ctx, "data", {}).pop(key, None)

    def context(self) -> Dict[str, str]:
        return dict(getattr(self._ctx, "data", {}))

    def emit(self, level: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        method = getattr(self.log, str(level).lower(), None)
        if method is None or str(level).lower() in {"log", "exception"}:
            raise ValueError(f"Unsupported log level '{level}'.")
        fields = {**self.context(), **(data or {})}
        text = f"{message} {_format_pairs(fields)}" if fields else message
        method(text, extra={"fields": {k: _stringify(v) for k, v in fields.items()}})


def _build_handlers(config: TelemetryConfig) -> list[logging.Handler]:
    formatter: logging.Formatter
    if config.json_format:
        formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FORMAT, _DATE_FORMAT)

    handlers: list[logging.Handler] = []
    if config.console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        handlers.append(console)
    if config.log_file:
        file_handler: logging.Handler = logging.handlers.RotatingFileHandler(
            config.log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
            delay=True,
        )
        # MemoryHandler never formats; the wrapped target does
        file_handler.setFormatter(formatter)
        if config.buffered:
            file_handler = logging.handlers.MemoryHandler(
                capacity=config.buffer_size,
                flushLevel=logging.ERROR,
                target=file_handler,
            )
        handlers.append(file_handler)
    if not handlers:
        handlers.append(logging.NullHandler())
    return handlers


def _apply(logger: logging.Logger, config: TelemetryConfig) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        target = getattr(handler, "target", None)
        # closing a MemoryHandler flushes into its target, then detaches it
        handler.close()
        if target is not None:
            target.close()
    logger.setLevel(config.min_level.upper())
    logger.propagate = False
    for handler in _build_handlers(config):
        logger.addHandler(handler)


def _build_preset_config(preset: str) -> TelemetryConfig:
    key = preset.lower()
    if key == "performance_analysis":
        key = "performance"
    if key not in _PRESETS:
        raise ValueError(f"Unknown preset '{preset}'.")
    base = _PRESETS[key]
    return TelemetryConfig(
        min_level=base.min_level,
        console=base.console,
        json_format=base.json_format,
        log_file=env("LOG_FILE") or base.log_file,
        buffered=base.buffered,
        buffer_size=base.buffer_size,
    )


def _build_default_config() -> TelemetryConfig:
    return TelemetryConfig(
        min_level=(env("LOG_LEVEL") or "INFO").upper(),
        console=not env_flag("DISABLE_CONSOLE", False),
        json_format=env_flag("LOG_JSON", False),
        log_file=env("LOG_FILE") or None,
        buffered=env_flag("LOG_BUFFERED", False),
        buffer_size=int(env("LOG_BUFFER_SIZE") or "2048"),
    )


def configure(
    *, config: Optional[TelemetryConfig] = None, preset: Optional[str] = None
) -> None:
    """Replace the active logging configuration.

    Parameters
    ----------
    config:
        Explicit ``TelemetryConfig`` to adopt.
    preset:
        One of ``"development"``, ``"production"`` or ``"performance"``.
        Mutually exclusive with ``config``.
    """

    global _ACTIVE_CONFIG
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")

    if preset:
        config = _build_preset_config(preset)
    elif config is None:
        config = _build_default_config()

    with _LOCK:
        _ACTIVE_CONFIG = config
        for cached in _LOGGER_CACHE.values():
            _apply(cached.log, config)


def active_config() -> TelemetryConfig:
    global _ACTIVE_CONFIG
    with _LOCK:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = _build_default_config()
        return _ACTIVE_CONFIG


def get_logger(name: Optional[str] = None) -> ContextLogger:
    """Return a cached ``ContextLogger`` bound to the active config."""

    logger_name = name or DEFAULT_LOGGER_NAME
    with _LOCK:
        if logger_name not in _LOGGER_CACHE:
            cached = ContextLogger(logger_name)
            _apply(cached.log, active_config())
            _LOGGER_CACHE[logger_name] = cached
        return _LOGGER_CACHE[logger_name]


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit ``event::<name>`` with ``data`` attached as key/value pairs."""

    get_logger(logger_name).emit(level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Yielded by ``span`` so callers can attach metadata mid-block."""

    logger: ContextLogger
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _stringify(value)

    def _payload(self, **extra: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload.update(extra)
        return payload

    def fail(self, reason: str) -> None:
        self.logger.emit("error", "span::fail", self._payload(reason=reason))

    def finish(self, elapsed: float) -> None:
        self.logger.emit(
            "debug", "span::end", self._payload(duration_ms=f"{elapsed * 1000:.3f}")
        )


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Time a code block and (optionally) tag it with a component.

    ``component=True`` reuses ``name`` as the component id; a string names it
    explicitly. ``metadata`` is pushed as transient logger context for the
    duration of the block. Exceptions are logged via ``SpanHandle.fail`` and
    re-raised.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else (
        component if isinstance(component, str) else None
    )

    serialized = {key: _stringify(value) for key, value in (metadata or {}).items()}
    previous = log.context()
    for key, value in serialized.items():
        log.add_context(key, value)

    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=component_name,
        metadata=dict(serialized),
    )
    started = time.perf_counter()
    try:
        yield handle
    except Exception as exc:
        handle.fail(str(exc))
        raise
    else:
        handle.finish(time.perf_counter() - started)
    finally:
        for key in serialized:
            if key in previous:
                log.add_context(key, previous[key])
            else:
                log.remove_context(key)


logger = get_logger()

__all__ = [
    "ContextLogger",
    "SpanHandle",
    "TelemetryConfig",
    "active_config",
    "configure",
    "get_logger",
    "record_event",
    "span",
    "logger",
]
