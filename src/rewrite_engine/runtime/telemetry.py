"""Structured logging for the rewrite engine, on top of telelog.

Events are named ``<area>.<what>`` and land on the logger of the area that
owns them (``rewrite_engine.edits``, ``rewrite_engine.session``...). Spans
time one unit of engine work and tag it with the component doing it.

Output is configured from ``REWRITE_ENGINE_LOG_*`` variables:

``LOG_LEVEL`` -- minimum level (default ``INFO``)
``LOG_FILE`` -- also write to this file
``LOG_JSON`` -- JSON lines instead of text
``DISABLE_CONSOLE`` / ``NO_COLOR`` -- console switches
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "REWRITE_ENGINE_"
ROOT_LOGGER = "rewrite_engine"

EVENTS: Mapping[str, str] = {
    "batch.applied": "edits",
    "batch.rejected": "edits",
    "history.restored": "history",
    "history.restore_failed": "history",
    "session.update": "session",
    "session.replace_ignored": "session",
    "script.failed": "session",
    "matches.found": "session",
    "controller.target_changed": "controller",
}

COMPONENTS = frozenset({"buffer", "edits", "history", "sandbox"})

_loggers: Dict[str, Any] = {}
_config: Optional[Any] = None


def _env(name: str, default: str = "") -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str) -> bool:
    return _env(name).lower() in {"1", "true", "yes", "on"}


def config_from_env() -> Any:
    config = tl.Config()
    config.with_min_level(_env("LOG_LEVEL", "INFO").upper())
    console = not _env_flag("DISABLE_CONSOLE")
    config.with_console_output(console)
    if console:
        config.with_colored_output(not _env_flag("NO_COLOR"))
    config.with_json_format(_env_flag("LOG_JSON"))
    log_file = _env("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)
    config.with_profiling(True)
    return config


def configure(config: Optional[Any] = None) -> None:
    """Adopt ``config`` (or rebuild it from the environment) for new loggers."""

    global _config
    _config = config if config is not None else config_from_env()
    _loggers.clear()


def get_logger(area: Optional[str] = None) -> Any:
    """Return the cached telelog logger for ``area`` (the root logger if ``None``)."""

    name = f"{ROOT_LOGGER}.{area}" if area else ROOT_LOGGER
    if name not in _loggers:
        if _config is None:
            configure()
        _loggers[name] = tl.Logger.with_config(name, _config)
    return _loggers[name]


def _emit(log: Any, level: str, message: str, data: Mapping[str, Any]) -> None:
    pairs = [
        (str(key), value if isinstance(value, str) else repr(value))
        for key, value in data.items()
    ]
    structured = getattr(log, f"{level}_with", None)
    if structured is not None:
        structured(message, pairs)
    else:
        getattr(log, level)(f"{message} {dict(pairs)}")


def record_event(
    name: str, *, level: str = "info", data: Optional[Mapping[str, Any]] = None
) -> None:
    """Log ``event::<name>`` with ``data`` as key/value pairs."""

    area = EVENTS.get(name)
    if area is None:
        raise ValueError(f"Unknown event '{name}'")
    _emit(get_logger(area), level, f"event::{name}", {"event": name, **(data or {})})


@contextmanager
def span(
    name: str, *, component: str, metadata: Optional[Mapping[str, Any]] = None
) -> Iterator[None]:
    """Profile ``name`` as work of ``component``.

    ``metadata`` is attached as logger context for the duration of the block.
    Exceptions are logged as ``span::fail`` and re-raised.
    """

    if component not in COMPONENTS:
        raise ValueError(f"Unknown component '{component}'")
    log = get_logger(component)
    context = {key: str(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        log.add_context(key, value)
    try:
        with log.track_component(component), log.profile(name):
            yield
    except Exception as exc:
        _emit(log, "error", "span::fail", {"span": name, "reason": str(exc), **context})
        raise
    finally:
        for key in context:
            log.remove_context(key)


__all__ = [
    "COMPONENTS",
    "EVENTS",
    "config_from_env",
    "configure",
    "get_logger",
    "record_event",
    "span",
]
