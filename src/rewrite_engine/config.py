"""Runtime settings for sessions and the trigger surface."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "REWRITE_ENGINE_"

DEFAULT_SCRIPT_NAME = "script.txt"
DEFAULT_SCRIPT_TIMEOUT = 1.0
DEFAULT_MATCH_LIMIT = 1000


def _lookup(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def _float(env: Mapping[str, str], name: str, fallback: float) -> float:
    raw = _lookup(env, name)
    if raw is None:
        return fallback
    try:
        value = float(raw)
    except ValueError:
        return fallback
    return value if value > 0 else fallback


def _int(env: Mapping[str, str], name: str, fallback: int) -> int:
    raw = _lookup(env, name)
    if raw is None:
        return fallback
    try:
        value = int(raw)
    except ValueError:
        return fallback
    return value if value > 0 else fallback


def _flag(env: Mapping[str, str], name: str, fallback: bool) -> bool:
    raw = _lookup(env, name)
    if raw is None:
        return fallback
    return raw.lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class RewriteSettings:
    """Knobs shared by the controller and every session it opens."""

    script_name: str = DEFAULT_SCRIPT_NAME
    script_time_limit: float = DEFAULT_SCRIPT_TIMEOUT
    match_limit: int = DEFAULT_MATCH_LIMIT
    run_on_activate: bool = True

    def __post_init__(self) -> None:
        if not self.script_name:
            raise ValueError("script_name cannot be empty")
        if self.script_time_limit <= 0:
            raise ValueError("script_time_limit must be positive")
        if self.match_limit <= 0:
            raise ValueError("match_limit must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RewriteSettings":
        """Build settings from ``REWRITE_ENGINE_*`` variables; bad values fall back."""

        source = os.environ if env is None else env
        return cls(
            script_name=_lookup(source, "SCRIPT_NAME") or DEFAULT_SCRIPT_NAME,
            script_time_limit=_float(source, "SCRIPT_TIMEOUT", DEFAULT_SCRIPT_TIMEOUT),
            match_limit=_int(source, "MATCH_LIMIT", DEFAULT_MATCH_LIMIT),
            run_on_activate=_flag(source, "RUN_ON_ACTIVATE", True),
        )

    def is_script_document(self, name: Optional[str]) -> bool:
        return bool(name) and self.script_name in str(name)


__all__ = [
    "RewriteSettings",
    "DEFAULT_SCRIPT_NAME",
    "DEFAULT_SCRIPT_TIMEOUT",
    "DEFAULT_MATCH_LIMIT",
]
