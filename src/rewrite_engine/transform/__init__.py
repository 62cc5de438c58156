"""Script-driven transforms: sessions, matches, hosts, and triggers."""

from .controller import TransformController, default_highlighter
from .matches import Match, MatchSet, collect_matches, compile_pattern
from .sandbox import PythonScriptHost, ScriptHost
from .session import SessionState, TransformSession

__all__ = [
    "TransformController",
    "default_highlighter",
    "Match",
    "MatchSet",
    "collect_matches",
    "compile_pattern",
    "PythonScriptHost",
    "ScriptHost",
    "SessionState",
    "TransformSession",
]
