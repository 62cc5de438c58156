"""Per-buffer transform session: restore, snapshot, run script, apply matches."""

from __future__ import annotations

from enum import Enum
from functools import partial
from typing import Optional, Sequence

from rewrite_engine.buffer.positions import Range
from rewrite_engine.buffer.sync import Highlighter, MarkerLayer, TextBuffer
from rewrite_engine.config import RewriteSettings
from rewrite_engine.edits import Edit, EditBatch, TransactionHistory
from rewrite_engine.errors import BufferWriteFailed, RestoreFailed, ScriptFailure
from rewrite_engine.runtime import telemetry

from .matches import FlagsLike, MapFn, Match, MatchSet, PatternLike, collect_matches
from .sandbox import PythonScriptHost, ScriptHost


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    RESTORING = "restoring"


class TransformSession:
    """Owns the undo scope of one managed buffer.

    Every ``update`` bumps ``token``; capabilities handed to a script remember
    the token they were created under and turn into no-ops once it is stale,
    so a late ``replace`` can never land on a buffer that has been restored.
    """

    def __init__(
        self,
        buffer: TextBuffer,
        *,
        highlighter: Optional[Highlighter] = None,
        host: Optional[ScriptHost] = None,
        settings: Optional[RewriteSettings] = None,
        history: Optional[TransactionHistory] = None,
    ) -> None:
        self.buffer = buffer
        self.highlighter = highlighter or MarkerLayer()
        self.host = host or PythonScriptHost()
        self.settings = settings or RewriteSettings()
        self.history = history or TransactionHistory()
        self.state = SessionState.IDLE
        self.token = 0
        self.closed = False
        self.last_failure: Optional[Exception] = None
        self.logger = telemetry.get_logger("session")

    @property
    def name(self) -> str:
        return str(getattr(self.buffer, "name", "buffer"))

    def update(self, script_source: str) -> bool:
        """Undo the previous run, then run ``script_source`` in a fresh scope.

        Returns ``False`` when the script failed or the session is closed.
        """

        if self.closed:
            return False
        self.token += 1
        token = self.token
        if not self.restore():
            return False

        self.history.open_scope()
        self.state = SessionState.RUNNING
        self.last_failure = None
        telemetry.record_event(
            "session.update", data={"buffer": self.name, "token": token}
        )
        capabilities = {"find": partial(self._find, token)}
        try:
            self.host.run(script_source, capabilities, self.settings.script_time_limit)
        except ScriptFailure as exc:
            self.last_failure = exc
            telemetry.record_event(
                "script.failed",
                level="warning",
                data={"buffer": self.name, "reason": exc.reason, "error": str(exc)},
            )
            return False
        return True

    def restore(self) -> bool:
        """Undo every batch recorded since the last scope opened."""

        if self.closed:
            return False
        self.state = SessionState.RESTORING
        try:
            self.highlighter.set_markers(())
            self.history.restore_all(self.buffer)
        except RestoreFailed as exc:
            self.last_failure = exc
            self.logger.error(f"restore failed for '{self.name}': {exc}")
            self._close()
            return False
        self.state = SessionState.IDLE
        return True

    def restore_and_close(self) -> None:
        if self.closed:
            return
        self.token += 1
        self.restore()
        self._close()

    def _close(self) -> None:
        self.history.disable()
        self.state = SessionState.IDLE
        self.closed = True

    def _is_current(self, token: int) -> bool:
        return (
            not self.closed
            and token == self.token
            and self.state is SessionState.RUNNING
        )

    def _find(self, token: int, pattern: PatternLike, flags: FlagsLike = 0) -> MatchSet:
        matches = collect_matches(
            self.buffer, pattern, flags=flags, limit=self.settings.match_limit
        )
        telemetry.record_event(
            "matches.found",
            level="debug",
            data={"buffer": self.name, "count": len(matches)},
        )
        self._select(token, [match.range for match in matches])
        return MatchSet(
            matches,
            on_replace=partial(self._replace, token),
            on_select=partial(self._select, token),
        )

    def _select(self, token: int, ranges: Sequence[Range]) -> None:
        if self._is_current(token):
            self.highlighter.set_markers(ranges)

    def _replace(self, token: int, matches: Sequence[Match], map_fn: MapFn) -> bool:
        if not self._is_current(token):
            telemetry.record_event(
                "session.replace_ignored",
                level="warning",
                data={"buffer": self.name, "token": token, "current": self.token},
            )
            return False

        edits = []
        for idx, match in enumerate(matches):
            new_text = map_fn(match.text, idx)
            if not isinstance(new_text, str):
                raise TypeError(
                    f"replacement for match {idx} must be str, not {type(new_text).__name__}"
                )
            edits.append(Edit(match.range, new_text))

        # the map function may have triggered a newer run or a restore
        if not self._is_current(token):
            return False

        try:
            inverse = EditBatch(edits).apply(self.buffer)
        except BufferWriteFailed as exc:
            self.logger.error(f"replace aborted for '{self.name}': {exc}")
            raise
        self.history.record(inverse)
        return True


__all__ = ["SessionState", "TransformSession"]
