"""Trigger surface mapping editor events onto per-buffer sessions."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from rewrite_engine.buffer.sync import Highlighter, MarkerLayer, TextBuffer
from rewrite_engine.config import RewriteSettings
from rewrite_engine.runtime import telemetry

from .sandbox import PythonScriptHost, ScriptHost
from .session import TransformSession

HighlighterFactory = Callable[[TextBuffer], Highlighter]


def default_highlighter(buffer: TextBuffer) -> Highlighter:
    markers = getattr(buffer, "markers", None)
    if markers is not None and callable(getattr(markers, "set_markers", None)):
        return markers
    return MarkerLayer()


class TransformController:
    """Routes "script changed" and "active target changed" events.

    Documents whose name contains the configured script designator are script
    sources; any other buffer that becomes active is the transform target.
    """

    def __init__(
        self,
        *,
        settings: Optional[RewriteSettings] = None,
        host: Optional[ScriptHost] = None,
        highlighter_factory: HighlighterFactory = default_highlighter,
    ) -> None:
        self.settings = settings or RewriteSettings()
        self.host = host or PythonScriptHost()
        self._highlighter_factory = highlighter_factory
        self._sessions: Dict[int, TransformSession] = {}
        self._active_key: Optional[int] = None
        self.script_source: Optional[str] = None
        self.logger = telemetry.get_logger("controller")

    @property
    def active_session(self) -> Optional[TransformSession]:
        if self._active_key is None:
            return None
        return self._sessions.get(self._active_key)

    def session_for(self, buffer: TextBuffer) -> Optional[TransformSession]:
        return self._sessions.get(id(buffer))

    def document_changed(self, name: Optional[str], text: str) -> bool:
        """Handle an edit to any document; only script documents re-run."""

        if not self.settings.is_script_document(name):
            return False
        self.script_source = text
        return self._rerun()

    def active_target_changed(
        self, name: Optional[str], buffer: Optional[TextBuffer]
    ) -> None:
        """Handle a change of the active editor (``buffer`` is ``None`` for none)."""

        if buffer is not None and self.settings.is_script_document(name):
            self.script_source = buffer.full_text()
            self._rerun()
            return

        telemetry.record_event(
            "controller.target_changed",
            data={"name": name or "", "has_buffer": buffer is not None},
        )
        current = self.active_session
        if current is not None and (buffer is None or current.buffer is not buffer):
            self._release(self._active_key)

        if buffer is None:
            self._active_key = None
            return

        key = id(buffer)
        if key not in self._sessions:
            self._sessions[key] = TransformSession(
                buffer,
                highlighter=self._highlighter_factory(buffer),
                host=self.host,
                settings=self.settings,
            )
        self._active_key = key
        if self.settings.run_on_activate and self.script_source is not None:
            self._rerun()

    def buffer_closed(self, buffer: TextBuffer) -> None:
        key = id(buffer)
        if key not in self._sessions:
            return
        self._release(key)
        if self._active_key == key:
            self._active_key = None

    def restore_active(self) -> bool:
        session = self.active_session
        if session is None:
            return False
        return session.restore()

    def shutdown(self) -> None:
        for key in list(self._sessions):
            self._release(key)
        self._active_key = None

    def _rerun(self) -> bool:
        session = self.active_session
        if session is None or self.script_source is None:
            return False
        return session.update(self.script_source)

    def _release(self, key: Optional[int]) -> None:
        if key is None:
            return
        session = self._sessions.pop(key, None)
        if session is not None:
            session.restore_and_close()


__all__ = ["TransformController", "default_highlighter", "HighlighterFactory"]
