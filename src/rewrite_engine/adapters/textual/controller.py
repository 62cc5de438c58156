"""UI-agnostic adapter that wires the transform controller into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Sequence

from rewrite_engine.buffer import Buffer, BufferDelta, Range
from rewrite_engine.transform import TransformController


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[str], None]
    update_markers: Callable[[Sequence[Range]], None] = _noop
    update_status: Callable[[str], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


class TextualRewriteAdapter:
    """Bridges script edits and target switches to a Textual-friendly surface."""

    def __init__(
        self,
        controller: TransformController,
        target: Buffer,
        hooks: TextualUIHooks,
    ) -> None:
        self.controller = controller
        self.hooks = hooks
        self.target = target
        self._watched: set[int] = set()
        self.switch_target(target)

    def handle_script_edit(self, text: str) -> bool:
        """Forward the new script source and report how the run went."""

        self._log_state("script ->", length=len(text))
        applied = self.controller.document_changed(
            self.controller.settings.script_name, text
        )
        self._after_run(applied)
        return applied

    def switch_target(self, buffer: Buffer) -> None:
        self.target = buffer
        if id(buffer) not in self._watched:
            buffer.subscribe(self._on_buffer_delta)
            self._watched.add(id(buffer))
        self._log_state("target ->", name=buffer.name)
        self.controller.active_target_changed(buffer.name, buffer)
        self._refresh_buffer()
        self._refresh_markers()

    def restore(self) -> bool:
        restored = self.controller.restore_active()
        self.hooks.update_status("restored" if restored else "restore_failed")
        self._log_state("restore <-", restored=restored)
        self._refresh_buffer()
        self._refresh_markers()
        return restored

    def close(self) -> None:
        self.controller.buffer_closed(self.target)
        self._log_state("close <-")
        self._refresh_buffer()
        self._refresh_markers()

    def _after_run(self, applied: bool) -> None:
        session = self.controller.active_session
        failure = session.last_failure if session else None
        if session is None:
            status = "no_target"
        elif failure is not None:
            reason = getattr(failure, "reason", type(failure).__name__)
            status = f"script_failed:{reason}"
        else:
            status = "applied" if applied else "idle"
        self.hooks.update_status(status)
        self._refresh_markers()
        self._log_state(
            "result <-",
            status=status,
            error=str(failure) if failure else None,
        )

    def _on_buffer_delta(self, delta: BufferDelta) -> None:
        self._log_state("delta ->", label=delta.label, edits=delta.edit_count)
        self._refresh_buffer()

    def _refresh_buffer(self) -> None:
        self.hooks.update_buffer(self.target.full_text())

    def _refresh_markers(self) -> None:
        self.hooks.update_markers(self.target.markers.ranges)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        session = self.controller.active_session
        return {
            "buffer": self.target.name,
            "buffer_version": self.target.version,
            "session": session.state.value if session else None,
            "token": session.token if session else None,
            "history": len(session.history) if session else 0,
        }


__all__ = ["TextualRewriteAdapter", "TextualUIHooks"]
