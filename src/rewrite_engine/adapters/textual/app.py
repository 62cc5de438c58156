"""Executable Textual app: edit a transform script, watch the target rewrite."""

from __future__ import annotations

import argparse
import os
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from rich.text import Text
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, VerticalScroll
    from textual.widgets import Footer, Header, Log, Static, TextArea
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use rewrite_engine.adapters.textual.app"
    ) from exc

from rewrite_engine.buffer import Buffer, Range
from rewrite_engine.config import RewriteSettings
from rewrite_engine.transform import TransformController

from .controller import TextualRewriteAdapter, TextualUIHooks

EXAMPLE_SCRIPT = 'find(r"foo").replace(lambda text, index: text.upper())\n'


class RewriteEngineApp(App[None]):
    """Script editor on the left, live-rewritten target on the right."""

    CSS = """
	#panes {
		height: 1fr;
	}

	#script {
		width: 1fr;
		border: round $accent;
	}

	#target-scroll {
		width: 1fr;
		border: round $secondary;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#log {
		height: 8;
		border: round $surface-lighten-1;
	}
	"""

    BINDINGS = [
        ("ctrl+r", "restore", "Restore"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        target: Buffer,
        *,
        settings: Optional[RewriteSettings] = None,
        script: str = EXAMPLE_SCRIPT,
    ) -> None:
        super().__init__()
        self.target = target
        self.settings = settings or RewriteSettings.from_env()
        self.initial_script = script
        self.adapter: TextualRewriteAdapter | None = None
        self._markers: tuple[Range, ...] = ()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="panes"):
            yield TextArea(self.initial_script, id="script")
            with VerticalScroll(id="target-scroll"):
                yield Static("", id="target")
        yield Static("", id="status-line")
        yield Log(id="log")
        yield Footer()

    def on_mount(self) -> None:
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_markers=self._update_markers,
            update_status=self._update_status,
            log=self._log_line,
        )
        controller = TransformController(settings=self.settings)
        script_area = self.query_one("#script", TextArea)
        script_area.border_title = self.settings.script_name
        self.adapter = TextualRewriteAdapter(controller, self.target, hooks)
        self.adapter.handle_script_edit(self.initial_script)

    def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.adapter and event.text_area.id == "script":
            self.adapter.handle_script_edit(event.text_area.text)

    def action_restore(self) -> None:
        if self.adapter:
            self.adapter.restore()

    def _update_buffer(self, text: str) -> None:
        self._render_target(text)

    def _update_markers(self, ranges: Sequence[Range]) -> None:
        self._markers = tuple(ranges)
        self._render_target(self.target.full_text())

    def _render_target(self, text: str) -> None:
        rendered = Text(text)
        for span in self._markers:
            try:
                start = self.target.offset_at(span.start)
                end = self.target.offset_at(span.end)
            except RuntimeError:
                continue  # markers from before the last edit
            rendered.stylize("black on yellow", start, end)
        self.query_one("#target", Static).update(rendered)

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _log_line(self, line: str) -> None:
        self.query_one("#log", Log).write_line(line)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rewrite a text file live with a transform script."
    )
    parser.add_argument(
        "--target",
        type=Path,
        required=True,
        metavar="FILE",
        help="File whose text is rewritten",
    )
    parser.add_argument(
        "--script",
        type=Path,
        default=None,
        metavar="FILE",
        help="Initial transform script (default: a small example)",
    )
    parser.add_argument(
        "--script-name",
        default=None,
        help="Script document designator (env: REWRITE_ENGINE_SCRIPT_NAME)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Script time limit in seconds (env: REWRITE_ENGINE_SCRIPT_TIMEOUT)",
    )
    parser.add_argument(
        "--match-limit",
        type=int,
        default=None,
        help="Maximum matches per find (env: REWRITE_ENGINE_MATCH_LIMIT)",
    )
    return parser.parse_args(argv)


def build_settings(
    args: argparse.Namespace, env: Optional[Mapping[str, str]] = None
) -> RewriteSettings:
    """Environment settings with any command-line overrides applied."""

    settings = RewriteSettings.from_env(os.environ if env is None else env)
    overrides = {
        "script_name": args.script_name,
        "script_time_limit": args.timeout,
        "match_limit": args.match_limit,
    }
    return replace(
        settings,
        **{key: value for key, value in overrides.items() if value is not None},
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    settings = build_settings(args)
    target = Buffer.from_text(
        args.target.read_text(encoding="utf-8"), name=str(args.target)
    )
    script = (
        args.script.read_text(encoding="utf-8") if args.script else EXAMPLE_SCRIPT
    )
    RewriteEngineApp(target, settings=settings, script=script).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
