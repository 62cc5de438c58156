from pathlib import Path

import pytest

pytest.importorskip("textual")

from rewrite_engine.adapters.textual.app import _parse_args, build_settings  # noqa: E402
from rewrite_engine.config import RewriteSettings  # noqa: E402


def test_cli_overrides_environment_settings() -> None:
    args = _parse_args(
        ["--target", "notes.txt", "--script-name", "rewrite.py", "--timeout", "0.5"]
    )

    settings = build_settings(args, {"REWRITE_ENGINE_MATCH_LIMIT": "20"})

    assert args.target == Path("notes.txt")
    assert settings == RewriteSettings(
        script_name="rewrite.py", script_time_limit=0.5, match_limit=20
    )


def test_cli_defaults_come_from_environment() -> None:
    args = _parse_args(["--target", "notes.txt"])

    assert args.script is None
    assert build_settings(args, {}) == RewriteSettings()


def test_cli_requires_a_target() -> None:
    with pytest.raises(SystemExit):
        _parse_args([])
