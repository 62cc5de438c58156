import pytest

from rewrite_engine.config import (
    DEFAULT_MATCH_LIMIT,
    DEFAULT_SCRIPT_NAME,
    DEFAULT_SCRIPT_TIMEOUT,
    RewriteSettings,
)


def test_defaults_without_environment() -> None:
    settings = RewriteSettings.from_env({})

    assert settings.script_name == DEFAULT_SCRIPT_NAME
    assert settings.script_time_limit == DEFAULT_SCRIPT_TIMEOUT
    assert settings.match_limit == DEFAULT_MATCH_LIMIT
    assert settings.run_on_activate is True


def test_environment_overrides() -> None:
    settings = RewriteSettings.from_env(
        {
            "REWRITE_ENGINE_SCRIPT_NAME": "rewrite.py",
            "REWRITE_ENGINE_SCRIPT_TIMEOUT": "0.25",
            "REWRITE_ENGINE_MATCH_LIMIT": "50",
            "REWRITE_ENGINE_RUN_ON_ACTIVATE": "off",
        }
    )

    assert settings == RewriteSettings(
        script_name="rewrite.py",
        script_time_limit=0.25,
        match_limit=50,
        run_on_activate=False,
    )


def test_invalid_values_fall_back() -> None:
    settings = RewriteSettings.from_env(
        {
            "REWRITE_ENGINE_SCRIPT_NAME": "   ",
            "REWRITE_ENGINE_SCRIPT_TIMEOUT": "soon",
            "REWRITE_ENGINE_MATCH_LIMIT": "-3",
        }
    )

    assert settings == RewriteSettings()


def test_script_designator_matches_substring() -> None:
    settings = RewriteSettings()

    assert settings.is_script_document("/home/me/script.txt")
    assert not settings.is_script_document("notes.txt")
    assert not settings.is_script_document(None)


def test_constructor_validates() -> None:
    with pytest.raises(ValueError):
        RewriteSettings(match_limit=0)
    with pytest.raises(ValueError):
        RewriteSettings(script_time_limit=0)
