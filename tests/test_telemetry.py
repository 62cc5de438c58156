import pytest

from rewrite_engine.runtime import telemetry


def test_events_are_routed_to_their_area_logger() -> None:
    assert telemetry.EVENTS["batch.applied"] == "edits"
    assert telemetry.EVENTS["script.failed"] == "session"
    assert telemetry.get_logger("edits") is telemetry.get_logger("edits")


def test_unknown_event_names_are_refused() -> None:
    with pytest.raises(ValueError):
        telemetry.record_event("batch.exploded")


def test_unknown_span_components_are_refused() -> None:
    with pytest.raises(ValueError):
        with telemetry.span("ui::paint", component="ui"):
            pass


def test_span_reraises_failures() -> None:
    with pytest.raises(KeyError):
        with telemetry.span("history::restore_all", component="history"):
            raise KeyError("gone")


def test_configure_resets_cached_loggers() -> None:
    first = telemetry.get_logger("sandbox")

    telemetry.configure()

    assert telemetry.get_logger("sandbox") is not first
