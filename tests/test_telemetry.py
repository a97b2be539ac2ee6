import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pytest

from history_engine.runtime import telemetry


@pytest.fixture(autouse=True)
def restore_config():
    yield
    telemetry.configure()


@contextmanager
def capture_into(
    caplog: pytest.LogCaptureFixture, log: telemetry.ContextLogger, level: int
) -> Iterator[None]:
    # package loggers do not propagate, so hand caplog's handler to the logger
    caplog.handler.setLevel(level)
    log.log.addHandler(caplog.handler)
    try:
        yield
    finally:
        log.log.removeHandler(caplog.handler)


def read_lines(path: Path) -> list[str]:
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line]


def test_record_event_includes_data(caplog: pytest.LogCaptureFixture) -> None:
    telemetry.configure(
        config=telemetry.TelemetryConfig(min_level="DEBUG", console=False)
    )
    log = telemetry.get_logger("history_engine.test_events")

    with capture_into(caplog, log, logging.DEBUG):
        telemetry.record_event(
            "history.undo.boundary",
            level="debug",
            data={"pointer": 0},
            logger_name="history_engine.test_events",
        )

    assert "event::history.undo.boundary" in caplog.text
    assert "pointer=0" in caplog.text


def test_span_logs_failure_and_reraises(caplog: pytest.LogCaptureFixture) -> None:
    telemetry.configure(config=telemetry.TelemetryConfig(console=False))
    log = telemetry.get_logger("history_engine.test_span")

    with capture_into(caplog, log, logging.ERROR):
        with pytest.raises(KeyError):
            with telemetry.span(
                "history::commit",
                logger_name="history_engine.test_span",
                component="history",
                metadata={"store": "doc"},
            ):
                raise KeyError("missing")

    assert "span::fail" in caplog.text
    assert "store=doc" in caplog.text
    assert log.context() == {}


def test_buffered_json_file_output(tmp_path: Path) -> None:
    log_file = tmp_path / "history.jsonl"
    telemetry.configure(
        config=telemetry.TelemetryConfig(
            console=False, json_format=True, log_file=str(log_file), buffered=True
        )
    )

    telemetry.record_event(
        "history.commit", data={"pointer": 3}, logger_name="history_engine.test_json"
    )
    assert not log_file.exists() or read_lines(log_file) == []

    # swapping configs closes the buffer, which flushes it to the file
    telemetry.configure(config=telemetry.TelemetryConfig(console=False))

    [line] = read_lines(log_file)
    payload = json.loads(line)
    assert payload["level"] == "INFO"
    assert payload["logger"] == "history_engine.test_json"
    assert payload["event"] == "history.commit"
    assert payload["pointer"] == "3"
    assert payload["message"].startswith("event::history.commit")


def test_buffered_file_flushes_on_error(tmp_path: Path) -> None:
    log_file = tmp_path / "history.log"
    telemetry.configure(
        config=telemetry.TelemetryConfig(
            console=False, log_file=str(log_file), buffered=True
        )
    )

    telemetry.record_event(
        "history.reset", level="error", logger_name="history_engine.test_text"
    )

    [line] = read_lines(log_file)
    assert "[ERROR   ]" in line
    assert "history_engine.test_text: event::history.reset" in line


def test_production_preset_writes_formatted_lines(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    log_file = tmp_path / "prod.log"
    monkeypatch.setenv("HISTORY_ENGINE_LOG_FILE", str(log_file))
    telemetry.configure(preset="production")

    telemetry.record_event("history.redo", logger_name="history_engine.test_prod")
    telemetry.configure(config=telemetry.TelemetryConfig(console=False))

    [line] = read_lines(log_file)
    assert line.startswith("[")
    assert "[INFO    ]" in line
    assert "event::history.redo" in line


def test_nested_span_restores_outer_context() -> None:
    log = telemetry.get_logger("history_engine.test_nested")

    with telemetry.span(
        "outer", logger_name="history_engine.test_nested", metadata={"store": "a"}
    ):
        with telemetry.span(
            "inner", logger_name="history_engine.test_nested", metadata={"store": "b"}
        ):
            assert log.context() == {"store": "b"}
        assert log.context() == {"store": "a"}

    assert log.context() == {}


def test_configure_rejects_config_and_preset() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=telemetry.TelemetryConfig(), preset="development")


def test_unknown_preset() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="verbose")


def test_development_preset_lowers_level() -> None:
    telemetry.configure(preset="development")

    assert telemetry.active_config().min_level == "DEBUG"
    assert telemetry.get_logger().log.level == logging.DEBUG


def test_unsupported_level() -> None:
    with pytest.raises(ValueError):
        telemetry.record_event("oops", level="loud")
