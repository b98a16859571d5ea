# tests/test_utils.py
"""Tests for logging, error tracking, YAML IO and progress helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from rigctld.utils import (
    ErrorTracker,
    configure,
    dump_yaml,
    error_scope,
    get_logger,
    load_yaml,
    track,
)
from rigctld.utils.error_tracker import HISTORY_LIMIT
from rigctld.utils.logger import current_log_file, logging_context


@pytest.fixture
def reset_logging() -> Iterator[None]:
    yield
    configure(level="INFO", log_dir="")


def test_tag_writes_console_line(capsys: pytest.CaptureFixture[str], reset_logging: None) -> None:
    configure(level="DEBUG", log_dir="")
    log = get_logger("rigctld.test")

    log.tag("WIRE", "tx {}", "get_freq")

    out = capsys.readouterr().out
    assert "[WIRE] tx get_freq" in out
    assert "rigctld.test" in out


def test_tag_respects_level(capsys: pytest.CaptureFixture[str], reset_logging: None) -> None:
    configure(level="WARNING", log_dir="")
    log = get_logger("rigctld.test")

    log.tag("NET", "quiet", level="info")
    log.tag("NET", "loud", level="warning")

    out = capsys.readouterr().out
    assert "quiet" not in out
    assert "[NET] loud" in out


def test_file_sink(tmp_path: Path, reset_logging: None) -> None:
    configure(level="INFO", log_dir=tmp_path)
    get_logger("rigctld.test").info("to file")

    log_file = current_log_file()
    assert log_file is not None
    assert log_file.parent == tmp_path
    assert log_file.name.startswith("rigctld_")
    assert "to file" in log_file.read_text(encoding="utf-8")


def test_logging_context_yields_logger(capsys: pytest.CaptureFixture[str], reset_logging: None) -> None:
    with logging_context(level="INFO", log_dir="") as log:
        log.info("inside context")
    assert "inside context" in capsys.readouterr().out
    assert current_log_file() is None


def test_error_tracker_record_and_summary() -> None:
    tracker = ErrorTracker(context="test")
    assert tracker.summary() == {}

    tracker.record("connect", "refused")
    tracker.record("connect", "timed out")

    assert tracker.summary() == {"connect": ["refused", "timed out"]}


def test_error_tracker_report_history() -> None:
    ErrorTracker.report(ConnectionRefusedError(111, "refused"), key="connect")

    history = ErrorTracker.history()
    assert len(history) == 1
    key, message = history[0]
    assert key == "connect"
    assert message.startswith("ConnectionRefusedError")

    ErrorTracker.clear_history()
    assert ErrorTracker.history() == []


def test_error_history_is_bounded() -> None:
    for n in range(HISTORY_LIMIT + 50):
        ErrorTracker.report(TimeoutError(f"attempt {n}"), key="timeout")

    history = ErrorTracker.history()
    assert len(history) == HISTORY_LIMIT
    assert history[0] == ("timeout", "TimeoutError: attempt 50")
    assert history[-1] == ("timeout", f"TimeoutError: attempt {HISTORY_LIMIT + 49}")


def test_cleanups_run_despite_failures() -> None:
    calls: list[str] = []

    def broken() -> None:
        calls.append("broken")
        raise RuntimeError("boom")

    def fine() -> None:
        calls.append("fine")

    ErrorTracker.register_cleanup(broken)
    ErrorTracker.register_cleanup(fine)
    try:
        ErrorTracker.run_cleanups()
    finally:
        ErrorTracker.unregister_cleanup(broken)
        ErrorTracker.unregister_cleanup(fine)

    assert calls == ["broken", "fine"]


def test_error_scope_reraises() -> None:
    with pytest.raises(ValueError, match="bad passband"):
        with error_scope("test") as tracker:
            raise ValueError("bad passband")
    assert tracker.errors == {"ValueError": ["bad passband"]}


def test_yaml_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.yaml"
    dump_yaml(path, {"daemon": {"model": 1, "host": "127.0.0.1"}})
    assert load_yaml(path) == {"daemon": {"model": 1, "host": "127.0.0.1"}}


def test_track_yields_everything() -> None:
    assert list(track(range(5), description="sweep")) == [0, 1, 2, 3, 4]
