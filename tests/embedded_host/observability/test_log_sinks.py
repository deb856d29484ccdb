from __future__ import annotations

import json
from pathlib import Path

import pytest

from embedded_host.hosting.options import LoggingConfig
from embedded_host.observability.logging import (
    JsonlLogSink,
    LogMessage,
    LogSink,
    StdoutLogSink,
    build_log_sink,
    emit,
)


def test_log_message_requires_level_and_message() -> None:
    with pytest.raises(ValueError):
        LogMessage(level="", message="x")
    with pytest.raises(ValueError):
        LogMessage(level="info", message="")


def test_stdout_sink_writes_one_json_line(capsys: pytest.CaptureFixture[str]) -> None:
    StdoutLogSink().emit(LogMessage(level="info", message="host.started", fields={"app_name": "a"}))
    line = capsys.readouterr().out.strip()
    record = json.loads(line)
    assert record["message"] == "host.started"
    assert record["fields"] == {"app_name": "a"}
    assert record["timestamp"].endswith("Z")


def test_jsonl_sink_appends_records(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "log.jsonl"
    sink = JsonlLogSink(path)
    emit(sink, "info", "one")
    emit(sink, "error", "two", code=7)
    sink.close()
    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [(r["level"], r["message"]) for r in records] == [("info", "one"), ("error", "two")]
    assert records[1]["fields"] == {"code": 7}


def test_emit_without_sink_is_silent() -> None:
    emit(None, "info", "ignored")


def test_build_log_sink_from_config(tmp_path: Path) -> None:
    assert build_log_sink(None) is None
    assert build_log_sink(LoggingConfig()) is None
    assert isinstance(build_log_sink(LoggingConfig(sink="stdout")), StdoutLogSink)
    sink = build_log_sink(LoggingConfig(sink="jsonl", path=str(tmp_path / "h.jsonl")))
    assert isinstance(sink, JsonlLogSink)
    assert isinstance(sink, LogSink)
    sink.close()


def test_log_message_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        LogMessage(level="verbose", message="x")  # type: ignore[arg-type]


def test_log_records_carry_app_name(tmp_path: Path) -> None:
    path = tmp_path / "log.jsonl"
    sink = JsonlLogSink(path)
    emit(sink, "warning", "host.started", app_name="orders-api", app_startup="orders:Startup")
    sink.close()
    record = json.loads(path.read_text(encoding="utf-8"))
    assert record["app_name"] == "orders-api"
    assert record["fields"] == {"app_startup": "orders:Startup"}
