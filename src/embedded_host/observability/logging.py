from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol, get_args, runtime_checkable

if TYPE_CHECKING:
    from embedded_host.hosting.options import LoggingConfig


LogLevel = Literal["debug", "info", "warning", "error"]
_LOG_LEVELS = frozenset(get_args(LogLevel))


@dataclass(frozen=True, slots=True)
class LogMessage:
    # Host log record: the event name, the host it came from, and event-specific fields.
    level: LogLevel
    message: str
    app_name: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ValueError(f"LogMessage.level must be one of {sorted(_LOG_LEVELS)}, got {self.level!r}")
        if not self.message:
            raise ValueError("LogMessage requires a non-empty message")


@runtime_checkable
class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        raise NotImplementedError("LogSink.emit must be implemented")


class StdoutLogSink:
    # One JSON object per line on stdout.
    def emit(self, message: LogMessage) -> None:
        print(json.dumps(log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str))


class JsonlLogSink:
    # File-backed structured log sink for host lifecycle and pipeline faults.
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")

    @property
    def path(self) -> Path:
        return self._path

    def emit(self, message: LogMessage) -> None:
        payload = json.dumps(log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
        self._file.write(payload + "\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()


def build_log_sink(config: LoggingConfig | None) -> LogSink | None:
    # Logging is optional; "none" and a missing section both mean silent.
    if config is None or config.sink == "none":
        return None
    if config.sink == "stdout":
        return StdoutLogSink()
    if config.sink == "jsonl":
        assert config.path is not None  # validated by config model
        return JsonlLogSink(Path(config.path))
    raise ValueError(f"Unsupported log sink kind: {config.sink}")


def emit(
    sink: LogSink | None,
    level: LogLevel,
    message: str,
    *,
    app_name: str | None = None,
    **fields: object,
) -> None:
    if sink is None:
        return
    sink.emit(LogMessage(level=level, message=message, app_name=app_name, fields=dict(fields)))


def log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level,
        "message": message.message,
        "app_name": message.app_name,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }
