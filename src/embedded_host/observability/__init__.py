from .logging import JsonlLogSink, LogMessage, LogSink, StdoutLogSink, build_log_sink

__all__ = [
    "LogMessage",
    "LogSink",
    "StdoutLogSink",
    "JsonlLogSink",
    "build_log_sink",
]
