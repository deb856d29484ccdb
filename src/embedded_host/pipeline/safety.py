from __future__ import annotations

import io
from collections.abc import Callable

from embedded_host.observability.logging import LogSink, emit
from embedded_host.pipeline.environment import (
    HOST_ERROR,
    REQUEST_PATH,
    RESPONSE_BODY,
    RESPONSE_HEADERS,
    RESPONSE_REASON_PHRASE,
    RESPONSE_STATUS_CODE,
    AppFunc,
    Environment,
)

# Turns a downstream fault into a response by mutating the environment.
ExceptionTranslator = Callable[[Environment, Exception], None]

FAULT_STATUS_CODE = 500
FAULT_REASON_PHRASE = "Internal Server Error"


def default_exception_translator(env: Environment, exc: Exception) -> None:
    _ = exc
    env[RESPONSE_STATUS_CODE] = FAULT_STATUS_CODE
    env[RESPONSE_REASON_PHRASE] = FAULT_REASON_PHRASE
    env[RESPONSE_HEADERS] = {}
    env[RESPONSE_BODY] = io.BytesIO()


def detailed_exception_translator(env: Environment, exc: Exception) -> None:
    # Same status as the default, but the body names the fault for easier test diagnostics.
    default_exception_translator(env, exc)
    env[RESPONSE_HEADERS] = {"Content-Type": "text/plain; charset=utf-8"}
    env[RESPONSE_BODY] = io.BytesIO(f"{type(exc).__name__}: {exc}".encode("utf-8"))


class SafetyMiddleware:
    """Outermost link of every callback-configured chain.

    Faults raised downstream never cross this boundary: they are handed to the
    translator, which rewrites the environment into a failure response. The
    original exception stays available under ``host.error``. Cancellation is a
    ``BaseException`` and passes through untouched.
    """

    def __init__(
        self,
        next_app: AppFunc,
        *,
        translator: ExceptionTranslator = default_exception_translator,
        log_sink: LogSink | None = None,
        app_name: str | None = None,
    ) -> None:
        self._next = next_app
        self._translator = translator
        self._log_sink = log_sink
        self._app_name = app_name

    async def __call__(self, env: Environment) -> None:
        try:
            await self._next(env)
        except Exception as exc:  # noqa: BLE001 - recovered into a response
            env[HOST_ERROR] = exc
            emit(
                self._log_sink,
                "error",
                "pipeline.fault",
                app_name=self._app_name,
                error_type=type(exc).__name__,
                error=str(exc),
                path=env.get(REQUEST_PATH),
            )
            self._translator(env, exc)
