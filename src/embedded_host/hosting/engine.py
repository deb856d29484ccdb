from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from embedded_host.errors import InvalidConfigurationError
from embedded_host.hosting.options import StartOptions
from embedded_host.hosting.server_factory import LifecycleToken, ServerFactoryAdapter
from embedded_host.hosting.startup import Startup, resolve_startup
from embedded_host.pipeline.builder import AppBuilder, DisposeCallback
from embedded_host.pipeline.environment import HOST_APP_NAME

BuilderFactory = Callable[[], AppBuilder]


@dataclass(slots=True)
class StartContext:
    # Everything the engine needs for one start: options, startup and the server seam.
    options: StartOptions
    server_factory: ServerFactoryAdapter
    startup: Startup | None = None
    builder_factory: BuilderFactory = AppBuilder
    properties: dict[str, object] = field(default_factory=dict)


@runtime_checkable
class HostingEngine(Protocol):
    # Narrow engine contract consumed by the host: one start per host handle.
    def start(self, context: StartContext) -> LifecycleToken:
        raise NotImplementedError("HostingEngine.start must be implemented")


class StartedEngine:
    # Started-engine token: runs startup-registered teardown, then releases the server token.
    def __init__(self, server_token: LifecycleToken, dispose_callbacks: list[DisposeCallback]) -> None:
        self._server_token = server_token
        self._dispose_callbacks = list(dispose_callbacks)
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        errors = run_teardown(self._dispose_callbacks)
        self._server_token.release()
        if errors:
            raise errors[0]


class LocalHostingEngine:
    """Default in-process engine: runs the startup against a fresh builder.

    Order of a start: seed builder properties, let the server factory
    initialize them, run the startup (the context's callback, or the one
    resolved from ``options.app_startup``), build the chain, and hand it to
    the server factory.
    """

    def start(self, context: StartContext) -> LifecycleToken:
        options = context.options
        app = context.builder_factory()
        app.properties.update(context.properties)
        app.properties.update(options.settings)
        app.properties[HOST_APP_NAME] = options.app_name or options.app_startup or ""
        context.server_factory.initialize(app.properties)

        startup = context.startup
        if startup is None:
            if not options.app_startup:
                raise InvalidConfigurationError("StartOptions.app_startup is required when no startup callback is given")
            startup = resolve_startup(options.app_startup)

        try:
            startup(app)
            entry_point = app.build()
            server_token = context.server_factory.create(entry_point, app.properties)
        except BaseException as exc:
            # A failed start still tears down what the startup registered; the start error wins.
            for error in run_teardown(app.dispose_callbacks):
                exc.add_note(f"teardown after failed start raised {type(error).__name__}: {error}")
            raise
        return StartedEngine(server_token, app.dispose_callbacks)


def run_teardown(callbacks: list[DisposeCallback]) -> list[Exception]:
    # Reverse order mirrors registration during startup; every callback runs.
    errors: list[Exception] = []
    for callback in reversed(callbacks):
        try:
            callback()
        except Exception as exc:  # noqa: BLE001 - collected for the caller
            errors.append(exc)
    return errors
