from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from embedded_host.errors import PipelineBuildError
from embedded_host.pipeline.environment import (
    RESPONSE_STATUS_CODE,
    AppFunc,
    Environment,
    Middleware,
)

# Teardown callbacks run synchronously when the started-engine token is released.
DisposeCallback = Callable[[], None]
Handler = Callable[[Environment], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class MiddlewareSpec:
    # A registration recorded by use(); factory arguments are applied at build time.
    factory: Middleware
    args: tuple[object, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return getattr(self.factory, "__qualname__", type(self.factory).__name__)


async def not_found(env: Environment) -> None:
    # Terminal link used when the chain never sets a handler of its own.
    env[RESPONSE_STATUS_CODE] = 404


class AppBuilder:
    # Ordered middleware registry; build() composes the chain head-to-tail.
    def __init__(self, properties: dict[str, object] | None = None) -> None:
        self.properties: dict[str, object] = {} if properties is None else dict(properties)
        self._middleware: list[MiddlewareSpec] = []
        self._terminal: AppFunc | None = None
        self._dispose_callbacks: list[DisposeCallback] = []
        self._built = False

    @property
    def middleware(self) -> list[MiddlewareSpec]:
        return list(self._middleware)

    @property
    def dispose_callbacks(self) -> list[DisposeCallback]:
        return list(self._dispose_callbacks)

    def use(self, middleware: Middleware, *args: object, **kwargs: Any) -> AppBuilder:
        # Registration order is call order.
        self._ensure_open()
        if not callable(middleware):
            raise PipelineBuildError(f"Middleware must be callable, got {type(middleware).__name__}")
        self._middleware.append(MiddlewareSpec(factory=middleware, args=args, kwargs=kwargs))
        return self

    def run(self, handler: Handler) -> AppBuilder:
        # Terminal handler; later middleware registrations still wrap it.
        self._ensure_open()
        if not callable(handler):
            raise PipelineBuildError(f"Handler must be callable, got {type(handler).__name__}")
        if self._terminal is not None:
            raise PipelineBuildError("Terminal handler is already set")
        self._terminal = _as_app(handler)
        return self

    def on_dispose(self, callback: DisposeCallback) -> AppBuilder:
        if not callable(callback):
            raise PipelineBuildError("Dispose callback must be callable")
        self._dispose_callbacks.append(callback)
        return self

    def build(self) -> AppFunc:
        self._ensure_open()
        self._built = True
        app: AppFunc = self._terminal if self._terminal is not None else not_found
        # Wrap from the tail so the first registration ends up outermost.
        for spec in reversed(self._middleware):
            try:
                app = spec.factory(app, *spec.args, **spec.kwargs)
            except Exception as exc:  # noqa: BLE001 - wrap with explicit error
                raise PipelineBuildError(f"Failed to build middleware '{spec.name}': {exc}") from exc
            if not callable(app):
                raise PipelineBuildError(f"Middleware '{spec.name}' did not return a callable")
            # Synchronous links are lifted so the next awaiting link never sees a plain return value.
            app = _as_app(app)
        return app

    def _ensure_open(self) -> None:
        if self._built:
            raise PipelineBuildError("AppBuilder has already been built")


def _as_app(handler: Handler) -> AppFunc:
    if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    ):
        return handler  # type: ignore[return-value]

    async def _app(env: Environment) -> None:
        result = handler(env)
        if inspect.isawaitable(result):
            await result

    return _app
