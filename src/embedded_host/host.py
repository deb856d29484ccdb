from __future__ import annotations

import threading
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType, TracebackType
from typing import Any

from embedded_host.config.loader import load_start_options, parse_start_options
from embedded_host.errors import (
    HostAlreadyConfiguredError,
    HostDisposedError,
    InvalidConfigurationError,
    UninitializedPipelineError,
)
from embedded_host.hosting.engine import BuilderFactory, HostingEngine, LocalHostingEngine, StartContext
from embedded_host.hosting.options import StartOptions
from embedded_host.hosting.server_factory import LifecycleToken, PipelineCapture, ServerFactoryAdapter
from embedded_host.hosting.startup import Startup, startup_identifier
from embedded_host.observability.logging import LogSink, build_log_sink, emit
from embedded_host.pipeline.builder import AppBuilder
from embedded_host.pipeline.environment import Environment
from embedded_host.pipeline.registry import MiddlewareRegistry
from embedded_host.pipeline.safety import ExceptionTranslator, SafetyMiddleware, default_exception_translator


class EmbeddedHost:
    """In-memory host for a middleware pipeline.

    Runs the same startup an application would run in production, but the
    server factory captures the built chain instead of listening on a socket.
    Requests are dispatched by awaiting :meth:`dispatch` with an environment
    mapping; the response is read back from the same mapping.

    Configuration is one-shot. Use :meth:`create` or
    :meth:`create_from_startup_type`, and release the host with
    :meth:`dispose` or a ``with`` block.
    """

    def __init__(
        self,
        *,
        engine: HostingEngine | None = None,
        builder_factory: BuilderFactory = AppBuilder,
        translator: ExceptionTranslator = default_exception_translator,
        log_sink: LogSink | None = None,
    ) -> None:
        self._engine: HostingEngine = engine if engine is not None else LocalHostingEngine()
        self._builder_factory = builder_factory
        self._translator = translator
        self._log_sink = log_sink
        self._owned_log_sink: LogSink | None = None
        self._capture: PipelineCapture | None = None
        self._started: LifecycleToken | None = None
        self._app_name: str | None = None
        self._configured = False
        self._disposed = False
        self._lock = threading.Lock()

    @classmethod
    def create(
        cls,
        startup: Startup,
        options: StartOptions | dict[str, object] | None = None,
        *,
        app_name: str | None = None,
        **kwargs: Any,
    ) -> EmbeddedHost:
        host = cls(**kwargs)
        host.configure(startup, options, app_name=app_name)
        return host

    @classmethod
    def create_from_startup_type(
        cls,
        startup_type: type | str,
        options: StartOptions | dict[str, object] | None = None,
        **kwargs: Any,
    ) -> EmbeddedHost:
        host = cls(**kwargs)
        host.configure_startup_type(startup_type, options)
        return host

    @classmethod
    def create_from_config(cls, path: Path, registry: MiddlewareRegistry, **kwargs: Any) -> EmbeddedHost:
        # YAML-declared pipeline; runs the callback path so the safety middleware is present.
        host = cls(**kwargs)
        host.configure_from_options(load_start_options(path), registry)
        return host

    @property
    def configured(self) -> bool:
        return self._configured

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def app_name(self) -> str | None:
        return self._app_name

    @property
    def properties(self) -> Mapping[str, object]:
        # Builder properties as seen by the server factory at capture time.
        if self._capture is None:
            return MappingProxyType({})
        return self._capture.properties

    def configure(
        self,
        startup: Startup,
        options: StartOptions | dict[str, object] | None = None,
        *,
        app_name: str | None = None,
    ) -> None:
        if startup is None:
            raise InvalidConfigurationError("startup callback is required")
        if not callable(startup):
            raise InvalidConfigurationError(f"startup must be callable, got {type(startup).__name__}")
        self._ensure_configurable()
        resolved = parse_start_options(options).model_copy(deep=True)
        if not (resolved.app_startup or "").strip():
            # Naming only; nothing dispatch-related depends on it.
            resolved.app_startup = app_name or _describe_callable(startup)

        translator = self._translator
        log_sink = self._log_sink_for(resolved)
        label = resolved.app_name or resolved.app_startup

        def wrapped_startup(app: AppBuilder) -> None:
            app.use(SafetyMiddleware, translator=translator, log_sink=log_sink, app_name=label)
            startup(app)

        self._start(resolved, wrapped_startup, log_sink)

    def configure_startup_type(
        self,
        startup_type: type | str,
        options: StartOptions | dict[str, object] | None = None,
    ) -> None:
        # The engine resolves the startup from the identifier; no safety middleware is added here.
        if startup_type is None:
            raise InvalidConfigurationError("startup type is required")
        if isinstance(startup_type, str) and not startup_type.strip():
            raise InvalidConfigurationError("startup type identifier must be a non-empty string")
        self._ensure_configurable()
        resolved = parse_start_options(options).model_copy(deep=True)
        try:
            resolved.app_startup = startup_identifier(startup_type)
        except TypeError as exc:
            raise InvalidConfigurationError(str(exc)) from exc
        self._start(resolved, None, self._log_sink_for(resolved))

    def configure_from_options(self, options: StartOptions, registry: MiddlewareRegistry) -> None:
        if options.pipeline is None or not options.pipeline.middleware:
            raise InvalidConfigurationError("options.pipeline.middleware must declare at least one middleware")
        declarations = list(options.pipeline.middleware)
        # Fail before the engine starts if a name is unknown.
        for decl in declarations:
            registry.get(decl.name)

        def configured_startup(app: AppBuilder) -> None:
            registry.apply(app, declarations)

        self.configure(configured_startup, options, app_name=options.app_name)

    async def dispatch(self, env: Environment) -> None:
        with self._lock:
            if self._disposed:
                raise HostDisposedError(type(self).__name__)
            capture = self._capture
        if capture is None:
            raise UninitializedPipelineError()
        await capture.dispatch(env)

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                raise HostDisposedError(type(self).__name__)
            self._disposed = True
            started = self._started
            self._started = None
        try:
            if started is not None:
                try:
                    started.release()
                finally:
                    emit(self._log_sink, "info", "host.disposed", app_name=self._app_name)
        finally:
            self._release_owned_sink()

    def __enter__(self) -> EmbeddedHost:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._disposed:
            self.dispose()

    async def __aenter__(self) -> EmbeddedHost:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._disposed:
            self.dispose()

    def _ensure_configurable(self) -> None:
        if self._disposed:
            raise HostDisposedError(type(self).__name__)
        if self._configured:
            raise HostAlreadyConfiguredError()

    def _log_sink_for(self, options: StartOptions) -> LogSink | None:
        # An explicitly injected sink wins over the options' logging section.
        if self._log_sink is None:
            self._log_sink = build_log_sink(options.logging)
            self._owned_log_sink = self._log_sink
        return self._log_sink

    def _release_owned_sink(self) -> None:
        sink, self._owned_log_sink = self._owned_log_sink, None
        _close_sink(sink)

    def _start(self, options: StartOptions, startup: Startup | None, log_sink: LogSink | None) -> None:
        if not options.app_name:
            options.app_name = options.app_startup
        capture = PipelineCapture()
        context = StartContext(
            options=options,
            server_factory=ServerFactoryAdapter(capture),
            startup=startup,
            builder_factory=self._builder_factory,
        )
        # Marked before start so a failed start cannot be retried on the same handle.
        self._configured = True
        try:
            self._started = self._engine.start(context)
        except BaseException:
            self._release_owned_sink()
            raise
        self._capture = capture
        self._app_name = options.app_name
        emit(log_sink, "info", "host.started", app_name=options.app_name, app_startup=options.app_startup)


def _describe_callable(target: object) -> str:
    module = getattr(target, "__module__", None) or ""
    qualname = getattr(target, "__qualname__", None) or type(target).__qualname__
    return f"{module}.{qualname}" if module else qualname


def _close_sink(sink: LogSink | None) -> None:
    # Only sinks the host built from options are closed here.
    close = getattr(sink, "close", None)
    if callable(close):
        close()
