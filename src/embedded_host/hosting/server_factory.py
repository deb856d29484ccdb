from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from embedded_host.errors import PipelineAlreadyCapturedError, UninitializedPipelineError
from embedded_host.pipeline.environment import AppFunc, Environment

SERVER_CAPABILITIES = "server.capabilities"
HOST_ADDRESSES = "host.addresses"


@runtime_checkable
class LifecycleToken(Protocol):
    # Opaque "startup completed" handle; release() tears down.
    def release(self) -> None:
        raise NotImplementedError("LifecycleToken.release must be implemented")


class NullLifecycleToken:
    # Nothing to free: capture never opens a real resource.
    def release(self) -> None:
        return None


class PipelineCapture:
    """Stands in for a listening server and keeps the built chain in memory.

    The hosting engine calls :meth:`materialize` once the builder is done;
    :meth:`dispatch` then forwards straight to the captured entry point.
    """

    def __init__(self) -> None:
        self._app: AppFunc | None = None
        self._properties: dict[str, object] = {}

    @property
    def captured(self) -> bool:
        return self._app is not None

    @property
    def properties(self) -> Mapping[str, object]:
        return MappingProxyType(self._properties)

    def initialize(self, properties: dict[str, object]) -> None:
        # Advertise an in-memory server: no capabilities, no addresses.
        properties.setdefault(SERVER_CAPABILITIES, {})
        properties.setdefault(HOST_ADDRESSES, [])

    def materialize(self, app: AppFunc, properties: Mapping[str, object]) -> LifecycleToken:
        if self._app is not None:
            raise PipelineAlreadyCapturedError()
        if not callable(app):
            raise TypeError("Captured entry point must be callable")
        self._app = app
        self._properties = dict(properties)
        return NullLifecycleToken()

    def dispatch(self, env: Environment) -> Awaitable[None]:
        if self._app is None:
            raise UninitializedPipelineError()
        return self._app(env)


ServerFactoryCallable = Callable[[AppFunc, Mapping[str, object]], LifecycleToken]


class ServerFactoryAdapter:
    # Presents any materialize-shaped factory to the hosting engine.
    def __init__(self, factory: object) -> None:
        materialize = getattr(factory, "materialize", None)
        if callable(materialize):
            self._create: ServerFactoryCallable = materialize
        elif callable(factory):
            self._create = factory  # type: ignore[assignment]
        else:
            raise TypeError("Server factory must expose materialize(app, properties) or be callable")
        self._factory = factory

    @property
    def factory(self) -> object:
        return self._factory

    def initialize(self, properties: dict[str, object]) -> None:
        initialize = getattr(self._factory, "initialize", None)
        if callable(initialize):
            initialize(properties)

    def create(self, app: AppFunc, properties: Mapping[str, object]) -> LifecycleToken:
        return self._create(app, properties)
