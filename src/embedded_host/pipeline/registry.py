from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from embedded_host.errors import UnknownMiddlewareError
from embedded_host.pipeline.environment import Middleware

if TYPE_CHECKING:
    from embedded_host.hosting.options import MiddlewareDecl
    from embedded_host.pipeline.builder import AppBuilder

# Factories accept the declaration's config mapping and return a middleware.
MiddlewareFactory = Callable[[dict[str, object]], Middleware]


@dataclass
class MiddlewareRegistry:
    # Maps middleware names to factories for config-declared pipelines.
    _factories: dict[str, MiddlewareFactory] = field(default_factory=dict)

    def register(self, name: str, factory: MiddlewareFactory) -> None:
        # Later registrations override earlier ones.
        if not isinstance(name, str) or not name:
            raise ValueError("Middleware name must be a non-empty string")
        self._factories[name] = factory

    def get(self, name: str) -> MiddlewareFactory:
        if name not in self._factories:
            raise UnknownMiddlewareError(name)
        return self._factories[name]

    def names(self) -> list[str]:
        return sorted(self._factories)

    def apply(self, app: AppBuilder, declarations: Iterable[MiddlewareDecl]) -> None:
        # Declarations are registered in order, after anything already on the builder.
        for decl in declarations:
            factory = self.get(decl.name)
            app.use(factory(dict(decl.config)))
