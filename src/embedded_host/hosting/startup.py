from __future__ import annotations

import importlib
import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING

from embedded_host.errors import StartupResolutionError

if TYPE_CHECKING:
    from embedded_host.pipeline.builder import AppBuilder

Startup = Callable[["AppBuilder"], None]

# Conventional method name looked up on startup classes.
CONFIGURE_METHOD = "configure"


def startup_identifier(target: object) -> str:
    # Import path of a startup class or function, in module:QualName form.
    if isinstance(target, str):
        return target
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None)
    if not isinstance(module, str) or not isinstance(qualname, str):
        raise TypeError(f"Cannot derive a startup identifier from {target!r}")
    return f"{module}:{qualname}"


def resolve_startup(identifier: str) -> Startup:
    """Resolve ``pkg.mod:Qual.Name`` (or ``pkg.mod.Name``) to a startup callable.

    Classes are instantiated without arguments and their ``configure`` method
    is returned; plain functions are returned as-is.
    """
    if not isinstance(identifier, str) or not identifier.strip():
        raise StartupResolutionError(str(identifier), "identifier is empty")

    module_name, attr_path = _split(identifier)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise StartupResolutionError(identifier, f"module '{module_name}' not importable: {exc}") from exc

    target: object = module
    for part in attr_path.split("."):
        if not hasattr(target, part):
            raise StartupResolutionError(identifier, f"'{part}' not found")
        target = getattr(target, part)

    if inspect.isclass(target):
        try:
            instance = target()
        except Exception as exc:  # noqa: BLE001 - wrap with explicit error
            raise StartupResolutionError(identifier, f"cannot instantiate: {exc}") from exc
        configure = getattr(instance, CONFIGURE_METHOD, None)
        if not callable(configure):
            raise StartupResolutionError(identifier, f"class has no '{CONFIGURE_METHOD}(app)' method")
        return configure
    if callable(target):
        return target  # type: ignore[return-value]
    raise StartupResolutionError(identifier, "target is neither a class nor a callable")


def _split(identifier: str) -> tuple[str, str]:
    if ":" in identifier:
        module_name, _, attr_path = identifier.partition(":")
    else:
        module_name, _, attr_path = identifier.rpartition(".")
    if not module_name or not attr_path:
        raise StartupResolutionError(identifier, "expected 'module:Name' or 'module.Name'")
    return module_name, attr_path
