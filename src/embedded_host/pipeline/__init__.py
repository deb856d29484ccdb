from .builder import AppBuilder, MiddlewareSpec, not_found
from .environment import AppFunc, Environment, EnvironmentFactory, Middleware
from .registry import MiddlewareRegistry
from .safety import (
    ExceptionTranslator,
    SafetyMiddleware,
    default_exception_translator,
    detailed_exception_translator,
)

# Pipeline exports: builder, environment vocabulary helpers and the safety boundary.
__all__ = [
    "AppBuilder",
    "AppFunc",
    "Environment",
    "EnvironmentFactory",
    "ExceptionTranslator",
    "Middleware",
    "MiddlewareRegistry",
    "MiddlewareSpec",
    "SafetyMiddleware",
    "default_exception_translator",
    "detailed_exception_translator",
    "not_found",
]
