from .client import EmbeddedClient, Response
from .errors import (
    EmbeddedHostError,
    HostAlreadyConfiguredError,
    HostDisposedError,
    InvalidConfigurationError,
    PipelineAlreadyCapturedError,
    PipelineBuildError,
    StartupResolutionError,
    UninitializedPipelineError,
    UnknownMiddlewareError,
)
from .host import EmbeddedHost
from .hosting import LocalHostingEngine, PipelineCapture, StartContext, StartOptions
from .pipeline import AppBuilder, EnvironmentFactory, MiddlewareRegistry, SafetyMiddleware

__all__ = [
    "EmbeddedHost",
    "EmbeddedClient",
    "Response",
    "AppBuilder",
    "EnvironmentFactory",
    "MiddlewareRegistry",
    "SafetyMiddleware",
    "LocalHostingEngine",
    "PipelineCapture",
    "StartContext",
    "StartOptions",
    "EmbeddedHostError",
    "InvalidConfigurationError",
    "UninitializedPipelineError",
    "HostDisposedError",
    "HostAlreadyConfiguredError",
    "PipelineAlreadyCapturedError",
    "PipelineBuildError",
    "StartupResolutionError",
    "UnknownMiddlewareError",
]
