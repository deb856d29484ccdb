from .engine import HostingEngine, LocalHostingEngine, StartContext, StartedEngine
from .options import LoggingConfig, MiddlewareDecl, PipelineConfig, StartOptions
from .server_factory import LifecycleToken, NullLifecycleToken, PipelineCapture, ServerFactoryAdapter
from .startup import resolve_startup, startup_identifier

__all__ = [
    "HostingEngine",
    "LocalHostingEngine",
    "StartContext",
    "StartedEngine",
    "LoggingConfig",
    "MiddlewareDecl",
    "PipelineConfig",
    "StartOptions",
    "LifecycleToken",
    "NullLifecycleToken",
    "PipelineCapture",
    "ServerFactoryAdapter",
    "resolve_startup",
    "startup_identifier",
]
