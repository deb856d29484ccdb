from __future__ import annotations


class EmbeddedHostError(Exception):
    # Root of the embedded host error taxonomy.
    pass


class InvalidConfigurationError(EmbeddedHostError, ValueError):
    # Raised at setup time, before the hosting engine is touched.
    pass


class UninitializedPipelineError(EmbeddedHostError, RuntimeError):
    # Dispatch attempted before an entry point was captured.
    def __init__(self) -> None:
        super().__init__("Pipeline entry point has not been captured yet")


class HostDisposedError(EmbeddedHostError, RuntimeError):
    # Dispatch or dispose attempted after teardown.
    def __init__(self, name: str = "EmbeddedHost") -> None:
        super().__init__(f"{name} has been disposed")
        self.name = name


class HostAlreadyConfiguredError(EmbeddedHostError, RuntimeError):
    # Configuration is one-shot per host handle.
    def __init__(self) -> None:
        super().__init__("Host is already configured; create a new host instead")


class PipelineAlreadyCapturedError(EmbeddedHostError, RuntimeError):
    # The capture cell is set-once.
    def __init__(self) -> None:
        super().__init__("Pipeline entry point was already captured")


class PipelineBuildError(EmbeddedHostError, RuntimeError):
    # Raised by the builder for invalid registrations or reuse.
    pass


class StartupResolutionError(EmbeddedHostError, RuntimeError):
    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"Cannot resolve startup '{identifier}': {reason}")
        self.identifier = identifier
        self.reason = reason


class UnknownMiddlewareError(EmbeddedHostError, KeyError):
    # Registry lookups fail with the missing name for fast config feedback.
    pass
