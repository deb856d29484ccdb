from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Option models map the YAML host file to typed structures.


class LoggingConfig(BaseModel):
    # Log sink selection; jsonl requires a path.
    model_config = ConfigDict(extra="forbid")
    sink: Literal["none", "stdout", "jsonl"] = "none"
    path: str | None = None

    @model_validator(mode="after")
    def _require_path_for_jsonl(self) -> LoggingConfig:
        if self.sink == "jsonl" and not self.path:
            raise ValueError("logging.path is required when sink is 'jsonl'")
        return self


class MiddlewareDecl(BaseModel):
    # One named middleware entry; config is passed to the registry factory.
    model_config = ConfigDict(extra="forbid")
    name: str = Field(min_length=1)
    config: dict[str, Any] = Field(default_factory=dict)


class PipelineConfig(BaseModel):
    # Ordered middleware declarations for config-driven hosts.
    model_config = ConfigDict(extra="forbid")
    middleware: list[MiddlewareDecl] = Field(default_factory=list)


class StartOptions(BaseModel):
    """Settings controlling how the hosting engine starts an application.

    ``app_startup`` is the application startup identifier: an import path for
    the startup-type path, or a descriptive label derived from the callback.
    ``settings`` is opaque to the host and is copied into builder properties.
    Unknown top-level keys are rejected, so fields a custom hosting engine
    defines for itself belong under ``settings``.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    app_startup: str | None = None
    app_name: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    logging: LoggingConfig | None = None
    pipeline: PipelineConfig | None = None
