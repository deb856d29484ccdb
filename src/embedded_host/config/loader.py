from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from embedded_host.errors import InvalidConfigurationError
from embedded_host.hosting.options import StartOptions


def load_yaml_config(path: Path) -> dict[str, object]:
    # Raw mapping for validation; an empty file is an empty mapping.
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise InvalidConfigurationError("Config root must be a mapping")
    return raw


def load_start_options(path: Path) -> StartOptions:
    return parse_start_options(load_yaml_config(path))


def parse_start_options(raw: object) -> StartOptions:
    # Accepts None, a StartOptions instance, or a raw mapping.
    if raw is None:
        return StartOptions()
    if isinstance(raw, StartOptions):
        return raw
    if not isinstance(raw, dict):
        raise InvalidConfigurationError(f"Start options must be a mapping, got {type(raw).__name__}")
    try:
        return StartOptions.model_validate(raw)
    except ValidationError as exc:
        raise InvalidConfigurationError(f"Invalid start options: {exc}") from exc
