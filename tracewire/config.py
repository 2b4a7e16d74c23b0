"""Configuration loading: TOML file, environment and explicit overrides."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from tracewire.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tracewire.toml"

# environment variable -> (section, key)
ENV_VARS = {
    "TRACEWIRE_SERVICE_NAME": ("tracing", "service_name"),
    "TRACEWIRE_SAMPLE_RATE": ("tracing", "sample_rate"),
    "TRACEWIRE_RECORDER": ("recorder", "kind"),
    "TRACEWIRE_OTLP_ENDPOINT": ("recorder", "endpoint"),
}


class TracingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service_name: str = "tracewire"
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)


class RecorderSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["none", "console", "logging", "otlp"] = "none"
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = Field(default=10.0, gt=0)
    batch: bool = True
    max_queue_size: int = Field(default=5000, gt=0)
    max_export_batch_size: int = Field(default=512, gt=0)
    schedule_delay_millis: int = Field(default=5000, gt=0)
    drop_policy: Literal["oldest", "newest"] = "oldest"


class TracewireConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tracing: TracingSettings = Field(default_factory=TracingSettings)
    recorder: RecorderSettings = Field(default_factory=RecorderSettings)


def find_config_file() -> Optional[str]:
    """
    Look for a config file.

    Checks ``./tracewire.toml`` then ``~/.tracewire.toml``.

    Returns:
        Path of the first file found, or None
    """
    candidates = [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / f".{CONFIG_FILE_NAME}",
    ]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Read a TOML config file.

    Returns:
        Parsed contents, or an empty dict if the file does not exist

    Raises:
        ConfigError: If the file is not valid TOML
    """
    file_path = Path(path)
    if not file_path.is_file():
        return {}
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError("invalid TOML config file", {"path": str(path), "error": str(e)}) from e


def validate_config(data: Dict[str, Any]) -> TracewireConfig:
    """
    Validate a nested config dict.

    Raises:
        ConfigError: With the offending fields listed in ``details``
    """
    try:
        return TracewireConfig.model_validate(data)
    except PydanticValidationError as e:
        details = {
            ".".join(str(part) for part in err["loc"]): err["msg"]
            for err in e.errors()
        }
        raise ConfigError("invalid tracewire configuration", details) from e


def _env_overrides() -> Dict[str, Dict[str, Any]]:
    overrides: Dict[str, Dict[str, Any]] = {}
    for var, (section, key) in ENV_VARS.items():
        value = os.environ.get(var)
        if value is not None and value != "":
            overrides.setdefault(section, {})[key] = value
    return overrides


def _merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_file: Optional[str] = None, **overrides: Dict[str, Any]) -> TracewireConfig:
    """
    Build the effective configuration.

    Priority: explicit overrides > environment variables > config file >
    defaults.

    Args:
        config_file: Path to a TOML file; searched for when omitted
        **overrides: One dict per section, e.g. ``tracing={"sample_rate": 0.1}``

    Raises:
        ConfigError: If any layer holds invalid values
    """
    path = config_file or find_config_file()
    data: Dict[str, Any] = {}
    if path:
        logger.debug("Loading tracewire config from %s", path)
        data = load_toml_config(path)
    data = _merge(data, _env_overrides())
    if overrides:
        data = _merge(data, overrides)
    return validate_config(data)


def build_tracer(config: Optional[TracewireConfig] = None):
    """
    Build a Tracer from configuration.

    Console, logging and OTLP recorders run behind a ``BatchRecorder`` so
    ``Span.finish()`` never waits on their I/O. ``batch = false`` opts the
    console and logging recorders into synchronous recording.

    Args:
        config: Effective configuration, defaults to ``load_config()``

    Returns:
        Tracer with the configured sampler and recorder
    """
    from tracewire.exporter.console_exporter import ConsoleExporter
    from tracewire.exporter.otlp_exporter import OTLPExporter
    from tracewire.processors.drop_policy import drop_policy_for
    from tracewire.processors.sampler import Sampler
    from tracewire.recorder import BatchRecorder, LoggingRecorder, NoopRecorder
    from tracewire.tracer.tracer import Tracer, TracerOptions

    config = config or load_config()
    settings = config.recorder

    if settings.kind == "none":
        recorder = NoopRecorder()
    elif settings.kind == "otlp" and not settings.batch:
        raise ConfigError("the otlp recorder requires batch = true")
    else:
        if settings.kind == "logging":
            exporter = LoggingRecorder()
        elif settings.kind == "console":
            exporter = ConsoleExporter()
        else:
            exporter = OTLPExporter(
                endpoint=settings.endpoint,
                api_key=settings.api_key,
                timeout=settings.timeout,
                service_name=config.tracing.service_name,
            )
        if settings.batch:
            recorder = BatchRecorder(
                exporter,
                max_queue_size=settings.max_queue_size,
                max_export_batch_size=settings.max_export_batch_size,
                schedule_delay_millis=settings.schedule_delay_millis,
                drop_policy=drop_policy_for(settings.drop_policy),
            )
        else:
            recorder = exporter

    return Tracer(
        TracerOptions(
            sampler=Sampler(config.tracing.sample_rate),
            recorder=recorder,
        )
    )
