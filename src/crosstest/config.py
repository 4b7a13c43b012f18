"""Configuration loading for the conformance server."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .paths import project_config_path, runtime_config_dir
from .utils.validation import ensure_loopback_host, resolve_socket_path

DEFAULT_TCP_PORT = 8765
DEFAULT_MAX_REQUEST_BYTES = 64 * 1024 * 1024
DEFAULT_REQUEST_TIMEOUT = 120.0
DEFAULT_STREAM_CHUNK_BYTES = 64 * 1024

_LEVEL_NAMES = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Logging verbosity level")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in _LEVEL_NAMES:
            raise ValueError(f"Unknown log level '{value}'; expected one of {', '.join(_LEVEL_NAMES)}")
        return value

    def normalized_level(self) -> str:
        return self.level.upper()


class IPCConfig(BaseModel):
    transport: Literal["tcp", "uds"] = Field(default="tcp", description="Transport to use: tcp|uds")
    socket_path: Optional[Path] = Field(default=None)
    tcp_host: str = Field(default="127.0.0.1")
    tcp_port: int = Field(default=DEFAULT_TCP_PORT, ge=0, le=65535)

    @field_validator("transport", mode="before")
    @classmethod
    def _lower_transport(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @field_validator("tcp_host")
    @classmethod
    def _validate_tcp_host(cls, value: str) -> str:
        return ensure_loopback_host(value)

    @field_validator("socket_path")
    @classmethod
    def _validate_socket_path(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return resolve_socket_path(value)


class LimitsConfig(BaseModel):
    max_request_bytes: int = Field(default=DEFAULT_MAX_REQUEST_BYTES, ge=1024)
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    stream_chunk_bytes: int = Field(default=DEFAULT_STREAM_CHUNK_BYTES, ge=1)

    @model_validator(mode="after")
    def _chunk_fits_frame(self) -> "LimitsConfig":
        if self.stream_chunk_bytes > self.max_request_bytes:
            raise ValueError("stream_chunk_bytes must not exceed max_request_bytes")
        return self


class ServerConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    ipc: IPCConfig = Field(default_factory=IPCConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)


DEFAULT_CONFIG = ServerConfig()


def config_search_paths(explicit: Optional[Path] = None) -> Iterable[Path]:
    if explicit:
        yield explicit
    yield project_config_path()
    yield runtime_config_dir() / "config.yaml"


def load_config(path: Optional[Path] = None) -> ServerConfig:
    for candidate in config_search_paths(path):
        if candidate.is_file():
            try:
                with candidate.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Malformed YAML in {candidate}: {exc}") from exc
            if not isinstance(data, dict):
                raise ValueError(f"Configuration in {candidate} must be a mapping")
            try:
                return ServerConfig.model_validate(data)
            except ValidationError as exc:
                raise ValueError(f"Invalid configuration in {candidate}: {exc}") from exc
    if path is not None:
        raise FileNotFoundError(f"Configuration file not found: {path}")
    return DEFAULT_CONFIG.model_copy(deep=True)


def dump_default_config(target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(DEFAULT_CONFIG.model_dump(mode="json"), handle, sort_keys=False)


__all__ = [
    "DEFAULT_TCP_PORT",
    "DEFAULT_MAX_REQUEST_BYTES",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_STREAM_CHUNK_BYTES",
    "LoggingConfig",
    "IPCConfig",
    "LimitsConfig",
    "ServerConfig",
    "DEFAULT_CONFIG",
    "config_search_paths",
    "load_config",
    "dump_default_config",
]
