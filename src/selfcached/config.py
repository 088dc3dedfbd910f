from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DIR_ENV = "SELF_CACHED_DIR"
TOOL_CACHE_ENV = "RUNNER_TOOL_CACHE"
COMPRESS_ENV = "SELF_CACHED_COMPRESS"
DEFAULT_DIR_NAME = ".self-cached"
DEFAULT_MAX_CONCURRENCY = 8

TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    directory: str
    compress: bool = False
    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("directory must not be empty")
        return normalized


def resolve_directory(value: str | None, environ: Mapping[str, str] | None = None) -> str:
    """Pick the cache root: explicit value, then environment, then ``~/.self-cached``."""
    env = os.environ if environ is None else environ
    for candidate in (value, env.get(DIR_ENV), env.get(TOOL_CACHE_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    return str(Path.home() / DEFAULT_DIR_NAME)


def parse_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value: {value}")


def load_config(path: str | Path) -> CacheConfig:
    payload = _read_payload(path)
    if "directory" not in payload:
        payload["directory"] = resolve_directory(None)
    try:
        return CacheConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def build_config(
    *,
    directory: str | None = None,
    compress: bool | None = None,
    max_concurrency: int | None = None,
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CacheConfig:
    """Merge explicit options over a config file over the environment."""
    env = os.environ if environ is None else environ
    payload: dict[str, Any] = {}
    if config_path is not None:
        payload = _read_payload(config_path)

    if directory is not None:
        payload["directory"] = directory
    payload["directory"] = resolve_directory(payload.get("directory"), env)

    if compress is not None:
        payload["compress"] = compress
    elif "compress" not in payload:
        payload["compress"] = parse_bool(env.get(COMPRESS_ENV))

    if max_concurrency is not None:
        payload["max_concurrency"] = max_concurrency

    try:
        return CacheConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _read_payload(path: str | Path) -> dict[str, Any]:
    raw = Path(path).read_text(encoding="utf-8")
    return _parse_yaml_or_json(raw)


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = yaml.safe_load(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
