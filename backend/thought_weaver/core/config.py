"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "TW_"
DEFAULT_CONFIG_PATH = Path("~/.config/thought-weaver/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("storage", "busy_timeout_s"): "db_busy_timeout_s",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("embeddings", "timeout_s"): "embedding_timeout_s",
    ("generation", "backend"): "generation_backend",
    ("generation", "model"): "generation_model",
    ("generation", "temperature"): "generation_temperature",
    ("generation", "top_k"): "generation_top_k",
    ("generation", "top_p"): "generation_top_p",
    ("generation", "max_output_tokens"): "generation_max_output_tokens",
    ("generation", "timeout_s"): "generation_timeout_s",
    ("vector", "backend"): "vector_backend",
    ("vector", "qdrant_url"): "qdrant_url",
    ("vector", "qdrant_api_key"): "qdrant_api_key",
    ("vector", "collection"): "qdrant_collection",
    ("vector", "timeout_s"): "vector_timeout_s",
    ("insights", "match_threshold"): "match_threshold",
    ("insights", "match_count"): "match_count",
    ("insights", "rate_limit_interval_ms"): "rate_limit_interval_ms",
    ("insights", "rate_limit_max_users"): "rate_limit_max_users",
    ("gemini", "api_key"): "gemini_api_key",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".thought-weaver" / "tw.db")
    db_busy_timeout_s: float = 5.0

    embedding_backend: Literal["gemini", "hashed"] = "hashed"
    embedding_model: str = "text-embedding-004"
    embedding_dim: int = 768
    embedding_timeout_s: float = 30.0

    generation_backend: Literal["gemini", "template"] = "template"
    generation_model: str = "gemini-1.5-flash"
    generation_temperature: float = 0.3
    generation_top_k: int = 32
    generation_top_p: float = 0.8
    generation_max_output_tokens: int = 800
    generation_timeout_s: float = 60.0

    vector_backend: Literal["sqlite", "qdrant"] = "sqlite"
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    qdrant_collection: str = "document_embeddings"
    vector_timeout_s: float = 10.0

    match_threshold: float = Field(default=0.8, ge=-1.0, le=1.0)
    match_count: int = Field(default=5, ge=1)
    rate_limit_interval_ms: int = Field(default=60_000, ge=0)
    rate_limit_max_users: int = Field(default=10_000, ge=1)

    gemini_api_key: str | None = None

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        if not data.get("gemini_api_key") and os.environ.get("GEMINI_API_KEY"):
            data["gemini_api_key"] = os.environ["GEMINI_API_KEY"]
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with TW_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
