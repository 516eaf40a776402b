"""Pydantic models for config validation.

``Config.validated()`` turns the merged ``Config.config_data`` dict into a
typed ``DaybookConfig``. Dict-based access keeps working unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    cache_dir: Path | None = None
    log_dir: Path | None = None

    @field_validator("data_dir", "cache_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    @model_validator(mode="after")
    def _default_cache_dir(self) -> PathsConfig:
        if self.cache_dir is None:
            self.cache_dir = self.data_dir / "cache"
        return self


class RemoteConfig(BaseModel):
    """Remote entry service settings."""

    api_base: str = "http://localhost:3001/api"
    origin: str = ""
    timeout: int = 15
    token: str = ""

    @field_validator("api_base", "origin")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def server_origin(self) -> str:
        """Origin that storage-relative media references are served from."""
        if self.origin:
            return self.origin
        base = self.api_base
        if base.endswith("/api"):
            base = base[: -len("/api")]
        return base


class LLMConfig(BaseModel):
    """Summary generator settings."""

    model_config = ConfigDict(extra="allow")

    model: str = "gemini/gemini-2.5-flash"
    max_chars: int = 120
    timeout: int = 60


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    file: str = ""

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level


class DaybookConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so deployments can add custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.daybook-data"))
    remote: RemoteConfig = RemoteConfig()
    llm: LLMConfig = LLMConfig()
    logging: LoggingConfig = LoggingConfig()
