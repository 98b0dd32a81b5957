"""Typed configuration models for the auditable extension."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "auditable" / "auditable.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "auditable"
    environment: str = "dev"


class AuditSettings(BaseModel):
    """Audit engine and configuration cache behavior."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache_dir: Path | None = None
    metadata_cache_path: str = "auditable/sqlalchemy"
    naive_timezone: str = "UTC"

    @field_validator("metadata_cache_path")
    @classmethod
    def _validate_metadata_cache_path(cls, value: str) -> str:
        """Require a relative, non-empty cache sub-path."""
        normalized = value.strip().strip("/")
        if normalized == "":
            raise ValueError("metadata_cache_path is required")
        return normalized

    @field_validator("naive_timezone")
    @classmethod
    def _validate_naive_timezone(cls, value: str) -> str:
        """Reject timezone names unknown to the IANA database."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value

    def metadata_cache_dir(self) -> Path | None:
        """Return the directory holding warmed class configuration, if any."""
        if self.cache_dir is None:
            return None
        return self.cache_dir / self.metadata_cache_path


class AuditableSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="AUDITABLE_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )
