"""Runtime configuration.

Settings come from ``SQLTUNE_``-prefixed environment variables (nested
fields use ``__``, e.g. ``SQLTUNE_LLM__GENERATOR__MODEL``), an optional
``.env`` file, and finally an optional YAML file whose keys override both.
Settings are loaded once by the entry point and passed down explicitly.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "sqltune.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = structlog.get_logger(__name__)


class EmbedderConfig(BaseModel):
    provider: str = "mock"
    model: str = "mock-embedding"
    dimension: int = Field(default=1536, gt=0)


class GeneratorConfig(BaseModel):
    provider: str = "mock"
    model: str = "mock-generator"
    max_tokens: int = Field(default=2000, gt=0)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)


class LLMConfig(BaseModel):
    """Provider selection for the embedding and generation collaborators."""

    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)


class Settings(BaseSettings):
    """Configuration for the sqltune pipeline and its stores."""

    # Storage
    db_path: str = "./.sqltune/sqltune.db"
    vector_path: str = "./.sqltune/vectors"
    collection_name: str = "knowledge"

    # Retrieval
    chunk_size: int = Field(default=400, gt=0)
    chunk_overlap: int = Field(default=50, ge=0)
    distance_threshold: float = Field(default=0.5, gt=0.0, le=2.0)
    top_k: int = Field(default=3, gt=0)

    # Pipeline
    timeout_seconds: float | None = Field(default=30.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    llm: LLMConfig = Field(default_factory=LLMConfig)

    model_config = SettingsConfigDict(
        env_prefix="SQLTUNE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _validate_chunking(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(config_file: str | None = None) -> Settings:
    """Load environment settings and overlay them with a YAML file.

    Args:
        config_file: YAML path. Defaults to ``$SQLTUNE_CONFIG_FILE`` or
            ``sqltune.yaml`` in the working directory. A missing file is
            not an error; defaults are used.
    """
    base_settings = Settings()

    if config_file is None:
        config_file = os.getenv("SQLTUNE_CONFIG_FILE", DEFAULT_CONFIG_FILE)

    yaml_path = Path(config_file)
    if not yaml_path.exists():
        logger.debug("config_file_not_found", path=str(yaml_path))
        return base_settings

    with open(yaml_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        return base_settings
    if not isinstance(data, dict):
        raise ValueError(f"configuration file '{yaml_path}' must contain a mapping")

    logger.debug("config_file_loaded", path=str(yaml_path))
    return Settings(**_merge(base_settings.model_dump(), data))


__all__ = ["EmbedderConfig", "GeneratorConfig", "LLMConfig", "Settings", "load_settings"]
