"""Configuration settings using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from lazconv.config.constants import (
    BYTES_PER_MB,
    DEFAULT_CHUNK_SIZE_MB,
    DEFAULT_CONFIG_FILE,
    DEFAULT_COPY_BUFFER_SIZE,
    DEFAULT_INPUT_DIR,
    DEFAULT_INPUT_EXTENSIONS,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_CONCURRENT_PROCESSES,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TEMP_DIR,
    MIN_COPY_BUFFER_SIZE,
)


class PathsConfig(BaseModel):
    """Input, output and scratch directories."""

    input_dir: str = DEFAULT_INPUT_DIR
    output_dir: str = DEFAULT_OUTPUT_DIR
    temp_dir: str = DEFAULT_TEMP_DIR
    input_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_INPUT_EXTENSIONS))


class ConverterConfig(BaseModel):
    """External PotreeConverter configuration."""

    path: str = ""
    timeout: float | None = Field(default=None, gt=0)  # None waits forever


class ChunkingConfig(BaseModel):
    """Chunking configuration for oversized inputs."""

    chunk_size_mb: int = Field(default=DEFAULT_CHUNK_SIZE_MB, ge=1)
    buffer_size: int = Field(default=DEFAULT_COPY_BUFFER_SIZE, ge=MIN_COPY_BUFFER_SIZE)

    @property
    def chunk_size_bytes(self) -> int:
        """Chunk threshold in bytes."""
        return self.chunk_size_mb * BYTES_PER_MB


class ConcurrencyConfig(BaseModel):
    """Concurrency configuration."""

    max_concurrent_processes: int = Field(default=DEFAULT_MAX_CONCURRENT_PROCESSES, ge=1)


class LazconvSettings(BaseSettings):
    """Main configuration class for lazconv."""

    model_config = SettingsConfigDict(
        env_prefix="LAZCONV_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings sources to include YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=DEFAULT_CONFIG_FILE),
            file_secret_settings,
        )

    # Sub-configurations
    paths: PathsConfig = Field(default_factory=PathsConfig)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)

    # Global settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_dir: str = DEFAULT_LOG_DIR

    @property
    def input_dir(self) -> Path:
        return Path(self.paths.input_dir).resolve()

    @property
    def output_dir(self) -> Path:
        return Path(self.paths.output_dir).resolve()

    @property
    def temp_dir(self) -> Path:
        return Path(self.paths.temp_dir).resolve()

    @property
    def converter_path(self) -> Path | None:
        """Configured converter executable, or None when unset."""
        if not self.converter.path.strip():
            return None
        return Path(self.converter.path).expanduser()


@lru_cache
def get_settings() -> LazconvSettings:
    """Get cached settings instance."""
    return LazconvSettings()


def reload_settings() -> LazconvSettings:
    """Force reload settings (clear cache)."""
    get_settings.cache_clear()
    return get_settings()
