"""Configuration management using Pydantic Settings v2."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration."""

    strategy: Literal["auto", "sentence", "token", "tfidf"] = "auto"
    model_name: str = "all-MiniLM-L6-v2"
    device: str = "auto"  # "cuda", "mps", "cpu", or "auto"
    batch_size: int = 32
    word_vectors_path: Optional[Path] = None
    token_dimension: int = 300

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")


class SearchSettings(BaseSettings):
    """Search and filtering configuration."""

    live_threshold: float = Field(0.3, ge=-1.0, le=1.0)
    similar_threshold: float = Field(0.7, ge=-1.0, le=1.0)
    debounce_ms: int = Field(300, ge=0)
    default_window_days: int = Field(30, ge=0)
    max_workers: int = Field(4, ge=1)

    model_config = SettingsConfigDict(env_prefix="SEARCH_")


class Settings(BaseSettings):
    """Root settings class combining all sections."""

    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Prefixed env vars are handled by the nested classes
    )


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the global Settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reload_settings() -> Settings:
    """Reload settings from environment (mainly for testing)."""
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
