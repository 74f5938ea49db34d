"""Configuration for transaction search."""

from .settings import (
    EmbeddingSettings,
    SearchSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "EmbeddingSettings",
    "SearchSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]
