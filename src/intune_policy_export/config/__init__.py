"""Configuration helpers for the policy exporter."""

from .settings import DEFAULT_GRAPH_SCOPES, ENV_PREFIX, Settings, SettingsManager

__all__ = [
    "DEFAULT_GRAPH_SCOPES",
    "ENV_PREFIX",
    "Settings",
    "SettingsManager",
]
