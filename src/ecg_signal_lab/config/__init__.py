"""Configuration management for ECG Signal Lab."""

from .settings import (
    AppConfig,
    ConfigManager,
    PathConfig,
    ProcessingConfig,
    get_config,
    get_config_manager,
)

__all__ = [
    "AppConfig",
    "ProcessingConfig",
    "PathConfig",
    "ConfigManager",
    "get_config",
    "get_config_manager",
]
