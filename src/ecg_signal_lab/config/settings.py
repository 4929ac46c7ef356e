"""Configuration management for ECG Signal Lab.

Uses attrs with validators for type-safe, validated configuration. alpha and
window_length are not range-checked here: the filters clamp them.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import attrs
from attrs import define, field

FILTER_CHOICES = ["iir", "fir", "none"]


def nonnegative_float(instance, attribute, value):
    """Validator: ensure value is non-negative."""
    if value < 0:
        raise ValueError(f"{attribute.name} must be non-negative, got {value}")


@define
class ProcessingConfig:
    """Default parameters for filtering and peak detection."""

    # Exponential filter smoothing factor (clamped to [0, 1] when applied)
    alpha: float = field(default=0.98, converter=float)
    # Moving-average window hint (clamped to >= 1, rounded down to odd width)
    window_length: int = field(default=51, validator=attrs.validators.instance_of(int))

    min_threshold: float = field(default=0.5, converter=float, validator=nonnegative_float)
    refractory_period: float = field(default=0.25, converter=float, validator=nonnegative_float)

    default_filter: str = field(default="iir", validator=attrs.validators.in_(FILTER_CHOICES))


@define
class PathConfig:
    """Default input and output locations."""

    input_file: str = field(default="ECG.txt", validator=attrs.validators.instance_of(str))
    output_file: str = field(default="ECG_filtrada.txt", validator=attrs.validators.instance_of(str))
    peaks_file: str | None = field(
        default=None, validator=attrs.validators.optional(attrs.validators.instance_of(str))
    )


@define
class AppConfig:
    """Main application configuration combining all sub-configs."""

    processing: ProcessingConfig = field(factory=ProcessingConfig)
    paths: PathConfig = field(factory=PathConfig)

    @classmethod
    def default(cls) -> AppConfig:
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        """Create configuration from dictionary."""
        return cls(
            processing=ProcessingConfig(**data.get("processing", {})),
            paths=PathConfig(**data.get("paths", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return attrs.asdict(self)

    def save(self, filepath: str | Path) -> None:
        """Save configuration to JSON file."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str | Path) -> AppConfig:
        """Load configuration from JSON file."""
        with open(filepath) as f:
            data = json.load(f)
        return cls.from_dict(data)


class ConfigManager:
    """Manages application configuration with environment variable overrides."""

    ENV_PREFIX = "ESL_"

    def __init__(self, config_dir: str | Path | None = None):
        """Initialize config manager.

        Args:
            config_dir: Directory for config files. Defaults to ~/.ecg_signal_lab/
        """
        if config_dir is None:
            config_dir = Path.home() / ".ecg_signal_lab"
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.user_config_path = self.config_dir / "user_config.json"
        self.default_config_path = self.config_dir / "default_config.json"

        self._config: AppConfig | None = None

    def get_config(self) -> AppConfig:
        """Get current configuration with environment variable overrides."""
        if self._config is None:
            self._config = self._load_config()
            self._apply_env_overrides()
        return self._config

    def _load_config(self) -> AppConfig:
        """Load configuration from user or default file."""
        if self.user_config_path.exists():
            return AppConfig.load(self.user_config_path)

        if self.default_config_path.exists():
            return AppConfig.load(self.default_config_path)

        config = AppConfig.default()
        config.save(self.default_config_path)
        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to config.

        Environment variables like ESL_ALPHA=0.9 override config.processing.alpha
        """
        if self._config is None:
            return

        for attr in ["alpha", "min_threshold", "refractory_period"]:
            env_var = f"{self.ENV_PREFIX}{attr.upper()}"
            if env_var in os.environ:
                setattr(self._config.processing, attr, float(os.environ[env_var]))

        env_var = f"{self.ENV_PREFIX}WINDOW_LENGTH"
        if env_var in os.environ:
            self._config.processing.window_length = int(os.environ[env_var])

        env_var = f"{self.ENV_PREFIX}DEFAULT_FILTER"
        if env_var in os.environ:
            self._config.processing.default_filter = os.environ[env_var]

    def save_user_config(self) -> None:
        """Save current configuration as user config."""
        if self._config is not None:
            self._config.save(self.user_config_path)

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self._config = AppConfig.default()
        if self.user_config_path.exists():
            self.user_config_path.unlink()


# Global singleton instance
_config_manager: ConfigManager | None = None


def get_config() -> AppConfig:
    """Get global configuration singleton.

    Returns:
        AppConfig instance with current settings.

    Example:
        >>> from ecg_signal_lab.config.settings import get_config
        >>> config = get_config()
        >>> print(config.processing.alpha)
        0.98
    """
    return get_config_manager().get_config()


def get_config_manager() -> ConfigManager:
    """Get global config manager singleton."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
