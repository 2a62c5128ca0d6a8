"""Configuration management."""

from atlint.config.loader import ConfigError, load_config
from atlint.config.settings import RuleSettings, Settings

__all__ = ["ConfigError", "RuleSettings", "Settings", "load_config"]
