"""Configuration file loading."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from atlint.config.settings import RuleSettings, Settings
from atlint.models import Severity

CONFIG_FILENAMES = [".atlint.yaml", ".atlint.yml", "atlint.yaml", "atlint.yml"]


class ConfigError(Exception):
  """Configuration file is malformed or invalid."""


def _find_config_file(config_path: Path | None = None) -> Path | None:
  """Find config file path, or None if no config exists."""
  if config_path:
    if not config_path.exists():
      raise ConfigError(f"Config file not found: {config_path}")
    return config_path

  for filename in CONFIG_FILENAMES:
    path = Path.cwd() / filename
    if path.exists():
      return path

  return None


def load_config(config_path: Path | None = None) -> Settings:
  """Load configuration from file or defaults."""
  path = _find_config_file(config_path)
  if path:
    return _load_from_file(path)
  return Settings()


def _load_from_file(path: Path) -> Settings:
  """Load settings from a YAML file."""
  try:
    with open(path) as f:
      data = yaml.safe_load(f) or {}
  except yaml.YAMLError as e:
    raise ConfigError(f"Invalid YAML in {path}: {e}") from e

  if not isinstance(data, dict):
    raise ConfigError(f"Config file {path} must contain a mapping")

  try:
    return _parse_config(data)
  except (ValidationError, ValueError) as e:
    raise ConfigError(f"Invalid config in {path}: {e}") from e


def _parse_rule(value: object) -> RuleSettings:
  """Parse one rule entry.

  Accepts a severity string or "off", or a mapping of RuleSettings
  fields.
  """
  if value == "off" or value is False:
    return RuleSettings(enabled=False)
  if isinstance(value, str):
    return RuleSettings(severity=Severity(value))
  if isinstance(value, dict):
    data = dict(value)
    if "severity" in data:
      data["severity"] = Severity(data["severity"])
    return RuleSettings(**data)
  raise ValueError(f"Rule entry must be a severity, 'off', or a mapping, got {value!r}")


def _parse_config(data: dict) -> Settings:
  """Parse config dict into Settings."""
  if "rules" in data:
    data["rules"] = {name: _parse_rule(value) for name, value in (data["rules"] or {}).items()}

  return Settings(**data)
