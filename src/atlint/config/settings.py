"""Application settings."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from atlint.models import Severity
from atlint.typecheck.lib import DEFAULT_LIB, lib_level


class RuleSettings(BaseModel):
  """Per-rule configuration."""

  model_config = ConfigDict(use_enum_values=False, extra="forbid")

  enabled: bool = True
  severity: Severity = Severity.LOW
  options: dict[str, Any] = Field(default_factory=dict)


class Settings(BaseModel):
  """Application configuration."""

  model_config = ConfigDict(use_enum_values=False, extra="forbid")

  lib: str = DEFAULT_LIB
  max_diagnostics: int = Field(default=50, ge=1)
  rules: dict[str, RuleSettings] = Field(
    default_factory=lambda: {"prefer-at": RuleSettings()}
  )

  @field_validator("lib")
  @classmethod
  def _known_lib(cls, value: str) -> str:
    lib_level(value)
    return value.lower()

  def rule_settings(self, rule_id: str, rule_name: str) -> RuleSettings | None:
    """Look up a rule's settings by id, then by name."""
    return self.rules.get(rule_id) or self.rules.get(rule_name)
