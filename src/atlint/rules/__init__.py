"""Syntax-tree rule engine."""

from atlint.rules.base import Rule, RuleContext, RuleMatch
from atlint.rules.engine import RuleEngine
from atlint.rules.registry import (
  RuleNotFoundError,
  RuleOptionsError,
  RuleRegistry,
  get_all_rules,
  get_enabled_rules,
  get_rule,
)

__all__ = [
  "Rule",
  "RuleContext",
  "RuleEngine",
  "RuleMatch",
  "RuleNotFoundError",
  "RuleOptionsError",
  "RuleRegistry",
  "get_all_rules",
  "get_enabled_rules",
  "get_rule",
]
