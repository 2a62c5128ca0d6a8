"""Rule registration and discovery."""

from typing import TYPE_CHECKING, Any, Callable, Mapping

from atlint.rules.base import Rule

if TYPE_CHECKING:
  from atlint.config.settings import Settings


class RuleNotFoundError(Exception):
  """Requested rule not registered."""


class RuleOptionsError(Exception):
  """Rule options failed validation."""


RuleFactory = Callable[[Mapping[str, Any]], Rule]

_rules: dict[str, RuleFactory] = {}
_names: dict[str, str] = {}


def register_rule(rule_id: str, factory: RuleFactory, name: str | None = None) -> None:
  """Register a rule factory.

  Args:
    rule_id: Unique identifier for the rule (e.g., 'IDX001').
    factory: Callable that builds a Rule from its option mapping.
    name: Optional rule name (e.g., 'prefer-at') usable in config.
  """
  _rules[rule_id] = factory
  if name:
    _names[name] = rule_id


def resolve_rule_id(rule: str) -> str:
  """Map a rule id or name to its registered id."""
  if rule in _rules:
    return rule
  if rule in _names:
    return _names[rule]
  available = ", ".join(sorted([*_rules, *_names])) or "none"
  raise RuleNotFoundError(f"Rule '{rule}' not found. Available: {available}")


def _build(rule_id: str, options: Mapping[str, Any]) -> Rule:
  try:
    return _rules[rule_id](options)
  except ValueError as e:
    raise RuleOptionsError(f"Invalid options for rule '{rule_id}': {e}") from e


def get_rule(rule: str, options: Mapping[str, Any] | None = None) -> Rule:
  """Build a registered rule by id or name.

  Raises:
    RuleNotFoundError: If no rule is registered under that id or name.
    RuleOptionsError: If the options are invalid for the rule.
  """
  rule_id = resolve_rule_id(rule)
  return _build(rule_id, options or {})


def get_all_rules() -> list[Rule]:
  """Get instances of all registered rules with default options."""
  return [factory({}) for factory in _rules.values()]


def get_enabled_rules(settings: "Settings") -> list[Rule]:
  """Get rules enabled by settings, built with their configured options.

  Rules not mentioned in settings are enabled with default options.
  """
  configured = {resolve_rule_id(key): value for key, value in settings.rules.items()}
  rules: list[Rule] = []
  for rule_id in _rules:
    rule_settings = configured.get(rule_id)
    if rule_settings is None:
      rules.append(_build(rule_id, {}))
    elif rule_settings.enabled:
      rules.append(_build(rule_id, rule_settings.options))
  return rules


def list_rules() -> list[str]:
  """List all registered rule IDs."""
  return list(_rules.keys())


class RuleRegistry:
  """Registry for lazy rule loading."""

  @staticmethod
  def load_all() -> None:
    """Load all rule modules to trigger registration.

    Call this before using get_all_rules() or get_enabled_rules()
    to ensure all rules are registered.
    """
    from atlint.rules.modernize import prefer_at  # noqa: F401
