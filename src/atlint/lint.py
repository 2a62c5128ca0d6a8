"""Core lint orchestration."""

from pathlib import Path

from rich.console import Console

from atlint.config import RuleSettings, Settings, load_config
from atlint.files import collect_source_files
from atlint.models import LintResult
from atlint.rules import RuleEngine
from atlint.rules.modernize.prefer_at import RULE_ID, RULE_NAME
from atlint.typecheck import lib_level

_console = Console(stderr=True)


def apply_overrides(
  settings: Settings,
  ignore_functions: bool = False,
  lib: str | None = None,
  max_diagnostics: int | None = None,
) -> Settings:
  """Return a copy of settings with command-line overrides applied.

  Raises:
    ValueError: If lib is not a known target.
  """
  updated = settings.model_copy(deep=True)

  if lib:
    lib_level(lib)
    updated.lib = lib.lower()
  if max_diagnostics:
    updated.max_diagnostics = max_diagnostics
  if ignore_functions:
    key = RULE_ID if RULE_ID in updated.rules else RULE_NAME
    rule = updated.rules.get(key) or RuleSettings()
    updated.rules[key] = rule.model_copy(
      update={"options": {**rule.options, "ignoreFunctions": True}}
    )

  return updated


def run_lint(
  files: list[str] | None = None,
  fix: bool = False,
  config_path: Path | None = None,
  ignore_functions: bool = False,
  lib: str | None = None,
  max_diagnostics: int | None = None,
  cwd: Path | None = None,
) -> LintResult:
  """Run the linter with the given options."""
  settings = apply_overrides(
    load_config(config_path),
    ignore_functions=ignore_functions,
    lib=lib,
    max_diagnostics=max_diagnostics,
  )

  paths = collect_source_files(files or ["."], cwd)
  engine = RuleEngine(settings=settings)

  with _console.status(f"Linting {len(paths)} file{'s' if len(paths) != 1 else ''}..."):
    return engine.lint(paths, fix=fix)
