"""Rule engine that walks syntax trees and executes rules."""

from pathlib import Path
from typing import Sequence

from atlint.config.settings import Settings
from atlint.files import read_source
from atlint.fixes import apply_fixes
from atlint.models import Diagnostic, LintResult, Severity
from atlint.parsing import SourceFile, first_error, parse_source, walk
from atlint.rules.base import Rule, RuleContext, RuleMatch
from atlint.rules.registry import RuleRegistry, get_enabled_rules
from atlint.typecheck import DeclaredTypeOracle

PARSE_ERROR_ID = "parse-error"


class RuleEngine:
  """Orchestrates rule execution and result aggregation.

  Each tree is walked once; every node is handed to the rules that
  registered its node type. Fixes are applied in passes: each pass
  applies the non-overlapping fixes, re-parses, and lints again, so
  nested matches are fixed from the inside out.

  Example:
    engine = RuleEngine()
    result = engine.lint([Path("src/index.ts")])
  """

  MAX_FIX_PASSES = 10

  def __init__(self, rules: list[Rule] | None = None, settings: Settings | None = None):
    """Initialize the rule engine.

    Args:
      rules: Optional list of rules to use. If None, rules are loaded
             from the registry and configured from settings.
      settings: Settings for lib target, severities and limits.
    """
    self._settings = settings or Settings()
    self._rules = rules

  @property
  def rules(self) -> list[Rule]:
    # Lazy load rules if not provided
    if self._rules is None:
      RuleRegistry.load_all()
      self._rules = get_enabled_rules(self._settings)
    return self._rules

  def lint_source(self, source: SourceFile) -> list[Diagnostic]:
    """Run all rules over one parsed file.

    Returns:
      Diagnostics in source order. A file with syntax errors yields a
      single parse-error diagnostic and is not otherwise linted.
    """
    if source.has_errors:
      return [self._parse_error(source)]

    dispatch: dict[str, list[Rule]] = {}
    for rule in self.rules:
      for node_type in rule.node_types:
        dispatch.setdefault(node_type, []).append(rule)

    context = RuleContext(
      source=source,
      oracle=DeclaredTypeOracle(source, self._settings.lib),
    )
    diagnostics: list[Diagnostic] = []

    for node in walk(source.root):
      for rule in dispatch.get(node.type, ()):
        match = rule.visit(node, context)
        if match is not None:
          diagnostics.append(self._to_diagnostic(source, rule, match))

    return diagnostics

  def fix_source(self, source: SourceFile) -> tuple[SourceFile, list[Diagnostic]]:
    """Apply fixes until none remain or MAX_FIX_PASSES is reached.

    Returns:
      Tuple of (fixed_source, remaining_diagnostics).
    """
    current = source
    for _ in range(self.MAX_FIX_PASSES):
      diagnostics = self.lint_source(current)
      fixes = [d.fix for d in diagnostics if d.fix is not None]
      if not fixes:
        return current, diagnostics

      outcome = apply_fixes(current.text, fixes)
      if not outcome.applied:
        return current, diagnostics
      current = parse_source(outcome.text, current.path)

    return current, self.lint_source(current)

  def lint(self, paths: Sequence[Path], fix: bool = False) -> LintResult:
    """Lint files, optionally writing fixes back to disk.

    Args:
      paths: Files to lint.
      fix: Apply automatic fixes and write changed files.

    Returns:
      LintResult with remaining diagnostics from all files.
    """
    all_diagnostics: list[Diagnostic] = []
    fixed_files: list[str] = []

    for path in paths:
      source = read_source(path)
      if fix:
        fixed, diagnostics = self.fix_source(source)
        if fixed.text != source.text:
          path.write_bytes(fixed.text)
          fixed_files.append(str(path))
      else:
        diagnostics = self.lint_source(source)
      all_diagnostics.extend(diagnostics)

    max_shown = self._settings.max_diagnostics
    return LintResult(
      diagnostics=all_diagnostics[:max_shown],
      summary=self._generate_summary(all_diagnostics, max_shown, len(paths), fixed_files),
      files_checked=len(paths),
      fixed_files=fixed_files,
    )

  def _to_diagnostic(self, source: SourceFile, rule: Rule, match: RuleMatch) -> Diagnostic:
    severity = match.severity
    rule_settings = self._settings.rule_settings(rule.id, rule.name)
    if rule_settings is not None:
      severity = rule_settings.severity

    return Diagnostic(
      file=source.path,
      line=match.line,
      column=match.column,
      rule_id=rule.id,
      severity=severity,
      message=match.message,
      suggestion=match.suggestion,
      fix=match.fix if rule.fixable else None,
    )

  def _parse_error(self, source: SourceFile) -> Diagnostic:
    error = first_error(source.root) or source.root
    row, column = error.start_point
    return Diagnostic(
      file=source.path,
      line=row + 1,
      column=column + 1,
      rule_id=PARSE_ERROR_ID,
      severity=Severity.HIGH,
      message="Syntax error; file was not linted",
    )

  def _generate_summary(
    self,
    diagnostics: list[Diagnostic],
    max_shown: int,
    files_checked: int,
    fixed_files: list[str],
  ) -> str:
    """Generate a summary of the run.

    Args:
      diagnostics: All diagnostics found (before truncation).
      max_shown: Maximum diagnostics that will be shown.
      files_checked: Number of files linted.
      fixed_files: Files rewritten by fixes.

    Returns:
      Human-readable summary string.
    """
    fixed = ""
    if fixed_files:
      fixed = f" Fixed {len(fixed_files)} file{'s' if len(fixed_files) != 1 else ''}."

    if not diagnostics:
      return f"No issues found in {files_checked} file{'s' if files_checked != 1 else ''}.{fixed}"

    # Count by severity
    by_severity: dict[str, int] = {}
    for diagnostic in diagnostics:
      sev = diagnostic.severity.value
      by_severity[sev] = by_severity.get(sev, 0) + 1

    parts = []
    for sev_enum in Severity:
      sev = sev_enum.value
      if sev in by_severity:
        parts.append(f"{by_severity[sev]} {sev}")

    summary = f"Found {len(diagnostics)} issue{'s' if len(diagnostics) != 1 else ''}"
    if parts:
      summary += f": {', '.join(parts)}"
    summary += "."

    if len(diagnostics) > max_shown:
      summary += f" (showing first {max_shown})"

    return summary + fixed
