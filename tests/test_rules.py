"""Tests for rule engine infrastructure."""

from pathlib import Path
from typing import Any, Mapping

import pytest
from atlint.config import RuleSettings, Settings
from atlint.models import FixDirective, Severity
from atlint.parsing import parse_source
from atlint.rules.base import Rule, RuleContext, RuleMatch
from atlint.rules.engine import RuleEngine
from atlint.rules.modernize.prefer_at import PreferAtRule
from atlint.rules.registry import (
  RuleNotFoundError,
  RuleOptionsError,
  RuleRegistry,
  get_all_rules,
  get_enabled_rules,
  get_rule,
  list_rules,
  register_rule,
  resolve_rule_id,
)
from tree_sitter import Node


class MockRule:
  """Mock rule for testing.

  Reports every node of its node types; registered mocks default to no
  node types so they never fire in other tests.
  """

  def __init__(
    self,
    rule_id: str = "TEST001",
    name: str = "test-rule",
    node_types: tuple[str, ...] = (),
    severity: Severity = Severity.INFO,
    fixable: bool = False,
    options: Mapping[str, Any] | None = None,
  ):
    self._id = rule_id
    self._name = name
    self.node_types = node_types
    self.fixable = fixable
    self._severity = severity
    self.options = dict(options or {})

  @property
  def id(self) -> str:
    return self._id

  @property
  def name(self) -> str:
    return self._name

  def visit(self, node: Node, context: RuleContext) -> RuleMatch | None:
    row, column = node.start_point
    return RuleMatch(
      line=row + 1,
      column=column + 1,
      severity=self._severity,
      message=f"Found {context.source.slice(node)}",
      fix=FixDirective(node.start_byte, node.end_byte, "0"),
    )


def _subscript_rule(**kwargs: Any) -> MockRule:
  return MockRule(node_types=("subscript_expression",), **kwargs)


class TestRuleMatch:
  def test_frozen_dataclass(self) -> None:
    match = RuleMatch(line=42, column=3, severity=Severity.LOW, message="Test message")

    assert match.line == 42
    assert match.column == 3
    assert match.suggestion is None
    assert match.fix is None
    with pytest.raises(AttributeError):
      match.line = 1  # type: ignore[misc]


class TestRuleProtocol:
  def test_mock_rule_satisfies_protocol(self) -> None:
    rule: Rule = MockRule()

    assert rule.id == "TEST001"
    assert rule.name == "test-rule"
    assert rule.node_types == ()

  def test_prefer_at_satisfies_protocol(self) -> None:
    rule: Rule = PreferAtRule()

    assert rule.id == "IDX001"


class TestLintSource:
  def test_dispatches_by_node_type(self) -> None:
    engine = RuleEngine(rules=[_subscript_rule()])

    diagnostics = engine.lint_source(parse_source("a[0];\nb.c;\nd[e[1]];"))

    assert [d.message for d in diagnostics] == ["Found a[0]", "Found d[e[1]]", "Found e[1]"]
    assert [d.line for d in diagnostics] == [1, 3, 3]

  def test_no_rules(self) -> None:
    engine = RuleEngine(rules=[])

    assert engine.lint_source(parse_source("a[0];")) == []

  def test_diagnostic_carries_file_and_rule(self) -> None:
    engine = RuleEngine(rules=[_subscript_rule()])

    diagnostics = engine.lint_source(parse_source("a[0];", "src/app.ts"))

    assert diagnostics[0].file == "src/app.ts"
    assert diagnostics[0].rule_id == "TEST001"
    assert diagnostics[0].column == 1

  def test_drops_fix_of_unfixable_rule(self) -> None:
    engine = RuleEngine(rules=[_subscript_rule(fixable=False)])

    assert engine.lint_source(parse_source("a[0];"))[0].fix is None

  def test_keeps_fix_of_fixable_rule(self) -> None:
    engine = RuleEngine(rules=[_subscript_rule(fixable=True)])

    assert engine.lint_source(parse_source("a[0];"))[0].fix == FixDirective(0, 4, "0")

  def test_parse_error_reported_instead_of_matches(self) -> None:
    engine = RuleEngine(rules=[_subscript_rule()])

    diagnostics = engine.lint_source(parse_source("a[0];\nconst x = ;"))

    assert len(diagnostics) == 1
    assert diagnostics[0].rule_id == "parse-error"
    assert diagnostics[0].severity == Severity.HIGH
    assert diagnostics[0].line == 2

  def test_severity_overridden_by_settings(self) -> None:
    settings = Settings(rules={"test-rule": RuleSettings(severity=Severity.HIGH)})
    engine = RuleEngine(rules=[_subscript_rule()], settings=settings)

    assert engine.lint_source(parse_source("a[0];"))[0].severity == Severity.HIGH

  def test_severity_from_rule_when_unconfigured(self) -> None:
    engine = RuleEngine(rules=[_subscript_rule(severity=Severity.MEDIUM)], settings=Settings(rules={}))

    assert engine.lint_source(parse_source("a[0];"))[0].severity == Severity.MEDIUM

  def test_lib_setting_reaches_oracle(self) -> None:
    code = "const arr: number[] = [];\narr[arr.length - 1];"

    modern = RuleEngine(rules=[PreferAtRule()], settings=Settings(lib="es2022"))
    legacy = RuleEngine(rules=[PreferAtRule()], settings=Settings(lib="es2020"))

    assert len(modern.lint_source(parse_source(code))) == 1
    assert legacy.lint_source(parse_source(code)) == []


class TestFixSource:
  def test_applies_fixes(self) -> None:
    engine = RuleEngine(rules=[PreferAtRule()])
    source = parse_source("const arr: number[] = [];\nconst x = arr[arr.length - 1];")

    fixed, remaining = engine.fix_source(source)

    assert fixed.text == b"const arr: number[] = [];\nconst x = arr.at(-1);"
    assert remaining == []

  def test_nested_matches_fixed_in_passes(self) -> None:
    engine = RuleEngine(rules=[PreferAtRule()])
    code = "const grid: number[][] = [];\ngrid[grid.length - 1][grid[grid.length - 1].length - 1];"

    assert len(engine.lint_source(parse_source(code))) == 3

    fixed, remaining = engine.fix_source(parse_source(code))

    assert fixed.text.decode().endswith("grid.at(-1)[grid.at(-1).length - 1];")
    assert remaining == []

  def test_fix_is_idempotent(self) -> None:
    engine = RuleEngine(rules=[PreferAtRule()])
    source = parse_source("let s = 'abc';\ns[s.length - 1] + s[s.length - 2];")

    once, _ = engine.fix_source(source)
    twice, _ = engine.fix_source(once)

    assert once.text == b"let s = 'abc';\ns.at(-1) + s.at(-2);"
    assert twice.text == once.text

  def test_unchanged_without_matches(self) -> None:
    engine = RuleEngine(rules=[PreferAtRule()])
    source = parse_source("const x = 1;")

    fixed, remaining = engine.fix_source(source)

    assert fixed is source
    assert remaining == []

  def test_parse_error_left_alone(self) -> None:
    engine = RuleEngine(rules=[PreferAtRule()])
    source = parse_source("const x = ;")

    fixed, remaining = engine.fix_source(source)

    assert fixed is source
    assert remaining[0].rule_id == "parse-error"

  def test_stops_after_max_passes(self) -> None:
    # Replacing `a[0]` with `a[0]` never converges.
    class LoopingRule(MockRule):
      def visit(self, node: Node, context: RuleContext) -> RuleMatch | None:
        return RuleMatch(1, 1, Severity.LOW, "loop", fix=FixDirective(node.start_byte, node.end_byte, "a[0]"))

    engine = RuleEngine(rules=[LoopingRule(node_types=("subscript_expression",), fixable=True)])

    fixed, remaining = engine.fix_source(parse_source("a[0];"))

    assert fixed.text == b"a[0];"
    assert len(remaining) == 1


class TestLint:
  def test_lints_files(self, tmp_path: Path) -> None:
    path = tmp_path / "a.ts"
    path.write_text("const xs = [1];\nxs[xs.length - 1];\n")
    engine = RuleEngine(rules=[PreferAtRule()])

    result = engine.lint([path])

    assert result.files_checked == 1
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].file == str(path)
    assert result.summary == "Found 1 issue: 1 low."
    assert path.read_text() == "const xs = [1];\nxs[xs.length - 1];\n"

  def test_fix_writes_file(self, tmp_path: Path) -> None:
    path = tmp_path / "a.ts"
    path.write_text("const xs = [1];\nxs[xs.length - 1];\n")
    clean = tmp_path / "b.ts"
    clean.write_text("const y = 2;\n")
    engine = RuleEngine(rules=[PreferAtRule()])

    result = engine.lint([path, clean], fix=True)

    assert path.read_text() == "const xs = [1];\nxs.at(-1);\n"
    assert result.fixed_files == [str(path)]
    assert result.diagnostics == []
    assert result.summary == "No issues found in 2 files. Fixed 1 file."

  def test_respects_max_diagnostics(self, tmp_path: Path) -> None:
    path = tmp_path / "many.ts"
    path.write_text("".join(f"a{i}[{i}];\n" for i in range(8)))
    engine = RuleEngine(rules=[_subscript_rule()], settings=Settings(max_diagnostics=5))

    result = engine.lint([path])

    assert len(result.diagnostics) == 5
    assert "Found 8 issues" in result.summary
    assert "showing first 5" in result.summary

  def test_generates_summary_with_counts(self, tmp_path: Path) -> None:
    path = tmp_path / "mixed.ts"
    path.write_text("a[0];\nconst x = ;\n")
    clean = tmp_path / "clean.ts"
    clean.write_text("b[1];\n")
    engine = RuleEngine(rules=[_subscript_rule(severity=Severity.LOW)], settings=Settings(rules={}))

    result = engine.lint([path, clean])

    assert result.summary == "Found 2 issues: 1 high, 1 low."

  def test_no_issues_summary(self, tmp_path: Path) -> None:
    path = tmp_path / "clean.ts"
    path.write_text("const x = 1;\n")

    result = RuleEngine(rules=[]).lint([path])

    assert result.summary == "No issues found in 1 file."
    assert not result.has_issues

  def test_loads_registered_rules_lazily(self) -> None:
    engine = RuleEngine()

    assert "IDX001" in [r.id for r in engine.rules]


class TestRuleRegistry:
  def test_register_and_list(self) -> None:
    # Note: This modifies global state, so we use a unique ID
    register_rule("REGTEST001", lambda options: MockRule(rule_id="REGTEST001"))

    assert "REGTEST001" in list_rules()

  def test_get_all_rules(self) -> None:
    register_rule("REGTEST002", lambda options: MockRule(rule_id="REGTEST002"))

    rules = get_all_rules()

    assert any(r.id == "REGTEST002" for r in rules)

  def test_resolve_by_name(self) -> None:
    register_rule("REGTEST003", lambda options: MockRule(rule_id="REGTEST003"), name="reg-test-three")

    assert resolve_rule_id("reg-test-three") == "REGTEST003"
    assert resolve_rule_id("REGTEST003") == "REGTEST003"

  def test_unknown_rule(self) -> None:
    with pytest.raises(RuleNotFoundError, match="no-such-rule"):
      get_rule("no-such-rule")

  def test_get_rule_passes_options(self) -> None:
    register_rule("REGTEST004", lambda options: MockRule(rule_id="REGTEST004", options=options))

    rule = get_rule("REGTEST004", {"flag": True})

    assert rule.options == {"flag": True}

  def test_invalid_options(self) -> None:
    def factory(options: Mapping[str, Any]) -> MockRule:
      if options.get("bad"):
        raise ValueError("bad option")
      return MockRule(rule_id="REGTEST005")

    register_rule("REGTEST005", factory)

    with pytest.raises(RuleOptionsError, match="REGTEST005"):
      get_rule("REGTEST005", {"bad": True})

  def test_prefer_at_by_name_with_options(self) -> None:
    RuleRegistry.load_all()

    rule = get_rule("prefer-at", {"ignoreFunctions": True})

    assert rule.id == "IDX001"
    assert rule.options.ignore_functions is True

  def test_prefer_at_rejects_unknown_option(self) -> None:
    RuleRegistry.load_all()

    with pytest.raises(RuleOptionsError):
      get_rule("prefer-at", {"ignoreEverything": True})

  def test_enabled_rules_follow_settings(self) -> None:
    RuleRegistry.load_all()
    register_rule("REGTEST006", lambda options: MockRule(rule_id="REGTEST006"), name="reg-test-six")

    settings = Settings(rules={
      "prefer-at": RuleSettings(options={"ignoreFunctions": True}),
      "reg-test-six": RuleSettings(enabled=False),
    })
    rules = {r.id: r for r in get_enabled_rules(settings)}

    assert "REGTEST006" not in rules
    assert rules["IDX001"].options.ignore_functions is True

  def test_unconfigured_rules_enabled_with_defaults(self) -> None:
    RuleRegistry.load_all()

    rules = {r.id: r for r in get_enabled_rules(Settings(rules={}))}

    assert rules["IDX001"].options.ignore_functions is False

  def test_settings_naming_unknown_rule(self) -> None:
    with pytest.raises(RuleNotFoundError):
      get_enabled_rules(Settings(rules={"not-a-rule": RuleSettings()}))
