"""Pytest fixtures."""

from typing import Callable

import pytest
from atlint.models import Diagnostic, FixDirective, LintResult, Severity
from atlint.parsing import SourceFile, parse_source, walk
from atlint.rules.engine import RuleEngine
from atlint.rules.modernize.prefer_at import PreferAtOptions, PreferAtRule
from tree_sitter import Node

LintFn = Callable[..., list[Diagnostic]]


@pytest.fixture
def lint() -> LintFn:
  """Lint a snippet with prefer-at and return its diagnostics."""

  def _lint(code: str, path: str = "input.ts", **options: bool) -> list[Diagnostic]:
    engine = RuleEngine(rules=[PreferAtRule(PreferAtOptions(**options))])
    return engine.lint_source(parse_source(code, path))

  return _lint


def _find_node(source: SourceFile, text: str, node_type: str | None = None) -> Node:
  for node in walk(source.root):
    if source.slice(node) == text and (node_type is None or node.type == node_type):
      return node
  raise AssertionError(f"No node {node_type or ''} spanning {text!r}")


@pytest.fixture
def find_node() -> Callable[..., Node]:
  """Find the first node spanning exactly some text (and of a type, if given)."""
  return _find_node


@pytest.fixture
def sample_ts_file() -> str:
  return """const items: number[] = [1, 2, 3];
const last = items[items.length - 1];
const name: string = "atlint";
const tail = name[name.length - 2];
"""


@pytest.fixture
def sample_lint_result() -> LintResult:
  return LintResult(
    diagnostics=[
      Diagnostic(
        file="src/index.ts",
        line=2,
        column=14,
        rule_id="IDX001",
        severity=Severity.LOW,
        message='Expected a "items.at(-1)" instead of "items[items.length - 1]".',
        suggestion="Replace with `items.at(-1)`",
        fix=FixDirective(start=48, end=71, replacement="items.at(-1)"),
      ),
    ],
    summary="Found 1 issue: 1 low.",
    files_checked=1,
  )
