"""Rule abstractions for syntax-tree linting."""

from dataclasses import dataclass
from typing import Protocol

from tree_sitter import Node

from atlint.models import FixDirective, Severity
from atlint.parsing import SourceFile
from atlint.typecheck import TypeOracle


@dataclass(frozen=True)
class RuleContext:
  """What a rule may read while visiting one file."""

  source: SourceFile
  oracle: TypeOracle


@dataclass(frozen=True)
class RuleMatch:
  """A single rule match found during analysis.

  This is an intermediate representation that gets converted to
  Diagnostic by the RuleEngine. Keeping it separate allows rules
  to remain decoupled from the output model.
  """

  line: int
  column: int
  severity: Severity
  message: str
  suggestion: str | None = None
  fix: FixDirective | None = None


class Rule(Protocol):
  """Protocol for syntax-tree rules.

  The engine walks each tree once and calls `visit` for every node
  whose type is listed in `node_types`. Rules hold only immutable
  options, so one instance can be reused across files.

  Example:
    class MyRule:
      @property
      def id(self) -> str:
        return "IDX999"

      @property
      def name(self) -> str:
        return "my-rule"

      node_types = ("subscript_expression",)
      fixable = False

      def visit(self, node: Node, context: RuleContext) -> RuleMatch | None:
        return None
  """

  node_types: tuple[str, ...]
  fixable: bool

  @property
  def id(self) -> str:
    """Unique identifier for this rule (e.g., 'IDX001')."""
    ...

  @property
  def name(self) -> str:
    """Human-readable rule name (e.g., 'prefer-at')."""
    ...

  def visit(self, node: Node, context: RuleContext) -> RuleMatch | None:
    """Check one node.

    Args:
      node: A node whose type is in `node_types`.
      context: The file being linted and its type oracle.

    Returns:
      A RuleMatch, or None if the node does not match.
    """
    ...
