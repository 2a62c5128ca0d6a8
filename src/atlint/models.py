"""Core domain models for linting."""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class Severity(Enum):
  """Diagnostic severity levels."""

  CRITICAL = "critical"
  HIGH = "high"
  MEDIUM = "medium"
  LOW = "low"
  INFO = "info"


@dataclass(frozen=True)
class FixDirective:
  """A replacement of the byte range [start, end) with new text.

  Offsets index the UTF-8 encoded source, which is what the syntax
  tree reports. Directives are produced by rules and applied by the
  engine; a rule never edits source itself.
  """

  start: int
  end: int
  replacement: str

  def overlaps(self, other: "FixDirective") -> bool:
    return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class Diagnostic:
  """A single reported problem in a file."""

  file: str
  line: int
  column: int
  rule_id: str
  severity: Severity
  message: str
  suggestion: str | None = None
  fix: FixDirective | None = None


@dataclass(frozen=True)
class LintResult:
  """Result of linting a set of files."""

  diagnostics: Sequence[Diagnostic]
  summary: str
  files_checked: int = 0
  fixed_files: Sequence[str] = ()

  @property
  def has_issues(self) -> bool:
    return bool(self.diagnostics)
