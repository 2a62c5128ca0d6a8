"""Output formatting for lint results."""

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from atlint.models import Diagnostic, LintResult, Severity


def group_by_file(diagnostics: Sequence[Diagnostic]) -> list[tuple[str, list[Diagnostic]]]:
  """Group diagnostics per file, files in first-seen order, each group by position."""
  by_file: dict[str, list[Diagnostic]] = {}
  for d in diagnostics:
    by_file.setdefault(d.file, []).append(d)
  return [(file, sorted(group, key=lambda d: (d.line, d.column))) for file, group in by_file.items()]


class OutputFormatter(ABC):
  """Base output formatter."""

  @abstractmethod
  def format(self, result: LintResult) -> str:
    """Format lint result for output."""
    ...


class TerminalFormatter(OutputFormatter):
  """Rich terminal output, one table per file."""

  SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
    Severity.INFO: "dim",
  }

  def __init__(self, console: Console | None = None):
    self.console = console or Console()

  def format(self, result: LintResult) -> str:
    groups = group_by_file(result.diagnostics)
    for file, diagnostics in groups:
      self._print_file(file, diagnostics)
    for file in result.fixed_files:
      self.console.print(f"[green]fixed[/green] {escape(file)}")
    self._print_footer(result, len(groups))
    return ""

  def _print_file(self, file: str, diagnostics: list[Diagnostic]) -> None:
    self.console.print()
    self.console.print(f"[bold underline]{self._make_file_link(file)}[/bold underline]")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Position", justify="right", style="dim")
    table.add_column("Severity")
    table.add_column("Issue", min_width=40)
    table.add_column("Rule", style="dim")

    for d in diagnostics:
      message = escape(d.message)
      if d.suggestion:
        message += f"\n[dim]{escape(d.suggestion)}[/dim]"
      table.add_row(
        f"{d.line}:{d.column}",
        Text(d.severity.value.upper(), style=self.SEVERITY_STYLES.get(d.severity, "")),
        message,
        d.rule_id,
      )
    self.console.print(table)

  def _print_footer(self, result: LintResult, file_count: int) -> None:
    self.console.print()
    if not result.diagnostics:
      self.console.print(f"[green]No issues found.[/green] [dim]{result.files_checked} file(s) checked[/dim]")
      return
    self.console.print(
      f"[bold]{len(result.diagnostics)} issue(s) found[/bold] in {file_count} of "
      f"{result.files_checked} file(s)"
    )
    self.console.print(f"[dim]{escape(result.summary)}[/dim]")

  def _make_file_link(self, file_path: str) -> str:
    """Create a clickable file link for terminals that support hyperlinks."""
    url = Path(file_path).resolve().as_uri()
    return f"[link={url}]{escape(file_path)}[/link]"


class JsonFormatter(OutputFormatter):
  """JSON output formatter."""

  def format(self, result: LintResult) -> str:
    data = {
      "summary": result.summary,
      "files_checked": result.files_checked,
      "fixed_files": list(result.fixed_files),
      "diagnostics": [self._diagnostic(d) for d in result.diagnostics],
    }
    return json.dumps(data, indent=2)

  def _diagnostic(self, d: Diagnostic) -> dict:
    fix = None
    if d.fix:
      fix = {"range": [d.fix.start, d.fix.end], "text": d.fix.replacement}
    return {
      "file": d.file,
      "line": d.line,
      "column": d.column,
      "rule": d.rule_id,
      "severity": d.severity.value,
      "message": d.message,
      "suggestion": d.suggestion,
      "fix": fix,
    }


class MarkdownFormatter(OutputFormatter):
  """Markdown report with a section per file."""

  def format(self, result: LintResult) -> str:
    groups = group_by_file(result.diagnostics)
    lines = [f"# atlint: {result.summary}", ""]
    lines.append(f"Checked {result.files_checked} file(s), {len(groups)} with issues.")
    lines.append("")

    for file, diagnostics in groups:
      lines.extend([f"## `{file}`", "", "| Position | Severity | Rule | Issue |", "| --- | --- | --- | --- |"])
      for d in diagnostics:
        issue = self._cell(d.message)
        if d.suggestion:
          issue += f"<br>{self._cell(d.suggestion)}"
        lines.append(f"| {d.line}:{d.column} | {d.severity.value} | {d.rule_id} | {issue} |")
      lines.append("")

    if result.fixed_files:
      lines.extend(["## Fixed", ""])
      lines.extend(f"- `{file}`" for file in result.fixed_files)
      lines.append("")

    return "\n".join(lines)

  def _cell(self, text: str) -> str:
    return text.replace("|", "\\|").replace("\n", "<br>")


class GitHubFormatter(OutputFormatter):
  """GitHub Actions workflow command formatter for PR annotations."""

  def format(self, result: LintResult) -> str:
    lines = []
    for file, diagnostics in group_by_file(result.diagnostics):
      for d in diagnostics:
        level = self._severity_to_level(d.severity)
        message = self._escape(f"[{d.rule_id}] {d.message}")
        lines.append(f"::{level} file={file},line={d.line},col={d.column},title={d.rule_id}::{message}")
    return "\n".join(lines)

  def _escape(self, message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")

  def _severity_to_level(self, severity: Severity) -> str:
    if severity in (Severity.CRITICAL, Severity.HIGH):
      return "error"
    if severity == Severity.MEDIUM:
      return "warning"
    return "notice"


FORMATTERS: dict[str, type[OutputFormatter]] = {
  "terminal": TerminalFormatter,
  "json": JsonFormatter,
  "markdown": MarkdownFormatter,
  "github": GitHubFormatter,
}


def get_formatter(format_type: str) -> OutputFormatter:
  """Get formatter by type name."""
  if format_type not in FORMATTERS:
    raise ValueError(f"Unknown format: {format_type}")
  return FORMATTERS[format_type]()
