"""Output formatting."""

from atlint.output.formatter import (
  GitHubFormatter,
  JsonFormatter,
  MarkdownFormatter,
  OutputFormatter,
  TerminalFormatter,
  get_formatter,
  group_by_file,
)

__all__ = [
  "OutputFormatter",
  "TerminalFormatter",
  "JsonFormatter",
  "MarkdownFormatter",
  "GitHubFormatter",
  "get_formatter",
  "group_by_file",
]
