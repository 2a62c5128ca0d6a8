"""CLI interface using Typer."""

import os
import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from atlint import __version__
from atlint.config import ConfigError
from atlint.files import FileError
from atlint.lint import run_lint
from atlint.output import get_formatter
from atlint.parsing import UnsupportedLanguageError
from atlint.rules import RuleNotFoundError, RuleOptionsError

app = typer.Typer(
  name="atlint",
  help="Prefer xs.at(-n) over xs[xs.length - n] in JavaScript and TypeScript",
  no_args_is_help=False,
)

console = Console()


def _is_debug() -> bool:
  return os.environ.get("ATLINT_DEBUG", "").lower() in ("1", "true", "yes")


def version_callback(value: bool) -> None:
  if value:
    console.print(f"atlint {__version__}")
    raise typer.Exit()


@app.command()
def main(
  files: Optional[list[str]] = typer.Argument(
    None,
    help="Files, directories or glob patterns to lint (default: current directory)",
  ),
  fix: bool = typer.Option(False, "--fix", help="Rewrite matches in place"),
  ignore_functions: bool = typer.Option(
    False, "--ignore-functions", help="Skip objects reached through a function call"
  ),
  lib: str = typer.Option(None, "--lib", help="ECMAScript lib target (e.g. es2022)"),
  format_type: str = typer.Option(
    "terminal", "--format", help="Output format: terminal, json, markdown, github"
  ),
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
  max_diagnostics: int = typer.Option(
    None, "--max-diagnostics", min=1, help="Maximum diagnostics to show"
  ),
  exit_code: bool = typer.Option(
    False, "--exit-code", help="Exit with code 1 when issues remain"
  ),
  debug: bool = typer.Option(False, "--debug", "-d", help="Show full traceback on errors"),
  version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
  """Lint files for last-element indexing via `.length`.

  With no arguments, lints the current directory.
  """
  show_traceback = debug or _is_debug()

  try:
    formatter = get_formatter(format_type)
    result = run_lint(
      files=files,
      fix=fix,
      config_path=config,
      ignore_functions=ignore_functions,
      lib=lib,
      max_diagnostics=max_diagnostics,
    )
    output = formatter.format(result)
    if output:
      console.print(output, markup=False, highlight=False, emoji=False, soft_wrap=True)

  except (ConfigError, FileError, RuleNotFoundError, RuleOptionsError, UnsupportedLanguageError) as e:
    console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(1) from None
  except Exception as e:
    console.print(f"[red]Error:[/red] {e}")
    if show_traceback:
      console.print("\n[dim]Traceback:[/dim]")
      console.print(traceback.format_exc())
    raise typer.Exit(1) from None

  if exit_code and result.has_issues:
    raise typer.Exit(1)


if __name__ == "__main__":
  app()
