"""Source file discovery and reading."""

import glob as globmod
from pathlib import Path

from atlint.parsing import SUPPORTED_EXTENSIONS, SourceFile, parse_source


class FileError(Exception):
  """File operation failed."""


# Directories that never hold first-party sources
_EXCLUDED_DIRS: set[str] = {
  "node_modules",
  ".git",
  ".venv",
  "venv",
  "dist",
  "build",
  "coverage",
  ".next",
  "vendor",
}


def collect_source_files(patterns: list[str], cwd: Path | None = None) -> list[Path]:
  """Resolve files, directories and glob patterns to lintable files.

  Args:
    patterns: Paths or glob patterns, relative to cwd unless absolute.
    cwd: Base directory. Defaults to the current working directory.

  Returns:
    Unique file paths in the order they were matched.

  Raises:
    FileError: If nothing lintable matched.
  """
  base_path = cwd or Path.cwd()
  expanded = _expand_directories(patterns, base_path)
  resolved = _resolve_patterns(expanded, base_path)

  if not resolved:
    raise FileError(_no_files_error(patterns, base_path))

  return resolved


def read_source(path: Path) -> SourceFile:
  """Read and parse a source file.

  Raises:
    FileError: If the file cannot be read.
  """
  try:
    data = path.read_bytes()
  except OSError as e:
    raise FileError(f"Cannot read {path}: {e.strerror or e}") from e
  return parse_source(data, str(path))


def _expand_directories(patterns: list[str], base_path: Path) -> list[str]:
  """Expand directory patterns to one recursive glob per supported extension."""
  result: list[str] = []

  for pattern in patterns:
    p = Path(pattern)
    full_path = p if p.is_absolute() else base_path / p

    if full_path.is_dir():
      for ext in sorted(SUPPORTED_EXTENSIONS):
        result.append(str(full_path / "**" / f"*{ext}"))
    else:
      result.append(pattern)

  return result


def _resolve_patterns(patterns: list[str], base_path: Path) -> list[Path]:
  """Expand glob patterns and return unique, lintable file paths."""
  seen: set[Path] = set()
  result: list[Path] = []

  for pattern in patterns:
    for path in _expand_pattern(pattern, base_path):
      if path in seen or not path.is_file():
        continue
      if path.suffix.lower() not in SUPPORTED_EXTENSIONS or _is_excluded(path, base_path):
        continue
      seen.add(path)
      result.append(path)

  return result


def _expand_pattern(pattern: str, base_path: Path) -> list[Path]:
  """Expand a single pattern to matching paths."""
  p = Path(pattern)
  full = pattern if p.is_absolute() else str(base_path / pattern)

  if any(c in pattern for c in "*?["):
    return [Path(m) for m in sorted(globmod.glob(full, recursive=True))]

  return [Path(full)]


def _is_excluded(path: Path, base_path: Path) -> bool:
  try:
    parts = path.relative_to(base_path).parts
  except ValueError:
    parts = path.parts
  return bool(set(parts) & _EXCLUDED_DIRS)


def _no_files_error(patterns: list[str], base_path: Path) -> str:
  """Generate a helpful error message when no files are found."""
  extensions = ", ".join(sorted(SUPPORTED_EXTENSIONS))
  dirs = [p for p in patterns if (base_path / p).is_dir() or Path(p).is_dir()]

  if dirs:
    return (
      f"No lintable files found in: {', '.join(dirs)}\n"
      f"Supported extensions: {extensions}"
    )

  return (
    f"No files matched: {', '.join(patterns)}\n"
    "Use glob patterns like: atlint 'src/**/*.ts'"
  )
