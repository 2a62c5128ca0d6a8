"""Tree-sitter parsing of JavaScript and TypeScript sources."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import tree_sitter
import tree_sitter_typescript
from tree_sitter import Node, Tree


class UnsupportedLanguageError(Exception):
  """File extension has no grammar."""


# The TSX grammar is a superset that also accepts plain JavaScript and JSX.
_GRAMMARS: dict[str, str] = {
  ".ts": "typescript",
  ".mts": "typescript",
  ".cts": "typescript",
  ".tsx": "tsx",
  ".js": "tsx",
  ".jsx": "tsx",
  ".mjs": "tsx",
  ".cjs": "tsx",
}

SUPPORTED_EXTENSIONS = frozenset(_GRAMMARS)

_languages: dict[str, tree_sitter.Language] = {}


def _get_language(name: str) -> tree_sitter.Language:
  """Get or load a tree-sitter language by grammar name."""
  if name not in _languages:
    if name == "tsx":
      _languages[name] = tree_sitter.Language(tree_sitter_typescript.language_tsx())
    else:
      _languages[name] = tree_sitter.Language(tree_sitter_typescript.language_typescript())
  return _languages[name]


@dataclass(frozen=True)
class SourceFile:
  """A parsed source file.

  The tree is owned by this object for the duration of one analysis
  pass and is never mutated; fixes produce new text that is parsed
  again.
  """

  path: str
  text: bytes
  tree: Tree

  @property
  def root(self) -> Node:
    return self.tree.root_node

  @property
  def has_errors(self) -> bool:
    return self.tree.root_node.has_error

  def slice(self, node: Node) -> str:
    """Return the exact source text spanned by a node."""
    return self.text[node.start_byte:node.end_byte].decode("utf-8")


def grammar_for(path: str) -> str:
  """Get the grammar name for a file path."""
  ext = Path(path).suffix.lower()
  grammar = _GRAMMARS.get(ext)
  if grammar is None:
    supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
    raise UnsupportedLanguageError(
      f"Cannot lint '{path}': unsupported extension '{ext}' (supported: {supported})"
    )
  return grammar


def parse_source(text: str | bytes, path: str = "input.ts") -> SourceFile:
  """Parse source text into a SourceFile.

  Args:
    text: Source code, as str or UTF-8 bytes.
    path: File path, used to pick the grammar and for reporting.

  Returns:
    SourceFile holding the text and its syntax tree.

  Raises:
    UnsupportedLanguageError: If the extension has no grammar.
  """
  data = text.encode("utf-8") if isinstance(text, str) else text
  parser = tree_sitter.Parser(_get_language(grammar_for(path)))
  return SourceFile(path=path, text=data, tree=parser.parse(data))


def walk(node: Node) -> Iterator[Node]:
  """Yield node and all its descendants in pre-order."""
  stack = [node]
  while stack:
    current = stack.pop()
    yield current
    stack.extend(reversed(current.children))


def first_error(node: Node) -> Node | None:
  """Find the first ERROR or missing node below node."""
  for child in walk(node):
    if child.type == "ERROR" or child.is_missing:
      return child
  return None
