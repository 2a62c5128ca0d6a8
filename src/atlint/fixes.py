"""Application of fix directives to source text."""

from dataclasses import dataclass
from typing import Iterable, Sequence

from atlint.models import FixDirective


@dataclass(frozen=True)
class FixOutcome:
  """Result of applying one batch of fixes."""

  text: bytes
  applied: Sequence[FixDirective]
  skipped: Sequence[FixDirective]


def apply_fixes(text: bytes, fixes: Iterable[FixDirective]) -> FixOutcome:
  """Apply non-overlapping fixes to text.

  Fixes are taken in order of their start offset; a fix overlapping
  one already taken is skipped and left for a later pass, when the
  source has been re-parsed.

  Args:
    text: UTF-8 encoded source.
    fixes: Directives whose offsets index into text.

  Returns:
    FixOutcome with the new text and which fixes were applied.
  """
  ordered = sorted(fixes, key=lambda f: (f.start, f.end))
  applied: list[FixDirective] = []
  skipped: list[FixDirective] = []

  for fix in ordered:
    if fix.start < 0 or fix.end > len(text) or fix.start > fix.end:
      raise ValueError(f"Fix range [{fix.start}, {fix.end}) outside source of length {len(text)}")
    if applied and applied[-1].overlaps(fix):
      skipped.append(fix)
      continue
    applied.append(fix)

  parts: list[bytes] = []
  cursor = 0
  for fix in applied:
    parts.append(text[cursor:fix.start])
    parts.append(fix.replacement.encode("utf-8"))
    cursor = fix.end
  parts.append(text[cursor:])

  return FixOutcome(text=b"".join(parts), applied=applied, skipped=skipped)
