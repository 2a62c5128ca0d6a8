"""Rules that suggest modern language built-ins."""

from atlint.rules.modernize.prefer_at import PreferAtOptions, PreferAtRule

__all__ = [
  "PreferAtOptions",
  "PreferAtRule",
]
