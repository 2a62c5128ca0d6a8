"""Lint JavaScript and TypeScript for `xs[xs.length - n]` and rewrite it to `xs.at(-n)`."""

__version__ = "0.1.0"
