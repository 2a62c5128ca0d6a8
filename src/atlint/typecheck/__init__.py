"""Static type resolution for JavaScript and TypeScript sources."""

from atlint.typecheck.declared import DeclaredTypeOracle
from atlint.typecheck.lib import DEFAULT_LIB, LIB_TARGETS, TYPED_ARRAY_NAMES, lib_level
from atlint.typecheck.types import TypeDescriptor, TypeFlags, TypeHandle, TypeOracle

__all__ = [
  "DEFAULT_LIB",
  "DeclaredTypeOracle",
  "LIB_TARGETS",
  "TYPED_ARRAY_NAMES",
  "TypeDescriptor",
  "TypeFlags",
  "TypeHandle",
  "TypeOracle",
  "lib_level",
]
