"""Builtin library declarations for the ECMAScript targets."""

from atlint.typecheck.types import (
  ANY,
  BIGINT,
  NUMBER,
  MemberThunk,
  TypeDescriptor,
  TypeFlags,
  callable_type,
)

LIB_TARGETS = (
  "es5",
  "es2015",
  "es2016",
  "es2017",
  "es2018",
  "es2019",
  "es2020",
  "es2021",
  "es2022",
  "es2023",
  "esnext",
)

DEFAULT_LIB = "es2022"

TYPED_ARRAY_NAMES = (
  "Int8Array",
  "Uint8Array",
  "Uint8ClampedArray",
  "Int16Array",
  "Uint16Array",
  "Int32Array",
  "Float32Array",
  "Uint32Array",
  "Float64Array",
  "BigInt64Array",
  "BigUint64Array",
)

_BIGINT_ARRAYS = frozenset(["BigInt64Array", "BigUint64Array"])

# Methods present on every indexable builtin since es5.
_INDEXABLE_METHODS = ("indexOf", "lastIndexOf", "slice", "toString")
_ARRAY_METHODS = (
  "concat", "every", "filter", "forEach", "join", "map", "pop", "push",
  "reduce", "reverse", "shift", "some", "sort", "splice", "unshift",
  "find", "includes", "flat", "at", "findLast",
)
_READONLY_ARRAY_METHODS = (
  "concat", "every", "filter", "forEach", "join", "map", "includes", "at",
)
_TYPED_ARRAY_METHODS = ("fill", "map", "set", "subarray", "includes", "at", "findLast")
_STRING_METHODS = (
  "charAt", "charCodeAt", "concat", "split", "substring", "toLowerCase",
  "toUpperCase", "trim", "includes", "padStart", "at",
)

# Members introduced after es5, keyed by the first target declaring them.
_ADDED_IN: dict[str, str] = {
  "find": "es2015",
  "includes": "es2016",
  "padStart": "es2017",
  "flat": "es2019",
  "at": "es2022",
  "findLast": "es2023",
}


def lib_level(target: str) -> int:
  """Return the ordinal of a lib target.

  Raises:
    ValueError: If the target is unknown.
  """
  try:
    return LIB_TARGETS.index(target.lower())
  except ValueError:
    raise ValueError(
      f"Unknown lib target '{target}'. Expected one of: {', '.join(LIB_TARGETS)}"
    ) from None


def _available(member: str, target: str) -> bool:
  added = _ADDED_IN.get(member)
  return added is None or lib_level(added) <= lib_level(target)


def _members(methods: tuple[str, ...], target: str) -> dict[str, MemberThunk]:
  method = callable_type(ANY)
  members: dict[str, MemberThunk] = {"length": lambda: NUMBER}
  for name in (*_INDEXABLE_METHODS, *methods):
    if _available(name, target):
      members[name] = lambda: method
  return members


def array_type(
  element: TypeDescriptor = ANY,
  target: str = DEFAULT_LIB,
  readonly: bool = False,
) -> TypeDescriptor:
  """Describe `T[]` (or `readonly T[]`)."""
  methods = _READONLY_ARRAY_METHODS if readonly else _ARRAY_METHODS
  return TypeDescriptor(
    TypeFlags.OBJECT,
    symbol_name="ReadonlyArray" if readonly else "Array",
    members=_members(methods, target),
    element=element,
  )


def typed_array_type(name: str, target: str = DEFAULT_LIB) -> TypeDescriptor:
  element = BIGINT if name in _BIGINT_ARRAYS else NUMBER
  return TypeDescriptor(
    TypeFlags.OBJECT,
    symbol_name=name,
    members=_members(_TYPED_ARRAY_METHODS, target),
    element=element,
  )


def string_type(
  target: str = DEFAULT_LIB,
  flags: TypeFlags = TypeFlags.STRING,
  boxed: bool = False,
) -> TypeDescriptor:
  """Describe primitive `string`, a string literal, or boxed `String`.

  Primitives carry no symbol; their members come from the apparent
  `String` interface.
  """
  return TypeDescriptor(
    TypeFlags.OBJECT if boxed else flags,
    symbol_name="String" if boxed else None,
    members=_members(_STRING_METHODS, target),
  )


def builtin_type(
  name: str,
  target: str = DEFAULT_LIB,
  element: TypeDescriptor = ANY,
) -> TypeDescriptor | None:
  """Look up a builtin by its global name, or None if not a builtin."""
  if name == "Array":
    return array_type(element, target)
  if name == "ReadonlyArray":
    return array_type(element, target, readonly=True)
  if name in TYPED_ARRAY_NAMES:
    return typed_array_type(name, target)
  if name == "String":
    return string_type(target, boxed=True)
  return None
