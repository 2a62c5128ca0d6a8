"""Type handles and the oracle interface rules depend on."""

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Callable, Mapping, Protocol

from tree_sitter import Node


class TypeFlags(IntFlag):
  """Type flag bits, numbered as the TypeScript checker numbers them."""

  NONE = 0
  ANY = 1 << 0
  UNKNOWN = 1 << 1
  STRING = 1 << 2
  NUMBER = 1 << 3
  BOOLEAN = 1 << 4
  ENUM = 1 << 5
  BIGINT = 1 << 6
  STRING_LITERAL = 1 << 7
  NUMBER_LITERAL = 1 << 8
  BOOLEAN_LITERAL = 1 << 9
  BIGINT_LITERAL = 1 << 11
  VOID = 1 << 14
  UNDEFINED = 1 << 15
  NULL = 1 << 16
  OBJECT = 1 << 19
  UNION = 1 << 20

  NUMBER_LIKE = NUMBER | NUMBER_LITERAL | ENUM
  STRING_LIKE = STRING | STRING_LITERAL
  BIGINT_LIKE = BIGINT | BIGINT_LITERAL


class TypeHandle(Protocol):
  """Read-only view of a resolved static type."""

  @property
  def symbol_name(self) -> str | None:
    """Name of the type's declaring symbol, if it has one."""
    ...

  @property
  def flags(self) -> TypeFlags:
    ...

  def has_member(self, name: str) -> bool:
    """Whether the type (or its apparent type) exposes a member."""
    ...


class TypeOracle(Protocol):
  """Resolves the static type of any expression node on demand.

  Implementations wrap a concrete type checker. Resolution is
  synchronous and side-effect free from the caller's point of view.
  Querying a node that does not belong to the oracle's tree is a
  contract violation; implementations may raise.
  """

  def resolve_type(self, node: Node) -> TypeHandle:
    ...


MemberThunk = Callable[[], "TypeDescriptor"]


@dataclass(frozen=True, eq=False)
class TypeDescriptor:
  """Concrete TypeHandle.

  Members are resolved lazily so self-referential declarations
  (`interface Node { next: Node }`) do not recurse at construction.
  """

  flags: TypeFlags
  symbol_name: str | None = None
  members: Mapping[str, MemberThunk] = field(default_factory=dict)
  element: "TypeDescriptor | None" = None
  returns: "TypeDescriptor | None" = None

  def has_member(self, name: str) -> bool:
    return name in self.members

  def member(self, name: str) -> "TypeDescriptor | None":
    thunk = self.members.get(name)
    return thunk() if thunk is not None else None

  def is_flag_set(self, flags: TypeFlags) -> bool:
    return bool(self.flags & flags)

  def __repr__(self) -> str:
    name = f" {self.symbol_name}" if self.symbol_name else ""
    return f"<TypeDescriptor{name} {self.flags!r}>"


ANY = TypeDescriptor(TypeFlags.ANY)
UNKNOWN = TypeDescriptor(TypeFlags.UNKNOWN)
NUMBER = TypeDescriptor(TypeFlags.NUMBER)
NUMBER_LITERAL = TypeDescriptor(TypeFlags.NUMBER_LITERAL)
BOOLEAN = TypeDescriptor(TypeFlags.BOOLEAN)
BOOLEAN_LITERAL = TypeDescriptor(TypeFlags.BOOLEAN_LITERAL)
BIGINT = TypeDescriptor(TypeFlags.BIGINT)
BIGINT_LITERAL = TypeDescriptor(TypeFlags.BIGINT_LITERAL)
VOID = TypeDescriptor(TypeFlags.VOID)
UNDEFINED = TypeDescriptor(TypeFlags.UNDEFINED)
NULL = TypeDescriptor(TypeFlags.NULL)
OBJECT = TypeDescriptor(TypeFlags.OBJECT)
UNION = TypeDescriptor(TypeFlags.UNION)


def callable_type(returns: TypeDescriptor, name: str | None = None) -> TypeDescriptor:
  """Describe a function or method returning the given type."""
  return TypeDescriptor(TypeFlags.OBJECT, symbol_name=name, returns=returns)
