"""IDX001: Prefer `.at(-n)` over `obj[obj.length - n]`."""

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field
from tree_sitter import Node

from atlint.models import FixDirective, Severity
from atlint.parsing import SourceFile
from atlint.rules.base import RuleContext, RuleMatch
from atlint.rules.registry import register_rule
from atlint.typecheck import TYPED_ARRAY_NAMES, TypeFlags, TypeHandle

MEMBER_ACCESS = frozenset(["member_expression", "subscript_expression"])

_NAMES = frozenset([
  "identifier",
  "property_identifier",
  "private_property_identifier",
  "shorthand_property_identifier",
])

# Offsets that stay a single operand when prefixed with `-`.
_ATOMIC_OFFSETS = frozenset([
  "number",
  "identifier",
  "this",
  "member_expression",
  "subscript_expression",
  "call_expression",
  "parenthesized_expression",
])

RULE_ID = "IDX001"
RULE_NAME = "prefer-at"

ACCESSOR = "at"

MESSAGE = 'Expected a "{name}.at(-1)" instead of "{name}[{name}.length - 1]".'


class PreferAtOptions(BaseModel):
  """Options accepted by prefer-at."""

  model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

  ignore_functions: bool = Field(default=False, alias="ignoreFunctions")


def get_name(node: Node | None) -> str | None:
  """Name of an identifier, or the trailing property name of a member access."""
  if node is None:
    return None
  if node.type in _NAMES:
    return node.text.decode("utf-8") if node.text else None
  if node.type == "member_expression":
    return get_name(node.child_by_field_name("property"))
  if node.type == "subscript_expression":
    return get_name(node.child_by_field_name("index"))
  return None


def get_full_name(source: SourceFile, node: Node) -> str:
  return source.slice(node)


def has_call_expression(node: Node) -> bool:
  """Whether a member-access chain starts from a call result."""
  obj = node.child_by_field_name("object")
  return obj.type == "call_expression" or (
    obj.type in MEMBER_ACCESS and has_call_expression(obj)
  )


def _is_optional(node: Node) -> bool:
  return any(child.type == "optional_chain" for child in node.children)


def has_optional_chain(node: Node) -> bool:
  """Whether any link of a member-access or call chain uses `?.`."""
  while node is not None:
    if _is_optional(node):
      return True
    if node.type in MEMBER_ACCESS:
      node = node.child_by_field_name("object")
    elif node.type == "call_expression":
      node = node.child_by_field_name("function")
    else:
      return False
  return False


def _is_number_like(type_: TypeHandle) -> bool:
  return bool(type_.flags & TypeFlags.NUMBER_LIKE)


SupportedObject = Callable[[TypeHandle], bool]


@dataclass(frozen=True)
class ByName:
  """Accepts types whose symbol has the given name."""

  name: str

  def __call__(self, type_: TypeHandle) -> bool:
    return type_.symbol_name == self.name


@dataclass(frozen=True)
class ByFlags:
  """Accepts types whose flags equal the given flags exactly."""

  flags: TypeFlags

  def __call__(self, type_: TypeHandle) -> bool:
    return type_.flags == self.flags


def supported_objects() -> tuple[SupportedObject, ...]:
  return (
    ByName("Array"),
    *(ByName(name) for name in TYPED_ARRAY_NAMES),
    ByName("String"),
    ByFlags(TypeFlags.STRING),
  )


class PreferAtRule:
  """Detects `obj[obj.length - n]` and rewrites it to `obj.at(-n)`.

  A match requires both mentions of `obj` to be the same source text
  and `obj` to be an array, typed array or string whose type has an
  `at` member. No alias analysis is attempted: `a[b.length - 1]` is
  never matched even when `a` and `b` refer to the same array.
  """

  node_types = ("subscript_expression",)
  fixable = True

  def __init__(
    self,
    options: PreferAtOptions | None = None,
    severity: Severity = Severity.LOW,
  ):
    self._options = options or PreferAtOptions()
    self._severity = severity
    self._supported = supported_objects()

  @property
  def id(self) -> str:
    return RULE_ID

  @property
  def name(self) -> str:
    return RULE_NAME

  @property
  def options(self) -> PreferAtOptions:
    return self._options

  def is_supported_object(self, type_: TypeHandle) -> bool:
    return any(check(type_) for check in self._supported)

  def is_expected_object(self, node: Node, context: RuleContext) -> bool:
    """Whether node is a member access on an object that supports `.at()`."""
    if node.type not in MEMBER_ACCESS or has_optional_chain(node):
      return False
    if self._options.ignore_functions and has_call_expression(node):
      return False
    type_ = context.oracle.resolve_type(node.child_by_field_name("object"))
    if not self.is_supported_object(type_):
      return False
    return type_.has_member(ACCESSOR)

  def _is_expected_left(self, left: Node, context: RuleContext) -> bool:
    if not self.is_expected_object(left, context) or get_name(left) != "length":
      return False
    return _is_number_like(context.oracle.resolve_type(left))

  def _is_expected_right(self, right: Node, context: RuleContext) -> bool:
    return _is_number_like(context.oracle.resolve_type(right))

  def visit(self, node: Node, context: RuleContext) -> RuleMatch | None:
    """Check one `obj[...]` node."""
    index = node.child_by_field_name("index")
    if index is None or index.type != "binary_expression":
      return None
    if index.child_by_field_name("operator").type != "-":
      return None

    left = index.child_by_field_name("left")
    right = index.child_by_field_name("right")
    if not (self._is_expected_right(right, context) and self._is_expected_left(left, context)):
      return None

    source = context.source
    object_name = get_full_name(source, node.child_by_field_name("object"))
    member_name = get_full_name(source, left.child_by_field_name("object"))
    if object_name != member_name:
      return None

    fix = self._build_fix(node, object_name, right, get_full_name(source, right))
    row, column = node.start_point
    return RuleMatch(
      line=row + 1,
      column=column + 1,
      severity=self._severity,
      message=MESSAGE.format(name=object_name),
      suggestion=f"Replace with `{fix.replacement}`",
      fix=fix,
    )

  def _build_fix(self, node: Node, object_name: str, right: Node, right_name: str) -> FixDirective:
    offset = right_name if right.type in _ATOMIC_OFFSETS else f"({right_name})"
    access = "?." if _is_optional(node) else "."
    return FixDirective(
      start=node.start_byte,
      end=node.end_byte,
      replacement=f"{object_name}{access}{ACCESSOR}(-{offset})",
    )


def _create_prefer_at(options: Mapping[str, Any]) -> PreferAtRule:
  return PreferAtRule(PreferAtOptions.model_validate(options))


register_rule(RULE_ID, _create_prefer_at, name=RULE_NAME)
