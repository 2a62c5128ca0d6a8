"""Type oracle backed by declarations in the same file.

Reads type annotations and literal initializers and follows lexical
scopes. Anything it cannot resolve is `any`, which no rule treats as
eligible.
"""

from dataclasses import dataclass

from tree_sitter import Node

from atlint.parsing import SourceFile, walk
from atlint.typecheck import lib
from atlint.typecheck.types import (
  ANY,
  BIGINT,
  BIGINT_LITERAL,
  BOOLEAN,
  BOOLEAN_LITERAL,
  NULL,
  NUMBER,
  NUMBER_LITERAL,
  OBJECT,
  UNDEFINED,
  UNION,
  UNKNOWN,
  VOID,
  MemberThunk,
  TypeDescriptor,
  TypeFlags,
  callable_type,
)

_SCOPES = frozenset([
  "program",
  "statement_block",
  "class_body",
  "for_statement",
  "for_in_statement",
  "arrow_function",
  "function_declaration",
  "function_expression",
  "function",
  "generator_function_declaration",
  "method_definition",
])

_PARAMETERS = frozenset(["required_parameter", "optional_parameter"])
_FUNCTIONS = frozenset(["function_declaration", "generator_function_declaration"])
_CLASSES = frozenset(["class_declaration", "class", "abstract_class_declaration"])

_ARITHMETIC = frozenset(["-", "*", "/", "%", "**", "&", "|", "^", "<<", ">>", ">>>"])
_COMPARISON = frozenset(["==", "!=", "===", "!==", "<", "<=", ">", ">=", "instanceof", "in"])

_PREDEFINED: dict[str, TypeDescriptor] = {
  "number": NUMBER,
  "boolean": BOOLEAN,
  "bigint": BIGINT,
  "any": ANY,
  "unknown": UNKNOWN,
  "void": VOID,
  "undefined": UNDEFINED,
  "null": NULL,
  "object": OBJECT,
}

# Utility types whose result is an anonymous object type.
_ANONYMOUS_GENERICS = frozenset(["Record", "Partial", "Required", "Pick", "Omit"])


@dataclass(frozen=True)
class _Declaration:
  name: str
  kind: str
  node: Node
  scope: tuple[int, int]


def _span(node: Node) -> tuple[int, int]:
  return node.start_byte, node.end_byte


def _text(node: Node) -> str:
  return node.text.decode("utf-8") if node.text else ""


def _named(node: Node) -> list[Node]:
  return [c for c in node.named_children if c.type != "comment"]


def _enclosing_scope(node: Node) -> Node | None:
  parent = node.parent
  while parent is not None and parent.type not in _SCOPES:
    parent = parent.parent
  return parent


def _declaration_kind(declarator: Node) -> str:
  parent = declarator.parent
  if parent is not None and parent.type == "lexical_declaration":
    return "const" if parent.children[0].type == "const" else "let"
  return "var"


def _widen(t: TypeDescriptor, target: str) -> TypeDescriptor:
  """Widen a literal type to its primitive, as `let` declarations do."""
  if t.flags == TypeFlags.NUMBER_LITERAL:
    return NUMBER
  if t.flags == TypeFlags.STRING_LITERAL:
    return lib.string_type(target)
  if t.flags == TypeFlags.BOOLEAN_LITERAL:
    return BOOLEAN
  if t.flags == TypeFlags.BIGINT_LITERAL:
    return BIGINT
  return t


class DeclaredTypeOracle:
  """Resolves expression types from declarations in one source file.

  Identifiers are looked up through lexical scopes. `let` and `var`
  widen literal initializers to their primitive type; `const` keeps
  the literal type, matching the TypeScript checker.

  Example:
    source = parse_source("const xs: number[] = [];")
    oracle = DeclaredTypeOracle(source)
    oracle.resolve_type(node).symbol_name  # "Array"
  """

  def __init__(self, source: SourceFile, lib_target: str = lib.DEFAULT_LIB):
    lib.lib_level(lib_target)
    self._source = source
    self._lib = lib_target
    self._values: dict[str, list[_Declaration]] | None = None
    self._types: dict[str, Node] = {}
    self._cache: dict[tuple[int, int], TypeDescriptor] = {}
    self._resolving: set[tuple[int, int]] = set()

  def resolve_type(self, node: Node) -> TypeDescriptor:
    """Resolve the static type of an expression node."""
    kind = node.type

    if kind in ("parenthesized_expression", "non_null_expression", "satisfies_expression"):
      inner = _named(node)
      return self.resolve_type(inner[0]) if inner else ANY
    if kind == "as_expression":
      parts = _named(node)
      if len(parts) >= 2:
        return self.resolve_annotation(parts[-1])
      return self.resolve_type(parts[0]) if parts else ANY

    if kind == "number":
      return BIGINT_LITERAL if _text(node).endswith("n") else NUMBER_LITERAL
    if kind == "string":
      return lib.string_type(self._lib, TypeFlags.STRING_LITERAL)
    if kind == "template_string":
      return lib.string_type(self._lib)
    if kind in ("true", "false"):
      return BOOLEAN_LITERAL
    if kind == "null":
      return NULL
    if kind == "undefined":
      return UNDEFINED
    if kind == "array":
      elements = _named(node)
      element = _widen(self.resolve_type(elements[0]), self._lib) if elements else ANY
      return lib.array_type(element, self._lib)

    if kind == "identifier":
      return self._resolve_identifier(node)
    if kind == "this":
      return self._resolve_this(node)
    if kind == "member_expression":
      return self._resolve_member(node)
    if kind == "subscript_expression":
      return self._resolve_subscript(node)
    if kind == "call_expression":
      callee = self.resolve_type(node.child_by_field_name("function"))
      return callee.returns or ANY
    if kind == "new_expression":
      return self._resolve_new(node)
    if kind == "unary_expression":
      return self._resolve_unary(node)
    if kind == "update_expression":
      return NUMBER
    if kind == "binary_expression":
      return self._resolve_binary(node)

    return ANY

  def resolve_annotation(self, node: Node | None) -> TypeDescriptor:
    """Resolve a type node (or a `type_annotation` wrapper) to a type."""
    if node is None:
      return ANY
    kind = node.type

    if kind == "type_annotation":
      inner = _named(node)
      return self.resolve_annotation(inner[0]) if inner else ANY
    if kind == "predefined_type":
      name = _text(node)
      if name == "string":
        return lib.string_type(self._lib)
      return _PREDEFINED.get(name, ANY)
    if kind == "parenthesized_type":
      inner = _named(node)
      return self.resolve_annotation(inner[0]) if inner else ANY
    if kind == "array_type":
      return lib.array_type(self.resolve_annotation(_named(node)[0]), self._lib)
    if kind == "readonly_type":
      inner = _named(node)[0]
      if inner.type == "array_type":
        element = self.resolve_annotation(_named(inner)[0])
        return lib.array_type(element, self._lib, readonly=True)
      return self.resolve_annotation(inner)
    if kind == "type_identifier":
      return self._resolve_type_name(_text(node))
    if kind == "generic_type":
      return self._resolve_generic(node)
    if kind == "object_type":
      return TypeDescriptor(TypeFlags.OBJECT, members=self._signature_members(node))
    if kind == "literal_type":
      return self._resolve_literal_type(node)
    if kind == "union_type":
      return UNION
    if kind == "function_type":
      return callable_type(self.resolve_annotation(node.child_by_field_name("return_type")))

    return ANY

  # Identifiers and scopes

  def _collect(self) -> dict[str, list[_Declaration]]:
    """Index value declarations by name, and type declarations by name."""
    if self._values is not None:
      return self._values

    values: dict[str, list[_Declaration]] = {}

    def add(name_node: Node | None, kind: str, node: Node, scope: Node | None) -> None:
      if name_node is None or scope is None or name_node.type != "identifier":
        return
      name = _text(name_node)
      values.setdefault(name, []).append(_Declaration(name, kind, node, _span(scope)))

    for node in walk(self._source.root):
      kind = node.type
      if kind == "variable_declarator":
        add(node.child_by_field_name("name"), _declaration_kind(node), node, _enclosing_scope(node))
      elif kind in _PARAMETERS:
        add(node.child_by_field_name("pattern"), "param", node, _enclosing_scope(node))
      elif kind == "arrow_function" and node.child_by_field_name("parameter") is not None:
        add(node.child_by_field_name("parameter"), "param", node, node)
      elif kind in _FUNCTIONS:
        add(node.child_by_field_name("name"), "function", node, _enclosing_scope(node))
      elif kind in _CLASSES and node.child_by_field_name("name") is not None:
        name = node.child_by_field_name("name")
        if name.type == "type_identifier":
          values.setdefault(_text(name), []).append(
            _Declaration(_text(name), "class", node, _span(_enclosing_scope(node) or node))
          )
          self._types.setdefault(_text(name), node)
      elif kind in ("interface_declaration", "type_alias_declaration"):
        name = node.child_by_field_name("name")
        if name is not None:
          self._types.setdefault(_text(name), node)

    self._values = values
    return values

  def _lookup(self, usage: Node) -> _Declaration | None:
    candidates = self._collect().get(_text(usage))
    if not candidates:
      return None
    scope = _enclosing_scope(usage)
    while scope is not None:
      span = _span(scope)
      for decl in candidates:
        if decl.scope == span:
          return decl
      scope = _enclosing_scope(scope)
    return None

  def _resolve_identifier(self, node: Node) -> TypeDescriptor:
    if _text(node) == "undefined":
      return UNDEFINED
    decl = self._lookup(node)
    if decl is None:
      return ANY
    key = _span(decl.node)
    if key in self._cache:
      return self._cache[key]
    if key in self._resolving:
      # Self-referential initializer, e.g. `let a = a + 1`.
      return ANY
    self._resolving.add(key)
    try:
      resolved = self._declared_type(decl)
    finally:
      self._resolving.discard(key)
    self._cache[key] = resolved
    return resolved

  def _declared_type(self, decl: _Declaration) -> TypeDescriptor:
    node = decl.node
    if decl.kind == "function":
      return callable_type(self.resolve_annotation(node.child_by_field_name("return_type")), decl.name)
    if decl.kind == "class":
      instance = self._instance_type(node)
      return TypeDescriptor(TypeFlags.OBJECT, symbol_name=decl.name, returns=instance)
    if decl.kind == "param" and node.type == "arrow_function":
      return ANY

    annotation = node.child_by_field_name("type")
    if annotation is not None:
      return self.resolve_annotation(annotation)
    value = node.child_by_field_name("value")
    if value is None:
      return ANY
    resolved = self.resolve_type(value)
    return resolved if decl.kind == "const" else _widen(resolved, self._lib)

  # Classes and `this`

  def _instance_type(self, class_node: Node) -> TypeDescriptor:
    name = class_node.child_by_field_name("name")
    members: dict[str, MemberThunk] = {}
    body = class_node.child_by_field_name("body")
    for item in _named(body) if body is not None else []:
      item_name = item.child_by_field_name("name")
      if item_name is None:
        continue
      if item.type == "public_field_definition":
        members[_text(item_name)] = self._field_thunk(item)
      elif item.type == "method_definition":
        members[_text(item_name)] = self._method_thunk(item)
    return TypeDescriptor(
      TypeFlags.OBJECT,
      symbol_name=_text(name) if name is not None else None,
      members=members,
    )

  def _field_thunk(self, item: Node) -> MemberThunk:
    def resolve() -> TypeDescriptor:
      annotation = item.child_by_field_name("type")
      if annotation is not None:
        return self.resolve_annotation(annotation)
      value = item.child_by_field_name("value")
      if value is None:
        return ANY
      key = _span(item)
      if key in self._resolving:
        # Field initialized from itself, e.g. `a = this.a`.
        return ANY
      self._resolving.add(key)
      try:
        return _widen(self.resolve_type(value), self._lib)
      finally:
        self._resolving.discard(key)
    return resolve

  def _method_thunk(self, item: Node) -> MemberThunk:
    return lambda: callable_type(self.resolve_annotation(item.child_by_field_name("return_type")))

  def _resolve_this(self, node: Node) -> TypeDescriptor:
    parent = node.parent
    while parent is not None:
      if parent.type in ("function_declaration", "function_expression", "function"):
        return ANY
      if parent.type in _CLASSES:
        return self._instance_type(parent)
      parent = parent.parent
    return ANY

  # Member access and calls

  def _resolve_member(self, node: Node) -> TypeDescriptor:
    owner = self.resolve_type(node.child_by_field_name("object"))
    prop = node.child_by_field_name("property")
    if prop is None:
      return ANY
    return owner.member(_text(prop)) or ANY

  def _resolve_subscript(self, node: Node) -> TypeDescriptor:
    owner = self.resolve_type(node.child_by_field_name("object"))
    if owner.element is not None:
      return owner.element
    if owner.is_flag_set(TypeFlags.STRING_LIKE) or owner.symbol_name == "String":
      return lib.string_type(self._lib)
    return ANY

  def _resolve_new(self, node: Node) -> TypeDescriptor:
    constructor = node.child_by_field_name("constructor")
    if constructor is None or constructor.type != "identifier":
      return ANY
    decl = self._lookup(constructor)
    if decl is not None:
      return self._resolve_identifier(constructor).returns or ANY
    builtin = lib.builtin_type(_text(constructor), self._lib)
    if builtin is not None and builtin.symbol_name == "Array":
      type_args = node.child_by_field_name("type_arguments")
      if type_args is not None and _named(type_args):
        return lib.array_type(self.resolve_annotation(_named(type_args)[0]), self._lib)
    return builtin or ANY

  # Operators

  def _resolve_unary(self, node: Node) -> TypeDescriptor:
    operator = node.child_by_field_name("operator")
    op = operator.type if operator is not None else ""
    if op in ("-", "+", "~"):
      argument = self.resolve_type(node.child_by_field_name("argument"))
      if op != "+" and argument.is_flag_set(TypeFlags.BIGINT_LIKE):
        return BIGINT
      return NUMBER
    if op == "!":
      return BOOLEAN
    if op == "typeof":
      return lib.string_type(self._lib)
    if op == "void":
      return UNDEFINED
    return ANY

  def _resolve_binary(self, node: Node) -> TypeDescriptor:
    op = node.child_by_field_name("operator").type
    if op in _COMPARISON:
      return BOOLEAN
    if op not in _ARITHMETIC and op != "+":
      return ANY

    left = self.resolve_type(node.child_by_field_name("left"))
    right = self.resolve_type(node.child_by_field_name("right"))
    if op == "+" and (left.is_flag_set(TypeFlags.STRING_LIKE) or right.is_flag_set(TypeFlags.STRING_LIKE)):
      return lib.string_type(self._lib)
    if left.is_flag_set(TypeFlags.BIGINT_LIKE) and right.is_flag_set(TypeFlags.BIGINT_LIKE):
      return BIGINT
    if op == "+" and not (left.is_flag_set(TypeFlags.NUMBER_LIKE) and right.is_flag_set(TypeFlags.NUMBER_LIKE)):
      return ANY
    return NUMBER

  # Type annotations

  def _resolve_type_name(self, name: str) -> TypeDescriptor:
    self._collect()
    declaration = self._types.get(name)
    if declaration is not None:
      return self._resolve_type_declaration(declaration)
    return lib.builtin_type(name, self._lib) or ANY

  def _resolve_type_declaration(self, node: Node) -> TypeDescriptor:
    if node.type in _CLASSES:
      return self._instance_type(node)
    if node.type == "interface_declaration":
      name = _text(node.child_by_field_name("name"))
      body = node.child_by_field_name("body")
      members = self._signature_members(body) if body is not None else {}
      return TypeDescriptor(TypeFlags.OBJECT, symbol_name=name, members=members)

    key = _span(node)
    if key in self._resolving:
      # Circular alias, e.g. `type A = B; type B = A;`.
      return ANY
    self._resolving.add(key)
    try:
      return self.resolve_annotation(node.child_by_field_name("value"))
    finally:
      self._resolving.discard(key)

  def _resolve_generic(self, node: Node) -> TypeDescriptor:
    name_node = node.child_by_field_name("name")
    name = _text(name_node) if name_node is not None else ""
    args_node = node.child_by_field_name("type_arguments")
    args = _named(args_node) if args_node is not None else []

    if name in ("Array", "ReadonlyArray") and name not in self._types:
      element = self.resolve_annotation(args[0]) if args else ANY
      return lib.array_type(element, self._lib, readonly=name == "ReadonlyArray")
    if name in _ANONYMOUS_GENERICS:
      return OBJECT
    return self._resolve_type_name(name)

  def _resolve_literal_type(self, node: Node) -> TypeDescriptor:
    inner = _named(node)
    kind = inner[0].type if inner else ""
    if kind in ("number", "unary_expression"):
      return NUMBER_LITERAL
    if kind == "string":
      return lib.string_type(self._lib, TypeFlags.STRING_LITERAL)
    if kind in ("true", "false"):
      return BOOLEAN_LITERAL
    if kind == "null":
      return NULL
    if kind == "undefined":
      return UNDEFINED
    return ANY

  def _signature_members(self, body: Node) -> dict[str, MemberThunk]:
    """Members of an object type literal or interface body."""
    members: dict[str, MemberThunk] = {}
    for item in _named(body):
      name = item.child_by_field_name("name")
      if name is None:
        continue
      if item.type == "property_signature":
        annotation = item.child_by_field_name("type")
        members[_text(name)] = self._annotation_thunk(annotation)
      elif item.type == "method_signature":
        returns = item.child_by_field_name("return_type")
        members[_text(name)] = self._callable_thunk(returns)
    return members

  def _annotation_thunk(self, annotation: Node | None) -> MemberThunk:
    return lambda: self.resolve_annotation(annotation)

  def _callable_thunk(self, returns: Node | None) -> MemberThunk:
    return lambda: callable_type(self.resolve_annotation(returns))

