"""
Pattern Matchers.

Boolean predicates that decide whether a node is a candidate for a rewrite.
Matching is name based: no type checking happens, but a reference that the
symbol table can resolve must resolve to the configured fully-qualified name,
which keeps same-named types from unrelated packages from matching.

A non-match is a normal outcome; matchers never raise for nodes of the wrong
kind or shape.
"""

import keyword
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import libcst as cst

from codemorph.core.scanners import get_full_name
from codemorph.core.tree import SourceModule, split_qualified
from codemorph.errors import ConfigurationError

NameRef = Union[cst.Name, cst.Attribute]


@dataclass(frozen=True)
class TypeName:
  """
  A configured type name, either fully qualified ('com.old.Vehicle') or bare ('Vehicle').
  """

  qualified: str

  @classmethod
  def parse(cls, raw: str, label: str = "name") -> "TypeName":
    """
    Validates a configured dotted name.

    Raises:
        ConfigurationError: If the name is empty or not a dotted identifier.
    """
    if not isinstance(raw, str) or not raw.strip():
      raise ConfigurationError(f"{label} must be a non-empty string")
    value = raw.strip()
    for part in value.split("."):
      if not part.isidentifier() or keyword.iskeyword(part):
        raise ConfigurationError(f"{label} '{value}' is not a valid dotted identifier")
    return cls(value)

  @property
  def module(self) -> str:
    return split_qualified(self.qualified)[0]

  @property
  def simple(self) -> str:
    return split_qualified(self.qualified)[1]

  @property
  def is_qualified(self) -> bool:
    return bool(self.module)

  def __str__(self) -> str:
    return self.qualified


def validate_identifier(raw: str, label: str = "member") -> str:
  """
  Validates a bare identifier such as a constant name.

  Raises:
      ConfigurationError: If `raw` is not an identifier.
  """
  if not isinstance(raw, str) or not raw.strip():
    raise ConfigurationError(f"{label} must be a non-empty string")
  value = raw.strip()
  if not value.isidentifier() or keyword.iskeyword(value):
    raise ConfigurationError(f"{label} '{value}' is not a valid identifier")
  return value


def resolve_reference(dotted: str, source: SourceModule) -> Optional[str]:
  """
  Resolves a dotted reference to a fully-qualified name, if the module knows it.

  Imports are consulted first; a bare name defined at the top level of a named
  module resolves to `<module>.<name>`.
  """
  resolved = source.symbols.resolve(dotted)
  if resolved is not None:
    return resolved
  if "." not in dotted and source.name and source.symbols.is_defined(dotted):
    return f"{source.name}.{dotted}"
  return None


def names_type(ref: NameRef, target: TypeName, source: SourceModule) -> bool:
  """
  True if the Name/Attribute `ref` denotes `target`.

  The reference matches when its resolved name equals the qualified target. An
  unresolvable reference falls back to exact simple-name equality; a resolvable
  one never does.
  """
  dotted = get_full_name(ref)
  if not dotted:
    return False

  resolved = resolve_reference(dotted, source)
  if resolved is not None:
    return resolved_matches(resolved, target)
  return dotted.rpartition(".")[2] == target.simple


def resolved_matches(resolved: str, target: TypeName) -> bool:
  """Compares a resolved name with a target, by module too when the target has one."""
  if target.is_qualified:
    return resolved == target.qualified
  return resolved.rpartition(".")[2] == target.simple


def unwrap_generic(expr: cst.BaseExpression) -> Optional[NameRef]:
  """
  Strips generic subscripts from a type expression: `Vehicle[T]` -> `Vehicle`.
  """
  while isinstance(expr, cst.Subscript):
    expr = expr.value
  if isinstance(expr, (cst.Name, cst.Attribute)):
    return expr
  return None


class SupertypeMatcher:
  """
  Matches class declarations whose bases name a configured type.

  Only positional bases are considered; `metaclass=...` and other keywords are
  not supertypes. Whether the class itself is generic does not matter.
  """

  def __init__(self, target: TypeName) -> None:
    self.target = target

  def find_bases(self, node: cst.CSTNode, source: SourceModule) -> List[int]:
    """
    Returns the indices of matching entries in `node.bases`.
    """
    if not isinstance(node, cst.ClassDef):
      return []
    indices = []
    for idx, arg in enumerate(node.bases):
      if arg.keyword is not None or arg.star:
        continue
      ref = unwrap_generic(arg.value)
      if ref is not None and names_type(ref, self.target, source):
        indices.append(idx)
    return indices

  def matches(self, node: cst.CSTNode, source: SourceModule) -> bool:
    return bool(self.find_bases(node, source))


class QualifiedReferenceMatcher:
  """
  Matches `Owner.MEMBER` references for one configured (owner, member) pair.
  """

  def __init__(self, owner: TypeName, member: str) -> None:
    self.owner = owner
    self.member = member

  def matches(self, node: cst.CSTNode, source: SourceModule) -> bool:
    if not isinstance(node, cst.Attribute):
      return False
    if node.attr.value != self.member:
      return False
    if not isinstance(node.value, (cst.Name, cst.Attribute)):
      return False
    return names_type(node.value, self.owner, source)


def in_import(ancestors: Sequence[cst.CSTNode]) -> bool:
  """True if any ancestor is an import statement."""
  return any(isinstance(a, (cst.Import, cst.ImportFrom)) for a in ancestors)


def is_load_position(node: cst.Name, ancestors: Sequence[cst.CSTNode]) -> bool:
  """
  True if `node` is a reference rather than a definition or a member name.

  Excluded: the `attr` of an attribute, names of classes/functions/parameters,
  `as` targets, keyword argument names, and anything inside an import.
  """
  if in_import(ancestors):
    return False
  if not ancestors:
    return True
  parent = ancestors[-1]
  if isinstance(parent, cst.Attribute):
    return parent.value is node
  if isinstance(parent, (cst.ClassDef, cst.FunctionDef, cst.Param)):
    return parent.name is not node
  if isinstance(parent, cst.Arg):
    return parent.keyword is not node
  if isinstance(parent, (cst.AsName, cst.Global, cst.Nonlocal, cst.NameItem)):
    return False
  return True


class TypeReferenceMatcher:
  """
  Matches any reference to a configured type: `Vehicle`, `legacy.Vehicle`.

  Unlike the qualified-reference matcher, an unresolvable bare name only
  matches when the target itself is configured without a module, so local
  variables that happen to share the type's name are left alone.
  """

  def __init__(self, target: TypeName) -> None:
    self.target = target

  def matches(self, node: cst.CSTNode, source: SourceModule, ancestors: Sequence[cst.CSTNode] = ()) -> bool:
    if isinstance(node, cst.Name):
      if node.value != self.target.simple and source.symbols.lookup(node.value) is None:
        return False
      if not is_load_position(node, ancestors):
        return False
    elif isinstance(node, cst.Attribute):
      if in_import(ancestors):
        return False
    else:
      return False

    dotted = get_full_name(node)
    if not dotted:
      return False
    resolved = resolve_reference(dotted, source)
    if resolved is None:
      return not self.target.is_qualified and dotted == self.target.simple
    return resolved_matches(resolved, self.target)
