"""
Tree Model.

Wraps a LibCST module together with the information the rewriting core needs
about it: the dotted name of the module and its symbol table.

LibCST nodes are frozen dataclasses, so a rewrite always builds a replacement
node from the old one. Unchanged subtrees are shared by reference between the
input and output trees, and printing an untouched tree reproduces the original
source byte-for-byte.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple, TypeVar, Union

import libcst as cst

from codemorph.analysis.symbol_table import SymbolTable, analyze

NodeT = TypeVar("NodeT", bound=cst.CSTNode)


def structurally_equal(a: cst.CSTNode, b: cst.CSTNode) -> bool:
  """
  Compares two trees field by field, formatting metadata included.

  Args:
      a: First node.
      b: Second node.

  Returns:
      bool: True if both trees print to the same source and share a shape.
  """
  if a is b:
    return True
  return a.deep_equals(b)


def with_child(parent: NodeT, old_child: cst.CSTNode, new_child: cst.CSTNode) -> NodeT:
  """
  Returns a copy of `parent` with one direct child replaced.

  The child is located by identity. Siblings and their formatting are shared
  with the original parent.

  Args:
      parent: The node owning the child.
      old_child: The exact child instance to replace.
      new_child: The replacement node.

  Returns:
      A new parent node, or `parent` itself when `old_child is new_child`.

  Raises:
      ValueError: If `old_child` is not a direct child of `parent`.
  """
  if old_child is new_child:
    return parent

  changes = {}
  for name in parent.__dataclass_fields__:
    value = getattr(parent, name)
    if value is old_child:
      changes[name] = new_child
      break
    if isinstance(value, (list, tuple)) and any(item is old_child for item in value):
      changes[name] = type(value)(new_child if item is old_child else item for item in value)
      break

  if not changes:
    raise ValueError(f"{type(old_child).__name__} is not a direct child of {type(parent).__name__}")
  return parent.with_changes(**changes)


def create_dotted_name(name_str: str) -> Union[cst.Name, cst.Attribute]:
  """
  Creates a CST node structure for a dotted path string.

  Args:
      name_str (str): Dot-separated path (e.g. "com.new").

  Returns:
      Union[cst.Name, cst.Attribute]: The constructed node.
  """
  parts = name_str.split(".")
  node: Union[cst.Name, cst.Attribute] = cst.Name(parts[0])
  for part in parts[1:]:
    node = cst.Attribute(value=node, attr=cst.Name(part))
  return node


def split_qualified(name: str) -> Tuple[str, str]:
  """
  Splits 'com.old.Vehicle' into ('com.old', 'Vehicle').

  A simple name yields an empty module part.
  """
  module, _, simple = name.rpartition(".")
  return module, simple


def simple_name(name: str) -> str:
  """Last segment of a dotted name."""
  return name.rpartition(".")[2]


@dataclass(frozen=True)
class SourceModule:
  """
  One parsed source module and its resolution data.

  Attributes:
      tree: The LibCST module.
      name: Dotted module name (e.g. 'garage.models'), if known.
      bindings: Externally resolved bindings {local name: fully qualified name}.
      symbols: Symbol table derived from the tree's imports plus `bindings`.
  """

  tree: cst.Module
  name: Optional[str] = None
  bindings: Mapping[str, str] = field(default_factory=dict)
  symbols: SymbolTable = field(init=False, repr=False, compare=False)

  def __post_init__(self) -> None:
    object.__setattr__(self, "symbols", analyze(self.tree, self.bindings))

  @classmethod
  def from_code(
    cls, code: str, name: Optional[str] = None, bindings: Optional[Mapping[str, str]] = None
  ) -> "SourceModule":
    """
    Parses source text into a SourceModule.

    Raises:
        libcst.ParserSyntaxError: If the input code is invalid Python.
    """
    return cls(cst.parse_module(code), name, dict(bindings or {}))

  @property
  def code(self) -> str:
    """Prints the tree back to source."""
    return self.tree.code

  @property
  def package(self) -> str:
    """The package that contains this module ('' at top level)."""
    if not self.name:
      return ""
    return self.name.rpartition(".")[0]

  def with_tree(self, tree: cst.Module) -> "SourceModule":
    """
    Returns a SourceModule for a rewritten tree, keeping name and bindings.

    Returns `self` when the tree instance is unchanged.
    """
    if tree is self.tree:
      return self
    return SourceModule(tree, self.name, self.bindings)

  def is_local(self, qualified: str) -> bool:
    """
    True if `qualified` needs no import inside this module.

    That is the case for names defined in the module itself, either by its
    dotted name or by a top-level definition of a module-less name.
    """
    module, simple = split_qualified(qualified)
    if self.name and module == self.name:
      return True
    return not module and self.symbols.is_defined(simple)

  def same_tree(self, other: "SourceModule") -> bool:
    """Structural comparison of two modules' trees."""
    return structurally_equal(self.tree, other.tree)

