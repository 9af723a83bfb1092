"""
AST Scanners for Symbol Usage Detection.

This module provides LibCST visitors that analyze code to determine if specific
names are actively referenced in the source body.

These scanners back the `ImportFixer` logic:
1.  Before an import addition is committed, `DefinitionScanner` tells whether the
    name is already defined at the top level of the module.
2.  Before a removal candidate is pruned, `SimpleNameScanner` checks that the
    binding is no longer used outside of import statements.
"""

from typing import Set, Union

import libcst as cst


def get_full_name(node: Union[cst.Name, cst.Attribute]) -> str:
  """
  Recursively resolves a CST Name or Attribute chain to a dot-separated string.

  Args:
    node: The CST node representing the identifier.
      Typically a `cst.Name` (e.g., `x`) or `cst.Attribute` (e.g., `x.y`).

  Returns:
    str: The dotted string representation (e.g., "com.old.Vehicle").
    Returns an empty string if the node structure is not a supported Name/Attribute chain.

  Example:
    >>> get_full_name(cst.Attribute(value=cst.Name("limits"), attr=cst.Name("MAX")))
    'limits.MAX'
  """
  if isinstance(node, cst.Name):
    return node.value
  elif isinstance(node, cst.Attribute):
    prefix = get_full_name(node.value)
    if not prefix:
      return ""
    return f"{prefix}.{node.attr.value}"
  return ""


class SimpleNameScanner(cst.CSTVisitor):
  """
  Scans for the usage of a specific identifier in the code body.

  Names appearing inside `import` statements are definitions, not usages, and
  are ignored. The member part of an attribute (`x.target`) is not a usage of a
  local binding called `target` either. A string naming the binding in the
  module-level `__all__` is a usage: the module re-exports it.

  Attributes:
    target_name (str): The identifier string to search for (e.g., "Vehicle").
    count (int): Number of usages seen so far.
  """

  def __init__(self, target_name: str, count_all: bool = False) -> None:
    """
    Initializes the scanner.

    Args:
      target_name: The local binding to search for.
      count_all: Keep scanning after the first usage so `count` is exact.
    """
    self.target_name = target_name
    self.count_all = count_all
    self.count = 0
    self._in_import = False

  @property
  def found(self) -> bool:
    return self.count > 0

  def visit_Module(self, node: cst.Module) -> bool:
    for stmt in node.body:
      if isinstance(stmt, cst.SimpleStatementLine):
        for small in stmt.body:
          self.count += _exported_count(small, self.target_name)
    return True

  def visit_Import(self, node: cst.Import) -> None:
    self._in_import = True

  def leave_Import(self, node: cst.Import) -> None:
    self._in_import = False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
    self._in_import = True

  def leave_ImportFrom(self, node: cst.ImportFrom) -> None:
    self._in_import = False

  def visit_Attribute(self, node: cst.Attribute) -> bool:
    """Only the value side of an attribute can reference a local binding."""
    node.value.visit(self)
    return False

  def visit_Name(self, node: cst.Name) -> None:
    """
    Counts the name when it matches outside of an import definition.

    Args:
      node: The name node being visited.
    """
    if not self._in_import and node.value == self.target_name:
      self.count += 1

  def visit_Arg(self, node: cst.Arg) -> bool:
    """Keyword names in calls are not usages."""
    node.value.visit(self)
    return False

  def should_traverse(self, _node: cst.CSTNode) -> bool:
    """Stops traversal once the target has been found, unless counting."""
    return self.count_all or not self.found

  def on_visit(self, node: cst.CSTNode) -> bool:
    if not self.should_traverse(node):
      return False
    return super().on_visit(node)


def _exported_count(small: cst.BaseSmallStatement, name: str) -> int:
  """Occurrences of `name` among the strings of an `__all__` assignment."""
  if isinstance(small, cst.Assign):
    targets = [t.target for t in small.targets]
  elif isinstance(small, (cst.AugAssign, cst.AnnAssign)):
    targets = [small.target]
  else:
    return 0
  if not any(isinstance(t, cst.Name) and t.value == "__all__" for t in targets):
    return 0
  if not isinstance(small.value, (cst.List, cst.Tuple)):
    return 0
  return sum(
    1
    for el in small.value.elements
    if isinstance(el.value, cst.SimpleString) and el.value.evaluated_value == name
  )


class DefinitionScanner(cst.CSTVisitor):
  """
  Collects names defined at module top level (classes, functions, assignments).

  Nested scopes are not entered; only module-level bindings make a name
  available everywhere in the module without an import.
  """

  def __init__(self) -> None:
    self.defined: Set[str] = set()

  def visit_ClassDef(self, node: cst.ClassDef) -> bool:
    self.defined.add(node.name.value)
    return False

  def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
    self.defined.add(node.name.value)
    return False

  def visit_AssignTarget(self, node: cst.AssignTarget) -> None:
    if isinstance(node.target, cst.Name):
      self.defined.add(node.target.value)

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    if isinstance(node.target, cst.Name):
      self.defined.add(node.target.value)

  def visit_Lambda(self, node: cst.Lambda) -> bool:
    return False
