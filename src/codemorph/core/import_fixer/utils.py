"""
Utilities for the Import Fixer.

Contains static helper functions for classifying top-level statements,
generating signatures for ordering and deduplication, and creating import nodes.
"""

from typing import List, Tuple

import libcst as cst

from codemorph.core.scanners import get_full_name
from codemorph.core.tree import create_dotted_name
from codemorph.utils.node_diff import capture_node_source


def get_signature(node: cst.CSTNode) -> str:
  """
  Computes a normalized signature for an import statement.

  Whitespace differences are collapsed so that `from a  import  b` and
  `from a import b` compare equal.

  Args:
      node: The CST node to sign.

  Returns:
      str: Normalized source code string.
  """
  target = node
  while isinstance(target, cst.SimpleStatementLine) and len(target.body) > 0:
    target = target.body[0]

  src = capture_node_source(target)
  return " ".join(src.replace("(", " ").replace(")", " ").split())


def is_docstring(node: cst.CSTNode, idx: int) -> bool:
  """
  Determines if a statement node represents a module docstring.

  Args:
      node: The statement node from the module body.
      idx: The index of this statement in the body list.

  Returns:
      bool: True if it is a docstring (string expression at index 0).
  """
  if idx != 0:
    return False
  if isinstance(node, cst.SimpleStatementLine):
    if len(node.body) == 1 and isinstance(node.body[0], cst.Expr):
      expr = node.body[0].value
      if isinstance(expr, (cst.SimpleString, cst.ConcatenatedString)):
        return True
  return False


def is_future_import(node: cst.CSTNode) -> bool:
  """
  Determines if a statement is a `from __future__ import ...` directive.
  """
  if isinstance(node, cst.SimpleStatementLine):
    for small_stmt in node.body:
      if isinstance(small_stmt, cst.ImportFrom):
        if isinstance(small_stmt.module, cst.Name) and small_stmt.module.value == "__future__":
          return True
  return False


def is_import_line(node: cst.CSTNode) -> bool:
  """True for a statement line made only of `import` / `from ... import`."""
  if not isinstance(node, cst.SimpleStatementLine) or not node.body:
    return False
  return all(isinstance(small, (cst.Import, cst.ImportFrom)) for small in node.body)


def make_import_from(module: str, name: str) -> cst.SimpleStatementLine:
  """
  Builds `from module import name` as a standalone statement line.
  """
  return cst.SimpleStatementLine(
    body=[
      cst.ImportFrom(
        module=create_dotted_name(module),
        names=[cst.ImportAlias(name=cst.Name(name))],
      )
    ]
  )


def imported_modules(node: cst.CSTNode) -> Tuple[str, ...]:
  """
  Dotted module names an import line refers to.

  `from a.b import c` yields `a.b`; `import x.y` yields `x.y`. Relative imports
  contribute nothing.
  """
  if not isinstance(node, cst.SimpleStatementLine):
    return ()
  modules: List[str] = []
  for small in node.body:
    if isinstance(small, cst.ImportFrom) and small.module is not None and not small.relative:
      modules.append(get_full_name(small.module))
    elif isinstance(small, cst.Import):
      modules.extend(get_full_name(alias.name) for alias in small.names)
  return tuple(modules)
