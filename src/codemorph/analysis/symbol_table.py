"""
Symbol Table for Import-Bound Names.

This module provides a static analysis pass that runs before rewriting. It maps
every local name bound by a top-level import statement to the fully-qualified
name it refers to, and records names defined directly in the module.

The `SymbolTableAnalyzer` visitor populates a `SymbolTable` by tracking:
1.  **Imports**: `from com.old import Vehicle` binds `Vehicle -> com.old.Vehicle`,
    `import com.old as legacy` binds `legacy -> com.old`, `import com.old` binds
    `com -> com`.
2.  **Definitions**: top-level classes, functions and assignments.

Bindings supplied by an external resolver are layered underneath the analysed
ones, so a host can teach the engine about names the module does not import
explicitly (star imports, re-exports).
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Set, Tuple

import libcst as cst

from codemorph.core.scanners import DefinitionScanner, get_full_name


@dataclass(frozen=True)
class Binding:
  """
  A local name and the fully qualified path it resolves to.
  """

  local: str
  """The name visible in the module body (e.g. 'Vehicle' or 'legacy')."""

  qualified: str
  """The dotted path the name refers to (e.g. 'com.old.Vehicle')."""

  imported: bool = True
  """False for bindings provided by an external resolver."""

  @property
  def module(self) -> str:
    """The dotted module part of the qualified path ('' for top-level names)."""
    return self.qualified.rpartition(".")[0]


class SymbolTable:
  """
  Container for analysis results. Maps local names to `Binding` records.
  """

  def __init__(self, external: Optional[Mapping[str, str]] = None) -> None:
    """
    Initializes the table.

    Args:
        external: Bindings computed by an external resolver ({local: fqn}).
    """
    self._external: Dict[str, str] = dict(external or {})
    self._bindings: Dict[str, Binding] = {}
    self.defined: Set[str] = set()

  @property
  def external(self) -> Dict[str, str]:
    """A copy of the externally supplied bindings."""
    return dict(self._external)

  def bind(self, local: str, qualified: str) -> None:
    """
    Records an import binding. Later bindings shadow earlier ones, as in Python.

    Args:
        local: The bound name.
        qualified: The dotted path it refers to.
    """
    self._bindings[local] = Binding(local, qualified)

  def lookup(self, local: str) -> Optional[Binding]:
    """
    Resolve a local name, preferring imports over external bindings.

    Args:
        local: The name used in the module body.

    Returns:
        The Binding if known, else None.
    """
    if local in self._bindings:
      return self._bindings[local]
    if local in self._external:
      return Binding(local, self._external[local], imported=False)
    return None

  def resolve(self, dotted: str) -> Optional[str]:
    """
    Expands a dotted reference by resolving its first segment.

    `legacy.Vehicle` with `import com.old as legacy` resolves to
    `com.old.Vehicle`. Returns None if the root segment is unbound.
    """
    if not dotted:
      return None
    head, _, rest = dotted.partition(".")
    binding = self.lookup(head)
    if binding is None:
      return None
    return f"{binding.qualified}.{rest}" if rest else binding.qualified

  def locals_for(self, qualified: str) -> Tuple[str, ...]:
    """Returns every imported local name bound to exactly `qualified`."""
    return tuple(sorted(b.local for b in self._bindings.values() if b.qualified == qualified))

  def is_defined(self, local: str) -> bool:
    """True if the module itself defines `local` at top level."""
    return local in self.defined

  def __iter__(self) -> Iterator[Binding]:
    return iter(list(self._bindings.values()))

  def __contains__(self, local: object) -> bool:
    return local in self._bindings or local in self._external


class SymbolTableAnalyzer(cst.CSTVisitor):
  """
  Populates a `SymbolTable` from the top-level statements of a module.

  Only module-level imports are considered; function-local imports do not
  form part of the module's import list.
  """

  def __init__(self, external: Optional[Mapping[str, str]] = None) -> None:
    """
    Initializes the analyzer.

    Args:
        external: Optional pre-resolved bindings to layer under the imports.
    """
    self.table = SymbolTable(external)

  def visit_Module(self, node: cst.Module) -> bool:
    for stmt in node.body:
      if isinstance(stmt, cst.SimpleStatementLine):
        for small in stmt.body:
          if isinstance(small, cst.Import):
            self._record_import(small)
          elif isinstance(small, cst.ImportFrom):
            self._record_import_from(small)

    definitions = DefinitionScanner()
    for stmt in node.body:
      stmt.visit(definitions)
    self.table.defined = definitions.defined
    return False

  def _record_import(self, node: cst.Import) -> None:
    for alias in node.names:
      full_name = get_full_name(alias.name)
      if alias.asname and isinstance(alias.asname.name, cst.Name):
        self.table.bind(alias.asname.name.value, full_name)
      else:
        # `import com.old` makes only the root package name visible.
        root = full_name.split(".")[0]
        self.table.bind(root, root)

  def _record_import_from(self, node: cst.ImportFrom) -> None:
    if node.relative or node.module is None:
      return
    if isinstance(node.names, cst.ImportStar):
      return
    module_name = get_full_name(node.module)
    for alias in node.names:
      imported = get_full_name(alias.name)
      local = imported
      if alias.asname and isinstance(alias.asname.name, cst.Name):
        local = alias.asname.name.value
      self.table.bind(local, f"{module_name}.{imported}")


def analyze(module: cst.Module, external: Optional[Mapping[str, str]] = None) -> SymbolTable:
  """
  Builds the symbol table for a module.

  Args:
      module: The parsed module.
      external: Optional bindings from an external resolver.

  Returns:
      SymbolTable: The populated table.
  """
  analyzer = SymbolTableAnalyzer(external)
  module.visit(analyzer)
  return analyzer.table
