"""
Import Resolution Logic.

This module centralizes the decision-making process for imports. Rules queue
requests while the rewrite pass runs; once the pass has finished, the
`ImportResolver` looks at the rewritten module and decides which requests turn
into real import additions and removals.

1.  **Additions**: skipped when an import already binds the name to the same
    fully-qualified path or when the name is local to the module. A name that
    cannot be qualified, or that clashes with a different binding or a
    top-level definition, raises
    :class:`~codemorph.errors.ResolutionError`.
2.  **Moves**: a type that keeps its simple name but changes package
    (`com.old.Vehicle` -> `com.new.Vehicle`) clashes with its own old import.
    When every remaining use of the name was rewritten, the old import is
    dropped and the new one added in its place; otherwise the old meaning is
    still needed and the clash is an error.
3.  **Removal candidates**: pruned only when no live reference remains.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from codemorph.analysis.symbol_table import Binding
from codemorph.core.scanners import SimpleNameScanner
from codemorph.core.tree import SourceModule, split_qualified
from codemorph.errors import ResolutionError


@dataclass(frozen=True)
class ImportReq:
  """
  A normalized `from module import name` requirement.
  """

  module: str
  name: str

  @property
  def qualified(self) -> str:
    return f"{self.module}.{self.name}"

  @property
  def signature(self) -> str:
    """Source form, used for ordering and deduplication."""
    return f"from {self.module} import {self.name}"


@dataclass
class ImportRequests:
  """
  Requests queued by rules during a single rewrite pass.

  Attributes:
      additions: Qualified (or bare) names that must be importable afterwards,
          in the order they were first requested.
      removal_candidates: Local names whose import may no longer be needed.
      rebinds: How many references were rewritten to mean a new qualified
          name under an unchanged local name, keyed by (local, qualified).
  """

  additions: Dict[str, None] = field(default_factory=dict)
  removal_candidates: Dict[str, None] = field(default_factory=dict)
  rebinds: Counter = field(default_factory=Counter)

  def add(self, qualified: str) -> None:
    self.additions.setdefault(qualified, None)

  def remove(self, local: str) -> None:
    self.removal_candidates.setdefault(local, None)

  def rebind(self, local: str, qualified: str) -> None:
    self.rebinds[(local, qualified)] += 1

  def __bool__(self) -> bool:
    return bool(self.additions or self.removal_candidates or self.rebinds)


@dataclass
class ResolutionPlan:
  """The strategy for the ImportFixer to execute."""

  additions: List[ImportReq] = field(default_factory=list)
  removals: Set[str] = field(default_factory=set)

  @property
  def is_empty(self) -> bool:
    return not self.additions and not self.removals


class ImportResolver:
  """
  Turns queued import requests into a `ResolutionPlan` for one module.
  """

  def resolve(self, source: SourceModule, requests: ImportRequests) -> ResolutionPlan:
    """
    Computes the plan for a rewritten module.

    Args:
        source: The module after the rewrite pass (imports not yet reconciled).
        requests: Requests queued by the rules.

    Returns:
        ResolutionPlan: Additions sorted lexicographically, local names to prune.

    Raises:
        ResolutionError: If an addition cannot be qualified or is ambiguous.
    """
    removals = self._removals(source, requests)
    additions: Dict[str, ImportReq] = {}

    for qualified in requests.additions:
      req = self._addition(source, requests, qualified, removals)
      if req is not None:
        additions.setdefault(req.signature, req)

    ordered = sorted(additions.values(), key=lambda r: r.signature)
    return ResolutionPlan(additions=ordered, removals=removals)

  def _addition(
    self, source: SourceModule, requests: ImportRequests, qualified: str, removals: Set[str]
  ) -> Optional[ImportReq]:
    module, simple = split_qualified(qualified)
    if source.is_local(qualified):
      return None

    binding = source.symbols.lookup(simple)
    if binding is not None:
      if not module or binding.qualified == qualified:
        return None
      rewritten = requests.rebinds[(simple, qualified)]
      if not rewritten:
        raise ResolutionError(
          f"Cannot import '{qualified}': '{simple}' is already bound to '{binding.qualified}'",
          name=qualified,
        )
      if not self._can_move(source, binding, rewritten):
        raise ResolutionError(
          f"Cannot import '{qualified}': '{simple}' still refers to '{binding.qualified}' elsewhere in this module",
          name=qualified,
        )
      removals.add(simple)
      return ImportReq(module=module, name=simple)

    if source.symbols.is_defined(simple):
      raise ResolutionError(
        f"Cannot import '{qualified}': '{simple}' is already defined in this module",
        name=qualified,
      )
    if not module:
      raise ResolutionError(
        f"Cannot determine a fully qualified name for '{simple}'; configure it as 'package.module.{simple}'",
        name=simple,
      )
    return ImportReq(module=module, name=simple)

  def _can_move(self, source: SourceModule, binding: Binding, rewritten: int) -> bool:
    """True if the old import can go: it is ours to edit and every use was rewritten."""
    if not binding.imported:
      return False
    return self._count_uses(source, binding.local) == rewritten

  def _removals(self, source: SourceModule, requests: ImportRequests) -> Set[str]:
    removals: Set[str] = set()
    for local in requests.removal_candidates:
      binding = source.symbols.lookup(local)
      if binding is None or not binding.imported:
        continue
      if not self._is_used(source, local):
        removals.add(local)
    return removals

  def _is_used(self, source: SourceModule, name: str) -> bool:
    scanner = SimpleNameScanner(name)
    source.tree.visit(scanner)
    return scanner.found

  def _count_uses(self, source: SourceModule, name: str) -> int:
    scanner = SimpleNameScanner(name, count_all=True)
    source.tree.visit(scanner)
    return scanner.count
