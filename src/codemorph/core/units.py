"""
Transformation Units.

A unit is a named, independently testable rewrite built once from immutable
configuration. It exposes a single operation, ``apply(source) -> source``:

1.  The unit's rules run over the module in one `RewriteVisitor` pass.
2.  The `ImportResolver` turns the import requests queued by the rules into a
    plan, and the `ImportFixer` executes it.

``apply`` is total for inputs that contain nothing to rewrite: the very same
`SourceModule` comes back. A `ResolutionError` aborts the unit for that module;
since inputs are never mutated, the caller still holds the untouched module.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Sequence, Tuple

from codemorph.core.import_fixer import ImportFixer, ImportRequests, ImportResolver
from codemorph.core.mapping import MappingTable
from codemorph.core.matchers import TypeName
from codemorph.core.rewriter.interface import RewriteRule, RuleContext
from codemorph.core.rewriter.rules import ChangeTypeRule, MigrateReferenceRule, RetargetSupertypeRule
from codemorph.core.rewriter.visitor import RewriteVisitor
from codemorph.core.tracer import get_tracer
from codemorph.core.tree import SourceModule
from codemorph.errors import ConfigurationError, ResolutionError


class TransformationUnit(ABC):
  """
  Abstract contract for a transformation unit.

  Attributes:
      name: Identifier used in logs, traces and manifests.
      description: One-line human description.
      units: Child units (only composites have any).
  """

  name: str = ""
  description: str = ""
  units: Tuple["TransformationUnit", ...] = ()

  @abstractmethod
  def apply(self, source: SourceModule) -> SourceModule:
    """
    Rewrites one module.

    Args:
        source: The module to transform.

    Returns:
        The transformed module (the input itself if nothing matched).

    Raises:
        ResolutionError: If an import required by the rewrite cannot be computed.
    """

  def __call__(self, source: SourceModule) -> SourceModule:
    return self.apply(source)

  def __repr__(self) -> str:
    return f"{type(self).__name__}(name={self.name!r})"


class RuleUnit(TransformationUnit):
  """
  A unit made of rewrite rules plus import reconciliation.
  """

  def __init__(self, name: str, description: str, rules: Sequence[RewriteRule]) -> None:
    if not name or not name.strip():
      raise ConfigurationError("Unit name must be a non-empty string")
    self.name = name.strip()
    self.description = description
    self._rules: Tuple[RewriteRule, ...] = tuple(rules)

  @property
  def rules(self) -> Tuple[RewriteRule, ...]:
    return self._rules

  def apply(self, source: SourceModule) -> SourceModule:
    tracer = get_tracer()
    tracer.start_phase(self.name, self.description)
    try:
      return self._apply(source)
    except ResolutionError as e:
      tracer.log_failure(str(e))
      raise
    finally:
      tracer.end_phase()

  def _apply(self, source: SourceModule) -> SourceModule:
    ctx = RuleContext(source=source, requests=ImportRequests())
    visitor = RewriteVisitor(self._rules, ctx)
    tree = source.tree.visit(visitor)
    if tree is source.tree:
      return source

    rewritten = source.with_tree(tree)
    plan = ImportResolver().resolve(rewritten, ctx.requests)
    fixer = ImportFixer(plan)
    fixed = fixer.apply(rewritten.tree)

    tracer = get_tracer()
    for local in fixer.removed:
      tracer.log_import("remove", local)
    for req in fixer.added:
      tracer.log_import("add", req.signature)
    return rewritten.with_tree(fixed)


class RetargetSupertype(RuleUnit):
  """
  Makes classes deriving from `old` derive from `new` instead.

  Example:
      >>> unit = RetargetSupertype("com.old.Vehicle", "com.new.Car")
      >>> unit.apply(SourceModule.from_code(code)).code
  """

  def __init__(self, old: str, new: str, name: Optional[str] = None, description: Optional[str] = None) -> None:
    old_t = TypeName.parse(old, "old supertype")
    new_t = TypeName.parse(new, "new supertype")
    if old_t == new_t:
      raise ConfigurationError(f"Supertype retarget from '{old}' to itself")
    self.old, self.new = old_t, new_t
    super().__init__(
      name or f"retarget-{old_t.simple}-to-{new_t.simple}",
      description or f"Replace base class {old_t} with {new_t}",
      [RetargetSupertypeRule(old_t, new_t)],
    )


class MigrateConstantReferences(RuleUnit):
  """
  Rewrites `Owner.MEMBER` references according to a mapping table.
  """

  def __init__(
    self, mapping: Any, name: Optional[str] = None, description: Optional[str] = None
  ) -> None:
    """
    Args:
        mapping: A `MappingTable` or an iterable of rows accepted by it.

    Raises:
        ConfigurationError: On an empty table, malformed rows, duplicate keys,
            or chained rows.
    """
    table = mapping.copy() if isinstance(mapping, MappingTable) else MappingTable(mapping)
    if not len(table):
      raise ConfigurationError("Constant migration needs at least one mapping")
    table.validate_chains()
    self.table = table
    super().__init__(
      name or "migrate-constants",
      description or f"Migrate {len(table)} constant reference(s)",
      [MigrateReferenceRule(table)],
    )


class MigrateConstantReference(MigrateConstantReferences):
  """
  Rewrites a single `old_owner.old_member` reference to `new_owner.new_member`.
  """

  def __init__(
    self,
    old_owner: str,
    old_member: str,
    new_owner: str,
    new_member: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
  ) -> None:
    table = MappingTable()
    entry = table.register(old_owner, old_member, new_owner, new_member)
    super().__init__(
      table,
      name=name or f"migrate-{entry.old_owner.simple}.{entry.old_member}",
      description=description
      or f"Replace {entry.old_owner}.{entry.old_member} with {entry.new_owner}.{entry.new_member}",
    )


class ChangeType(RuleUnit):
  """
  Replaces every reference to type `old` with type `new`.
  """

  def __init__(self, old: str, new: str, name: Optional[str] = None, description: Optional[str] = None) -> None:
    old_t = TypeName.parse(old, "old type")
    new_t = TypeName.parse(new, "new type")
    if old_t == new_t:
      raise ConfigurationError(f"Type change from '{old}' to itself")
    self.old, self.new = old_t, new_t
    super().__init__(
      name or f"change-type-{old_t.simple}-to-{new_t.simple}",
      description or f"Replace references to {old_t} with {new_t}",
      [ChangeTypeRule(old_t, new_t)],
    )


def iter_units(unit: TransformationUnit) -> Iterable[Tuple[int, TransformationUnit]]:
  """Depth-first walk over a unit tree, yielding (depth, unit)."""
  stack = [(0, unit)]
  while stack:
    depth, current = stack.pop()
    yield depth, current
    stack.extend((depth + 1, child) for child in reversed(current.units))
