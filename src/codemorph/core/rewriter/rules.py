"""
Rewrite Rules.

Concrete (pattern, rewrite) pairs driven by the `RewriteVisitor`:

1.  **RetargetSupertypeRule**: `class Foo(Vehicle[T])` -> `class Foo(Car[T])`.
2.  **MigrateReferenceRule**: `Constants.MAX` -> `Limits.MAX_VALUE`, driven by a
    mapping table.
3.  **ChangeTypeRule**: every reference to a type, wherever it appears.

Rules only rename tokens: the replacement node is derived from the matched one
with `with_changes`, so parentheses, whitespace and generic arguments come
along untouched. Import bookkeeping is queued on the context and reconciled
after the pass.
"""

from typing import List, Union

import libcst as cst

from codemorph.core.matchers import (
  NameRef,
  SupertypeMatcher,
  TypeName,
  TypeReferenceMatcher,
  resolve_reference,
)
from codemorph.core.mapping import MappingEntry, MappingTable
from codemorph.core.rewriter.interface import RewriteRule, RuleContext
from codemorph.core.scanners import get_full_name
from codemorph.errors import StructuralMismatch


def rename_reference(ref: NameRef, old: TypeName, new: TypeName, ctx: RuleContext) -> NameRef:
  """
  Renames a type reference, queueing the import changes it implies.

  A bare name (`Vehicle`) is renamed to the new simple name; the new type is
  queued for import and the old binding becomes a removal candidate. When the
  simple name stays the same (a package move) the reference is counted as a
  rebind instead, so the resolver can move the import itself. A
  module-qualified reference (`legacy.Vehicle`) keeps its module prefix, which
  is only correct when the new type lives in that same module.

  Raises:
      StructuralMismatch: For a qualified reference whose module does not hold the new type.
  """
  if isinstance(ref, cst.Name):
    if ref.value != new.simple:
      ctx.requests.remove(ref.value)
    else:
      ctx.requests.rebind(ref.value, new.qualified)
    ctx.requests.add(new.qualified)
    return ref.with_changes(value=new.simple)

  prefix = get_full_name(ref.value)
  module = resolve_reference(prefix, ctx.source) if prefix else None
  if module is None or not new.is_qualified or module != new.module:
    raise StructuralMismatch(
      f"'{get_full_name(ref)}' is qualified by a module that does not provide '{new.qualified}'",
      node_type="Attribute",
    )
  return ref.with_changes(attr=ref.attr.with_changes(value=new.simple))


class RetargetSupertypeRule(RewriteRule):
  """
  Replaces a class's base `old` with `new`, keeping generic arguments verbatim.
  """

  node_types = (cst.ClassDef,)

  def __init__(self, old: TypeName, new: TypeName) -> None:
    self.old = old
    self.new = new
    self.matcher = SupertypeMatcher(old)

  def matches(self, node: cst.CSTNode, ctx: RuleContext) -> bool:
    return self.matcher.matches(node, ctx.source)

  def rewrite(self, node: cst.ClassDef, ctx: RuleContext) -> cst.CSTNode:
    bases = list(node.bases)
    for idx in self.matcher.find_bases(node, ctx.source):
      arg = bases[idx]
      bases[idx] = arg.with_changes(value=self._retarget(arg.value, ctx))
    return node.with_changes(bases=bases)

  def _retarget(self, expr: cst.BaseExpression, ctx: RuleContext) -> cst.BaseExpression:
    if isinstance(expr, cst.Subscript):
      if isinstance(expr.value, cst.Subscript):
        raise StructuralMismatch(
          f"nested generic arguments on '{self.old.simple}' are not supported", node_type="Subscript"
        )
      return expr.with_changes(value=self._retarget(expr.value, ctx))
    if isinstance(expr, (cst.Name, cst.Attribute)):
      return rename_reference(expr, self.old, self.new, ctx)
    raise StructuralMismatch(f"unsupported base expression {type(expr).__name__}", node_type=type(expr).__name__)


class MigrateReferenceRule(RewriteRule):
  """
  Rewrites `Owner.MEMBER` references according to a mapping table.
  """

  node_types = (cst.Attribute,)

  def __init__(self, table: MappingTable) -> None:
    self.table = table

  def matches(self, node: cst.CSTNode, ctx: RuleContext) -> bool:
    return self.table.find(node, ctx.source) is not None

  def rewrite(self, node: cst.Attribute, ctx: RuleContext) -> cst.CSTNode:
    entry: MappingEntry = self.table.find(node, ctx.source)
    owner: Union[cst.Name, cst.Attribute] = node.value

    if entry.owner_changed:
      owner = rename_reference(owner, entry.old_owner, entry.new_owner, ctx)

    attr = node.attr
    if entry.new_member != attr.value:
      attr = attr.with_changes(value=entry.new_member)
    return node.with_changes(value=owner, attr=attr)


class ChangeTypeRule(RewriteRule):
  """
  Renames every reference to `old`: annotations, bases, calls, `isinstance` checks.
  """

  node_types = (cst.Name, cst.Attribute)

  def __init__(self, old: TypeName, new: TypeName) -> None:
    self.old = old
    self.new = new
    self.matcher = TypeReferenceMatcher(old)

  def matches(self, node: cst.CSTNode, ctx: RuleContext) -> bool:
    return self.matcher.matches(node, ctx.source, ctx.ancestors)

  def rewrite(self, node: NameRef, ctx: RuleContext) -> cst.CSTNode:
    return rename_reference(node, self.old, self.new, ctx)


def describe_rules(rules: List[RewriteRule]) -> List[str]:
  """Human-readable one-liners for a list of rules."""
  lines = []
  for rule in rules:
    if isinstance(rule, RetargetSupertypeRule):
      lines.append(f"base {rule.old} -> {rule.new}")
    elif isinstance(rule, ChangeTypeRule):
      lines.append(f"type {rule.old} -> {rule.new}")
    elif isinstance(rule, MigrateReferenceRule):
      lines.extend(f"{e.old_owner}.{e.old_member} -> {e.new_owner}.{e.new_member}" for e in rule.table)
  return lines
