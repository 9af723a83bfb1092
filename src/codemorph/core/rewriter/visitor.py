"""
Rewrite Visitor.

A LibCST transformer that drives a set of `RewriteRule` objects over a tree in a
single top-down pass:

1.  **Dispatch**: rules are indexed by exact node class when the visitor is
    built. A node only meets the rules registered for its class.
2.  **Rewrite**: when a rule matches, its replacement is used in place of the
    node and the traversal continues into the *replacement's* children, so
    matches nested inside a rewritten node are still found.
3.  **Reconstruction**: a parent is rebuilt only when something below it
    changed. Otherwise the original instance is handed back, so a pass that
    fires nowhere returns the very same tree object.

Rules that raise `StructuralMismatch` leave their node untouched; the skip is
logged and traced.
"""

from typing import Dict, List, Optional, Sequence, Type, Union

import libcst as cst

from codemorph.core.rewriter.interface import RewriteRule, RuleContext
from codemorph.core.tracer import get_tracer
from codemorph.errors import StructuralMismatch
from codemorph.utils.console import log_warning
from codemorph.utils.node_diff import capture_node_source


class RewriteVisitor(cst.CSTTransformer):
  """
  Applies rules to every node of a module exactly once.
  """

  def __init__(self, rules: Sequence[RewriteRule], context: RuleContext) -> None:
    """
    Args:
        rules: Rules in priority order. Several rules may fire on the same node;
            each sees the previous rule's output.
        context: The pass context handed to every rule.
    """
    super().__init__()
    self.context = context
    self.rewrites = 0
    self.skipped = 0
    self._dispatch: Dict[Type[cst.CSTNode], List[RewriteRule]] = {}
    for rule in rules:
      for node_type in rule.node_types:
        self._dispatch.setdefault(node_type, []).append(rule)

    self._changed: List[bool] = []
    self._pending: Dict[int, cst.CSTNode] = {}
    self._entering: Optional[cst.CSTNode] = None

  def on_visit(self, node: cst.CSTNode) -> bool:
    if self._entering is node:
      # Replacement produced for a node already handled: walk its children only.
      self._entering = None
    else:
      replacement = self._apply_rules(node)
      if replacement is not node:
        self._pending[id(node)] = replacement
        self._changed.append(True)
        self.context.ancestors.append(node)
        return False

    self._changed.append(False)
    self.context.ancestors.append(node)
    return True

  def on_leave(
    self, original_node: cst.CSTNode, updated_node: cst.CSTNode
  ) -> Union[cst.CSTNode, cst.RemovalSentinel, cst.FlattenSentinel]:
    self.context.ancestors.pop()
    changed = self._changed.pop()

    replacement = self._pending.pop(id(original_node), None)
    if replacement is not None:
      self._entering = replacement
      result = replacement.visit(self)
      self._mark_parent_changed()
      return result

    if not changed:
      return original_node
    self._mark_parent_changed()
    return updated_node

  def _mark_parent_changed(self) -> None:
    if self._changed:
      self._changed[-1] = True

  def _apply_rules(self, node: cst.CSTNode) -> cst.CSTNode:
    current = node
    for rule in self._dispatch.get(type(node), ()):
      if type(current) is not type(node) or not rule.matches(current, self.context):
        continue
      try:
        replacement = rule.rewrite(current, self.context)
      except StructuralMismatch as e:
        self.skipped += 1
        log_warning(f"Skipping {type(current).__name__}: {e}")
        get_tracer().log_skip(type(current).__name__, str(e))
        continue

      if replacement is None:
        raise TypeError(f"{type(rule).__name__}.rewrite returned None; return the node to signal no change")
      if replacement is not current:
        self.rewrites += 1
        get_tracer().log_mutation(
          type(current).__name__, capture_node_source(current), capture_node_source(replacement)
        )
        current = replacement
    return current
