"""
Interface definition for Rewrite Rules.

This module defines the contract every node-level rule implements to be driven
by the ``RewriteVisitor``, and the per-pass context rules receive.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Type

import libcst as cst

from codemorph.core.import_fixer.resolution import ImportRequests
from codemorph.core.tree import SourceModule


@dataclass
class RuleContext:
  """
  State shared by the rules of one unit during one pass over one module.

  Attributes:
      source: The module being rewritten, as it was before the pass. Its symbol
          table answers resolution questions for the whole pass.
      requests: Import additions and removal candidates queued by rules.
      ancestors: The chain of nodes above the node being examined.
  """

  source: SourceModule
  requests: ImportRequests = field(default_factory=ImportRequests)
  ancestors: List[cst.CSTNode] = field(default_factory=list)

  @property
  def parent(self) -> Optional[cst.CSTNode]:
    return self.ancestors[-1] if self.ancestors else None


class RewriteRule(ABC):
  """
  Abstract contract for a (pattern, rewrite) pair.

  Attributes:
      node_types: The exact node classes the rule is dispatched on.
  """

  node_types: Tuple[Type[cst.CSTNode], ...] = ()

  @abstractmethod
  def matches(self, node: cst.CSTNode, ctx: RuleContext) -> bool:
    """
    Tests whether the node is a candidate for this rule.

    Returns:
        bool: False for any node the rule does not apply to. Never raises.
    """

  @abstractmethod
  def rewrite(self, node: cst.CSTNode, ctx: RuleContext) -> cst.CSTNode:
    """
    Builds the replacement for a matched node.

    Args:
        node: The matched node.
        ctx: The pass context; rules queue import requests on it.

    Returns:
        The replacement node, or `node` itself to signal no change.

    Raises:
        StructuralMismatch: If the node has a shape the rule cannot rewrite.
    """
