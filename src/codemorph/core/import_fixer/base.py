"""
Base Import Fixer Logic.

Defines the base class for the ImportFixer, holding the resolution plan and the
bookkeeping shared by the pruning and injection mixins.
"""

from typing import Dict, List, Set

import libcst as cst

from codemorph.core.import_fixer.resolution import ImportReq, ResolutionPlan


class BaseImportFixer(cst.CSTTransformer):
  """
  Base class for import manipulation.

  Only module-level statements are inspected: the bodies of classes, functions
  and compound statements are skipped without being traversed.
  """

  def __init__(self, plan: ResolutionPlan) -> None:
    """
    Initializes the fixer state.

    Args:
        plan: Additions and removals computed by the ImportResolver.
    """
    self.plan = plan
    self.removed: List[str] = []
    self.added: List[ImportReq] = []
    self._pending_removals: Set[str] = set(plan.removals)
    # Top-level import lines whose every alias was pruned, keyed by id() of the original line.
    self._dropped: Dict[int, cst.SimpleStatementLine] = {}

  def visit_IndentedBlock(self, node: cst.IndentedBlock) -> bool:
    return False

  def visit_SimpleStatementSuite(self, node: cst.SimpleStatementSuite) -> bool:
    return False

  def apply(self, module: cst.Module) -> cst.Module:
    """Runs the fixer over a module."""
    if self.plan.is_empty:
      return module
    return module.visit(self)
