"""
Import Pruning Mixin.

Handles visiting `Import` and `ImportFrom` nodes and dropping the aliases whose
local names the resolver marked as no longer referenced.
"""

from typing import List, Sequence, Union

import libcst as cst

from codemorph.core.scanners import get_full_name


def _bound_name(alias: cst.ImportAlias, from_import: bool) -> str:
  """The local name an alias makes visible."""
  if alias.asname and isinstance(alias.asname.name, cst.Name):
    return alias.asname.name.value
  full_name = get_full_name(alias.name)
  return full_name if from_import else full_name.split(".")[0]


class ImportMixin(cst.CSTTransformer):
  """
  Mixin for pruning Import statements.
  """

  def leave_SimpleStatementLine(
    self, original_node: cst.SimpleStatementLine, updated_node: cst.SimpleStatementLine
  ) -> Union[cst.SimpleStatementLine, cst.RemovalSentinel]:
    """
    Drops a line whose imports were all pruned, remembering it so the module
    can hand its blank lines and comments to the statement that follows.
    """
    if updated_node.body or not original_node.body:
      return updated_node
    self._dropped[id(original_node)] = original_node
    return cst.RemoveFromParent()

  def leave_Import(self, original_node: cst.Import, updated_node: cst.Import) -> Union[cst.Import, cst.RemovalSentinel]:
    """
    Inspects ``import ...`` statements.
    """
    return self._prune(updated_node, from_import=False)

  def leave_ImportFrom(
    self, original_node: cst.ImportFrom, updated_node: cst.ImportFrom
  ) -> Union[cst.ImportFrom, cst.RemovalSentinel]:
    """
    Inspects ``from ... import ...`` statements. Star and relative imports are left alone.
    """
    if isinstance(updated_node.names, cst.ImportStar) or updated_node.relative:
      return updated_node
    return self._prune(updated_node, from_import=True)

  def _prune(self, node: Union[cst.Import, cst.ImportFrom], from_import: bool):
    if not self._pending_removals:
      return node

    kept: List[cst.ImportAlias] = []
    for alias in node.names:
      local = _bound_name(alias, from_import)
      if local in self._pending_removals:
        self.removed.append(local)
        continue
      kept.append(alias)

    if len(kept) == len(node.names):
      return node
    if not kept:
      return cst.RemoveFromParent()
    return node.with_changes(names=_fix_trailing_comma(node.names, kept))


def _fix_trailing_comma(original: Sequence[cst.ImportAlias], kept: List[cst.ImportAlias]) -> List[cst.ImportAlias]:
  """
  Gives the new last alias the comma of the original last alias.

  `from a import X, Y` with `Y` pruned must print `from a import X`, while a
  parenthesized list with a trailing comma keeps it.
  """
  last_comma = original[-1].comma
  if kept[-1] is original[-1]:
    return kept
  return kept[:-1] + [kept[-1].with_changes(comma=last_comma)]
