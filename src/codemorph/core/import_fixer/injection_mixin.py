"""
Import Injection Mixin.

Handles the post-processing of the Module: inserting the imports the resolver
planned and re-homing the layout of import lines that pruning removed.

1.  **Holes**: a top-level line whose imports were all pruned leaves a hole in
    the body. Its blank lines and comments move to the next surviving
    statement, so group separators and section comments outlive the import
    that happened to carry them.
2.  **Groups**: the leading import block is split into groups at blank lines.
    A new import joins the group whose modules share the longest dotted prefix
    with its own (the last group when nothing matches), and is placed after the
    last import of that group that sorts before it. Existing imports are never
    reordered.
"""

from dataclasses import dataclass
from typing import List, Sequence, Set, Tuple, Union

import libcst as cst

from codemorph.core.import_fixer.utils import (
  get_signature,
  imported_modules,
  is_docstring,
  is_future_import,
  is_import_line,
  make_import_from,
)


@dataclass
class _Hole:
  """Placeholder for a pruned import line."""

  leading_lines: Sequence[cst.EmptyLine]
  modules: Tuple[str, ...]


_Slot = Union[cst.BaseStatement, _Hole]


class InjectionMixin(cst.CSTTransformer):
  """
  Mixin for injecting imports at the Module level.
  """

  def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
    """
    Inserts planned imports and settles the layout left by pruned lines.

    Args:
        original_node: Original module.
        updated_node: Module after pruning.

    Returns:
        Module with the new imports in place.
    """
    slots = self._slots(original_node, updated_node)
    existing: Set[str] = {get_signature(s) for s in slots if not isinstance(s, _Hole) and is_import_line(s)}

    for req in self.plan.additions:
      if req.signature in existing:
        continue
      slots = _insert(slots, make_import_from(req.module, req.name), req.signature, req.module)
      existing.add(req.signature)
      self.added.append(req)

    body = _fill_holes(slots, starts_with_hole=bool(slots) and isinstance(slots[0], _Hole))
    if body == list(updated_node.body):
      return updated_node
    return updated_node.with_changes(body=body)

  def _slots(self, original: cst.Module, updated: cst.Module) -> List[_Slot]:
    """Lines the updated body kept, with a hole where a pruned line used to be."""
    if not self._dropped:
      return list(updated.body)
    slots: List[_Slot] = []
    survivors = iter(updated.body)
    for stmt in original.body:
      dropped = self._dropped.get(id(stmt))
      if dropped is None:
        slots.append(next(survivors))
      else:
        slots.append(_Hole(dropped.leading_lines, imported_modules(dropped)))
    return slots


def _is_import_slot(slot: _Slot) -> bool:
  return isinstance(slot, _Hole) or is_import_line(slot)


def _modules(slot: _Slot) -> Tuple[str, ...]:
  return slot.modules if isinstance(slot, _Hole) else imported_modules(slot)


def _starts_group(slot: _Slot) -> bool:
  return any(line.comment is None for line in slot.leading_lines)


def _shared_prefix(a: str, b: str) -> int:
  count = 0
  for x, y in zip(a.split("."), b.split(".")):
    if x != y:
      break
    count += 1
  return count


def _insert(slots: List[_Slot], node: cst.SimpleStatementLine, sig: str, module: str) -> List[_Slot]:
  header_end = 0
  for i, slot in enumerate(slots):
    if isinstance(slot, _Hole) or not (is_docstring(slot, i) or is_future_import(slot)):
      break
    header_end = i + 1

  block_start = next((i for i in range(header_end, len(slots)) if _is_import_slot(slots[i])), None)
  if block_start is None:
    # No import block: place right after the docstring / __future__ header.
    return slots[:header_end] + [node] + slots[header_end:]

  block_end = block_start
  while block_end < len(slots) and _is_import_slot(slots[block_end]):
    block_end += 1

  groups: List[Tuple[int, int]] = []
  for i in range(block_start, block_end):
    if i == block_start or _starts_group(slots[i]):
      groups.append((i, i + 1))
    else:
      groups[-1] = (groups[-1][0], i + 1)

  best, best_score = groups[-1], 0
  for start, end in groups:
    score = max((_shared_prefix(m, module) for i in range(start, end) for m in _modules(slots[i])), default=0)
    if score > best_score:
      best, best_score = (start, end), score

  group_start, group_end = best
  insert_at = group_start
  for i in range(group_start, group_end):
    slot = slots[i]
    if isinstance(slot, _Hole):
      # Take the place of pruned lines right at the insertion point.
      if i == insert_at:
        insert_at = i + 1
    elif is_future_import(slot) or get_signature(slot) <= sig:
      insert_at = i + 1

  if insert_at == group_start:
    # Taking the head of the group: inherit the blank lines/comments above it.
    first = slots[group_start]
    node = node.with_changes(leading_lines=first.leading_lines)
    slots = slots[:group_start] + [first.with_changes(leading_lines=())] + slots[group_start + 1 :]

  return slots[:insert_at] + [node] + slots[insert_at:]


def _fill_holes(slots: List[_Slot], starts_with_hole: bool) -> List[cst.BaseStatement]:
  """Replaces holes by handing their leading lines to the next statement."""
  body: List[cst.BaseStatement] = []
  carried: List[cst.EmptyLine] = []
  for slot in slots:
    if isinstance(slot, _Hole):
      carried.extend(slot.leading_lines)
      continue
    if carried:
      slot = slot.with_changes(leading_lines=_merge_leading(carried, slot.leading_lines))
      carried = []
    body.append(slot)

  if starts_with_hole and body:
    # The file no longer opens with the pruned import: drop blank lines above the new first line.
    first = body[0]
    lines = list(first.leading_lines)
    while lines and lines[0].comment is None:
      lines.pop(0)
    if len(lines) != len(first.leading_lines):
      body[0] = first.with_changes(leading_lines=lines)
  return body


def _merge_leading(carried: Sequence[cst.EmptyLine], own: Sequence[cst.EmptyLine]) -> List[cst.EmptyLine]:
  if any(line.comment is not None for line in carried):
    return [*carried, *own]
  # Blank separators only: one separator is enough.
  return list(own) if own else list(carried)
