"""
Constant Mapping Tables.

A `MappingTable` maps `(old owner, old member)` to `(new owner, new member)`
for constant-reference migrations. Keys are unique: registering a key twice is
a configuration error, raised at registration time.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import libcst as cst

from codemorph.core.matchers import QualifiedReferenceMatcher, TypeName, validate_identifier
from codemorph.core.tree import SourceModule
from codemorph.errors import ConfigurationError


@dataclass(frozen=True)
class MappingEntry:
  """One row of a mapping table."""

  old_owner: TypeName
  old_member: str
  new_owner: TypeName
  new_member: str

  @property
  def key(self) -> Tuple[str, str]:
    return self.old_owner.qualified, self.old_member

  @property
  def target(self) -> Tuple[str, str]:
    return self.new_owner.qualified, self.new_member

  @property
  def owner_changed(self) -> bool:
    return self.old_owner != self.new_owner

  @classmethod
  def build(cls, old_owner: str, old_member: str, new_owner: str, new_member: str) -> "MappingEntry":
    """
    Validates and builds an entry.

    Raises:
        ConfigurationError: On empty or invalid names, or an entry that maps a
            reference onto itself.
    """
    entry = cls(
      old_owner=TypeName.parse(old_owner, "old_owner"),
      old_member=validate_identifier(old_member, "old_member"),
      new_owner=TypeName.parse(new_owner, "new_owner"),
      new_member=validate_identifier(new_member, "new_member"),
    )
    if entry.key == entry.target:
      raise ConfigurationError(f"Mapping for {old_owner}.{old_member} does not change anything")
    return entry


class MappingTable:
  """
  Ordered, duplicate-free collection of `MappingEntry` rows.
  """

  def __init__(self, entries: Iterable[Any] = ()) -> None:
    """
    Args:
        entries: `MappingEntry` objects, 4-tuples
            `(old_owner, old_member, new_owner, new_member)`, or mappings with
            those keys.

    Raises:
        ConfigurationError: On a malformed row or a duplicate key.
    """
    self._entries: Dict[Tuple[str, str], MappingEntry] = {}
    self._by_simple: Dict[Tuple[str, str], List[MappingEntry]] = {}
    for row in entries:
      self.add(_coerce(row))

  def register(self, old_owner: str, old_member: str, new_owner: str, new_member: str) -> MappingEntry:
    """Adds a row from its four names. See `add`."""
    entry = MappingEntry.build(old_owner, old_member, new_owner, new_member)
    self.add(entry)
    return entry

  def add(self, entry: MappingEntry) -> None:
    """
    Adds a row.

    Raises:
        ConfigurationError: If the key is already registered.
    """
    if entry.key in self._entries:
      owner, member = entry.key
      raise ConfigurationError(f"Duplicate mapping key {owner}.{member}")
    self._entries[entry.key] = entry
    self._by_simple.setdefault((entry.old_owner.simple, entry.old_member), []).append(entry)

  def validate_chains(self) -> None:
    """
    Rejects rows whose target is itself a key of the table.

    `A.X -> B.Y` together with `B.Y -> C.Z` would rewrite again on a second run,
    so the migration would not be idempotent.

    Raises:
        ConfigurationError: On the first chained row.
    """
    for entry in self._entries.values():
      if entry.target in self._entries:
        owner, member = entry.target
        raise ConfigurationError(
          f"Mapping for {entry.old_owner}.{entry.old_member} targets {owner}.{member}, which is mapped again"
        )

  def find(self, node: cst.CSTNode, source: SourceModule) -> Optional[MappingEntry]:
    """
    Returns the row matching an `Owner.MEMBER` node, if any.

    Rows with a qualified owner are tried before bare-owner rows with the same
    simple name.
    """
    if not isinstance(node, cst.Attribute):
      return None
    owner = node.value
    if isinstance(owner, cst.Attribute):
      simple_owner = owner.attr.value
    elif isinstance(owner, cst.Name):
      simple_owner = owner.value
    else:
      return None

    candidates = self._by_simple.get((simple_owner, node.attr.value))
    if not candidates:
      # Aliased imports: `from com.old import Constants as C` then `C.MAX`.
      candidates = [e for e in self._entries.values() if e.old_member == node.attr.value]
    for entry in sorted(candidates, key=lambda e: not e.old_owner.is_qualified):
      if QualifiedReferenceMatcher(entry.old_owner, entry.old_member).matches(node, source):
        return entry
    return None

  def copy(self) -> "MappingTable":
    return MappingTable(self._entries.values())

  def __iter__(self) -> Iterator[MappingEntry]:
    return iter(list(self._entries.values()))

  def __len__(self) -> int:
    return len(self._entries)

  def __contains__(self, key: object) -> bool:
    return key in self._entries


def _coerce(row: Any) -> MappingEntry:
  if isinstance(row, MappingEntry):
    return row
  if isinstance(row, Mapping):
    try:
      return MappingEntry.build(row["old_owner"], row["old_member"], row["new_owner"], row["new_member"])
    except KeyError as e:
      raise ConfigurationError(f"Mapping row is missing {e}") from e
  if isinstance(row, (tuple, list)) and len(row) == 4:
    return MappingEntry.build(*row)
  raise ConfigurationError(f"Cannot build a mapping row from {row!r}")
