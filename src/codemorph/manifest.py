"""
Declarative Manifests.

A manifest is a TOML or JSON document listing the units to run, in order:

.. code-block:: toml

    name = "vehicle-migration"

    [[units]]
    kind = "retarget-supertype"
    old = "com.old.Vehicle"
    new = "com.new.Car"

    [[units]]
    kind = "migrate-constants"
    mapping_file = "constants.json"

Documents are validated with pydantic and turned into units through an
explicit kind -> model table; nothing is discovered or imported by name.
Any validation failure surfaces as a `ConfigurationError`.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from codemorph.core.mapping import MappingTable
from codemorph.core.pipeline import CompositeUnit
from codemorph.core.units import (
  ChangeType,
  MigrateConstantReference,
  MigrateConstantReferences,
  RetargetSupertype,
  TransformationUnit,
)
from codemorph.errors import ConfigurationError

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib


class _Spec(BaseModel):
  model_config = ConfigDict(extra="forbid", frozen=True)

  name: Optional[str] = Field(None, description="Unit name; derived from the configuration if omitted.")
  description: Optional[str] = None


class MappingRow(BaseModel):
  """One row of a constant mapping table."""

  model_config = ConfigDict(extra="forbid", frozen=True)

  old_owner: str
  old_member: str
  new_owner: str
  new_member: str


class RetargetSupertypeSpec(_Spec):
  kind: Literal["retarget-supertype"]
  old: str
  new: str

  def build(self, base_dir: Path) -> TransformationUnit:
    return RetargetSupertype(self.old, self.new, name=self.name, description=self.description)


class ChangeTypeSpec(_Spec):
  kind: Literal["change-type"]
  old: str
  new: str

  def build(self, base_dir: Path) -> TransformationUnit:
    return ChangeType(self.old, self.new, name=self.name, description=self.description)


class MigrateConstantSpec(_Spec):
  kind: Literal["migrate-constant"]
  old_owner: str
  old_member: str
  new_owner: str
  new_member: str

  def build(self, base_dir: Path) -> TransformationUnit:
    return MigrateConstantReference(
      self.old_owner,
      self.old_member,
      self.new_owner,
      self.new_member,
      name=self.name,
      description=self.description,
    )


class MigrateConstantsSpec(_Spec):
  kind: Literal["migrate-constants"]
  mappings: List[MappingRow] = Field(default_factory=list)
  mapping_file: Optional[Path] = Field(None, description="Extra rows, relative to the manifest.")

  def build(self, base_dir: Path) -> TransformationUnit:
    table = MappingTable(row.model_dump() for row in self.mappings)
    if self.mapping_file is not None:
      path = self.mapping_file if self.mapping_file.is_absolute() else base_dir / self.mapping_file
      for entry in load_mapping_table(path):
        table.add(entry)
    return MigrateConstantReferences(table, name=self.name, description=self.description)


class CompositeSpec(_Spec):
  kind: Literal["composite"]
  name: str
  units: List["UnitSpec"]

  def build(self, base_dir: Path) -> TransformationUnit:
    return CompositeUnit(self.name, [u.build(base_dir) for u in self.units], description=self.description)


UnitSpec = Annotated[
  Union[RetargetSupertypeSpec, ChangeTypeSpec, MigrateConstantSpec, MigrateConstantsSpec, CompositeSpec],
  Field(discriminator="kind"),
]
CompositeSpec.model_rebuild()


class Manifest(BaseModel):
  """Top-level manifest document."""

  model_config = ConfigDict(extra="forbid")

  name: str = "manifest"
  description: Optional[str] = None
  units: List[UnitSpec]

  def build(self, base_dir: Path) -> CompositeUnit:
    return CompositeUnit(self.name, [u.build(base_dir) for u in self.units], description=self.description)


def _read_document(path: Path) -> Any:
  suffix = path.suffix.lower()
  try:
    if suffix == ".toml":
      with open(path, "rb") as f:
        return tomllib.load(f)
    if suffix == ".json":
      with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
  except FileNotFoundError as e:
    raise ConfigurationError(f"File not found: {path}") from e
  except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
    raise ConfigurationError(f"Cannot parse {path}: {e}") from e
  raise ConfigurationError(f"Unsupported file type '{suffix}' for {path} (expected .toml or .json)")


def parse_manifest(data: Dict[str, Any], base_dir: Optional[Path] = None) -> CompositeUnit:
  """
  Builds the unit tree described by an already-loaded manifest document.

  Args:
      data: The decoded document.
      base_dir: Directory relative `mapping_file` paths are resolved against.

  Raises:
      ConfigurationError: If the document is invalid or a unit rejects its configuration.
  """
  try:
    manifest = Manifest.model_validate(data)
  except ValidationError as e:
    raise ConfigurationError(f"Invalid manifest: {e}") from e
  return manifest.build(base_dir or Path.cwd())


def load_manifest(path: Path) -> CompositeUnit:
  """
  Loads a TOML or JSON manifest into a `CompositeUnit`.

  Raises:
      ConfigurationError: If the file is missing, unreadable or invalid.
  """
  return parse_manifest(_read_document(path), base_dir=path.parent)


def load_mapping_table(path: Path) -> MappingTable:
  """
  Loads a mapping table from JSON (a list of rows, or `{"mappings": [...]}`)
  or TOML (`[[mappings]]` tables).

  Raises:
      ConfigurationError: On unreadable files, malformed rows, or duplicate keys.
  """
  data = _read_document(path)
  rows = data.get("mappings") if isinstance(data, dict) else data
  if not isinstance(rows, list):
    raise ConfigurationError(f"{path} does not contain a list of mappings")
  try:
    parsed = [MappingRow.model_validate(row) for row in rows]
  except ValidationError as e:
    raise ConfigurationError(f"Invalid mapping row in {path}: {e}") from e
  return MappingTable(row.model_dump() for row in parsed)
