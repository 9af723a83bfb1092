"""
Tests for Declarative Manifests.

Verifies:
1. TOML and JSON manifests build the expected unit tree.
2. Mapping tables can be inline or loaded from a separate file.
3. Every invalid document surfaces as a ConfigurationError.
"""

import json
from pathlib import Path

import pytest

from codemorph.core.pipeline import CompositeUnit
from codemorph.core.tree import SourceModule
from codemorph.core.units import ChangeType, MigrateConstantReferences, RetargetSupertype, iter_units
from codemorph.errors import ConfigurationError
from codemorph.manifest import load_manifest, load_mapping_table, parse_manifest

TOML_MANIFEST = """
name = "vehicle-migration"
description = "Move to the new vehicle API"

[[units]]
kind = "retarget-supertype"
old = "com.old.Vehicle"
new = "com.new.Car"

[[units]]
kind = "migrate-constants"
name = "limits"
mappings = [
  { old_owner = "com.old.Constants", old_member = "MAX", new_owner = "com.new.Limits", new_member = "MAX_VALUE" },
]

[[units]]
kind = "composite"
name = "clients"

[[units.units]]
kind = "change-type"
old = "io.vertx.JDBCClient"
new = "io.vertx.JDBCPool"

[[units.units]]
kind = "migrate-constant"
old_owner = "com.old.Constants"
old_member = "MIN"
new_owner = "com.old.Constants"
new_member = "MIN_VALUE"
"""


def _write(path: Path, text: str) -> Path:
  path.write_text(text, encoding="utf-8")
  return path


def test_toml_manifest_builds_unit_tree(tmp_path):
  root = load_manifest(_write(tmp_path / "migration.toml", TOML_MANIFEST))

  assert isinstance(root, CompositeUnit)
  assert root.name == "vehicle-migration"
  assert root.description == "Move to the new vehicle API"

  tree = [(depth, type(unit).__name__, unit.name) for depth, unit in iter_units(root)]
  assert tree == [
    (0, "CompositeUnit", "vehicle-migration"),
    (1, "RetargetSupertype", "retarget-Vehicle-to-Car"),
    (1, "MigrateConstantReferences", "limits"),
    (1, "CompositeUnit", "clients"),
    (2, "ChangeType", "change-type-JDBCClient-to-JDBCPool"),
    (2, "MigrateConstantReference", "migrate-Constants.MIN"),
  ]


def test_manifest_units_apply_in_order(tmp_path):
  root = load_manifest(_write(tmp_path / "migration.toml", TOML_MANIFEST))
  src = SourceModule.from_code(
    "from com.old import Vehicle, Constants\n\nclass Foo(Vehicle):\n    top = Constants.MAX\n    low = Constants.MIN\n"
  )
  out = root.apply(src).code
  assert "class Foo(Car):" in out
  assert "top = Limits.MAX_VALUE" in out
  assert "low = Constants.MIN_VALUE" in out
  assert "from com.old import Constants\n" in out


def test_json_manifest_with_mapping_file(tmp_path):
  _write(
    tmp_path / "constants.json",
    json.dumps(
      [{"old_owner": "com.old.Constants", "old_member": "MAX", "new_owner": "com.new.Limits", "new_member": "MAX_VALUE"}]
    ),
  )
  manifest = {
    "units": [
      {
        "kind": "migrate-constants",
        "mapping_file": "constants.json",
        "mappings": [
          {"old_owner": "com.old.Constants", "old_member": "MIN", "new_owner": "com.new.Limits", "new_member": "MIN_VALUE"}
        ],
      }
    ]
  }
  root = load_manifest(_write(tmp_path / "m.json", json.dumps(manifest)))

  (unit,) = root.units
  assert isinstance(unit, MigrateConstantReferences)
  assert [e.old_member for e in unit.table] == ["MIN", "MAX"]
  assert root.name == "manifest"


def test_toml_mapping_file(tmp_path):
  path = _write(
    tmp_path / "constants.toml",
    '[[mappings]]\nold_owner = "com.old.Constants"\nold_member = "MAX"\nnew_owner = "com.new.Limits"\nnew_member = "MAX_VALUE"\n',
  )
  table = load_mapping_table(path)
  assert len(table) == 1
  assert ("com.old.Constants", "MAX") in table


def test_parse_manifest_from_dict():
  root = parse_manifest({"units": [{"kind": "change-type", "old": "a.Old", "new": "a.New", "name": "swap"}]})
  (unit,) = root.units
  assert isinstance(unit, ChangeType)
  assert unit.name == "swap"


@pytest.mark.parametrize(
  "document",
  [
    {"units": [{"kind": "explode", "old": "a.B", "new": "a.C"}]},
    {"units": [{"kind": "retarget-supertype", "old": "a.B"}]},
    {"units": [{"kind": "retarget-supertype", "old": "a.B", "new": "a.C", "typo": 1}]},
    {"units": [{"kind": "retarget-supertype", "old": "a.B", "new": "a.B"}]},
    {"units": [{"kind": "migrate-constants", "mappings": []}]},
    {"units": [{"kind": "composite", "units": []}]},
    {"name": "x"},
  ],
)
def test_invalid_manifests(document):
  with pytest.raises(ConfigurationError):
    parse_manifest(document)


def test_duplicate_key_across_inline_and_file(tmp_path):
  row = {"old_owner": "com.old.Constants", "old_member": "MAX", "new_owner": "com.new.Limits", "new_member": "MAX_VALUE"}
  _write(tmp_path / "constants.json", json.dumps({"mappings": [row]}))
  manifest = {"units": [{"kind": "migrate-constants", "mapping_file": "constants.json", "mappings": [row]}]}
  with pytest.raises(ConfigurationError, match="Duplicate"):
    parse_manifest(manifest, base_dir=tmp_path)


@pytest.mark.parametrize(
  "filename, content",
  [
    ("m.yaml", "units: []"),
    ("m.toml", "units = [ oops"),
    ("m.json", "{not json"),
  ],
)
def test_unreadable_documents(tmp_path, filename, content):
  with pytest.raises(ConfigurationError):
    load_manifest(_write(tmp_path / filename, content))


def test_missing_files(tmp_path):
  with pytest.raises(ConfigurationError, match="not found"):
    load_manifest(tmp_path / "absent.toml")
  with pytest.raises(ConfigurationError):
    load_mapping_table(_write(tmp_path / "bad.json", '{"mappings": 3}'))
