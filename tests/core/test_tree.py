"""
Tests for the Tree Model.

Verifies:
1. Round-trip printing of untouched trees.
2. Child replacement by identity.
3. SourceModule derivation (symbols, locality, with_tree identity).
"""

import libcst as cst
import pytest

from codemorph.core.tree import (
  SourceModule,
  create_dotted_name,
  simple_name,
  split_qualified,
  structurally_equal,
  with_child,
)


def test_untouched_tree_prints_verbatim():
  code = "# header\nfrom com.old import Vehicle  # trailing\n\n\nclass Foo( Vehicle ):\n    pass\n"
  src = SourceModule.from_code(code)
  assert src.code == code


def test_structurally_equal_detects_formatting():
  a = cst.parse_module("x = 1\n")
  b = cst.parse_module("x = 1\n")
  c = cst.parse_module("x  = 1\n")
  assert structurally_equal(a, a)
  assert structurally_equal(a, b)
  assert not structurally_equal(a, c)


def test_with_child_replaces_by_identity_and_shares_siblings():
  call = cst.parse_expression("f(a, b)")
  first, second = call.args
  new_first = first.with_changes(value=cst.Name("z"))

  updated = with_child(call, first, new_first)

  assert updated.args[0] is new_first
  assert updated.args[1] is second
  assert cst.parse_module("").code_for_node(updated) == "f(z, b)"


def test_with_child_same_instance_returns_parent():
  call = cst.parse_expression("f(a)")
  assert with_child(call, call.args[0], call.args[0]) is call


def test_with_child_rejects_foreign_node():
  call = cst.parse_expression("f(a)")
  with pytest.raises(ValueError):
    with_child(call, cst.Name("nope"), cst.Name("x"))


def test_with_child_scalar_field():
  attr = cst.parse_expression("Constants.MAX")
  updated = with_child(attr, attr.value, cst.Name("Limits"))
  assert updated.value.value == "Limits"
  assert updated.attr is attr.attr


def test_name_helpers():
  assert split_qualified("com.old.Vehicle") == ("com.old", "Vehicle")
  assert split_qualified("Vehicle") == ("", "Vehicle")
  assert simple_name("com.old.Vehicle") == "Vehicle"

  node = create_dotted_name("com.new")
  assert isinstance(node, cst.Attribute)
  assert node.value.value == "com"
  assert node.attr.value == "new"


def test_source_module_symbols_and_locality():
  src = SourceModule.from_code(
    "from com.old import Vehicle\n\nclass Car: ...\n",
    name="garage.models",
  )
  assert src.symbols.lookup("Vehicle").qualified == "com.old.Vehicle"
  assert src.is_local("garage.models.Anything")
  assert src.is_local("Car")
  assert not src.is_local("Truck")
  assert not src.is_local("com.new.Car")
  assert src.package == "garage"


def test_with_tree_identity():
  src = SourceModule.from_code("x = 1\n", name="m", bindings={"T": "pkg.T"})
  assert src.with_tree(src.tree) is src

  other = src.with_tree(cst.parse_module("y = 2\n"))
  assert other is not src
  assert other.name == "m"
  assert other.symbols.lookup("T").qualified == "pkg.T"
  assert not other.same_tree(src)


def test_invalid_source_raises_parser_error():
  with pytest.raises(cst.ParserSyntaxError):
    SourceModule.from_code("class (:\n")
