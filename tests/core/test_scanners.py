"""
Tests for the usage and definition scanners.
"""

import libcst as cst
import pytest

from codemorph.core.scanners import DefinitionScanner, SimpleNameScanner, get_full_name


def _used(code: str, name: str) -> bool:
  scanner = SimpleNameScanner(name)
  cst.parse_module(code).visit(scanner)
  return scanner.found


@pytest.mark.parametrize(
  "code, expected",
  [
    ("from com.old import Vehicle\n", False),
    ("from com.old import Vehicle\nx = Vehicle()\n", True),
    ("from com.old import Vehicle\nx = Vehicle.MAX\n", True),
    ("from com.old import Vehicle\nx = garage.Vehicle\n", False),
    ("from com.old import Vehicle\nf(Vehicle=1)\n", False),
    ("from com.old import Vehicle\nf(key=Vehicle)\n", True),
    ('from com.old import Vehicle\n__all__ = ["Vehicle"]\n', True),
    ('from com.old import Vehicle\n__all__ += ("Vehicle",)\n', True),
    ('from com.old import Vehicle\nnames = ["Vehicle"]\n', False),
    ("from com.old import Vehicle\ndef g(v: Vehicle): ...\n", True),
  ],
)
def test_simple_name_usage(code, expected):
  assert _used(code, "Vehicle") is expected


def test_get_full_name():
  assert get_full_name(cst.parse_expression("com.old.Vehicle")) == "com.old.Vehicle"
  assert get_full_name(cst.Name("x")) == "x"
  assert get_full_name(cst.parse_expression("f().x")) == ""


def test_definition_scanner_skips_nested_scopes():
  scanner = DefinitionScanner()
  cst.parse_module("A = 1\nf = lambda: 0\nclass B:\n    C = 2\n").visit(scanner)
  assert scanner.defined == {"A", "f", "B"}


def test_simple_name_count_all():
  code = 'from com.old import Vehicle\n__all__ = ["Vehicle"]\nv: Vehicle = Vehicle()\n'
  module = cst.parse_module(code)

  first = SimpleNameScanner("Vehicle")
  module.visit(first)
  assert first.found

  every = SimpleNameScanner("Vehicle", count_all=True)
  module.visit(every)
  assert every.count == 3
