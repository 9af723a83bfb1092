"""
Tests for Transformation Units.

Covers the supertype retarget, constant migrations and type change end to end:
rewritten source, import reconciliation, idempotence and no-op identity.
"""

from textwrap import dedent

import pytest

from codemorph.core.mapping import MappingTable
from codemorph.core.tracer import TraceEventType, get_tracer
from codemorph.core.tree import SourceModule
from codemorph.core.units import (
  ChangeType,
  MigrateConstantReference,
  MigrateConstantReferences,
  RetargetSupertype,
  iter_units,
)
from codemorph.errors import ConfigurationError, ResolutionError


def _src(code: str, name=None) -> SourceModule:
  return SourceModule.from_code(dedent(code).lstrip("\n"), name=name)


def _code(code: str) -> str:
  return dedent(code).lstrip("\n")


RETARGET = RetargetSupertype("com.old.Vehicle", "com.new.Car")


# --- RetargetSupertype ---


def test_retarget_replaces_base_and_imports():
  src = _src(
    """
    from com.old import Vehicle

    class Foo(Vehicle):
        pass
    """
  )
  out = RETARGET.apply(src)
  assert out.code == _code(
    """
    from com.new import Car

    class Foo(Car):
        pass
    """
  )


def test_retarget_keeps_generic_arguments_verbatim():
  src = _src(
    """
    from typing import TypeVar
    from com.old import Vehicle

    T = TypeVar("T")

    class Foo(Vehicle[ T ]):
        pass
    """
  )
  out = RETARGET.apply(src)
  assert out.code == _code(
    """
    from com.new import Car
    from typing import TypeVar

    T = TypeVar("T")

    class Foo(Car[ T ]):
        pass
    """
  )


def test_retarget_keeps_old_import_while_still_used():
  src = _src(
    """
    from com.old import Vehicle

    class Foo(Vehicle):
        pass

    def make():
        return Vehicle()
    """
  )
  out = RETARGET.apply(src)
  assert "class Foo(Car):" in out.code
  assert "from com.old import Vehicle\n" in out.code
  assert "from com.new import Car\n" in out.code
  assert "return Vehicle()" in out.code


def test_retarget_multiple_bases_and_classes():
  src = _src(
    """
    from com.old import Vehicle

    class Foo(Mixin, Vehicle):
        pass

    class Bar(Vehicle, metaclass=Meta):
        class Inner(Vehicle):
            pass
    """
  )
  out = RETARGET.apply(src)
  assert "class Foo(Mixin, Car):" in out.code
  assert "class Bar(Car, metaclass=Meta):" in out.code
  assert "class Inner(Car):" in out.code
  assert "Vehicle" not in out.code


def test_retarget_aliased_import():
  src = _src(
    """
    from com.old import Vehicle as V

    class Foo(V):
        pass
    """
  )
  out = RETARGET.apply(src)
  assert out.code == _code(
    """
    from com.new import Car

    class Foo(Car):
        pass
    """
  )


def test_retarget_same_module_qualified_reference():
  unit = RetargetSupertype("com.old.Vehicle", "com.old.Car")
  src = _src(
    """
    import com.old as legacy

    class Foo(legacy.Vehicle):
        pass
    """
  )
  out = unit.apply(src)
  assert "class Foo(legacy.Car):" in out.code
  assert "import com.old as legacy\n" in out.code


def test_retarget_qualified_reference_to_other_module_is_skipped():
  src = _src(
    """
    import com.old as legacy

    class Foo(legacy.Vehicle):
        pass
    """
  )
  out = RETARGET.apply(src)
  assert out is src
  assert get_tracer().events_of(TraceEventType.SKIPPED)


def test_retarget_nested_generic_is_skipped():
  src = _src(
    """
    from com.old import Vehicle

    class Foo(Vehicle[A][B]):
        pass
    """
  )
  assert RETARGET.apply(src) is src


def test_retarget_ignores_same_simple_name_from_other_package():
  src = _src(
    """
    from com.other import Vehicle

    class Foo(Vehicle):
        pass
    """
  )
  assert RETARGET.apply(src) is src


def test_retarget_to_module_local_type_adds_no_import():
  unit = RetargetSupertype("com.old.Vehicle", "garage.models.Car")
  src = _src(
    """
    from com.old import Vehicle

    class Car:
        pass

    class Foo(Vehicle):
        pass
    """,
    name="garage.models",
  )
  out = unit.apply(src)
  assert out.code == _code(
    """
    class Car:
        pass

    class Foo(Car):
        pass
    """
  )


def test_retarget_clash_raises_and_leaves_input_untouched():
  code = _code(
    """
    from com.old import Vehicle
    from com.other import Car

    class Foo(Vehicle):
        pass
    """
  )
  src = SourceModule.from_code(code)
  with pytest.raises(ResolutionError):
    RETARGET.apply(src)
  assert src.code == code
  assert get_tracer().events_of(TraceEventType.FAILURE)


def test_retarget_bare_new_name_without_binding_raises():
  unit = RetargetSupertype("Vehicle", "Car")
  with pytest.raises(ResolutionError):
    unit.apply(_src("class Foo(Vehicle):\n    pass\n"))


def test_retarget_bare_names_with_local_definition():
  unit = RetargetSupertype("Vehicle", "Car")
  src = _src(
    """
    class Vehicle:
        pass

    class Car:
        pass

    class Foo(Vehicle):
        pass
    """
  )
  out = unit.apply(src)
  assert "class Foo(Car):" in out.code
  assert "import" not in out.code


@pytest.mark.parametrize(
  "old, new",
  [("", "com.new.Car"), ("com.old.Vehicle", ""), ("com.old.Vehicle", "com.old.Vehicle"), ("com..Vehicle", "Car")],
)
def test_retarget_configuration_errors(old, new):
  with pytest.raises(ConfigurationError):
    RetargetSupertype(old, new)


# --- Constant migrations ---


def test_migrate_constants_scenario():
  unit = MigrateConstantReferences([("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE")])
  src = _src(
    """
    from com.old import Constants

    a = Constants.MAX
    b = Constants.MAX + 1
    c = Constants.MIN
    """
  )
  out = unit.apply(src)
  assert out.code == _code(
    """
    from com.new import Limits
    from com.old import Constants

    a = Limits.MAX_VALUE
    b = Limits.MAX_VALUE + 1
    c = Constants.MIN
    """
  )


def test_migrate_constants_removes_owner_import_when_unused():
  unit = MigrateConstantReference("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE")
  src = _src(
    """
    from com.old import Constants

    a = Constants.MAX
    """
  )
  assert unit.apply(src).code == _code(
    """
    from com.new import Limits

    a = Limits.MAX_VALUE
    """
  )


def test_migrate_member_rename_only():
  unit = MigrateConstantReference("com.old.Constants", "MAX", "com.old.Constants", "UPPER")
  src = _src(
    """
    from com.old import Constants

    a = Constants.MAX
    """
  )
  assert unit.apply(src).code == _code(
    """
    from com.old import Constants

    a = Constants.UPPER
    """
  )


def test_migrate_constants_inside_nested_expressions():
  unit = MigrateConstantReference("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE")
  src = _src(
    """
    from com.old import Constants

    def check(x, limit=Constants.MAX):
        return [y for y in x if y < Constants.MAX]
    """
  )
  out = unit.apply(src).code
  assert "limit=Limits.MAX_VALUE" in out
  assert "y < Limits.MAX_VALUE" in out
  assert "Constants" not in out


def test_migrate_duplicate_key_is_configuration_error():
  with pytest.raises(ConfigurationError):
    MigrateConstantReferences(
      [
        ("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE"),
        ("com.old.Constants", "MAX", "com.new.Limits", "UPPER"),
      ]
    )


def test_migrate_empty_or_chained_table_rejected():
  with pytest.raises(ConfigurationError):
    MigrateConstantReferences([])
  with pytest.raises(ConfigurationError):
    MigrateConstantReferences(
      [
        ("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE"),
        ("com.new.Limits", "MAX_VALUE", "com.newer.Bounds", "UPPER"),
      ]
    )


def test_migrate_copies_table():
  table = MappingTable([("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE")])
  unit = MigrateConstantReferences(table)
  table.register("com.old.Constants", "MIN", "com.new.Limits", "MIN_VALUE")
  assert len(unit.table) == 1


# --- ChangeType ---


def test_change_type_everywhere():
  unit = ChangeType("com.old.Vehicle", "com.new.Car")
  src = _src(
    """
    from com.old import Vehicle

    def build(v: Vehicle) -> Vehicle:
        if isinstance(v, Vehicle):
            return v
        return Vehicle()
    """
  )
  out = unit.apply(src)
  assert out.code == _code(
    """
    from com.new import Car

    def build(v: Car) -> Car:
        if isinstance(v, Car):
            return v
        return Car()
    """
  )


def test_change_type_leaves_members_and_keywords_alone():
  unit = ChangeType("com.old.Vehicle", "com.new.Car")
  src = _src(
    """
    from com.old import Vehicle

    x = registry.Vehicle
    y = make(Vehicle=1)
    """
  )
  assert unit.apply(src) is src


# --- Package moves (same simple name) ---


def test_change_type_package_move_swaps_import():
  unit = ChangeType("com.old.Vehicle", "com.new.Vehicle")
  src = _src(
    """
    from com.old import Vehicle

    def build(v: Vehicle) -> Vehicle:
        return Vehicle()
    """
  )
  out = unit.apply(src)
  assert out.code == _code(
    """
    from com.new import Vehicle

    def build(v: Vehicle) -> Vehicle:
        return Vehicle()
    """
  )
  assert out.symbols.lookup("Vehicle").qualified == "com.new.Vehicle"
  assert unit.apply(out) is out


def test_retarget_package_move_keeps_neighbouring_imports():
  unit = RetargetSupertype("com.old.Vehicle", "com.new.Vehicle")
  src = _src(
    """
    import os

    from com.old import Vehicle
    from com.util import helper

    class Foo(Vehicle):
        pass
    """
  )
  assert unit.apply(src).code == _code(
    """
    import os

    from com.new import Vehicle
    from com.util import helper

    class Foo(Vehicle):
        pass
    """
  )


def test_migrate_constants_package_move():
  unit = MigrateConstantReference("com.old.Constants", "MAX", "com.new.Constants", "MAX")
  src = _src(
    """
    from com.old import Constants

    x = Constants.MAX
    """
  )
  assert unit.apply(src).code == _code(
    """
    from com.new import Constants

    x = Constants.MAX
    """
  )


def test_package_move_with_remaining_old_use_raises():
  unit = MigrateConstantReference("com.old.Constants", "MAX", "com.new.Constants", "MAX")
  code = _code(
    """
    from com.old import Constants

    x = Constants.MAX
    y = Constants.MIN
    """
  )
  src = SourceModule.from_code(code)
  with pytest.raises(ResolutionError, match="still refers"):
    unit.apply(src)
  assert src.code == code


def test_reexported_import_survives_retarget():
  src = _src(
    """
    from com.old import Vehicle

    __all__ = ["Vehicle", "Foo"]

    class Foo(Vehicle):
        pass
    """
  )
  assert RETARGET.apply(src).code == _code(
    """
    from com.new import Car
    from com.old import Vehicle

    __all__ = ["Vehicle", "Foo"]

    class Foo(Car):
        pass
    """
  )


# --- Properties ---


IDEMPOTENCE_CASES = [
  (
    RETARGET,
    "from com.old import Vehicle\n\nclass Foo(Vehicle[T]):\n    pass\n",
  ),
  (
    MigrateConstantReference("com.old.Constants", "MAX", "com.new.Limits", "MAX_VALUE"),
    "from com.old import Constants\n\na = Constants.MAX\nb = Constants.MIN\n",
  ),
  (
    ChangeType("com.old.Vehicle", "com.new.Car"),
    "from com.old import Vehicle\n\nv: Vehicle = Vehicle()\n",
  ),
]


@pytest.mark.parametrize("unit, code", IDEMPOTENCE_CASES)
def test_idempotence(unit, code):
  once = unit.apply(SourceModule.from_code(code))
  assert once.code != code
  twice = unit.apply(once)
  assert twice is once
  assert twice.code == once.code


@pytest.mark.parametrize("unit, _code_unused", IDEMPOTENCE_CASES)
def test_no_op_returns_identical_module(unit, _code_unused):
  code = "import os\n\n\nclass Plain(object):\n    LIMIT = os.sep  # keep\n"
  src = SourceModule.from_code(code)
  out = unit.apply(src)
  assert out is src
  assert out.same_tree(src)
  assert out.code == code


def test_import_soundness():
  src = _src(
    """
    from com.old import Vehicle

    class Foo(Vehicle):
        pass
    """
  )
  out = RETARGET.apply(src)
  binding = out.symbols.lookup("Car")
  assert binding is not None
  assert binding.qualified == "com.new.Car"
  assert out.symbols.lookup("Vehicle") is None


def test_unit_trace_records_phase_and_imports():
  RETARGET.apply(_src("from com.old import Vehicle\n\nclass Foo(Vehicle):\n    pass\n"))
  tracer = get_tracer()
  phases = tracer.events_of(TraceEventType.PHASE_START)
  assert phases[0].description == RETARGET.name
  actions = sorted(e.metadata["action"] for e in tracer.events_of(TraceEventType.IMPORT_ACTION))
  assert actions == ["add", "remove"]


def test_unit_names_and_iteration():
  assert RETARGET.name == "retarget-Vehicle-to-Car"
  assert list(iter_units(RETARGET)) == [(0, RETARGET)]
  assert repr(RETARGET) == "RetargetSupertype(name='retarget-Vehicle-to-Car')"
  assert RETARGET(_src("x = 1\n")).code == "x = 1\n"
