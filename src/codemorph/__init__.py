"""
codemorph Package.

A structural source-rewrite engine: declarative transformation units that
retarget base classes, migrate constant references and swap types in Python
modules, keeping formatting and reconciling imports as they go.

Usage
-----

Simple String Rewrite
^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import codemorph as cm

    code = "from com.old import Vehicle\\n\\nclass Foo(Vehicle): ...\\n"
    print(cm.rewrite(code, cm.RetargetSupertype("com.old.Vehicle", "com.new.Car")))
    # from com.new import Car
    #
    # class Foo(Car): ...

Manifest Driven (Engine)
^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from pathlib import Path
    from codemorph import RewriteEngine, load_manifest

    engine = RewriteEngine(load_manifest(Path("migration.toml")))
    res = engine.run(code, module_name="garage.models")

    if res.success:
        print(res.code)
    else:
        print(f"Errors: {res.errors}")
"""

from typing import Optional

from codemorph.config import RuntimeConfig
from codemorph.core.engine import ConversionResult, RewriteEngine
from codemorph.core.mapping import MappingEntry, MappingTable
from codemorph.core.pipeline import CompositeUnit
from codemorph.core.tree import SourceModule
from codemorph.core.units import (
  ChangeType,
  MigrateConstantReference,
  MigrateConstantReferences,
  RetargetSupertype,
  TransformationUnit,
)
from codemorph.errors import ConfigurationError, ResolutionError, RewriteError, StructuralMismatch
from codemorph.manifest import load_manifest

__version__ = "0.1.0"


def rewrite(code: str, *units: TransformationUnit, module_name: Optional[str] = None) -> str:
  """
  Applies one or more units, in order, to a string of Python code.

  A convenience wrapper around `SourceModule` and `CompositeUnit`. For files
  or batches use `RewriteEngine` or the `codemorph` CLI.

  Args:
      code (str): The source code to rewrite.
      *units: The units to apply, in order.
      module_name (str, optional): Dotted name of the module the code lives in.

  Returns:
      str: The rewritten source code.

  Raises:
      ConfigurationError: If no unit is given.
      ResolutionError: If a required import cannot be computed.
      libcst.ParserSyntaxError: If the input code is invalid Python.
  """
  if not units:
    raise ConfigurationError("rewrite() needs at least one unit")
  unit = units[0] if len(units) == 1 else CompositeUnit("rewrite", units)
  return unit.apply(SourceModule.from_code(code, name=module_name)).code


__all__ = [
  "ChangeType",
  "CompositeUnit",
  "ConfigurationError",
  "ConversionResult",
  "MappingEntry",
  "MappingTable",
  "MigrateConstantReference",
  "MigrateConstantReferences",
  "ResolutionError",
  "RetargetSupertype",
  "RewriteEngine",
  "RewriteError",
  "RuntimeConfig",
  "SourceModule",
  "StructuralMismatch",
  "TransformationUnit",
  "__version__",
  "load_manifest",
  "rewrite",
]
