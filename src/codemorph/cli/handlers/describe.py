"""CLI handler for the 'describe' command."""

from pathlib import Path

from rich.markup import escape
from rich.table import Table

from codemorph.core.pipeline import CompositeUnit
from codemorph.core.rewriter.rules import describe_rules
from codemorph.core.units import RuleUnit, iter_units
from codemorph.errors import RewriteError
from codemorph.manifest import load_manifest
from codemorph.utils.console import console, log_error


def handle_describe(manifest: Path) -> int:
  """Prints the unit tree of a manifest as a table."""
  try:
    root = load_manifest(manifest)
  except RewriteError as e:
    log_error(f"Cannot load manifest [path]{manifest}[/path]: {escape(str(e))}")
    return 1

  table = Table(title=f"Units in {manifest.name}")
  table.add_column("Unit", style="cyan")
  table.add_column("Kind")
  table.add_column("Rewrites")

  for depth, unit in iter_units(root):
    kind = "composite" if isinstance(unit, CompositeUnit) else type(unit).__name__
    rewrites = "\n".join(describe_rules(list(unit.rules))) if isinstance(unit, RuleUnit) else unit.description
    table.add_row("  " * depth + escape(unit.name), kind, escape(rewrites))

  console.print(table)
  return 0
