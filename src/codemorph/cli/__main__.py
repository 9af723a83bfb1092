"""
Main Entry Point for the codemorph CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `codemorph.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from codemorph import __version__
from codemorph.cli import commands
from codemorph.utils.console import configure_logging


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="codemorph: Structural Source Rewriting")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: RUN ---
  cmd_run = subparsers.add_parser("run", help="Apply a manifest to a Python file or directory")
  cmd_run.add_argument("path", type=Path, help="Input source file or directory")
  cmd_run.add_argument("--manifest", type=Path, default=None, help="Manifest file (default: from toml)")
  cmd_run.add_argument("--out", type=Path, help="Output destination (file or dir)")
  cmd_run.add_argument(
    "--check",
    action="store_true",
    help="Report files that would change without writing; exit 1 if any would",
  )
  cmd_run.add_argument(
    "--json-trace", type=Path, default=None, help="Dump the execution trace events to a JSON file."
  )
  cmd_run.add_argument("--workers", type=int, default=None, help="Parallel workers (default: from toml, or 1)")
  cmd_run.add_argument(
    "--fail-fast",
    action="store_true",
    default=None,
    help="Stop at the first module that fails (Overrides config)",
  )

  # --- Command: DESCRIBE ---
  cmd_desc = subparsers.add_parser("describe", help="Show the units a manifest defines")
  cmd_desc.add_argument("--manifest", type=Path, required=True, help="Manifest file")

  args = parser.parse_args(argv)
  configure_logging()

  if args.command == "run":
    return commands.handle_run(
      args.path, args.manifest, args.out, args.check, args.json_trace, args.workers, args.fail_fast
    )

  elif args.command == "describe":
    return commands.handle_describe(args.manifest)

  return 0


if __name__ == "__main__":
  sys.exit(main())
