"""
Run Command Handler.

This module implements the logic for the `codemorph run` command.
It orchestrates:
1. Configuration loading (pyproject.toml plus CLI overrides).
2. Manifest loading into a unit tree.
3. Rewriting via the `RewriteEngine`, for one file or a directory batch.
4. Output writing, check reporting and trace dumping.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from rich.markup import escape
from rich.table import Table

from codemorph.config import RuntimeConfig
from codemorph.core.engine import ConversionResult, RewriteEngine, module_name_for
from codemorph.errors import RewriteError
from codemorph.manifest import load_manifest
from codemorph.utils.console import console, log_error, log_info, log_success, log_warning


def handle_run(
  input_path: Path,
  manifest: Optional[Path],
  output_path: Optional[Path],
  check: bool = False,
  json_trace_path: Optional[Path] = None,
  workers: Optional[int] = None,
  fail_fast: Optional[bool] = None,
) -> int:
  """
  Handles the 'run' command execution.

  Args:
      input_path: Source file or directory to rewrite.
      manifest: Manifest path (overrides `[tool.codemorph] manifest`).
      output_path: Destination file or directory. A single file is printed
          to stdout when omitted.
      check: Report files that would change instead of writing anything.
      json_trace_path: Optional path to dump execution trace JSON.
      workers: Override for the number of parallel workers.
      fail_fast: Override for stopping at the first failing module.

  Returns:
      int: Exit code (0 for success, 1 for failures or, with `check`, pending changes).
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  try:
    config = RuntimeConfig.load(
      manifest=manifest,
      workers=workers,
      fail_fast=fail_fast,
      search_path=input_path if input_path.is_dir() else input_path.parent,
    )
  except ValueError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return 1

  if config.manifest is None:
    log_error("No manifest given. Pass --manifest or set 'manifest' in \\[tool.codemorph].")
    return 1

  try:
    unit = load_manifest(config.manifest)
  except RewriteError as e:
    log_error(f"Cannot load manifest [path]{config.manifest}[/path]: {escape(str(e))}")
    return 1

  engine = RewriteEngine(unit, config=config)

  if input_path.is_file():
    files = [input_path]
    root = config.module_root or input_path.parent
  else:
    if output_path is None and not check:
      log_error("Directory rewrites require --out destination directory (or --check).")
      return 1
    files = sorted(input_path.rglob("*.py"))
    if not files:
      log_warning(f"No .py files found in {input_path}")
      return 0
    root = config.module_root or input_path
    log_info(f"Processing {len(files)} files from {input_path}...")

  sources: Dict[str, str] = {}
  names: Dict[str, Optional[str]] = {}
  for path in files:
    key = path.name if path is input_path else str(path.relative_to(input_path))
    with open(path, "rt", encoding="utf-8") as f:
      sources[key] = f.read()
    names[key] = module_name_for(path, root)

  results = engine.run_batch(sources, names)

  if json_trace_path:
    _write_trace(json_trace_path, results)

  if check:
    return _report_check(results)

  for key, result in results.items():
    if not result.success:
      continue
    if input_path.is_file():
      if output_path:
        _write(output_path, result.code)
        log_success(f"Rewrote: [path]{input_path}[/path] -> [path]{output_path}[/path]")
      else:
        print(result.code, end="")
    else:
      _write(output_path / key, result.code)

  _print_batch_summary(results)
  return 0 if all(r.success for r in results.values()) else 1


def _write(path: Path, code: str) -> None:
  path.parent.mkdir(parents=True, exist_ok=True)
  with open(path, "wt", encoding="utf-8") as f:
    f.write(code)


def _write_trace(path: Path, results: Dict[str, ConversionResult]) -> None:
  """Dumps trace events, keyed by file, to a JSON file."""
  payload = {key: res.trace_events for key, res in results.items()}
  try:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wt", encoding="utf-8") as f:
      json.dump(payload, f, indent=2, default=str)
    log_info(f"Trace saved to [path]{path}[/path]")
  except OSError as e:
    log_error(f"Failed to write trace: {e}")


def _report_check(results: Dict[str, ConversionResult]) -> int:
  pending: List[str] = [key for key, res in results.items() if res.success and res.changed]
  failed = [key for key, res in results.items() if not res.success]
  for key in pending:
    log_warning(f"Would rewrite [path]{key}[/path]")
  for key in failed:
    log_error(f"{key}: {escape('; '.join(results[key].errors))}")
  if not pending and not failed:
    log_success(f"{len(results)} file(s) already up to date.")
    return 0
  return 1


def _print_batch_summary(results: Dict[str, ConversionResult]) -> None:
  """
  Renders a summary table of rewrite results to the console.

  Args:
      results: Dictionary mapping filenames to results.
  """
  total = len(results)
  changed = sum(1 for r in results.values() if r.success and r.changed)
  failures = sum(1 for r in results.values() if not r.success)

  if failures == 0:
    log_success(f"Batch Complete: {changed}/{total} files rewritten.")
    return

  table = Table(title="Rewrite Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success:
      continue
    table.add_row(escape(filename), "Failed", escape("; ".join(res.errors)) or "Unknown Error")

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {changed} Rewritten, {failures} Failed.")
