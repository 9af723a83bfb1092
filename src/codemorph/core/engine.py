"""
Orchestration Engine.

This module provides the `RewriteEngine`, the driver that runs one transformation
unit over source text. It owns the parts the units themselves stay out of:

1.  **Parsing**: Source text is parsed into a `SourceModule` (LibCST tree plus
    its symbol table).
2.  **Execution**: The unit is applied; a fresh `TraceLogger` records the run.
3.  **Reporting**: The outcome is packed into a `ConversionResult`. Failures
    that are local to one module (`ResolutionError`, syntax errors) become a
    failed result instead of an exception, so batches keep going.

Batches fan out over a thread pool. Units hold no per-module state and the
tracer is thread-local, so one unit instance serves every worker.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import libcst as cst
from pydantic import BaseModel, Field

from codemorph.config import RuntimeConfig
from codemorph.core.tracer import get_tracer, reset_tracer
from codemorph.core.tree import SourceModule
from codemorph.core.units import TransformationUnit
from codemorph.errors import RewriteError


class ConversionResult(BaseModel):
  """
  Structured result of rewriting a single module.
  """

  code: str = Field(default="", description="The transformed source code (the input on failure).")
  errors: List[str] = Field(default_factory=list, description="Error messages recorded for this module.")
  success: bool = Field(default=True, description="True if the unit completed for this module.")
  changed: bool = Field(default=False, description="True if the output differs from the input.")
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="A log of internal trace events.")

  @property
  def has_errors(self) -> bool:
    """
    Returns True if any errors were recorded.

    Returns:
        bool: True if errors list is non-empty.
    """
    return len(self.errors) > 0


class RewriteEngine:
  """
  Runs a transformation unit over source text, one module or a batch at a time.
  """

  def __init__(self, unit: TransformationUnit, config: Optional[RuntimeConfig] = None):
    """
    Initializes the Engine.

    Args:
        unit: The unit (usually a composite built from a manifest) to run.
        config: Runtime settings. Defaults to a single worker without fail-fast.
    """
    self.unit = unit
    self.config = config or RuntimeConfig()

  def parse(
    self, code: str, module_name: Optional[str] = None, bindings: Optional[Mapping[str, str]] = None
  ) -> SourceModule:
    """
    Parses source text into a SourceModule.

    Raises:
        libcst.ParserSyntaxError: If the input code is invalid Python.
    """
    return SourceModule.from_code(code, name=module_name, bindings=bindings)

  def run(
    self, code: str, module_name: Optional[str] = None, bindings: Optional[Mapping[str, str]] = None
  ) -> ConversionResult:
    """
    Rewrites one module.

    Args:
        code: Python source text.
        module_name: Dotted name of the module, used to recognize local types.
        bindings: Externally resolved names {local name: fully qualified name}.

    Returns:
        ConversionResult: The rewritten code, or the untouched input with the
        error recorded if the unit failed for this module.
    """
    tracer = reset_tracer()
    try:
      source = self.parse(code, module_name, bindings)
    except cst.ParserSyntaxError as e:
      tracer.log_failure(f"Syntax error: {e.message}")
      return ConversionResult(
        code=code,
        errors=[f"Syntax error at line {e.raw_line}: {e.message}"],
        success=False,
        trace_events=tracer.export(),
      )

    try:
      result = self.unit.apply(source)
    except RewriteError as e:
      failed_unit = getattr(e, "unit", None) or self.unit.name
      return ConversionResult(
        code=code,
        errors=[f"{failed_unit}: {e}"],
        success=False,
        trace_events=get_tracer().export(),
      )

    output = result.code
    return ConversionResult(code=output, changed=output != code, trace_events=get_tracer().export())

  def run_batch(
    self, sources: Mapping[str, str], module_names: Optional[Mapping[str, Optional[str]]] = None
  ) -> Dict[str, ConversionResult]:
    """
    Rewrites several modules, `config.workers` at a time.

    Args:
        sources: Source text keyed by a caller-chosen label (usually a path).
        module_names: Dotted module name per label.

    Returns:
        Dict[str, ConversionResult]: Results in the order of `sources`. With
        `fail_fast`, modules after the first failure are left out.
    """
    names = module_names or {}
    keys = list(sources)

    if self.config.workers == 1:
      results: Dict[str, ConversionResult] = {}
      for key in keys:
        results[key] = self.run(sources[key], names.get(key))
        if self.config.fail_fast and not results[key].success:
          break
      return results

    results = {}
    with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
      futures = {key: pool.submit(self.run, sources[key], names.get(key)) for key in keys}
      for key in keys:
        results[key] = futures[key].result()
        if self.config.fail_fast and not results[key].success:
          for pending in futures.values():
            pending.cancel()
          break
    return results


def module_name_for(path: Path, root: Path) -> Optional[str]:
  """
  Derives the dotted module name of a file from its position under `root`.

  `root/garage/models.py` becomes 'garage.models' and `root/garage/__init__.py`
  becomes 'garage'.

  Returns:
      Optional[str]: The dotted name, or None if `path` is not under `root`.
  """
  try:
    rel = path.resolve().relative_to(root.resolve())
  except ValueError:
    return None
  parts = list(rel.with_suffix("").parts)
  if parts and parts[-1] == "__init__":
    parts.pop()
  return ".".join(parts) or None
