"""
Runtime Configuration Store.

Settings come from the `[tool.codemorph]` table of the nearest
`pyproject.toml`, overridden by explicit arguments (usually CLI flags).
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the rewrite engine.
  """

  manifest: Optional[Path] = Field(None, description="Manifest listing the units to run.")
  module_root: Optional[Path] = Field(
    None, description="Directory dotted module names are derived from (defaults to the input directory)."
  )
  workers: int = Field(1, description="Number of modules processed in parallel.")
  fail_fast: bool = Field(False, description="Stop a batch at the first module that fails.")

  @field_validator("workers")
  @classmethod
  def validate_workers(cls, v: int) -> int:
    """
    Ensures at least one worker.

    Raises:
        ValueError: If `v` is lower than 1.
    """
    if v < 1:
      raise ValueError(f"workers must be >= 1, got {v}")
    return v

  @classmethod
  def load(
    cls,
    manifest: Optional[Path] = None,
    module_root: Optional[Path] = None,
    workers: Optional[int] = None,
    fail_fast: Optional[bool] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with explicit arguments.

    Relative paths in the TOML file are resolved against the directory holding it.

    Args:
        manifest: Override for the manifest path.
        module_root: Override for the module root.
        workers: Override for the worker count.
        fail_fast: Override for fail-fast batches.
        search_path: Directory to start searching for pyproject.toml.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    toml_config, toml_dir = _load_toml_settings(search_path or Path.cwd())

    def _path(key: str, override: Optional[Path]) -> Optional[Path]:
      if override is not None:
        return override
      raw = toml_config.get(key)
      if raw is None:
        return None
      return (toml_dir / raw).resolve() if toml_dir else Path(raw)

    return cls(
      manifest=_path("manifest", manifest),
      module_root=_path("module_root", module_root),
      workers=workers if workers is not None else toml_config.get("workers", 1),
      fail_fast=fail_fast if fail_fast is not None else toml_config.get("fail_fast", False),
    )


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for 'pyproject.toml' and extracts config.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()
  if current.is_file():
    current = current.parent

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      with open(toml_path, "rb") as f:
        data = tomllib.load(f)
      return data.get("tool", {}).get("codemorph", {}), parent

  return {}, None
