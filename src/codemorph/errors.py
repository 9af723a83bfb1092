"""
Error Taxonomy.

All failures raised by codemorph derive from :class:`RewriteError`:

1.  **ConfigurationError**: A unit was built from malformed or conflicting
    configuration. Raised at construction time, before any tree is touched.
2.  **ResolutionError**: A required import could not be computed for a module.
    The unit aborts for that module only, leaving its tree unchanged.
3.  **StructuralMismatch**: A rule matched a shape it cannot rewrite safely.
    Raised inside rules and absorbed by the visitor (logged, node skipped).
"""

from typing import Any, Optional


class RewriteError(Exception):
  """Base class for codemorph failures."""


class ConfigurationError(RewriteError):
  """
  Raised when a transformation unit cannot be built from its configuration.
  """


class ResolutionError(RewriteError):
  """
  Raised when an import required by a rewrite cannot be determined.

  Attributes:
      name: The type name that could not be resolved.
      unit: Name of the unit that failed (attached by pipelines).
      committed: Output of the units that completed before the failure
          (attached by pipelines). ``None`` when the failing unit ran alone.
  """

  def __init__(self, message: str, name: Optional[str] = None) -> None:
    super().__init__(message)
    self.name = name
    self.unit: Optional[str] = None
    self.committed: Optional[Any] = None


class StructuralMismatch(RewriteError):
  """
  Raised by a rule when the matched node has a shape it cannot rewrite.
  """

  def __init__(self, message: str, node_type: str = "") -> None:
    super().__init__(message)
    self.node_type = node_type
