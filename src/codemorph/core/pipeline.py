"""
Composite Pipeline.

Provides the ``CompositeUnit``, which threads one module through an ordered
list of child units. Each child completes its whole pass before the next one
starts, and sees the output of the children before it.

A failing child aborts the pipeline. Work done by the children before it is not
rolled back: the error carries it as ``committed`` so callers can decide what
to do with the prefix.
"""

from typing import Optional, Sequence

from codemorph.core.tracer import get_tracer
from codemorph.core.tree import SourceModule
from codemorph.core.units import TransformationUnit
from codemorph.errors import ConfigurationError, RewriteError


class CompositeUnit(TransformationUnit):
  """
  An ordered sequence of units that is itself a unit.
  """

  def __init__(self, name: str, units: Sequence[TransformationUnit], description: Optional[str] = None) -> None:
    """
    Initializes the pipeline with a list of units.

    Args:
        name: Pipeline name.
        units: Sequenced list of units to execute.
        description: Optional human description.

    Raises:
        ConfigurationError: If the name is empty or a child is not a unit.
    """
    if not name or not name.strip():
      raise ConfigurationError("Composite name must be a non-empty string")
    for unit in units:
      if not isinstance(unit, TransformationUnit):
        raise ConfigurationError(f"Composite '{name}' got a non-unit child: {unit!r}")
    self.name = name.strip()
    self.units = tuple(units)
    self.description = description or f"Run {len(self.units)} unit(s) in order"

  def apply(self, source: SourceModule) -> SourceModule:
    """
    Executes all child units sequentially on the module.

    Raises:
        RewriteError: The first child failure, with ``unit`` and ``committed``
            set to the innermost failing unit and the output of the prefix
            that completed before it.
    """
    tracer = get_tracer()
    tracer.start_phase(self.name, self.description)
    current = source
    try:
      for unit in self.units:
        try:
          current = unit.apply(current)
        except RewriteError as e:
          if getattr(e, "unit", None) is None:
            e.unit = unit.name
            e.committed = current
          raise
    finally:
      tracer.end_phase()
    return current
