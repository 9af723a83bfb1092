"""
Rewrite Trace Logger.

Records the step-by-step execution of a unit over one module:
1. Lifecycle Phases (one per unit, nested for composites).
2. Tree Mutations (node before / after).
3. Import Actions (added, pruned).
4. Skipped nodes (structural mismatches).

The output is a list of plain dictionaries suitable for JSON serialization.
Each thread owns its own logger, so modules processed in parallel never share
trace state.
"""

import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  AST_MUTATION = "ast_mutation"
  IMPORT_ACTION = "import_action"
  SKIPPED = "skipped"
  FAILURE = "failure"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records rewrite events for one module at a time.
  """

  def __init__(self) -> None:
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase (e.g. one transformation unit). Returns the phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self) -> None:
    """Ends the current active phase."""
    if not self._active_phases:
      return
    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  def log_mutation(self, node_type: str, before: str, after: str) -> None:
    self._log_simple(TraceEventType.AST_MUTATION, f"Transformed {node_type}", {"before": before, "after": after})

  def log_import(self, action: str, statement: str) -> None:
    """Logs an import addition or removal (`action` is 'add' or 'remove')."""
    self._log_simple(TraceEventType.IMPORT_ACTION, f"{action} {statement}", {"action": action, "import": statement})

  def log_skip(self, node_type: str, reason: str) -> None:
    self._log_simple(TraceEventType.SKIPPED, f"Skipped {node_type}", {"reason": reason})

  def log_failure(self, message: str) -> None:
    self._log_simple(TraceEventType.FAILURE, message, {"level": "error"})

  def events_of(self, evt_type: TraceEventType) -> List[TraceEvent]:
    return [e for e in self._events if e.type == evt_type]

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]) -> None:
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]


_LOCAL = threading.local()


def get_tracer() -> TraceLogger:
  tracer = getattr(_LOCAL, "tracer", None)
  if tracer is None:
    tracer = reset_tracer()
  return tracer


def reset_tracer() -> TraceLogger:
  _LOCAL.tracer = TraceLogger()
  return _LOCAL.tracer
