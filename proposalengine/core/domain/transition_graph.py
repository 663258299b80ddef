"""Allowed status transitions for the proposal state machine.

Responsibilities:
  - Define legal next situations per current situation.
  - Lifecycle operations must respect this graph.

Invariants:
  - Terminal situations have no outgoing edges.
  - Must remain stable for auditability; changes require coordinated migration.
"""

from __future__ import annotations

from .enums import Situation

ALLOWED_TRANSITIONS: dict[Situation, frozenset[Situation]] = {
    Situation.SENT: frozenset(
        {Situation.VIEWED, Situation.EXPIRED, Situation.CANCELLED, Situation.ERROR}
    ),
    Situation.VIEWED: frozenset(
        {Situation.ACCEPTED, Situation.EXPIRED, Situation.CANCELLED, Situation.ERROR}
    ),
    Situation.ACCEPTED: frozenset({Situation.EXECUTION, Situation.CANCELLED, Situation.ERROR}),
    Situation.EXECUTION: frozenset({Situation.COMPLETED, Situation.CANCELLED, Situation.ERROR}),
    Situation.COMPLETED: frozenset(),
    Situation.EXPIRED: frozenset(),
    Situation.CANCELLED: frozenset(),
    Situation.ERROR: frozenset(),
}

_missing = [s for s in Situation if s not in ALLOWED_TRANSITIONS]
if _missing:
    raise RuntimeError(f"Missing ALLOWED_TRANSITIONS for: {[m.value for m in _missing]}")
