"""Negotiation status state machine for a proposal.

Responsibilities:
  - Validate a requested transition against the transition graph.
  - Produce the next ProposalStatus and its StatusChange history entry.
  - Expose the expiration predicate used by schedulers.

Invariants:
  - Terminal situations accept no transition (ProposalClosed).
  - updated_at never moves backwards, even if the injected clock does.
  - Never reads the wall clock; `now` is always passed in.
"""

from __future__ import annotations

import datetime

from ..domain.enums import Situation, is_terminal
from ..domain.errors import InvalidTransition, ProposalClosed, ProposalExpired
from ..domain.models import Proposal, ProposalStatus, StatusChange, require_aware
from ..domain.transition_graph import ALLOWED_TRANSITIONS


def allowed_targets(situation: Situation) -> frozenset[Situation]:
    return ALLOWED_TRANSITIONS[situation]


def can_advance(situation: Situation, target: Situation) -> bool:
    return target in ALLOWED_TRANSITIONS[situation]


def advance_status(
    status: ProposalStatus, target: Situation, now: datetime.datetime
) -> tuple[ProposalStatus, StatusChange]:
    require_aware(now, "now")
    source = status.situation
    if is_terminal(source):
        raise ProposalClosed(source)
    if not can_advance(source, target):
        raise InvalidTransition(source, target)

    updated_at = max(now, status.updated_at)
    return (
        ProposalStatus(situation=target, updated_at=updated_at),
        StatusChange(from_situation=source, to_situation=target, at=updated_at),
    )


def is_expired(proposal: Proposal, now: datetime.datetime) -> bool:
    """True when the proposal is still open but its expiration date has passed."""
    require_aware(now, "now")
    if is_terminal(proposal.situation):
        return False
    return now >= proposal.expiration_date


def check_expiry(proposal: Proposal, target: Situation, now: datetime.datetime) -> None:
    if target != Situation.EXPIRED and is_expired(proposal, now):
        raise ProposalExpired(proposal.situation, target)
