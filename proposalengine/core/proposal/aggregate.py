"""Proposal aggregate operations.

Responsibilities:
  - Create proposals in `sent` with a freshly computed present value.
  - Route every mutation through the lifecycle, valuation and checklist components.
  - Enforce cross-component invariants (closed proposals, revaluation on charge change).

Inputs/Outputs:
  - Inputs: a Proposal value plus operation arguments; `now` is injected.
  - Outputs: Outcome with the new Proposal and any recoverable notices.

Invariants:
  - All-or-nothing: the input Proposal is never modified; on failure nothing is returned.
  - A terminal proposal rejects every mutation with ProposalClosed.
  - present_value is never stale after a charge update.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from ..checklist import tracker
from ..domain.enums import Notice, Situation, is_terminal
from ..domain.errors import ProposalClosed, ValidationError
from ..domain.models import (
    Charge,
    ChecklistEntry,
    Debt,
    Proposal,
    ProposalStatus,
)
from ..lifecycle.lifecycle import advance_status, check_expiry
from ..valuation.engine import value_debt


@dataclass(frozen=True)
class Outcome:
    proposal: Proposal
    notices: tuple[Notice, ...] = ()


def _revalued(debt: Debt) -> tuple[Debt, tuple[Notice, ...]]:
    # present_value is already derived on construction; only the notices are needed here.
    return debt, value_debt(debt).notices


def _require_open(proposal: Proposal) -> None:
    if is_terminal(proposal.situation):
        raise ProposalClosed(proposal.situation)


def create_proposal(
    proposal_id: str,
    debt: Debt,
    created_at: datetime.datetime,
    proposed_value: int,
    expiration_date: datetime.datetime,
    payment_deadline: int,
    payments: Iterable[str] = (),
    communication: Iterable[str] = (),
) -> Outcome:
    valued_debt, notices = _revalued(debt)
    proposal = Proposal(
        id=proposal_id,
        debt=valued_debt,
        created_at=created_at,
        status=ProposalStatus(situation=Situation.SENT, updated_at=created_at),
        proposed_value=proposed_value,
        expiration_date=expiration_date,
        payment_deadline=payment_deadline,
        payments=tracker.build_checklist(payments),
        communication=tracker.build_checklist(communication),
    )
    return Outcome(proposal=proposal, notices=notices)


def advance(proposal: Proposal, target: Situation, now: datetime.datetime) -> Outcome:
    _require_open(proposal)
    check_expiry(proposal, target, now)
    status, change = advance_status(proposal.status, target, now)
    return Outcome(
        proposal=replace(proposal, status=status, history=proposal.history + (change,))
    )


def update_charges(
    proposal: Proposal,
    *,
    original_value: Optional[int] = None,
    fee: Optional[Charge] = None,
    interest: Optional[Charge] = None,
    other_charges: Optional[Iterable[Charge]] = None,
    correction: Optional[Charge] = None,
) -> Outcome:
    """Replace any subset of the debt's value terms and revalue in the same step.

    Arguments left as None keep their current value; an empty `other_charges` clears the list.
    """
    _require_open(proposal)
    changes: dict[str, object] = {}
    if original_value is not None:
        changes["original_value"] = original_value
    if fee is not None:
        changes["fee"] = _as_charge(fee, "fee")
    if interest is not None:
        changes["interest"] = _as_charge(interest, "interest")
    if other_charges is not None:
        changes["other_charges"] = tuple(_as_charge(c, "other_charges") for c in other_charges)
    if correction is not None:
        changes["correction"] = _as_charge(correction, "correction")

    debt, notices = _revalued(replace(proposal.debt, **changes))
    return Outcome(proposal=replace(proposal, debt=debt), notices=notices)


def revise_terms(
    proposal: Proposal,
    *,
    proposed_value: Optional[int] = None,
    expiration_date: Optional[datetime.datetime] = None,
    payment_deadline: Optional[int] = None,
) -> Outcome:
    _require_open(proposal)
    changes: dict[str, object] = {}
    if proposed_value is not None:
        changes["proposed_value"] = proposed_value
    if expiration_date is not None:
        changes["expiration_date"] = expiration_date
    if payment_deadline is not None:
        changes["payment_deadline"] = payment_deadline
    return Outcome(proposal=replace(proposal, **changes))


def complete_payment(proposal: Proposal, name: str) -> Outcome:
    _require_open(proposal)
    result = tracker.complete(proposal.payments, name)
    return _with_checklist(proposal, "payments", result.entries, result.notices)


def complete_communication(proposal: Proposal, name: str) -> Outcome:
    _require_open(proposal)
    result = tracker.complete(proposal.communication, name)
    return _with_checklist(proposal, "communication", result.entries, result.notices)


def payments_settled(proposal: Proposal) -> bool:
    return tracker.all_completed(proposal.payments)


def _with_checklist(
    proposal: Proposal,
    field_name: str,
    entries: tuple[ChecklistEntry, ...],
    notices: tuple[Notice, ...],
) -> Outcome:
    if notices:
        return Outcome(proposal=proposal, notices=notices)
    return Outcome(proposal=replace(proposal, **{field_name: entries}), notices=notices)


def _as_charge(value: object, field_name: str) -> Charge:
    if not isinstance(value, Charge):
        raise ValidationError(f"{field_name} must be a Charge")
    return value
