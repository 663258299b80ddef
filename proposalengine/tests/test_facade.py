"""Tests for the ProposalService facade."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

import pytest

from proposalengine.app_api.clock import FixedClock
from proposalengine.app_api.config import EngineConfig
from proposalengine.app_api.facade import ProposalService
from proposalengine.app_api.factories import build_proposal_service
from proposalengine.core.domain.enums import Notice, Situation
from proposalengine.core.domain.errors import (
    ConflictError,
    DebtorNotFound,
    InvalidTransition,
    ProposalClosed,
)
from proposalengine.core.domain.models import Proposal
from proposalengine.infra.memory.stores import InMemoryDebtorStore, InMemoryProposalStore
from proposalengine.tests.builders import T0, at, fixed, make_debt, make_debtor, pct


class _RacingProposalStore(InMemoryProposalStore):
    """Simulates another writer bumping the version right before our save."""

    def __init__(self, races: int) -> None:
        super().__init__()
        self.races = races

    def save(self, proposal: Proposal, expected_version: Optional[int]) -> int:
        if expected_version is not None and self.races > 0:
            self.races -= 1
            current, version = self.load(proposal.id)
            super().save(current, version)
        return super().save(proposal, expected_version)


def _service(
    store: Optional[InMemoryProposalStore] = None, retries: int = 0
) -> tuple[ProposalService, FixedClock]:
    clock = FixedClock(T0)
    debtors = InMemoryDebtorStore()
    debtors.insert(make_debtor())
    service = ProposalService(
        debtors,
        store if store is not None else InMemoryProposalStore(),
        clock,
        EngineConfig(conflict_retries=retries),
    )
    return service, clock


def _create(service: ProposalService, proposal_id: str = "prop-1"):
    return service.create_proposal(
        debt=make_debt(),
        proposed_value=500,
        expiration_date=at(days=4),
        payment_deadline=3,
        proposal_id=proposal_id,
    )


def test_create_uses_clock_and_default_channels() -> None:
    service, _ = _service()

    result = _create(service)

    assert result.version == 1
    assert result.proposal.created_at == T0
    assert result.proposal.debt.present_value == 546
    assert [e.name for e in result.proposal.payments] == ["boleto", "pix", "credit_card"]
    assert [e.name for e in result.proposal.communication] == ["email", "sms", "whatsapp"]


def test_create_requires_known_debtors() -> None:
    service, _ = _service()

    with pytest.raises(DebtorNotFound):
        service.create_proposal(
            debt=make_debt(debtors=(make_debtor("ghost"),)),
            proposed_value=500,
            expiration_date=at(days=4),
            payment_deadline=3,
        )


def test_advance_persists_and_bumps_version() -> None:
    service, clock = _service()
    _create(service)
    clock.advance(at(hours=2) - T0)

    result = service.advance("prop-1", Situation.VIEWED)

    assert result.version == 2
    assert result.proposal.status.updated_at == at(hours=2)
    assert service.get("prop-1").proposal.situation == Situation.VIEWED

    with pytest.raises(InvalidTransition):
        service.advance("prop-1", Situation.SENT)
    assert service.get("prop-1").version == 2


def test_update_charges_persists_revalued_debt(caplog: pytest.LogCaptureFixture) -> None:
    service, _ = _service()
    _create(service)

    with caplog.at_level(logging.WARNING):
        result = service.update_charges("prop-1", fee=pct("taxa", -1000))

    assert result.proposal.debt.present_value == 0
    assert result.notices == (Notice.NEGATIVE_VALUATION,)
    assert service.get("prop-1").proposal.debt.present_value == 0
    assert "NEGATIVE_VALUATION" in caplog.text


def test_complete_payment_twice_does_not_write_again() -> None:
    service, _ = _service()
    _create(service)

    first = service.complete_payment("prop-1", "pix")
    second = service.complete_payment("prop-1", "pix")

    assert first.version == 2
    assert second.version == 2
    assert second.notices == (Notice.ALREADY_COMPLETED,)


def test_closed_proposal_rejects_completion() -> None:
    service, _ = _service()
    _create(service)
    service.advance("prop-1", Situation.CANCELLED)

    with pytest.raises(ProposalClosed):
        service.complete_payment("prop-1", "boleto")
    with pytest.raises(ProposalClosed):
        service.complete_communication("prop-1", "email")


def test_conflict_surfaces_without_retries() -> None:
    store = _RacingProposalStore(races=1)
    service, _ = _service(store, retries=0)
    _create(service)

    with pytest.raises(ConflictError):
        service.advance("prop-1", Situation.VIEWED)


def test_conflict_retried_with_reload() -> None:
    store = _RacingProposalStore(races=2)
    service, _ = _service(store, retries=2)
    _create(service)

    result = service.advance("prop-1", Situation.VIEWED)

    assert result.proposal.situation == Situation.VIEWED
    assert result.version == 4


def test_revise_terms() -> None:
    service, _ = _service()
    _create(service)

    result = service.revise_terms("prop-1", proposed_value=400, payment_deadline=7)

    assert (result.proposal.proposed_value, result.proposal.payment_deadline) == (400, 7)


def test_expire_due_only_touches_overdue_open_proposals() -> None:
    service, clock = _service()
    _create(service, "early")
    service.create_proposal(
        debt=make_debt(),
        proposed_value=500,
        expiration_date=at(days=30),
        payment_deadline=3,
        proposal_id="late",
    )
    _create(service, "done")
    service.advance("done", Situation.CANCELLED)
    clock.set(at(days=5))

    assert service.expire_due() == ["early"]
    assert service.get("early").proposal.situation == Situation.EXPIRED
    assert service.get("late").proposal.situation == Situation.SENT
    assert service.expire_due() == []


def test_sqlite_backed_service_end_to_end() -> None:
    conn = sqlite3.connect(":memory:")
    clock = FixedClock(T0)
    service = build_proposal_service(conn, clock=clock)
    service.register_debtor(make_debtor())

    _create(service)
    service.update_charges("prop-1", other_charges=[fixed("cartorio", 4)])
    service.advance("prop-1", Situation.VIEWED)
    result = service.complete_communication("prop-1", "whatsapp")

    loaded = service.get("prop-1")
    assert loaded.proposal == result.proposal
    assert loaded.version == 4
    assert loaded.proposal.debt.present_value == 550


def test_in_memory_factory() -> None:
    service = build_proposal_service(clock=FixedClock(T0))
    service.register_debtor(make_debtor())

    assert _create(service).version == 1
