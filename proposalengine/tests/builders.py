"""Shared builders for proposal engine tests."""

from __future__ import annotations

import datetime
from typing import Iterable

from proposalengine.core.domain.enums import ChargeMode, CorrectionStatus, DebtorType
from proposalengine.core.domain.models import (
    Address,
    Charge,
    CollateralGuarantee,
    Correction,
    Debt,
    Debtor,
    Proposal,
)
from proposalengine.core.proposal import aggregate

T0 = datetime.datetime(2026, 1, 10, 12, 0, tzinfo=datetime.timezone.utc)


def at(days: float = 0, hours: float = 0) -> datetime.datetime:
    return T0 + datetime.timedelta(days=days, hours=hours)


def fixed(name: str, value: int) -> Charge:
    return Charge(name=name, mode=ChargeMode.FIXED, value=value)


def pct(name: str, value: int) -> Charge:
    return Charge(name=name, mode=ChargeMode.PERCENTAGE, value=value)


def correction(
    value: int = 0,
    mode: ChargeMode = ChargeMode.FIXED,
    status: CorrectionStatus = CorrectionStatus.CORRECT,
) -> Correction:
    return Correction(name="correcao", mode=mode, value=value, status=status)


def make_debtor(debtor_id: str = "debtor-1") -> Debtor:
    return Debtor(
        id=debtor_id,
        fiscal_document="12345678",
        name="Devedor",
        email="email@email.com",
        debtor_type=DebtorType.INDIVIDUAL,
        address=Address(
            postal_code="38400200",
            city="cidade",
            uf="estado",
            street="rua",
            number="0",
            complement="ap 123",
        ),
    )


def make_debt(
    original_value: int = 300,
    fee: Charge | None = None,
    interest: Charge | None = None,
    other_charges: Iterable[Charge] = (),
    corr: Correction | None = None,
    debtors: tuple[Debtor, ...] | None = None,
) -> Debt:
    return Debt(
        id="debt-1",
        debtors=debtors if debtors is not None else (make_debtor(),),
        origin="contract",
        document_id="doc-1",
        original_value=original_value,
        expiration_date=at(days=-30),
        fee=fee or fixed("taxa", 123),
        interest=interest or fixed("juros", 123),
        other_charges=tuple(other_charges),
        collateral=(CollateralGuarantee(name="car", description="sedan", value="15000"),),
        correction=corr or correction(0),
    )


def make_proposal(debt: Debt | None = None, proposal_id: str = "prop-1") -> Proposal:
    return aggregate.create_proposal(
        proposal_id=proposal_id,
        debt=debt or make_debt(),
        created_at=T0,
        proposed_value=500,
        expiration_date=at(days=4),
        payment_deadline=3,
        payments=("boleto", "pix"),
        communication=("email", "sms", "whatsapp"),
    ).proposal
