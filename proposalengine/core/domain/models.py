"""Domain models for debts, proposals, and their checklists.

Responsibilities:
  - Define immutable data carriers for debtors, charges, debts and proposals.
  - Reject malformed shapes at construction (types, timezone-aware timestamps, sign constraints).

Inputs/Outputs:
  - Proposal snapshots are persisted/audited by infra layers via the codec.

Invariants:
  - Models are frozen; mutation happens only by building new values in the aggregate.
  - Debt.present_value is derived by the valuation engine on construction; callers cannot set it.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from .enums import ChargeMode, CorrectionStatus, DebtorType, Situation
from ..valuation.engine import value_debt
from .errors import NoDebtor, ValidationError

ChargeValue = Union[int, Decimal]


def require_aware(value: object, field_name: str) -> datetime.datetime:
    if not isinstance(value, datetime.datetime):
        raise ValidationError(f"{field_name} must be a datetime")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"{field_name} must be timezone-aware")
    return value


def require_amount(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer amount")
    if value < 0:
        raise ValidationError(f"{field_name} must be >= 0")
    return value


@dataclass(frozen=True)
class Address:
    postal_code: str = ""
    city: str = ""
    uf: str = ""
    street: str = ""
    number: str = ""
    complement: str = ""


@dataclass(frozen=True)
class Debtor:
    id: str
    fiscal_document: str
    name: str
    email: str
    debtor_type: DebtorType
    address: Address = field(default_factory=Address)

    def __post_init__(self) -> None:
        if not isinstance(self.debtor_type, DebtorType):
            raise ValidationError("debtor_type must be individual or company")
        if not self.fiscal_document.strip():
            raise ValidationError("fiscal_document must be non-empty")


@dataclass(frozen=True)
class Charge:
    name: str
    mode: ChargeMode
    value: ChargeValue = 0

    def __post_init__(self) -> None:
        if not isinstance(self.mode, ChargeMode):
            raise ValidationError(f"charge {self.name!r}: mode must be fixed or percentage")
        if isinstance(self.value, bool) or not isinstance(self.value, (int, Decimal)):
            raise ValidationError(f"charge {self.name!r}: value must be int or Decimal")
        if isinstance(self.value, Decimal) and not self.value.is_finite():
            raise ValidationError(f"charge {self.name!r}: value must be finite")


@dataclass(frozen=True)
class Correction(Charge):
    status: CorrectionStatus = CorrectionStatus.CORRECT

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.status, CorrectionStatus):
            raise ValidationError("correction status must be correct or no-correct")

    @property
    def applies(self) -> bool:
        return self.status == CorrectionStatus.CORRECT


@dataclass(frozen=True)
class CollateralGuarantee:
    name: str
    description: str = ""
    value: str = ""


@dataclass(frozen=True)
class Debt:
    id: str
    debtors: tuple[Debtor, ...]
    origin: str
    document_id: str
    original_value: int
    expiration_date: datetime.datetime
    fee: Charge
    interest: Charge
    other_charges: tuple[Charge, ...] = ()
    collateral: tuple[CollateralGuarantee, ...] = ()
    correction: Correction = field(
        default_factory=lambda: Correction(name="correction", mode=ChargeMode.FIXED, value=0)
    )
    present_value: int = field(init=False)

    def __post_init__(self) -> None:
        if not self.debtors:
            raise NoDebtor()
        require_amount(self.original_value, "original_value")
        require_aware(self.expiration_date, "debt expiration_date")
        object.__setattr__(self, "debtors", tuple(self.debtors))
        object.__setattr__(self, "other_charges", tuple(self.other_charges))
        object.__setattr__(self, "collateral", tuple(self.collateral))
        for name, charge in (("fee", self.fee), ("interest", self.interest)):
            _require_charge(charge, name)
        for charge in self.other_charges:
            _require_charge(charge, "other_charges")
        correction = _require_charge(self.correction, "correction")
        if not isinstance(correction, Correction):
            object.__setattr__(
                self,
                "correction",
                Correction(name=correction.name, mode=correction.mode, value=correction.value),
            )
        object.__setattr__(self, "present_value", value_debt(self).present_value)

    @property
    def debtor_ids(self) -> list[str]:
        return [debtor.id for debtor in self.debtors]


def _require_charge(charge: object, field_name: str) -> Charge:
    if not isinstance(charge, Charge):
        raise ValidationError(f"{field_name} must be a Charge")
    return charge


@dataclass(frozen=True)
class ProposalStatus:
    situation: Situation
    updated_at: datetime.datetime

    def __post_init__(self) -> None:
        require_aware(self.updated_at, "status updated_at")


@dataclass(frozen=True)
class StatusChange:
    from_situation: Situation
    to_situation: Situation
    at: datetime.datetime


@dataclass(frozen=True)
class ChecklistEntry:
    name: str
    completed: bool = False


@dataclass(frozen=True)
class Proposal:
    id: str
    debt: Debt
    created_at: datetime.datetime
    status: ProposalStatus
    proposed_value: int
    expiration_date: datetime.datetime
    payment_deadline: int
    payments: tuple[ChecklistEntry, ...] = ()
    communication: tuple[ChecklistEntry, ...] = ()
    history: tuple[StatusChange, ...] = ()

    def __post_init__(self) -> None:
        require_aware(self.created_at, "created_at")
        require_aware(self.expiration_date, "expiration_date")
        require_amount(self.proposed_value, "proposed_value")
        if self.expiration_date <= self.created_at:
            raise ValidationError("expiration_date must be strictly after created_at")
        if isinstance(self.payment_deadline, bool) or not isinstance(self.payment_deadline, int):
            raise ValidationError("payment_deadline must be an integer number of days")
        if self.payment_deadline <= 0:
            raise ValidationError("payment_deadline must be > 0")
        object.__setattr__(self, "payments", tuple(self.payments))
        object.__setattr__(self, "communication", tuple(self.communication))
        object.__setattr__(self, "history", tuple(self.history))
        _require_unique_names(self.payments, "payments")
        _require_unique_names(self.communication, "communication")

    @property
    def situation(self) -> Situation:
        return self.status.situation


def _require_unique_names(entries: tuple[ChecklistEntry, ...], list_name: str) -> None:
    seen: set[str] = set()
    for entry in entries:
        if entry.name in seen:
            raise ValidationError(f"duplicate {list_name} entry: {entry.name!r}")
        seen.add(entry.name)
