"""Structured serialization for debtors, debts and proposals.

Responsibilities:
  - Convert domain models to/from JSON-compatible dicts with camelCase field names.
  - Reject ambiguous shapes (naive timestamps, floats with fractions for amounts, unknown enums).
Must not:
  - Decide business rules; the only derived value it touches is present value, which it recomputes.

Wire format:
  - Monetary amounts are JSON integers; non-integral charge values are decimal strings.
  - Timestamps are ISO 8601 with an explicit UTC offset.
"""

from __future__ import annotations

import datetime
import json
from decimal import Decimal, InvalidOperation
from enum import Enum
from collections.abc import Mapping
from typing import Any, TypeVar

from proposalengine.core.domain.enums import (
    ChargeMode,
    CorrectionStatus,
    DebtorType,
    Situation,
)
from proposalengine.core.domain.errors import ValidationError
from proposalengine.core.domain.models import (
    Address,
    Charge,
    ChargeValue,
    ChecklistEntry,
    CollateralGuarantee,
    Correction,
    Debt,
    Debtor,
    Proposal,
    ProposalStatus,
    StatusChange,
    require_aware,
)

E = TypeVar("E", bound=Enum)


def _require(payload: Mapping[str, Any], key: str, expected_type: type) -> Any:
    if key not in payload:
        raise ValidationError(f"Missing required field '{key}'")
    value = payload[key]
    if expected_type is int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"Field '{key}' must be int")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValidationError(f"Field '{key}' must be an integer")
            return int(value)
        return value
    if not isinstance(value, expected_type):
        raise ValidationError(f"Field '{key}' must be {expected_type.__name__}")
    return value


def _optional_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Field '{key}' must be str")
    return value


def _enum(enum_type: type[E], raw: Any, key: str) -> E:
    try:
        return enum_type(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Field '{key}' must be one of: {allowed}") from None


def _mapping(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"Field '{key}' must be an object")
    return value


def _items(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"Field '{key}' must be a list")
    return value


# Timestamps


def encode_datetime(value: datetime.datetime) -> str:
    return require_aware(value, "timestamp").isoformat()


def decode_datetime(raw: Any, key: str) -> datetime.datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f"Field '{key}' must be an ISO 8601 timestamp")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Field '{key}' is not a valid ISO 8601 timestamp") from None
    if parsed.tzinfo is None:
        raise ValidationError(f"Field '{key}' must carry a UTC offset")
    return parsed


# Charges


def encode_charge_value(value: ChargeValue) -> int | str:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return str(value)
    return value


def decode_charge_value(raw: Any, key: str) -> ChargeValue:
    if isinstance(raw, bool):
        raise ValidationError(f"Field '{key}' must be numeric")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else Decimal(str(raw))
    if isinstance(raw, str):
        try:
            parsed = Decimal(raw.strip())
        except InvalidOperation:
            raise ValidationError(f"Field '{key}' must be a decimal number") from None
        if not parsed.is_finite():
            raise ValidationError(f"Field '{key}' must be finite")
        return parsed
    raise ValidationError(f"Field '{key}' must be numeric")


def charge_to_dict(charge: Charge) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": charge.name,
        "mode": charge.mode.value,
        "value": encode_charge_value(charge.value),
    }
    if isinstance(charge, Correction):
        payload["correctionStatus"] = charge.status.value
    return payload


def charge_from_dict(payload: Mapping[str, Any]) -> Charge:
    payload = _mapping(payload, "charge")
    return Charge(
        name=_optional_str(payload, "name"),
        mode=_enum(ChargeMode, payload.get("mode"), "mode"),
        value=decode_charge_value(payload.get("value", 0), "value"),
    )


def correction_from_dict(payload: Mapping[str, Any]) -> Correction:
    payload = _mapping(payload, "correction")
    return Correction(
        name=_optional_str(payload, "name"),
        mode=_enum(ChargeMode, payload.get("mode"), "mode"),
        value=decode_charge_value(payload.get("value", 0), "value"),
        status=_enum(
            CorrectionStatus,
            payload.get("correctionStatus", CorrectionStatus.CORRECT.value),
            "correctionStatus",
        ),
    )


# Debtors


def debtor_to_dict(debtor: Debtor) -> dict[str, Any]:
    address = debtor.address
    return {
        "id": debtor.id,
        "fiscalDocument": debtor.fiscal_document,
        "name": debtor.name,
        "email": debtor.email,
        "typeOfDebtor": debtor.debtor_type.value,
        "address": {
            "postalCode": address.postal_code,
            "city": address.city,
            "uf": address.uf,
            "street": address.street,
            "number": address.number,
            "complement": address.complement,
        },
    }


def debtor_from_dict(payload: Mapping[str, Any]) -> Debtor:
    payload = _mapping(payload, "debtor")
    address = _mapping(payload.get("address") or {}, "address")
    return Debtor(
        id=_optional_str(payload, "id"),
        fiscal_document=_require(payload, "fiscalDocument", str),
        name=_require(payload, "name", str),
        email=_optional_str(payload, "email"),
        debtor_type=_enum(DebtorType, payload.get("typeOfDebtor"), "typeOfDebtor"),
        address=Address(
            postal_code=_optional_str(address, "postalCode"),
            city=_optional_str(address, "city"),
            uf=_optional_str(address, "uf"),
            street=_optional_str(address, "street"),
            number=_optional_str(address, "number"),
            complement=_optional_str(address, "complement"),
        ),
    )


# Debts


def _collateral_from_dict(item: Any) -> CollateralGuarantee:
    item = _mapping(item, "collateral")
    value = item.get("value")
    return CollateralGuarantee(
        name=_optional_str(item, "name"),
        description=_optional_str(item, "description"),
        value="" if value is None else str(value),
    )


def debt_to_dict(debt: Debt) -> dict[str, Any]:
    return {
        "id": debt.id,
        "debtors": [debtor_to_dict(debtor) for debtor in debt.debtors],
        "origin": debt.origin,
        "documentId": debt.document_id,
        "originalValue": debt.original_value,
        "expirationDate": encode_datetime(debt.expiration_date),
        "fee": charge_to_dict(debt.fee),
        "interest": charge_to_dict(debt.interest),
        "otherCharges": [charge_to_dict(charge) for charge in debt.other_charges],
        "collateral": [
            {"name": item.name, "description": item.description, "value": item.value}
            for item in debt.collateral
        ],
        "correction": charge_to_dict(debt.correction),
        "presentValue": debt.present_value,
    }


def debt_from_dict(payload: Mapping[str, Any]) -> Debt:
    """Decode a debt and recompute its present value.

    A payload carrying a presentValue that disagrees with its charges is rejected as stale.
    """
    payload = _mapping(payload, "debt")
    debt = Debt(
        id=_optional_str(payload, "id"),
        debtors=tuple(debtor_from_dict(item) for item in _items(payload, "debtors")),
        origin=_optional_str(payload, "origin"),
        document_id=_optional_str(payload, "documentId"),
        original_value=_require(payload, "originalValue", int),
        expiration_date=decode_datetime(payload.get("expirationDate"), "expirationDate"),
        fee=charge_from_dict(_require(payload, "fee", Mapping)),
        interest=charge_from_dict(_require(payload, "interest", Mapping)),
        other_charges=tuple(charge_from_dict(item) for item in _items(payload, "otherCharges")),
        collateral=tuple(_collateral_from_dict(item) for item in _items(payload, "collateral")),
        correction=correction_from_dict(_require(payload, "correction", Mapping)),
    )
    if "presentValue" in payload and payload["presentValue"] is not None:
        declared = _require(payload, "presentValue", int)
        if declared != debt.present_value:
            raise ValidationError(
                f"Field 'presentValue' is stale: declared {declared}, "
                f"charges give {debt.present_value}"
            )
    return debt


# Proposals


def _checklist_to_list(entries: tuple[ChecklistEntry, ...]) -> list[dict[str, Any]]:
    return [{"name": entry.name, "completed": entry.completed} for entry in entries]


def _checklist_from_list(items: list[Any], key: str) -> tuple[ChecklistEntry, ...]:
    entries: list[ChecklistEntry] = []
    for item in items:
        item = _mapping(item, key)
        completed = item.get("completed", False)
        if not isinstance(completed, bool):
            raise ValidationError(f"Field '{key}.completed' must be bool")
        entries.append(ChecklistEntry(name=_require(item, "name", str), completed=completed))
    return tuple(entries)


def proposal_to_dict(proposal: Proposal) -> dict[str, Any]:
    return {
        "id": proposal.id,
        "debt": debt_to_dict(proposal.debt),
        "createdAt": encode_datetime(proposal.created_at),
        "status": {
            "situation": proposal.status.situation.value,
            "updatedAt": encode_datetime(proposal.status.updated_at),
        },
        "proposedValue": proposal.proposed_value,
        "expirationDate": encode_datetime(proposal.expiration_date),
        "paymentDeadline": proposal.payment_deadline,
        "payments": _checklist_to_list(proposal.payments),
        "communication": _checklist_to_list(proposal.communication),
        "history": [
            {
                "from": change.from_situation.value,
                "to": change.to_situation.value,
                "at": encode_datetime(change.at),
            }
            for change in proposal.history
        ],
    }


def proposal_from_dict(payload: Mapping[str, Any]) -> Proposal:
    payload = _mapping(payload, "proposal")
    status = _mapping(_require(payload, "status", Mapping), "status")
    history = []
    for item in _items(payload, "history"):
        item = _mapping(item, "history")
        history.append(
            StatusChange(
                from_situation=_enum(Situation, item.get("from"), "history.from"),
                to_situation=_enum(Situation, item.get("to"), "history.to"),
                at=decode_datetime(item.get("at"), "history.at"),
            )
        )
    return Proposal(
        id=_require(payload, "id", str),
        debt=debt_from_dict(_require(payload, "debt", Mapping)),
        created_at=decode_datetime(payload.get("createdAt"), "createdAt"),
        status=ProposalStatus(
            situation=_enum(Situation, status.get("situation"), "status.situation"),
            updated_at=decode_datetime(status.get("updatedAt"), "status.updatedAt"),
        ),
        proposed_value=_require(payload, "proposedValue", int),
        expiration_date=decode_datetime(payload.get("expirationDate"), "expirationDate"),
        payment_deadline=_require(payload, "paymentDeadline", int),
        payments=_checklist_from_list(_items(payload, "payments"), "payments"),
        communication=_checklist_from_list(_items(payload, "communication"), "communication"),
        history=tuple(history),
    )


def dumps(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def loads(raw: str | bytes) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"invalid JSON: {exc.msg}") from exc
    except UnicodeDecodeError as exc:
        raise ValidationError(f"invalid JSON: not UTF-8 ({exc.reason})") from exc


def dump_proposal(proposal: Proposal) -> str:
    return dumps(proposal_to_dict(proposal))


def load_proposal(raw: str | bytes) -> Proposal:
    return proposal_from_dict(loads(raw))
