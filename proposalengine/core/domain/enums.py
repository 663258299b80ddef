"""Domain enums for the proposal state machine and valuation.

Responsibilities:
  - Define Situation, ChargeMode, CorrectionStatus and DebtorType identifiers persisted in storage.
  - Provide recoverable Notice codes with audit metadata.

Invariants:
  - Enum values must remain stable for persistence and audits.
  - Notice metadata must be complete and deterministic.
"""

from __future__ import annotations

from enum import Enum


class Situation(Enum):
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    EXECUTION = "execution"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    ERROR = "error"


TERMINAL_SITUATIONS: frozenset[Situation] = frozenset(
    {Situation.COMPLETED, Situation.EXPIRED, Situation.CANCELLED, Situation.ERROR}
)


class ChargeMode(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class CorrectionStatus(Enum):
    CORRECT = "correct"
    NO_CORRECT = "no-correct"


class DebtorType(Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


class NoticeCategory(Enum):
    VALUATION = "VALUATION"
    CHECKLIST = "CHECKLIST"


# Recoverable conditions attached to a successful operation; value is the persisted code.
class Notice(Enum):
    NEGATIVE_VALUATION = "NEGATIVE_VALUATION"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"


NOTICE_METADATA: dict[Notice, dict[str, object]] = {
    Notice.NEGATIVE_VALUATION: {
        "category": NoticeCategory.VALUATION,
        "message": "Charges produced a negative total; present value clamped to zero.",
    },
    Notice.ALREADY_COMPLETED: {
        "category": NoticeCategory.CHECKLIST,
        "message": "Checklist entry was already completed; nothing changed.",
    },
}


def is_terminal(situation: Situation) -> bool:
    return situation in TERMINAL_SITUATIONS


def notice_message(notice: Notice) -> str:
    return str(NOTICE_METADATA[notice]["message"])


_missing = [n for n in Notice if n not in NOTICE_METADATA]
if _missing:
    raise RuntimeError(f"Missing NOTICE_METADATA for: {[m.value for m in _missing]}")
