"""In-memory implementations of the debtor and proposal store ports.

Responsibilities:
  - Provide process-local stores with the same versioning contract as the SQLite stores.
  - Serve as the fake backing store in tests and one-off CLI runs.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional

from proposalengine.core.domain.enums import is_terminal
from proposalengine.core.domain.errors import (
    ConflictError,
    DebtorNotFound,
    DuplicateDebtor,
    ProposalNotFound,
)
from proposalengine.core.domain.models import Debtor, Proposal


class InMemoryDebtorStore:
    def __init__(self) -> None:
        self._debtors: dict[str, Debtor] = {}

    def insert(self, debtor: Debtor) -> str:
        debtor_id = debtor.id or str(uuid.uuid4())
        if debtor_id in self._debtors:
            raise DuplicateDebtor(debtor_id)
        self._debtors[debtor_id] = replace(debtor, id=debtor_id)
        return debtor_id

    def get(self, debtor_id: str) -> Debtor:
        try:
            return self._debtors[debtor_id]
        except KeyError:
            raise DebtorNotFound(debtor_id) from None


class InMemoryProposalStore:
    def __init__(self) -> None:
        self._rows: dict[str, tuple[Proposal, int]] = {}

    def load(self, proposal_id: str) -> tuple[Proposal, int]:
        try:
            return self._rows[proposal_id]
        except KeyError:
            raise ProposalNotFound(proposal_id) from None

    def save(self, proposal: Proposal, expected_version: Optional[int]) -> int:
        current = self._rows.get(proposal.id)
        actual = current[1] if current is not None else None
        if actual != expected_version:
            raise ConflictError(proposal.id, expected_version, actual)
        new_version = 1 if actual is None else actual + 1
        self._rows[proposal.id] = (proposal, new_version)
        return new_version

    def list_open_ids(self) -> list[str]:
        return sorted(
            proposal_id
            for proposal_id, (proposal, _) in self._rows.items()
            if not is_terminal(proposal.situation)
        )
