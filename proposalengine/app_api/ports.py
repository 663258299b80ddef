"""Port definitions for app-level dependencies.

Responsibilities:
  - Define interface contracts for debtor/proposal persistence and the clock.
Must not:
  - Implement logic; interfaces only.
"""

from __future__ import annotations

import datetime
from typing import Optional, Protocol

from proposalengine.core.domain.models import Debtor, Proposal


class DebtorStore(Protocol):
    def insert(self, debtor: Debtor) -> str:
        ...

    def get(self, debtor_id: str) -> Debtor:
        """Return the debtor or raise DebtorNotFound."""
        ...


class ProposalStore(Protocol):
    def load(self, proposal_id: str) -> tuple[Proposal, int]:
        """Return the proposal and its stored version or raise ProposalNotFound."""
        ...

    def save(self, proposal: Proposal, expected_version: Optional[int]) -> int:
        """Persist a snapshot; None inserts a new identity. Raises ConflictError on mismatch."""
        ...

    def list_open_ids(self) -> list[str]:
        ...


class Clock(Protocol):
    def now(self) -> datetime.datetime:
        ...
