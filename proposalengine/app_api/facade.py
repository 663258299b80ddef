"""Application facade: load, apply one engine operation, save.

Responsibilities:
  - Check debtor references against the debtor store before creating a proposal.
  - Run each aggregate operation against a loaded snapshot and persist it with optimistic versioning.
  - Retry load-apply-save on version conflicts up to the configured limit.
Must not:
  - Implement lifecycle, valuation or checklist rules; those live in core.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from proposalengine.core.domain.enums import Notice, Situation, notice_message
from proposalengine.core.domain.errors import ConflictError
from proposalengine.core.domain.models import Charge, Debt, Debtor, Proposal
from proposalengine.core.lifecycle.lifecycle import is_expired
from proposalengine.core.proposal import aggregate
from proposalengine.core.proposal.aggregate import Outcome
from .config import EngineConfig
from .ports import Clock, DebtorStore, ProposalStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    proposal: Proposal
    version: int
    notices: tuple[Notice, ...] = ()


class ProposalService:
    def __init__(
        self,
        debtor_store: DebtorStore,
        proposal_store: ProposalStore,
        clock: Clock,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self._debtors = debtor_store
        self._proposals = proposal_store
        self._clock = clock
        self._config = config or EngineConfig()

    def register_debtor(self, debtor: Debtor) -> str:
        debtor_id = self._debtors.insert(debtor)
        logger.info("Debtor %s registered", debtor_id)
        return debtor_id

    def create_proposal(
        self,
        debt: Debt,
        proposed_value: int,
        expiration_date: datetime.datetime,
        payment_deadline: int,
        payments: Optional[Iterable[str]] = None,
        communication: Optional[Iterable[str]] = None,
        proposal_id: Optional[str] = None,
    ) -> ServiceResult:
        for debtor_id in debt.debtor_ids:
            self._debtors.get(debtor_id)

        outcome = aggregate.create_proposal(
            proposal_id=proposal_id or str(uuid.uuid4()),
            debt=debt,
            created_at=self._clock.now(),
            proposed_value=proposed_value,
            expiration_date=expiration_date,
            payment_deadline=payment_deadline,
            payments=self._config.payment_methods if payments is None else payments,
            communication=(
                self._config.communication_channels if communication is None else communication
            ),
        )
        version = self._proposals.save(outcome.proposal, None)
        logger.info(
            "Proposal %s created for debt %s (present value %s)",
            outcome.proposal.id,
            debt.id,
            outcome.proposal.debt.present_value,
        )
        self._log_notices(outcome.proposal.id, outcome.notices)
        return ServiceResult(outcome.proposal, version, outcome.notices)

    def get(self, proposal_id: str) -> ServiceResult:
        proposal, version = self._proposals.load(proposal_id)
        return ServiceResult(proposal, version)

    def advance(self, proposal_id: str, target: Situation) -> ServiceResult:
        result = self._mutate(
            proposal_id, lambda proposal: aggregate.advance(proposal, target, self._clock.now())
        )
        logger.info("Proposal %s moved to %s", proposal_id, target.value)
        return result

    def update_charges(
        self,
        proposal_id: str,
        *,
        original_value: Optional[int] = None,
        fee: Optional[Charge] = None,
        interest: Optional[Charge] = None,
        other_charges: Optional[Iterable[Charge]] = None,
        correction: Optional[Charge] = None,
    ) -> ServiceResult:
        charges = None if other_charges is None else tuple(other_charges)
        return self._mutate(
            proposal_id,
            lambda proposal: aggregate.update_charges(
                proposal,
                original_value=original_value,
                fee=fee,
                interest=interest,
                other_charges=charges,
                correction=correction,
            ),
        )

    def revise_terms(
        self,
        proposal_id: str,
        *,
        proposed_value: Optional[int] = None,
        expiration_date: Optional[datetime.datetime] = None,
        payment_deadline: Optional[int] = None,
    ) -> ServiceResult:
        return self._mutate(
            proposal_id,
            lambda proposal: aggregate.revise_terms(
                proposal,
                proposed_value=proposed_value,
                expiration_date=expiration_date,
                payment_deadline=payment_deadline,
            ),
        )

    def complete_payment(self, proposal_id: str, name: str) -> ServiceResult:
        return self._mutate(proposal_id, lambda proposal: aggregate.complete_payment(proposal, name))

    def complete_communication(self, proposal_id: str, name: str) -> ServiceResult:
        return self._mutate(
            proposal_id, lambda proposal: aggregate.complete_communication(proposal, name)
        )

    def expire_due(self) -> list[str]:
        """Move every open proposal past its expiration date to `expired`.

        Meant to be called by an external scheduler; conflicting writers are skipped and
        picked up on the next sweep.
        """
        now = self._clock.now()
        expired: list[str] = []
        for proposal_id in self._proposals.list_open_ids():
            proposal, version = self._proposals.load(proposal_id)
            if not is_expired(proposal, now):
                continue
            outcome = aggregate.advance(proposal, Situation.EXPIRED, now)
            try:
                self._proposals.save(outcome.proposal, version)
            except ConflictError as exc:
                logger.warning("Skipping expiration of %s: %s", proposal_id, exc)
                continue
            expired.append(proposal_id)
        if expired:
            logger.info("Expired %d proposal(s)", len(expired))
        return expired

    def _mutate(self, proposal_id: str, operation: Callable[[Proposal], Outcome]) -> ServiceResult:
        attempt = 0
        while True:
            proposal, version = self._proposals.load(proposal_id)
            outcome = operation(proposal)
            self._log_notices(proposal_id, outcome.notices)
            if outcome.proposal is proposal:
                return ServiceResult(proposal, version, outcome.notices)
            try:
                new_version = self._proposals.save(outcome.proposal, version)
            except ConflictError:
                if attempt >= self._config.conflict_retries:
                    raise
                attempt += 1
                logger.warning(
                    "Version conflict on proposal %s, retrying (%d/%d)",
                    proposal_id,
                    attempt,
                    self._config.conflict_retries,
                )
                continue
            return ServiceResult(outcome.proposal, new_version, outcome.notices)

    def _log_notices(self, proposal_id: str, notices: tuple[Notice, ...]) -> None:
        for notice in notices:
            logger.warning("Proposal %s: %s %s", proposal_id, notice.value, notice_message(notice))
