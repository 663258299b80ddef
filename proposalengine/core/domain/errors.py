"""Typed failures raised by the proposal engine.

Every failure is recoverable by the caller; none of them leaves a proposal
partially mutated.
"""

from __future__ import annotations

from typing import Optional

from .enums import Situation


class ProposalEngineError(Exception):
    """Base class for every failure reported by the engine."""


class ValidationError(ProposalEngineError, ValueError):
    """Malformed input rejected before any state change."""


class NoDebtor(ValidationError):
    def __init__(self, message: str = "debt must reference at least one debtor") -> None:
        super().__init__(message)


class InvalidTransition(ProposalEngineError):
    def __init__(self, source: Situation, target: Situation, message: Optional[str] = None) -> None:
        self.source = source
        self.target = target
        super().__init__(
            message or f"transition {source.value} -> {target.value} is not allowed"
        )


class ProposalExpired(InvalidTransition):
    def __init__(self, source: Situation, target: Situation) -> None:
        super().__init__(
            source,
            target,
            f"proposal has passed its expiration date; only {Situation.EXPIRED.value} is allowed "
            f"(requested {target.value})",
        )


class ProposalClosed(ProposalEngineError):
    def __init__(self, situation: Situation) -> None:
        self.situation = situation
        super().__init__(f"proposal is closed in terminal status {situation.value}")


class UnknownChannel(ProposalEngineError, LookupError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown checklist entry: {name!r}")


class NotFoundError(ProposalEngineError, LookupError):
    pass


class DebtorNotFound(NotFoundError):
    def __init__(self, debtor_id: str) -> None:
        self.debtor_id = debtor_id
        super().__init__(f"debtor not found: {debtor_id}")


class ProposalNotFound(NotFoundError):
    def __init__(self, proposal_id: str) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"proposal not found: {proposal_id}")


class ConflictError(ProposalEngineError):
    def __init__(self, proposal_id: str, expected: Optional[int], actual: Optional[int]) -> None:
        self.proposal_id = proposal_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"version conflict for proposal {proposal_id}: expected {expected}, found {actual}"
        )


class DuplicateDebtor(ProposalEngineError):
    def __init__(self, debtor_id: str) -> None:
        self.debtor_id = debtor_id
        super().__init__(f"debtor already exists: {debtor_id}")
