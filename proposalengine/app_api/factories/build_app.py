"""Construct a fully wired ProposalService.

Responsibilities:
  - Assemble stores and clock based on config.
Must not:
  - Implement lifecycle/valuation logic; composition only.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from proposalengine.app_api.clock import SystemClock
from proposalengine.app_api.config import EngineConfig
from proposalengine.app_api.facade import ProposalService
from proposalengine.app_api.ports import Clock
from proposalengine.infra.memory.stores import InMemoryDebtorStore, InMemoryProposalStore
from proposalengine.infra.sqlite.migrator import apply_migrations
from proposalengine.infra.sqlite.repos.debtor_repo import SqliteDebtorStore
from proposalengine.infra.sqlite.repos.proposal_repo import SqliteProposalStore


def build_proposal_service(
    conn: Optional[sqlite3.Connection] = None,
    config: Optional[EngineConfig] = None,
    clock: Optional[Clock] = None,
    migrate: bool = True,
) -> ProposalService:
    """
    Composition root: SQLite-backed stores when a connection is given, in-memory stores otherwise.
    """
    config = config or EngineConfig()
    clock = clock or SystemClock()
    if conn is None:
        return ProposalService(InMemoryDebtorStore(), InMemoryProposalStore(), clock, config)
    if migrate:
        apply_migrations(conn)
        conn.commit()
    return ProposalService(SqliteDebtorStore(conn), SqliteProposalStore(conn), clock, config)
