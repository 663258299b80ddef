"""SQLite repository for proposal snapshots (ProposalStore port).

Responsibilities:
  - Persist whole proposal snapshots as JSON with an optimistic version column.
  - Reject writes whose expected version does not match the stored one.
Must not:
  - Modify lifecycle or valuation logic; persistence only.
"""

from __future__ import annotations

import datetime
import logging
import sqlite3
from typing import Optional

from proposalengine.app_api.codec import dump_proposal, encode_datetime, load_proposal
from proposalengine.core.domain.enums import TERMINAL_SITUATIONS
from proposalengine.core.domain.errors import ConflictError, ProposalNotFound
from proposalengine.core.domain.models import Proposal

logger = logging.getLogger(__name__)


class SqliteProposalStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _current_version(self, proposal_id: str) -> Optional[int]:
        row = self._conn.execute(
            "SELECT version FROM proposals WHERE id=?", (proposal_id,)
        ).fetchone()
        return None if row is None else int(row[0])

    def load(self, proposal_id: str) -> tuple[Proposal, int]:
        row = self._conn.execute(
            "SELECT snapshot_json, version FROM proposals WHERE id=?", (proposal_id,)
        ).fetchone()
        if row is None:
            raise ProposalNotFound(proposal_id)
        return load_proposal(row[0]), int(row[1])

    def save(self, proposal: Proposal, expected_version: Optional[int]) -> int:
        snapshot_json = dump_proposal(proposal)
        saved_at = datetime.datetime.now(datetime.timezone.utc).isoformat()
        try:
            if expected_version is None:
                cursor = self._conn.execute(
                    """
                    INSERT INTO proposals (
                        id,
                        version,
                        situation,
                        expiration_date,
                        snapshot_json,
                        saved_at
                    ) VALUES (?, 1, ?, ?, ?, ?)
                    ON CONFLICT(id) DO NOTHING
                    """,
                    (
                        proposal.id,
                        proposal.situation.value,
                        encode_datetime(proposal.expiration_date),
                        snapshot_json,
                        saved_at,
                    ),
                )
                new_version = 1
            else:
                cursor = self._conn.execute(
                    """
                    UPDATE proposals
                    SET version=?,
                        situation=?,
                        expiration_date=?,
                        snapshot_json=?,
                        saved_at=?
                    WHERE id=? AND version=?
                    """,
                    (
                        expected_version + 1,
                        proposal.situation.value,
                        encode_datetime(proposal.expiration_date),
                        snapshot_json,
                        saved_at,
                        proposal.id,
                        expected_version,
                    ),
                )
                new_version = expected_version + 1
            if cursor.rowcount != 1:
                actual = self._current_version(proposal.id)
                self._conn.rollback()
                raise ConflictError(proposal.id, expected_version, actual)
            self._conn.commit()
        except ConflictError:
            raise
        except Exception:
            self._conn.rollback()
            raise
        logger.debug("Saved proposal %s at version %d", proposal.id, new_version)
        return new_version

    def list_open_ids(self) -> list[str]:
        closed = sorted(situation.value for situation in TERMINAL_SITUATIONS)
        placeholders = ", ".join("?" for _ in closed)
        rows = self._conn.execute(
            f"SELECT id FROM proposals WHERE situation NOT IN ({placeholders}) ORDER BY id",
            closed,
        ).fetchall()
        return [row[0] for row in rows]
