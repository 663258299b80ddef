"""SQLite repository for debtors (DebtorStore port)."""

from __future__ import annotations

import logging
import sqlite3
import uuid

from proposalengine.core.domain.enums import DebtorType
from proposalengine.core.domain.errors import DebtorNotFound, DuplicateDebtor
from proposalengine.core.domain.models import Address, Debtor

logger = logging.getLogger(__name__)


class SqliteDebtorStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, debtor: Debtor) -> str:
        debtor_id = debtor.id or str(uuid.uuid4())
        address = debtor.address
        try:
            self._conn.execute(
                """
                INSERT INTO debtors (
                    id,
                    fiscal_document,
                    name,
                    email,
                    type_of_debtor,
                    postal_code,
                    city,
                    uf,
                    street,
                    number,
                    complement
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    debtor_id,
                    debtor.fiscal_document,
                    debtor.name,
                    debtor.email,
                    debtor.debtor_type.value,
                    address.postal_code,
                    address.city,
                    address.uf,
                    address.street,
                    address.number,
                    address.complement,
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            if self._exists(debtor_id):
                raise DuplicateDebtor(debtor_id) from exc
            raise
        except Exception:
            self._conn.rollback()
            raise
        logger.debug("Inserted debtor %s", debtor_id)
        return debtor_id

    def _exists(self, debtor_id: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM debtors WHERE id=?", (debtor_id,)).fetchone()
        return row is not None

    def get(self, debtor_id: str) -> Debtor:
        row = self._conn.execute(
            """
            SELECT id, fiscal_document, name, email, type_of_debtor,
                   postal_code, city, uf, street, number, complement
            FROM debtors
            WHERE id=?
            """,
            (debtor_id,),
        ).fetchone()
        if row is None:
            raise DebtorNotFound(debtor_id)
        return Debtor(
            id=row[0],
            fiscal_document=row[1],
            name=row[2],
            email=row[3],
            debtor_type=DebtorType(row[4]),
            address=Address(
                postal_code=row[5],
                city=row[6],
                uf=row[7],
                street=row[8],
                number=row[9],
                complement=row[10],
            ),
        )
