"""Tests for the in-memory and SQLite store implementations."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from typing import Callable

import pytest

from proposalengine.core.domain.enums import Situation
from proposalengine.core.domain.errors import (
    ConflictError,
    DebtorNotFound,
    DuplicateDebtor,
    ProposalNotFound,
)
from proposalengine.core.proposal import aggregate
from proposalengine.infra.memory.stores import InMemoryDebtorStore, InMemoryProposalStore
from proposalengine.infra.sqlite.migrator import apply_migrations
from proposalengine.infra.sqlite.repos.debtor_repo import SqliteDebtorStore
from proposalengine.infra.sqlite.repos.proposal_repo import SqliteProposalStore
from proposalengine.tests.builders import at, make_debtor, make_proposal


def _sqlite_conn() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:")
    apply_migrations(conn)
    conn.commit()
    return conn


def _memory_stores():
    return InMemoryDebtorStore(), InMemoryProposalStore()


def _sqlite_stores():
    conn = _sqlite_conn()
    return SqliteDebtorStore(conn), SqliteProposalStore(conn)


STORE_FACTORIES: list[Callable] = [_memory_stores, _sqlite_stores]


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_debtor_insert_and_get(factory: Callable) -> None:
    debtors, _ = factory()
    debtor = make_debtor("d-1")

    assert debtors.insert(debtor) == "d-1"
    assert debtors.get("d-1") == debtor
    with pytest.raises(DebtorNotFound):
        debtors.get("missing")


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_debtor_duplicate_id_rejected(factory: Callable) -> None:
    debtors, _ = factory()
    debtors.insert(make_debtor("d-1"))

    with pytest.raises(DuplicateDebtor) as excinfo:
        debtors.insert(replace(make_debtor("d-1"), name="Outro"))

    assert excinfo.value.debtor_id == "d-1"
    assert debtors.get("d-1").name == "Devedor"


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_debtor_without_id_gets_generated_id(factory: Callable) -> None:
    debtors, _ = factory()

    debtor_id = debtors.insert(replace(make_debtor(), id=""))

    assert debtor_id
    assert debtors.get(debtor_id).id == debtor_id


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_proposal_save_load_with_versions(factory: Callable) -> None:
    _, proposals = factory()
    proposal = make_proposal()

    assert proposals.save(proposal, None) == 1
    loaded, version = proposals.load(proposal.id)
    assert loaded == proposal
    assert version == 1

    viewed = aggregate.advance(loaded, Situation.VIEWED, at(hours=1)).proposal
    assert proposals.save(viewed, 1) == 2
    assert proposals.load(proposal.id) == (viewed, 2)


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_proposal_save_conflicts(factory: Callable) -> None:
    _, proposals = factory()
    proposal = make_proposal()
    proposals.save(proposal, None)

    with pytest.raises(ConflictError) as excinfo:
        proposals.save(proposal, None)
    assert excinfo.value.actual == 1

    proposals.save(proposal, 1)
    with pytest.raises(ConflictError) as excinfo:
        proposals.save(proposal, 1)
    assert (excinfo.value.expected, excinfo.value.actual) == (1, 2)
    assert proposals.load(proposal.id)[1] == 2


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_proposal_load_missing(factory: Callable) -> None:
    _, proposals = factory()

    with pytest.raises(ProposalNotFound):
        proposals.load("missing")


@pytest.mark.parametrize("factory", STORE_FACTORIES)
def test_list_open_ids_excludes_terminal(factory: Callable) -> None:
    _, proposals = factory()
    open_one = make_proposal(proposal_id="a")
    closed = aggregate.advance(
        make_proposal(proposal_id="b"), Situation.CANCELLED, at(hours=1)
    ).proposal
    proposals.save(open_one, None)
    proposals.save(closed, None)

    assert proposals.list_open_ids() == ["a"]


def test_sqlite_migrations_are_repeatable() -> None:
    conn = _sqlite_conn()
    apply_migrations(conn)

    tables = {
        row[0]
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    }
    assert {"debtors", "proposals"} <= tables


def test_sqlite_row_tracks_situation_column() -> None:
    conn = _sqlite_conn()
    proposals = SqliteProposalStore(conn)
    proposal = make_proposal()
    proposals.save(proposal, None)
    proposals.save(aggregate.advance(proposal, Situation.VIEWED, at(hours=1)).proposal, 1)

    row = conn.execute("SELECT situation, version FROM proposals WHERE id=?", (proposal.id,)).fetchone()

    assert tuple(row) == ("viewed", 2)
