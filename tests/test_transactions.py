"""Tests for per-thread transaction binding in SimpleDb."""

from __future__ import annotations

import sqlite3
import threading
from typing import Any

import pytest

from simpledb.database import InvalidStateError, OperationalError, SimpleDb

from conftest import BASE_TIME, SEED_ROWS


def _count(db: SimpleDb) -> int | None:
    return db.gen_sql().append("SELECT COUNT(*) FROM article").select_long()


def _insert(db: SimpleDb, title: str) -> int:
    return (
        db.gen_sql()
        .append("INSERT INTO article (title, body, created_at, modified_at)")
        .append("VALUES (?, ?, ?, ?)", title, title, BASE_TIME, BASE_TIME)
        .insert()
    )


class FailingConnection:
    """Connection stub whose commit/rollback raise a driver error."""

    def __init__(self) -> None:
        self.closed = False

    def commit(self) -> None:
        raise sqlite3.OperationalError("disk I/O error")

    def rollback(self) -> None:
        raise sqlite3.OperationalError("disk I/O error")

    def close(self) -> None:
        self.closed = True


@pytest.mark.integration
def test_rollback_undoes_statements(db: SimpleDb) -> None:
    db.start_transaction()
    assert db.is_in_transaction()

    _insert(db, "tx 1")
    _insert(db, "tx 2")
    assert _count(db) == SEED_ROWS + 2

    db.rollback()
    assert not db.is_in_transaction()
    assert _count(db) == SEED_ROWS


@pytest.mark.integration
def test_commit_persists_statements(db: SimpleDb) -> None:
    db.start_transaction()
    new_id = _insert(db, "kept")
    db.gen_sql().append("UPDATE article SET title = ? WHERE id = ?", "kept!", new_id).update()
    db.commit()

    assert not db.is_in_transaction()
    assert db.gen_sql().append("SELECT title FROM article WHERE id = ?", new_id).select_string() == "kept!"


@pytest.mark.integration
def test_transaction_connection_is_shared_and_left_open(db: SimpleDb) -> None:
    db.start_transaction()
    conn = db.get_connection()
    assert db.get_connection() is conn

    _count(db)
    conn.execute("SELECT 1")  # still open after a statement
    db.rollback()

    with pytest.raises(sqlite3.ProgrammingError, match="closed"):
        conn.execute("SELECT 1")


@pytest.mark.integration
def test_connections_outside_transaction_are_new(db: SimpleDb) -> None:
    first = db.get_connection()
    second = db.get_connection()
    try:
        assert first is not second
    finally:
        first.close()
        second.close()


@pytest.mark.integration
def test_start_transaction_twice_fails(db: SimpleDb) -> None:
    db.start_transaction()
    with pytest.raises(InvalidStateError, match="already in progress"):
        db.start_transaction()
    assert db.is_in_transaction()
    db.rollback()


@pytest.mark.integration
def test_commit_and_rollback_without_transaction_are_noops(db: SimpleDb) -> None:
    db.commit()
    db.rollback()
    assert not db.is_in_transaction()
    assert _count(db) == SEED_ROWS


@pytest.mark.integration
@pytest.mark.parametrize("action", ["commit", "rollback"])
def test_failed_finish_still_closes_and_unbinds(db: SimpleDb, action: str) -> None:
    stub = FailingConnection()
    db._local.conn = stub

    with pytest.raises(OperationalError, match="disk I/O error"):
        getattr(db, action)()

    assert stub.closed
    assert not db.is_in_transaction()


@pytest.mark.integration
def test_transaction_context_manager_commits(db: SimpleDb) -> None:
    with db.transaction():
        _insert(db, "ctx")
        assert db.is_in_transaction()

    assert not db.is_in_transaction()
    assert _count(db) == SEED_ROWS + 1


@pytest.mark.integration
def test_transaction_context_manager_rolls_back_on_error(db: SimpleDb) -> None:
    with pytest.raises(RuntimeError, match="boom"):
        with db.transaction():
            _insert(db, "ctx")
            raise RuntimeError("boom")

    assert not db.is_in_transaction()
    assert _count(db) == SEED_ROWS


@pytest.mark.integration
def test_close_rolls_back_open_transaction(db: SimpleDb) -> None:
    db.start_transaction()
    _insert(db, "abandoned")
    db.close()

    assert not db.is_in_transaction()
    assert _count(db) == SEED_ROWS


@pytest.mark.integration
def test_transactions_are_isolated_per_thread(db: SimpleDb) -> None:
    db.start_transaction()
    tx_conn = db.get_connection()
    seen: dict[str, Any] = {}

    def other_thread() -> None:
        seen["in_transaction"] = db.is_in_transaction()
        conn = db.get_connection()
        seen["same_connection"] = conn is tx_conn
        conn.close()
        db.commit()  # no transaction on this thread: no-op

    worker = threading.Thread(target=other_thread)
    worker.start()
    worker.join()

    assert seen == {"in_transaction": False, "same_connection": False}
    assert db.is_in_transaction()
    db.rollback()


@pytest.mark.integration
def test_run_uses_transaction_connection(db: SimpleDb) -> None:
    db.start_transaction()
    db.run("DELETE FROM article WHERE id = ?", 1)
    assert _count(db) == SEED_ROWS - 1
    db.rollback()
    assert _count(db) == SEED_ROWS
