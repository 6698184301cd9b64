"""Tests for PostgresClient - pooled connections and explicit transactions.

Runs against the database named by LEDGER_TEST_DATABASE_URL; skipped otherwise.
"""

import os
import threading
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient, _convert_params


@pytest.fixture
def scratch_table(db):
    """Per-test scratch table, dropped afterwards."""
    name = f"scratch_{uuid4().hex[:12]}"
    db.execute(f"CREATE TABLE {name} (id UUID PRIMARY KEY, label TEXT NOT NULL)")
    yield name
    db.execute(f"DROP TABLE IF EXISTS {name}")


class TestConvertParams:
    """UUID adaptation (no database needed)."""

    def test_converts_nested_uuids(self):
        value = uuid4()
        assert _convert_params((value, [value], {"k": value})) == (str(value), [str(value)], {"k": str(value)})

    def test_none_passes_through(self):
        assert _convert_params(None) is None


class TestExecuteMethods:
    """Query execution methods."""

    def test_execute_returns_list_of_dicts(self, db):
        """execute() returns list of row dicts."""
        results = db.execute("SELECT 1 as num, 'hello' as word")
        assert results == [{"num": 1, "word": "hello"}]

    def test_execute_empty_returns_empty_list(self, db):
        """No matching rows returns [], not None."""
        assert db.execute("SELECT 1 WHERE false") == []

    def test_execute_single_returns_dict(self, db):
        assert db.execute_single("SELECT 42 as answer") == {"answer": 42}

    def test_execute_single_no_rows_returns_none(self, db):
        assert db.execute_single("SELECT 1 WHERE false") is None

    def test_uuid_params_accepted(self, db):
        value = uuid4()
        assert db.execute_single("SELECT %s::uuid::text AS id", (value,)) == {"id": str(value)}


class TestTransaction:
    """transaction() commits on success and rolls back on error."""

    def test_commits(self, db, scratch_table):
        row_id = uuid4()

        with db.transaction() as tx:
            tx.execute(f"INSERT INTO {scratch_table} (id, label) VALUES (%s, %s)", (row_id, "kept"))
            assert tx.rowcount == 1

        assert db.execute_single(f"SELECT label FROM {scratch_table} WHERE id = %s", (row_id,)) == {"label": "kept"}

    def test_rolls_back_on_exception(self, db, scratch_table):
        row_id = uuid4()

        with pytest.raises(RuntimeError):
            with db.transaction() as tx:
                tx.execute(f"INSERT INTO {scratch_table} (id, label) VALUES (%s, %s)", (row_id, "doomed"))
                raise RuntimeError("abort")

        assert db.execute_single(f"SELECT * FROM {scratch_table} WHERE id = %s", (row_id,)) is None

    def test_for_update_serializes_writers(self, db, scratch_table):
        """A second locker waits until the first transaction commits."""
        row_id = uuid4()
        db.execute(f"INSERT INTO {scratch_table} (id, label) VALUES (%s, %s)", (row_id, "0"))
        first_locked = threading.Event()
        seen_by_second = []

        def second():
            first_locked.wait()
            with db.transaction() as tx:
                row = tx.execute_single(f"SELECT label FROM {scratch_table} WHERE id = %s FOR UPDATE", (row_id,))
                seen_by_second.append(row["label"])

        worker = threading.Thread(target=second)
        worker.start()
        with db.transaction() as tx:
            tx.execute(f"SELECT label FROM {scratch_table} WHERE id = %s FOR UPDATE", (row_id,))
            first_locked.set()
            worker.join(timeout=0.5)
            tx.execute(f"UPDATE {scratch_table} SET label = %s WHERE id = %s", ("1", row_id))
        worker.join()

        assert seen_by_second == ["1"]


class TestLifecycle:

    def test_closed_client_refuses_work(self, db):
        """A closed client cannot borrow connections."""
        client = PostgresClient(os.environ["LEDGER_TEST_DATABASE_URL"], min_connections=1, max_connections=1)
        client.close()

        assert client.closed
        with pytest.raises(RuntimeError, match="closed"):
            client.execute("SELECT 1")
