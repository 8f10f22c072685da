"""
End-to-end tests: merged statements executed against real databases.
"""
import pytest

from merge_batcher import (
    Expectations,
    MergeBatcher,
    Parameter,
    PendingStatement,
    QueryCollector,
    StaleStateError,
)
from merge_batcher.executors.generic import GenericExecutor


def insert_item(item_id, name, qty):
    return PendingStatement(
        "INSERT INTO items (id, name, qty) VALUES (:id, :name, :qty)",
        [Parameter("id", item_id), Parameter("name", name), Parameter("qty", qty)],
    )


def fetch_items(connection):
    return connection.execute("SELECT id, name, qty FROM items ORDER BY id").fetchall()


@pytest.mark.db
def test_merged_inserts_bind_the_right_values(sqlite_connection):
    """Each row ends up with its own values after renaming."""
    collector = QueryCollector()
    executor = GenericExecutor(sqlite_connection, split_statements=True)
    batcher = MergeBatcher(executor, batch_size=10, query_collector=collector)

    batcher.add_to_batch(insert_item(1, "bolt", 10))
    batcher.add_to_batch(insert_item(2, "nut, hex", 20))
    batcher.add_to_batch(insert_item(3, "washer", 30))
    batcher.add_to_batch(PendingStatement(
        "UPDATE items SET qty = qty + :delta WHERE id = :id",
        [Parameter("delta", 5), Parameter("id", 2)],
    ))
    assert batcher.execute_batch() == 4

    assert fetch_items(sqlite_connection) == [
        (1, "bolt", 10),
        (2, "nut, hex", 25),
        (3, "washer", 30),
    ]
    assert len(collector.queries) == 1
    assert collector.queries[0]["sql"].startswith(
        "INSERT INTO items (id, name, qty) VALUES (:p0, :p1, :p2), (:p3, :p4, :p5), (:p6, :p7, :p8);\n"
    )


@pytest.mark.db
def test_threshold_flushes_in_order(sqlite_connection):
    """Statements spanning several flushes run in add order."""
    executor = GenericExecutor(sqlite_connection, split_statements=True)
    batcher = MergeBatcher(executor, batch_size=2)

    batcher.add_to_batch(insert_item(1, "a", 1))
    batcher.add_to_batch(PendingStatement(
        "UPDATE items SET name = :name WHERE id = :id",
        [Parameter("name", "b"), Parameter("id", 1)],
    ))
    assert batcher.count_of_statements_in_current_batch == 0

    batcher.add_to_batch(PendingStatement("DELETE FROM items WHERE id = :id", [Parameter("id", 1)]))
    batcher.add_to_batch(insert_item(1, "c", 3))
    batcher.execute_batch()

    assert fetch_items(sqlite_connection) == [(1, "c", 3)]


@pytest.mark.db
def test_lost_update_detected(sqlite_connection):
    """An update that matches no row surfaces as a stale state error after execution."""
    executor = GenericExecutor(sqlite_connection, split_statements=True)
    batcher = MergeBatcher(executor, batch_size=10)

    batcher.add_to_batch(insert_item(1, "a", 1))
    batcher.add_to_batch(PendingStatement(
        "UPDATE items SET qty = :qty WHERE id = :id",
        [Parameter("qty", 9), Parameter("id", 99)],
    ))

    with pytest.raises(StaleStateError) as excinfo:
        batcher.execute_batch()

    assert (excinfo.value.expected, excinfo.value.actual) == (2, 1)
    # The statement already ran; rolling back is up to the caller
    assert fetch_items(sqlite_connection) == [(1, "a", 1)]
    sqlite_connection.rollback()
    assert fetch_items(sqlite_connection) == []


@pytest.mark.db
def test_non_mergeable_runs_after_pending_work(sqlite_connection):
    executor = GenericExecutor(sqlite_connection, split_statements=True)

    with MergeBatcher(executor, batch_size=10) as batcher:
        batcher.add_to_batch(insert_item(1, "a", 1))
        batcher.add_to_batch(insert_item(2, "b", 2))
        batcher.add_to_batch(PendingStatement(
            "DELETE FROM items WHERE qty < :qty",
            [Parameter("qty", 10)],
            Expectations.NONE,
        ))
        batcher.add_to_batch(insert_item(3, "c", 3))

    assert fetch_items(sqlite_connection) == [(3, "c", 3)]


@pytest.mark.postgres
def test_postgresql_round_trip(postgres_params):
    """Merged statement executed by PostgreSQL in one call."""
    from merge_batcher.executors.postgresql import PostgreSQLExecutor

    executor = PostgreSQLExecutor(connection_params=postgres_params)
    try:
        executor.cursor.execute("CREATE TEMP TABLE merge_items (id integer PRIMARY KEY, note text)")
        batcher = MergeBatcher(executor, batch_size=10)
        batcher.add_to_batch(PendingStatement(
            "INSERT INTO merge_items (id, note) VALUES (:id, :note)",
            [Parameter("id", 1), Parameter("note", "100% done")],
        ))
        batcher.add_to_batch(PendingStatement(
            "INSERT INTO merge_items (id, note) VALUES (:id, :note)",
            [Parameter("id", 2), Parameter("note", "it's")],
        ))
        batcher.execute_batch()

        executor.cursor.execute("SELECT id, note FROM merge_items ORDER BY id")
        assert executor.cursor.fetchall() == [(1, "100% done"), (2, "it's")]
    finally:
        executor.rollback_transaction()
        executor.close()


@pytest.mark.postgres
def test_postgresql_mixed_batch_verifies(postgres_params):
    """An insert group followed by an update matches the batch total."""
    from merge_batcher.executors.postgresql import PostgreSQLExecutor

    executor = PostgreSQLExecutor(connection_params=postgres_params)
    try:
        executor.cursor.execute("CREATE TEMP TABLE merge_stock (id integer PRIMARY KEY, qty integer)")
        batcher = MergeBatcher(executor, batch_size=10)
        for item_id in (1, 2):
            batcher.add_to_batch(PendingStatement(
                "INSERT INTO merge_stock (id, qty) VALUES (:id, :qty)",
                [Parameter("id", item_id), Parameter("qty", 10)],
            ))
        batcher.add_to_batch(PendingStatement(
            "UPDATE merge_stock SET qty = qty - :delta WHERE id = :id",
            [Parameter("delta", 3), Parameter("id", 2)],
        ))

        assert batcher.execute_batch() == 3

        executor.cursor.execute("SELECT id, qty FROM merge_stock ORDER BY id")
        assert executor.cursor.fetchall() == [(1, 10), (2, 7)]
    finally:
        executor.rollback_transaction()
        executor.close()
