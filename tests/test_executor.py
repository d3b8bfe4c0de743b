"""Tests for the per-call query executor."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from app.core.exceptions import ConnectivityError, ExecutionError, NoActiveConnection
from app.pipeline.sql.executor import QueryExecutor, read_first_result_set
from app.schemas.profile_schema import ConnectionProfile
from app.utils.database_utils import build_connection_string, redact_connection_string

if TYPE_CHECKING:
    from tests.conftest import TrackingEngineFactory

REACHABLE = "Server=testhost;Database=gateway;Trusted_Connection=Yes;"
UNREACHABLE = "Server=unreachable;Database=gateway;Trusted_Connection=Yes;"


def test_select_returns_columns_and_rows(executor: QueryExecutor) -> None:
    raw = executor.execute(REACHABLE, "SELECT 1 AS x")

    assert raw.columns == ["x"]
    assert raw.rows == [(1,)]
    assert raw.affected_rows is None


def test_missing_connection_string_is_no_active_connection(
    executor: QueryExecutor, engine_factory: TrackingEngineFactory
) -> None:
    with pytest.raises(NoActiveConnection):
        executor.execute(None, "SELECT 1")
    assert engine_factory.calls == []


def test_sql_errors_surface_as_execution_error(
    executor: QueryExecutor, engine_factory: TrackingEngineFactory
) -> None:
    with pytest.raises(ExecutionError) as excinfo:
        executor.execute(REACHABLE, "SELEC 1")

    assert "syntax error" in excinfo.value.message
    assert engine_factory.checkouts == 1
    assert engine_factory.open_connections == 0


def test_unreachable_server_is_connectivity_error(
    executor: QueryExecutor, engine_factory: TrackingEngineFactory
) -> None:
    with pytest.raises(ConnectivityError):
        executor.execute(UNREACHABLE, "SELECT 1")
    assert engine_factory.open_connections == 0


def test_probe_opens_and_releases(executor: QueryExecutor, engine_factory: TrackingEngineFactory) -> None:
    executor.probe(REACHABLE)

    assert engine_factory.checkouts == 1
    assert engine_factory.open_connections == 0


def test_probe_failure_raises(executor: QueryExecutor) -> None:
    with pytest.raises(ConnectivityError):
        executor.probe(UNREACHABLE)


def test_redacted_string_is_never_used_to_connect(
    executor: QueryExecutor, engine_factory: TrackingEngineFactory
) -> None:
    redacted = redact_connection_string("Server=testhost;Uid=sa;Pwd=secret;")

    with pytest.raises(ConnectivityError):
        executor.probe(redacted)
    assert engine_factory.calls == []


def test_each_call_uses_a_fresh_connection(executor: QueryExecutor, engine_factory: TrackingEngineFactory) -> None:
    executor.execute(REACHABLE, "CREATE TABLE t (id INTEGER, name TEXT)")
    executor.execute(REACHABLE, "INSERT INTO t VALUES (1, 'a')")
    raw = executor.execute(REACHABLE, "SELECT id, name FROM t")

    assert raw.rows == [(1, "a")]
    assert engine_factory.checkouts == 3
    assert engine_factory.open_connections == 0


def test_statements_without_rows_report_affected_count(executor: QueryExecutor) -> None:
    executor.execute(REACHABLE, "CREATE TABLE t (id INTEGER)")

    raw = executor.execute(REACHABLE, "INSERT INTO t VALUES (1), (2)")

    assert raw.columns == []
    assert raw.rows == []
    assert raw.affected_rows == 2


def test_sql_is_sent_verbatim(executor: QueryExecutor) -> None:
    raw = executor.execute(REACHABLE, "SELECT ':not_a_param' AS literal")
    assert raw.rows == [(":not_a_param",)]


def test_built_profile_string_reaches_the_engine(
    executor: QueryExecutor, engine_factory: TrackingEngineFactory
) -> None:
    cs = build_connection_string(ConnectionProfile(server="testhost"))

    executor.probe(cs)

    assert engine_factory.calls == [cs]


class ScriptedCursor:
    """DBAPI cursor replaying a list of (description, rowcount, rows) results"""

    def __init__(self, results: list[tuple]) -> None:
        self._results = results
        self._index = 0

    @property
    def description(self):
        return self._results[self._index][0]

    @property
    def rowcount(self) -> int:
        return self._results[self._index][1]

    def fetchall(self) -> list:
        return self._results[self._index][2]

    def nextset(self) -> bool:
        if self._index + 1 >= len(self._results):
            return False
        self._index += 1
        return True


def test_row_count_results_ahead_of_a_select_are_skipped() -> None:
    cursor = ScriptedCursor([
        (None, 1, []),
        ((("id", None), ("name", None)), -1, [(1, "a"), (2, "b")]),
    ])

    columns, rows, affected = read_first_result_set(cursor)

    assert columns == ["id", "name"]
    assert rows == [(1, "a"), (2, "b")]
    assert affected is None


def test_batch_without_result_sets_sums_row_counts() -> None:
    cursor = ScriptedCursor([(None, 2, []), (None, -1, []), (None, 3, [])])

    assert read_first_result_set(cursor) == ([], [], 5)


def test_cursor_without_nextset_stops_at_first_result() -> None:
    class SingleResultCursor:
        description = None
        rowcount = 4

    assert read_first_result_set(SingleResultCursor()) == ([], [], 4)
