"""
SQL Executor
Runs operator-supplied SQL text on a fresh connection per call
"""
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Tuple

from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from app.core.database import EngineFactory, create_gateway_engine
from app.core.exceptions import ConnectivityError, ExecutionError, NoActiveConnection
from app.utils.database_utils import is_redacted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResult:
    """Column names and driver-typed rows exactly as the backend returned them"""
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    affected_rows: Optional[int] = None
    elapsed_ms: int = 0


def _error_message(exc: Exception) -> str:
    """Prefer the driver's own message over SQLAlchemy's wrapper text"""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def read_first_result_set(cursor: Any) -> Tuple[List[str], List[Tuple[Any, ...]], Optional[int]]:
    """
    Skip row-count-only results until one carries columns.

    A batch like `INSERT ...; SELECT ...` reports the INSERT's row count
    first. When no result has columns, the row counts are summed.
    """
    affected: Optional[int] = None
    while cursor.description is None:
        if cursor.rowcount is not None and cursor.rowcount >= 0:
            affected = (affected or 0) + cursor.rowcount
        nextset = getattr(cursor, "nextset", None)
        if nextset is None or not nextset():
            return [], [], affected

    columns = [str(col[0]) for col in cursor.description]
    rows = [tuple(r) for r in cursor.fetchall()]
    return columns, rows, None


class QueryExecutor:
    """
    Opens a connection per call and always releases it.

    The SQL text is an opaque payload: it is sent verbatim, without
    parsing, statement splitting or parameter binding.
    """

    def __init__(self, engine_factory: EngineFactory = create_gateway_engine):
        self._engine_factory = engine_factory

    @contextmanager
    def _connect(self, connection_string: str) -> Iterator[Connection]:
        if is_redacted(connection_string):
            raise ConnectivityError(
                "The connection string contains a redacted secret; supply the real credentials."
            )

        try:
            engine = self._engine_factory(connection_string)
        except Exception as e:
            raise ConnectivityError(_error_message(e)) from e

        try:
            try:
                conn = engine.connect()
            except Exception as e:
                raise ConnectivityError(_error_message(e)) from e
            try:
                yield conn.execution_options(isolation_level="AUTOCOMMIT")
            finally:
                conn.close()
        finally:
            engine.dispose()

    def probe(self, connection_string: str) -> None:
        """Open and release a connection; raises ConnectivityError on failure"""
        with self._connect(connection_string):
            pass

    def execute(self, connection_string: Optional[str], sql: str) -> RawResult:
        """
        Execute `sql` using a snapshot of the session's connection string.

        Row-count-only results ahead of the first result set are skipped;
        later result sets are not read.
        """
        if not connection_string:
            raise NoActiveConnection()

        started = time.perf_counter()
        with self._connect(connection_string) as conn:
            try:
                cursor = conn.connection.cursor()
                try:
                    cursor.execute(sql)
                    columns, rows, affected = read_first_result_set(cursor)
                finally:
                    cursor.close()
            except Exception as e:
                message = _error_message(e)
                logger.warning(f"[executor] statement failed: {message}")
                raise ExecutionError(message) from e

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"[executor] {len(rows)} row(s), {len(columns)} column(s) in {elapsed_ms}ms")
        return RawResult(columns=columns, rows=rows, affected_rows=affected, elapsed_ms=elapsed_ms)
