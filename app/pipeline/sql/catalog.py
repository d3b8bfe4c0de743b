"""
Catalog listings (databases, tables, views)

Fixed queries against the SQL Server system views, run through the same
execute -> normalize path as operator SQL.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional

from app.pipeline.sql.executor import QueryExecutor
from app.pipeline.sql.normalizer import coerce_str, normalize_result

logger = logging.getLogger(__name__)


class CatalogKind(str, Enum):
    DATABASES = "databases"
    TABLES = "tables"
    VIEWS = "views"


# database_id > 4 skips master, tempdb, model and msdb
CATALOG_QUERIES: Dict[CatalogKind, str] = {
    CatalogKind.DATABASES: (
        "SELECT name FROM sys.databases WHERE database_id > 4 ORDER BY name;"
    ),
    CatalogKind.TABLES: (
        "SELECT s.name + '.' + t.name FROM sys.tables t "
        "JOIN sys.schemas s ON t.schema_id = s.schema_id "
        "ORDER BY s.name, t.name;"
    ),
    CatalogKind.VIEWS: (
        "SELECT s.name + '.' + v.name FROM sys.views v "
        "JOIN sys.schemas s ON v.schema_id = s.schema_id "
        "ORDER BY s.name, v.name;"
    ),
}


class CatalogLister:
    """Runs a catalog query and flattens its single column into names"""

    def __init__(self, executor: QueryExecutor, queries: Optional[Dict[CatalogKind, str]] = None):
        self._executor = executor
        self._queries = dict(queries or CATALOG_QUERIES)

    def list(self, connection_string: Optional[str], kind: CatalogKind) -> List[str]:
        raw = self._executor.execute(connection_string, self._queries[kind])
        result = normalize_result(raw)
        if not result.columns:
            return []
        names = [coerce_str(row[0]) for row in result.rows]
        logger.info(f"[catalog] listed {len(names)} {kind.value}")
        return names
