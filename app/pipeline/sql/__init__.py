"""
SQL utilities (execution, normalization, catalog)
"""
from app.pipeline.sql.executor import QueryExecutor, RawResult
from app.pipeline.sql.normalizer import (
    Cell,
    TabularResult,
    normalize_cell,
    normalize_result,
)
from app.pipeline.sql.catalog import CATALOG_QUERIES, CatalogKind, CatalogLister

__all__ = [
    "QueryExecutor",
    "RawResult",
    "Cell",
    "TabularResult",
    "normalize_cell",
    "normalize_result",
    "CATALOG_QUERIES",
    "CatalogKind",
    "CatalogLister",
]
