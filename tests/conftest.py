"""Shared fixtures: a SQLite file database stands in for the SQL Server instance."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from app.core.session import SessionRegistry
from app.dependencies.session import get_database_service
from app.main import app
from app.pipeline.sql.catalog import CatalogKind, CatalogLister
from app.pipeline.sql.executor import QueryExecutor
from app.schemas.profile_schema import ConnectionProfile, SqlLoginAuth
from app.services.database_service import DatabaseService
from app.utils.database_utils import parse_connection_string

SQLITE_CATALOG_QUERIES = {
    CatalogKind.DATABASES: "SELECT name FROM pragma_database_list WHERE name <> 'temp' ORDER BY name",
    CatalogKind.TABLES: (
        "SELECT 'main.' || name FROM sqlite_master "
        "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    ),
    CatalogKind.VIEWS: "SELECT 'main.' || name FROM sqlite_master WHERE type = 'view' ORDER BY name",
}


class TrackingEngineFactory:
    """Engine factory mapping `Server=` to a SQLite file and counting connections."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.database = root / "gateway.db"
        self.checkouts = 0
        self.checkins = 0
        self.calls: list[str] = []

    def __call__(self, connection_string: str) -> Engine:
        self.calls.append(connection_string)
        fields = {key.lower(): value for key, value in parse_connection_string(connection_string)}
        if fields.get("server") == "unreachable":
            # Parent directory does not exist, so connecting fails like a dead host.
            engine = create_engine(f"sqlite:///{self.root / 'missing' / 'nope.db'}", poolclass=NullPool)
        else:
            engine = create_engine(f"sqlite:///{self.database}", poolclass=NullPool)
        event.listen(engine, "checkout", self._on_checkout)
        event.listen(engine, "checkin", self._on_checkin)
        return engine

    @property
    def open_connections(self) -> int:
        return self.checkouts - self.checkins

    def _on_checkout(self, *_args: object) -> None:
        self.checkouts += 1

    def _on_checkin(self, *_args: object) -> None:
        self.checkins += 1


@pytest.fixture
def engine_factory(tmp_path: Path) -> TrackingEngineFactory:
    return TrackingEngineFactory(tmp_path)


@pytest.fixture
def executor(engine_factory: TrackingEngineFactory) -> QueryExecutor:
    return QueryExecutor(engine_factory=engine_factory)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry(max_sessions=4)


@pytest.fixture
def service(registry: SessionRegistry, executor: QueryExecutor) -> DatabaseService:
    catalog = CatalogLister(executor, queries=SQLITE_CATALOG_QUERIES)
    return DatabaseService(registry=registry, executor=executor, catalog=catalog)


@pytest.fixture
def client(service: DatabaseService) -> Iterator[TestClient]:
    app.dependency_overrides[get_database_service] = lambda: service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def reachable_profile() -> ConnectionProfile:
    return ConnectionProfile(
        name="Test Server",
        server="testhost",
        database="gateway",
        auth=SqlLoginAuth(user="sa", password="S3cret!pass"),
    )


@pytest.fixture
def unreachable_profile() -> ConnectionProfile:
    return ConnectionProfile(name="Dead Server", server="unreachable")
