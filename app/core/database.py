from typing import Callable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.utils.database_utils import to_sqlalchemy_url

# connection string -> Engine; swapped out in tests
EngineFactory = Callable[[str], Engine]


def create_gateway_engine(connection_string: str) -> Engine:
    """
    Engine for a single short-lived connection to SQL Server.

    NullPool: every connect() opens a fresh DBAPI connection and close()
    really closes it.
    """
    return create_engine(
        to_sqlalchemy_url(connection_string),
        poolclass=NullPool,
        connect_args={"timeout": settings.DB_CONNECT_TIMEOUT},
        future=True,
    )
