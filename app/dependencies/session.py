from typing import Optional

from fastapi import Request

from app.core.config import settings
from app.services.database_service import DatabaseService

# Process-wide service; tests override get_database_service
_database_service: Optional[DatabaseService] = None


def get_database_service() -> DatabaseService:
    """
    Dependency returning the gateway service.

    Usage:
        @router.post("/query")
        async def query(svc: DatabaseService = Depends(get_database_service)):
            ...
    """
    global _database_service
    if _database_service is None:
        _database_service = DatabaseService()
    return _database_service


def get_session_id(request: Request) -> Optional[str]:
    """Session id from the configured header (X-Session-Id by default), if any"""
    value = request.headers.get(settings.SESSION_HEADER, "").strip()
    return value or None
