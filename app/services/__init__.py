"""
Service layer for business logic
"""
from app.services.database_service import DatabaseService

__all__ = [
    "DatabaseService",
]
