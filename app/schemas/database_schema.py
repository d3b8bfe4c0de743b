"""
Schemas (DTOs) for the /api/db gateway operations.

Field names go over the wire in camelCase.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.pipeline.sql.normalizer import TabularResult


class GatewayModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QueryRequest(GatewayModel):
    """Body of /query: the SQL text to run, sent verbatim"""
    model_config = ConfigDict(extra="ignore")

    sql: str


class ErrorResponse(GatewayModel):
    ok: bool = False
    error: str
    code: str
    field: Optional[str] = None


class OkResponse(GatewayModel):
    ok: bool = True


class OpenResponse(GatewayModel):
    ok: bool
    session_id: Optional[str] = None
    connection_string: Optional[str] = None  # always redacted
    error: Optional[str] = None
    code: Optional[str] = None


class ListResponse(GatewayModel):
    ok: bool
    items: List[str] = []
    error: Optional[str] = None
    code: Optional[str] = None


class QueryResponse(GatewayModel):
    ok: bool
    result: Optional[TabularResult] = None
    row_count: int = 0
    affected_rows: Optional[int] = None
    elapsed_ms: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None


class StatusResponse(GatewayModel):
    ok: bool = True
    connected: bool
    connection_string: Optional[str] = None  # redacted
    opened_at: Optional[datetime] = None


class PreviewResponse(GatewayModel):
    ok: bool = True
    connection_string: str  # redacted
