"""
Controller do gateway de banco de dados por sessão.

Toda rota responde com o envelope `{ok, ...}`; falhas voltam como
`{ok: false, error, code}` em vez de erros HTTP.
"""
import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar

from fastapi import APIRouter, Depends

from app.core.exceptions import GatewayError
from app.core.session import new_session_id
from app.dependencies.session import get_database_service, get_session_id
from app.pipeline.sql.catalog import CatalogKind
from app.schemas.database_schema import (
    ListResponse,
    OkResponse,
    OpenResponse,
    PreviewResponse,
    QueryRequest,
    QueryResponse,
    StatusResponse,
)
from app.schemas.profile_schema import ConnectionProfile
from app.services.database_service import DatabaseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/db", tags=["Database Gateway"])

T = TypeVar("T")


async def _in_thread(fn: Callable[..., T], *args: Any) -> T:
    """Executa o trabalho bloqueante do driver no executor padrão"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: fn(*args))


@router.post("/open", response_model=OpenResponse, response_model_exclude_none=True)
async def open_connection(
    profile: ConnectionProfile,
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    """
    Testa o servidor descrito pelo perfil e o associa à sessão.

    **Request Body**: ConnectionProfile (server, database, auth, encrypt,
    trustServerCertificate, connectionString)

    **Response**:
    - sessionId: id a reenviar no header de sessão (gerado quando ausente)
    - connectionString: connection string com os segredos mascarados

    Se o teste falhar, a sessão permanece exatamente como estava.
    """
    sid = session_id or new_session_id()
    try:
        redacted = await _in_thread(svc.open, sid, profile)
    except GatewayError as e:
        return OpenResponse(ok=False, error=e.message, code=e.code)

    return OpenResponse(ok=True, session_id=sid, connection_string=redacted)


@router.post("/close", response_model=OkResponse, response_model_exclude_none=True)
async def close_connection(
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    """Esquece a conexão da sessão. Sempre tem sucesso."""
    svc.close(session_id)
    return OkResponse(ok=True)


@router.get("/status", response_model=StatusResponse, response_model_exclude_none=True)
async def connection_status(
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    state = svc.status(session_id)
    if state is None:
        return StatusResponse(connected=False)
    return StatusResponse(
        connected=True,
        connection_string=svc.redacted_current(session_id),
        opened_at=state.opened_at,
    )


@router.post("/preview", response_model=PreviewResponse, response_model_exclude_none=True)
async def preview_connection_string(
    profile: ConnectionProfile,
    svc: DatabaseService = Depends(get_database_service)
):
    """Connection string que o perfil usaria, com segredos mascarados. Sem I/O de rede."""
    return PreviewResponse(connection_string=svc.preview(profile))


async def _list(svc: DatabaseService, session_id: Optional[str], kind: CatalogKind) -> ListResponse:
    try:
        items = await _in_thread(svc.list_catalog, session_id, kind)
    except GatewayError as e:
        logger.warning(f"[list-{kind.value}] {e.code}: {e.message}")
        return ListResponse(ok=False, error=e.message, code=e.code)
    return ListResponse(ok=True, items=items)


@router.post("/listDatabases", response_model=ListResponse, response_model_exclude_none=True)
async def list_databases(
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    """Databases de usuário do servidor (sem os de sistema), ordenados por nome."""
    return await _list(svc, session_id, CatalogKind.DATABASES)


@router.post("/listTables", response_model=ListResponse, response_model_exclude_none=True)
async def list_tables(
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    """Tabelas do database atual no formato `schema.table`."""
    return await _list(svc, session_id, CatalogKind.TABLES)


@router.post("/listViews", response_model=ListResponse, response_model_exclude_none=True)
async def list_views(
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    """Views do database atual no formato `schema.view`."""
    return await _list(svc, session_id, CatalogKind.VIEWS)


@router.post("/query", response_model=QueryResponse, response_model_exclude_none=True)
async def run_query(
    req: QueryRequest,
    session_id: Optional[str] = Depends(get_session_id),
    svc: DatabaseService = Depends(get_database_service)
):
    """
    Executa SQL na conexão da sessão.

    **Request Body**:
    - sql: comando(s) enviados ao servidor sem alteração

    **Response**:
    - result: {columns, rows} com células normalizadas para string/number/boolean/null
    - rowCount: número de linhas em result
    - affectedRows: contagem do driver para comandos que não retornam linhas
    """
    try:
        result, row_count, affected, elapsed_ms = await _in_thread(svc.query, session_id, req.sql)
    except GatewayError as e:
        logger.warning(f"[query] {e.code}: {e.message}")
        return QueryResponse(ok=False, error=e.message, code=e.code)

    return QueryResponse(
        ok=True,
        result=result,
        row_count=row_count,
        affected_rows=affected,
        elapsed_ms=elapsed_ms,
    )
