"""
Serviço para as operações do gateway: abrir/fechar sessão, executar SQL, listar o catálogo.
"""
import logging
from typing import List, Optional, Tuple

from app.core.exceptions import ExecutionError, NoActiveConnection
from app.core.session import SessionRegistry, SessionState, sessions
from app.pipeline.sql.catalog import CatalogKind, CatalogLister
from app.pipeline.sql.executor import QueryExecutor
from app.pipeline.sql.normalizer import TabularResult, normalize_result
from app.schemas.profile_schema import ConnectionProfile
from app.utils.database_utils import build_connection_string, redact_connection_string

logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Service que orquestra o ciclo de vida da conexão de cada sessão e a execução de queries.

    O registro de sessões é a única fonte da connection string ativa,
    tanto para queries quanto para listagens do catálogo.
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry] = None,
        executor: Optional[QueryExecutor] = None,
        catalog: Optional[CatalogLister] = None
    ):
        self.registry = registry if registry is not None else sessions
        self.executor = executor or QueryExecutor()
        self.catalog = catalog or CatalogLister(self.executor)

    def open(self, session_id: str, profile: ConnectionProfile) -> str:
        """
        Testa o servidor do perfil e, só em caso de sucesso, o torna a conexão da sessão.

        Args:
            session_id: Sessão que recebe a conexão
            profile: Como alcançar o servidor

        Returns:
            A connection string com segredos mascarados

        Raises:
            ConnectivityError: Falha no teste; o estado da sessão não é alterado
        """
        cs = build_connection_string(profile)
        redacted = redact_connection_string(cs)
        logger.info(f"[open] probing '{profile.name}': {redacted}")

        try:
            self.executor.probe(cs)
        except Exception as e:
            logger.warning(f"[open] probe failed for '{profile.name}': {e}")
            raise

        self.registry.open(session_id, cs)
        return redacted

    def close(self, session_id: Optional[str]) -> None:
        self.registry.close(session_id)

    def status(self, session_id: Optional[str]) -> Optional[SessionState]:
        return self.registry.status(session_id)

    def redacted_current(self, session_id: Optional[str]) -> Optional[str]:
        cs = self.registry.current(session_id)
        return redact_connection_string(cs) if cs else None

    def list_catalog(self, session_id: Optional[str], kind: CatalogKind) -> List[str]:
        """
        Lista databases, tabelas ou views visíveis pela conexão da sessão.

        Raises:
            NoActiveConnection: Sessão não conectada
            ConnectivityError / ExecutionError: Repassados do executor
        """
        return self.catalog.list(self.registry.current(session_id), kind)

    def query(self, session_id: Optional[str], sql: str) -> Tuple[TabularResult, int, Optional[int], int]:
        """
        Executa o SQL do operador na conexão da sessão.

        Returns:
            (resultado normalizado, nº de linhas, linhas afetadas, tempo em ms)
        """
        cs = self.registry.current(session_id)
        if not cs:
            raise NoActiveConnection()
        if not sql.strip():
            raise ExecutionError("Provide SQL to execute.")

        logger.info(f"[query] session {session_id[:8]}... running {len(sql)} chars of SQL")
        raw = self.executor.execute(cs, sql)
        result = normalize_result(raw)
        return result, len(result.rows), raw.affected_rows, raw.elapsed_ms

    @staticmethod
    def preview(profile: ConnectionProfile) -> str:
        """Connection string mascarada que o perfil usaria (sem I/O)"""
        return redact_connection_string(build_connection_string(profile))
