"""
Connection profile DTOs.

A profile describes how to reach a SQL Server instance. It is built by the
client for every connect attempt and never mutated afterwards.
"""
import json
import logging
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

PROFILE_STORAGE_KEY = "forgesql.lastProfile.v2"


class WindowsAuth(BaseModel):
    """Integrated (trusted) authentication, no credentials"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["windows"] = "windows"


class SqlLoginAuth(BaseModel):
    """SQL Server login with explicit user/password"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["sql"] = "sql"
    user: str = ""
    password: str = ""


AuthSpec = Union[WindowsAuth, SqlLoginAuth]


class ConnectionProfile(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = "Local SQL Server"
    server: str = "."
    database: Optional[str] = "master"
    auth: AuthSpec = Field(default_factory=WindowsAuth, discriminator="kind")
    encrypt: Optional[bool] = None
    trust_server_certificate: Optional[bool] = Field(default=None, alias="trustServerCertificate")
    connection_string: str = Field(default="", alias="connectionString")

    @property
    def uses_raw_connection_string(self) -> bool:
        return bool((self.connection_string or "").strip())


def _pick(data: dict, key: str, default):
    value = data.get(key)
    return default if value is None else value


def default_profile() -> ConnectionProfile:
    """Profile used when nothing (or nothing readable) was stored"""
    return ConnectionProfile(
        name="Local SQL Server",
        server=".",
        database="master",
        auth=WindowsAuth(),
        encrypt=False,
        trust_server_certificate=True,
        connection_string="",
    )


def load_stored_profile(raw: Optional[str]) -> ConnectionProfile:
    """
    Decode the stored last-used profile record.

    Missing fields fall back to the default profile one by one; absent or
    malformed records yield the default profile itself.
    """
    base = default_profile()
    if not raw:
        return base

    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Stored profile is not valid JSON, using defaults")
        return base

    if not isinstance(parsed, dict):
        return base

    auth_data = parsed.get("auth")
    raw_cs = parsed.get("connectionString")

    try:
        if isinstance(auth_data, dict) and auth_data.get("kind") == "sql":
            auth: AuthSpec = SqlLoginAuth(
                user=_pick(auth_data, "user", ""),
                password=_pick(auth_data, "password", ""),
            )
        else:
            auth = WindowsAuth()

        return ConnectionProfile(
            name=_pick(parsed, "name", base.name),
            server=_pick(parsed, "server", base.server),
            database=_pick(parsed, "database", base.database),
            auth=auth,
            encrypt=_pick(parsed, "encrypt", base.encrypt),
            trust_server_certificate=_pick(parsed, "trustServerCertificate", base.trust_server_certificate),
            connection_string=raw_cs if isinstance(raw_cs, str) else base.connection_string,
        )
    except ValidationError:
        logger.warning("Stored profile has invalid fields, using defaults")
        return base


def dump_stored_profile(profile: ConnectionProfile) -> str:
    """
    Serialize a profile for storage.

    Secrets never reach storage: the password is dropped and a raw
    connection string is stored redacted.
    """
    from app.utils.database_utils import redact_connection_string

    data = profile.model_dump(by_alias=True)
    if data["auth"]["kind"] == "sql":
        data["auth"]["password"] = ""
    raw = (profile.connection_string or "").strip()
    data["connectionString"] = redact_connection_string(raw) if raw else ""
    return json.dumps(data)
