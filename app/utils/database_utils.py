"""
ODBC connection string helpers: build from a profile, parse, redact.

Grammar (ODBC): `key=value` pairs separated by `;`. A value wrapped in
braces may contain `;`, with `}` escaped as `}}`.
"""
from typing import List, Optional, Tuple
from urllib.parse import quote_plus

from app.core.config import settings
from app.core.exceptions import MalformedConnectionString
from app.schemas.profile_schema import ConnectionProfile, SqlLoginAuth

MASK = "***"
SECRET_KEYS = {"pwd", "password"}
LOCAL_SERVER_ALIASES = {".", "localhost", "(local)"}

Pair = Tuple[str, str]


def normalize_server(raw: Optional[str]) -> str:
    """Map the usual spellings of the local default instance to '.'; blank uses DEFAULT_SERVER"""
    s = (raw or "").strip()
    if not s:
        return settings.DEFAULT_SERVER
    if s.lower() in LOCAL_SERVER_ALIASES:
        return "."
    return s


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def build_connection_string(profile: ConnectionProfile, driver: Optional[str] = None) -> str:
    """
    Build the driver connection string for a profile.

    A non-blank raw connection string wins verbatim (trimmed); otherwise the
    structured fields are used.
    """
    if profile.uses_raw_connection_string:
        return profile.connection_string.strip()

    database = (profile.database or "").strip() or settings.DEFAULT_DATABASE
    pairs: List[Pair] = [
        ("Driver", driver or settings.ODBC_DRIVER),
        ("Server", normalize_server(profile.server)),
        ("Database", database),
    ]

    if isinstance(profile.auth, SqlLoginAuth):
        pairs.append(("Uid", profile.auth.user))
        pairs.append(("Pwd", profile.auth.password))
    else:
        pairs.append(("Trusted_Connection", "Yes"))

    encrypt = profile.encrypt if profile.encrypt is not None else False
    trust = profile.trust_server_certificate if profile.trust_server_certificate is not None else True
    pairs.append(("Encrypt", _yes_no(encrypt)))
    pairs.append(("TrustServerCertificate", _yes_no(trust)))

    return format_connection_string(pairs)


def parse_connection_string(cs: str) -> List[Pair]:
    """
    Split a connection string into ordered (key, value) pairs.

    Raises MalformedConnectionString. The message never echoes input text,
    it could hold a secret.
    """
    pairs: List[Pair] = []
    i, n = 0, len(cs)

    while i < n:
        while i < n and (cs[i] == ";" or cs[i].isspace()):
            i += 1
        if i >= n:
            break

        eq = cs.find("=", i)
        if eq == -1:
            raise MalformedConnectionString(f"Expected '=' after position {i}.")
        key = cs[i:eq].strip()
        if not key or ";" in key:
            raise MalformedConnectionString(f"Invalid key at position {i}.")
        i = eq + 1

        while i < n and cs[i] in " \t":
            i += 1

        if i < n and cs[i] == "{":
            i += 1
            buf: List[str] = []
            while True:
                if i >= n:
                    raise MalformedConnectionString(f"Unterminated brace in value of '{key}'.")
                ch = cs[i]
                if ch == "}":
                    if i + 1 < n and cs[i + 1] == "}":
                        buf.append("}")
                        i += 2
                        continue
                    i += 1
                    break
                buf.append(ch)
                i += 1
            value = "".join(buf)
            while i < n and cs[i] in " \t":
                i += 1
            if i < n and cs[i] != ";":
                raise MalformedConnectionString(f"Unexpected text after braced value of '{key}'.")
        else:
            end = cs.find(";", i)
            if end == -1:
                end = n
            value = cs[i:end].strip()
            i = end

        pairs.append((key, value))

    return pairs


def _needs_braces(key: str, value: str) -> bool:
    if key.lower() == "driver":
        return True
    return any(c in value for c in ";{}") or value != value.strip()


def format_connection_string(pairs: List[Pair]) -> str:
    """Serialize pairs back into canonical `key=value;` form"""
    parts = []
    for key, value in pairs:
        if _needs_braces(key, value):
            value = "{" + value.replace("}", "}}") + "}"
        parts.append(f"{key}={value};")
    return "".join(parts)


def redact_connection_string(cs: str) -> str:
    """
    Mask password fields for display or storage.

    Idempotent. Input that cannot be parsed is returned unchanged.
    """
    try:
        pairs = parse_connection_string(cs)
    except MalformedConnectionString:
        return cs

    redacted = [
        (key, MASK if key.lower() in SECRET_KEYS and value else value)
        for key, value in pairs
    ]
    return format_connection_string(redacted)


def is_redacted(cs: str) -> bool:
    """True when a secret field holds the mask (display-only string)"""
    try:
        pairs = parse_connection_string(cs)
    except MalformedConnectionString:
        return False
    return any(key.lower() in SECRET_KEYS and value == MASK for key, value in pairs)


def to_sqlalchemy_url(cs: str) -> str:
    """Wrap an ODBC connection string for the mssql+pyodbc dialect"""
    return f"mssql+pyodbc:///?odbc_connect={quote_plus(cs)}"
