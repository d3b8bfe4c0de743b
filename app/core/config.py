import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
DOTENV_PATH = (Path(__file__).resolve().parent.parent.parent / ".env")
load_dotenv(dotenv_path=DOTENV_PATH, override=False)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} deve ser um inteiro, recebido: {raw!r}") from e


class Settings:
    # App Configuration
    APP_TITLE: str = os.getenv("APP_TITLE", "SQL Gateway").strip()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    CORS_ALLOW_ORIGINS: list[str] = [
        o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
    ]

    # SQL Server connection defaults
    ODBC_DRIVER: str = os.getenv("ODBC_DRIVER", "ODBC Driver 17 for SQL Server").strip()
    DEFAULT_SERVER: str = os.getenv("DEFAULT_SERVER", ".").strip() or "."
    DEFAULT_DATABASE: str = os.getenv("DEFAULT_DATABASE", "master").strip() or "master"
    DB_CONNECT_TIMEOUT: int = _env_int("DB_CONNECT_TIMEOUT", 15)

    # Session Configuration
    SESSION_HEADER: str = os.getenv("SESSION_HEADER", "X-Session-Id").strip()
    MAX_SESSIONS: int = _env_int("MAX_SESSIONS", 256)
    SESSION_IDLE_SECONDS: int = _env_int("SESSION_IDLE_SECONDS", 1800)

    def validate(self):
        if self.DB_CONNECT_TIMEOUT <= 0:
            raise RuntimeError("DB_CONNECT_TIMEOUT precisa ser maior que zero.")
        if self.MAX_SESSIONS <= 0:
            raise RuntimeError("MAX_SESSIONS precisa ser maior que zero.")
        if self.SESSION_IDLE_SECONDS <= 0:
            raise RuntimeError("SESSION_IDLE_SECONDS precisa ser maior que zero.")
        if not self.SESSION_HEADER:
            raise RuntimeError("SESSION_HEADER não pode ser vazio.")


settings = Settings()
settings.validate()
