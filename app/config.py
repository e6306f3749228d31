"""Runtime configuration read from the environment (and an optional .env file)."""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env before any config values are read so os.getenv sees them
load_dotenv(BASE_DIR / ".env")

BACKEND_SQL = "sql"
BACKEND_MEMORY = "memory"


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "sqlite:///./campus_issues.db")
    # Fix for Render/Heroku: they use postgres:// but SQLAlchemy needs postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _backend() -> str:
    value = os.getenv("ISSUE_BACKEND", BACKEND_SQL).strip().lower()
    if value not in (BACKEND_SQL, BACKEND_MEMORY):
        raise RuntimeError(f"ISSUE_BACKEND must be '{BACKEND_SQL}' or '{BACKEND_MEMORY}', got '{value}'")
    return value


class Settings:
    DATABASE_URL = _database_url()
    ISSUE_BACKEND = _backend()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    # Signs the session cookie that carries the logged-in account id
    SECRET_KEY = os.getenv("SECRET_KEY", "campus-issues-dev-secret-change-in-prod")
    SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(14 * 24 * 60 * 60)))


settings = Settings()
