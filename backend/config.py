"""
Runtime configuration, read from the environment (and backend/.env if present).
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///focus.db")
SQL_ECHO = _flag("SQL_ECHO")

# Development fallback; set JWT_SECRET in .env for anything real.
JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-secret-key-change-me-in-env-0001")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
