"""Configuration module for the Lineas de Profundizacion API.

This module provides centralized configuration management, including directory
paths, API server settings, authentication parameters, and logging defaults.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

LOG_DIR = Path(os.getenv("LOG_DIR", str(ROOT_DIR / "logs")))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/lineas_profundizacion.db"
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "5000"))

# "development" exposes error details in 500 responses.
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production").strip().lower()

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,"
    "http://localhost:5173,http://127.0.0.1:5173",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM: str = "HS256"
JWT_ISSUER: str = os.getenv("JWT_ISSUER", "lineas-profundizacion-api")
JWT_EXPIRES_HOURS: int = int(os.getenv("JWT_EXPIRES_HOURS", "24"))

BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

MIN_PASSWORD_LENGTH: int = 6

# When set, self-registration with role "admin" must present this token.
ADMIN_REGISTRATION_TOKEN: Optional[str] = os.getenv("ADMIN_REGISTRATION_TOKEN") or None

# --- Catalog Defaults ---

DEFAULT_PAGE_SIZE: int = 10
MAX_PAGE_SIZE: int = 50
DEFAULT_SEARCH_LIMIT: int = 10
MIN_SEARCH_TERM_LENGTH: int = 2

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE_NAME: str = "app.log"
LOG_MAX_BYTES: int = 10 * 1024 * 1024
LOG_BACKUP_COUNT: int = 5
