"""
TaxDesk Server - Configuration

Deployment settings read from environment variables (prefix TAXDESK_).
Values that administrators may tune at runtime (reset token lifetime,
upload limit, password length) live in the settings table instead,
see DatabaseManager.PopulateDefaultSettings.
"""

import os
from pathlib import Path
from typing import List

ENV_PREFIX = "TAXDESK"


def _Env(suffix: str, default: str = "") -> str:
    value = os.getenv(f"{ENV_PREFIX}_{suffix}")
    return default if value is None else value


def _EnvInt(suffix: str, default: int) -> int:
    raw = os.getenv(f"{ENV_PREFIX}_{suffix}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _EnvList(suffix: str, default: List[str]) -> List[str]:
    raw = os.getenv(f"{ENV_PREFIX}_{suffix}")
    if raw is None or raw.strip() == "":
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


# ==================== Deployment ====================

ENV = _Env("ENV", "production")  # 'development' exposes reset tokens in responses
HOST = _Env("HOST", "0.0.0.0")
PORT = _EnvInt("PORT", 3001)

DATABASE_PATH = _Env("DATABASE_PATH", "database/taxdesk.db")
UPLOADS_DIR = Path(_Env("UPLOADS_DIR", "uploads"))
LOGS_DIR = Path(_Env("LOGS_DIR", "logs"))

CORS_ORIGINS = _EnvList("CORS_ORIGINS", ["http://localhost:3000", "http://localhost:5173"])

# E-mail of the admin account created on first start
ADMIN_EMAIL = _Env("ADMIN_EMAIL", "admin@taxdesk.local")

# ==================== External Identity Provider ====================

# Key used to verify identity provider tokens. Empty disables external credentials.
IDP_SECRET = _Env("IDP_SECRET", "")
IDP_ALGORITHM = _Env("IDP_ALGORITHM", "HS256")
IDP_AUDIENCE = _Env("IDP_AUDIENCE", "")

# ==================== Obligation Catalog ====================

# Optional JSON file replacing the built-in obligation catalog
OBLIGATION_CATALOG = _Env("OBLIGATION_CATALOG", "")


def IsDevelopment() -> bool:
    """True when running with TAXDESK_ENV=development"""
    return ENV.lower() == "development"
