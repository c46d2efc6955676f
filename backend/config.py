# config.py — Environment-driven settings for the IMF Gadget API
import os
import secrets

# ============================================================
# DATABASE
# ============================================================

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./imf_gadgets.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# ============================================================
# TOKENS
# ============================================================

INSECURE_SECRETS = {
    "",
    "change-this-to-a-secure-random-key-in-production",
    "and0LWludGVybnNoaXAtYXQtaW50cmFrcmFmdA==%",
}

# Reported by main._check_startup_config once logging is configured
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_SECRET_IS_EPHEMERAL = JWT_SECRET_KEY in INSECURE_SECRETS
if JWT_SECRET_IS_EPHEMERAL:
    JWT_SECRET_KEY = secrets.token_urlsafe(64)

JWT_ALGORITHM = "HS256"
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))

# ============================================================
# RUNTIME
# ============================================================

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "3000"))
APP_NAME = "IMF Gadget API"
APP_VERSION = "1.0.0"


def is_production() -> bool:
    return ENVIRONMENT == "production"
