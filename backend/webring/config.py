"""Runtime configuration.

Every value can be overridden through the environment (or a ``.env`` file in
the working directory).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# --- Database ---

DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///data.db")
MIN_CONNECTIONS = int(os.environ.get("MIN_CONNECTIONS", "5"))
MAX_CONNECTIONS = int(os.environ.get("MAX_CONNECTIONS", "5"))
ACQUIRE_TIMEOUT_SECS = int(os.environ.get("ACQUIRE_TIMEOUT_SECS", "10"))
IDLE_TIMEOUT_SECS = int(os.environ.get("IDLE_TIMEOUT_SECS", "300"))

# --- Sessions / tokens ---

SESSION_COOKIE = os.environ.get("SESSION_COOKIE", "sid")
SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", "604800"))  # 7 days

JWT_SECRET = os.environ.get("JWT_SECRET", "dev-secret-change-me")
JWT_TTL_SECONDS = int(os.environ.get("JWT_TTL_SECONDS", "604800"))  # 7d

PBKDF2_ITERS = int(os.environ.get("PBKDF2_ITERS", "200000"))
HASH_WORKERS = int(os.environ.get("HASH_WORKERS", "2"))

# --- Ring ---

RING_HOME_URL = os.environ.get("RING_HOME_URL", "/")
VERIFY_TIMEOUT_SECS = float(os.environ.get("VERIFY_TIMEOUT_SECS", "10"))

# --- Misc ---

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

_CORS_ALLOWED_ORIGINS_STR = os.environ.get("CORS_ALLOWED_ORIGINS", "*")
CORS_ALLOWED_ORIGINS = [o.strip() for o in _CORS_ALLOWED_ORIGINS_STR.split(",") if o.strip()]

ADMIN_BOOTSTRAP_USERNAME = os.environ.get("ADMIN_BOOTSTRAP_USERNAME", "").strip()
ADMIN_BOOTSTRAP_PASSWORD = os.environ.get("ADMIN_BOOTSTRAP_PASSWORD", "").strip()
ADMIN_BOOTSTRAP_EMAIL = os.environ.get("ADMIN_BOOTSTRAP_EMAIL", "").strip()

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.environ.get("LOG_FILE", "").strip()
