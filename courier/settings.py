"""Runtime configuration for the courier booking service.

Values are read once from environment variables. Database connection
parameters default to a local Postgres instance; set ``DATABASE_URL`` to
override the whole URL (tests point it at a SQLite file).
"""

import os

DB_HOST = os.getenv("DB_HOST", "courier-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "courier")
DB_USER = os.getenv("DB_USER", "courier_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "courier-pass")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_STARTUP_TIMEOUT = float(os.getenv("DB_STARTUP_TIMEOUT", "30"))

# LR numbers
LR_PREFIX = os.getenv("LR_PREFIX", "N2K")
LR_FALLBACK_DISTRICT = os.getenv("LR_FALLBACK_DISTRICT", "X")
DEFAULT_ORDER_STATUS = os.getenv("DEFAULT_ORDER_STATUS", "Pending")

# Parallel reference lookups per request
LOOKUP_WORKERS = int(os.getenv("LOOKUP_WORKERS", "5"))

SEED_REFERENCE_DATA = os.getenv("SEED_REFERENCE_DATA", "0") == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "9000"))
WORKERS = int(os.getenv("UVICORN_WORKERS", str(max(2, (os.cpu_count() or 1)))))
