# booking_engine/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from contextvars import ContextVar

from booking_engine.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Set per request by the correlation id middleware
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

# Library loggers that drown out booking logs unless running verbose
NOISY_LOGGERS = [
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "asyncpg",
    "aiosqlite",
    "alembic",
    "uvicorn.access",
]


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the current request's correlation id ("-" outside requests)"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(verbose=False):
    """Configure application logging"""
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )

    if not verbose and not settings.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
