"""Logging setup for the booking service.

Records are emitted as JSON lines through ``python-json-logger``. The
``RequestIdFilter`` injects the current request id (set by
``RequestIdMiddleware``) so every record, including those raised from the
booking workflows, can be correlated with the HTTP request that caused it.
"""

import logging
from logging import Filter, LogRecord

from pythonjsonlogger import jsonlogger

from .middleware import REQUEST_ID_CTX

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    The value comes from ``REQUEST_ID_CTX``. Outside a request the context
    default ("-") is used so formatters can always reference
    ``%(request_id)s``.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def configure_logging(level: str = "info") -> logging.Logger:
    """Install the JSON handler on the ``courier`` logger once.

    Child loggers (``courier.domain``, ``courier.repository``, ...) propagate
    to it, so the filter sits on the handler rather than the logger.

    Args:
        level: Level name, case-insensitive (e.g. "info", "DEBUG").

    Returns:
        logging.Logger: The configured ``courier`` logger.
    """
    logger = logging.getLogger("courier")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level.upper())
    return logger
