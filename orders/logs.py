"""JSON logging with per-request correlation.

The request-id middleware stores the current request id in
``REQUEST_ID_CTX``; ``RequestIdFilter`` copies it onto every log record so
formatters can reliably reference ``%(request_id)s``.
"""

import contextvars
import logging
from logging import Filter, LogRecord

from pythonjsonlogger.json import JsonFormatter

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    If no request is in flight a hyphen ("-") is used as a placeholder.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def get_logger(level: str = "info") -> logging.Logger:
    """Return the ``orders`` logger, configuring it on first use."""
    logger = logging.getLogger("orders")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level.upper())
    return logger
