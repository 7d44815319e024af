"""
Logging setup.

WHAT: Configures the root logger with a format that includes the request ID
captured by RequestContextMiddleware.

WHY: Modules log through ``logging.getLogger(__name__)``; tagging every
record with the request ID lets one request be traced through the API,
service and audit layers.
"""

import logging
from typing import Optional

from bizledger.middleware.request_context import get_request_context

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_request_context()
        record.request_id = context.request_id if context else "-"
        return True


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once at application startup.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)
    """
    from bizledger.core.config import settings

    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    # Re-running (tests build many apps) must not stack handlers
    for handler in root.handlers:
        if getattr(handler, "_bizledger", False):
            return

    handler = logging.StreamHandler()
    handler._bizledger = True
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)

    # SQL echo is controlled by settings.DEBUG on the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
