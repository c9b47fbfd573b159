"""
Logging setup for RewardCircle.

Configures the root logger once per process. Every record gets a
``request_id`` attribute (``-`` outside of a request) so log lines from one
HTTP call can be correlated.
"""
import logging
import os
import sys

from flask import g, has_request_context

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] [req:%(request_id)s] %(message)s'

_configured = False


class RequestIdFilter(logging.Filter):
    """Attach the current request id to log records."""

    def filter(self, record):
        request_id = '-'
        if has_request_context():
            request_id = getattr(g, 'request_id', None) or '-'
        record.request_id = request_id
        return True


def setup_logging(level: str = None) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name; defaults to the LOG_LEVEL env var, then INFO
    """
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.addHandler(handler)

    # SQL echo is noisy at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    _configured = True
