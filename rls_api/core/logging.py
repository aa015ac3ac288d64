"""
Root logging setup.

Every record carries the request's correlation id and the authenticated
user id, taken from context variables set by the request middleware and the
identity dependency. Records logged outside a request show "-".
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Dict, Optional, Union

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

# record attribute -> context variable
_CONTEXT_FIELDS: Dict[str, ContextVar[Optional[str]]] = {
    "correlation_id": correlation_id_var,
    "user_id": user_id_var,
}

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | "
    "cid=%(correlation_id)s | user=%(user_id)s | %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Copy the request context variables onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field, var in _CONTEXT_FIELDS.items():
            setattr(record, field, var.get() or "-")
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Handler:
    """
    Install a single stdout handler on the root logger and return it.

    Handlers added earlier (basicConfig, a previous call) are replaced, so
    calling this again only changes the level.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    return handler
