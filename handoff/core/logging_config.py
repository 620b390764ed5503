"""Structured JSON logging for the verify API.

Every record carries the id of the request it belongs to, and customer email
addresses are masked before a record is formatted.
"""

import contextvars
import logging
import re
import uuid

from pythonjsonlogger.json import JsonFormatter

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

_EMAIL_RE = re.compile(
    r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)+)"
)

# Loggers that print full request URLs; query strings carry emails and API keys
_URL_LOGGERS = ("httpx", "httpcore")


def mask_email(text: str) -> str:
    """``jane.doe@shop.com`` becomes ``j***@shop.com``."""
    return _EMAIL_RE.sub(r"\1***@\2", text)


class RequestContextFilter(logging.Filter):
    """Attach the current request id and mask emails in the message."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        if record.args:
            record.msg = mask_email(record.getMessage())
            record.args = ()
        elif isinstance(record.msg, str):
            record.msg = mask_email(record.msg)
        return True


def setup_logging(*, debug: bool = False, environment: str = "development") -> None:
    """Configure the root logger with the JSON formatter and request context filter."""
    handler = logging.StreamHandler()
    formatter = JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
        static_fields={"service": "handoff-verify", "environment": environment},
    )
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    for name in _URL_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Short random id used when the caller sends no ``X-Request-ID``."""
    return uuid.uuid4().hex[:16]
