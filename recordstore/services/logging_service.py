"""Structured JSON logging.

Every entry passes through redact_sensitive, so credentials, session
cookies and reset tokens never reach the log stream.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog

# Substrings that mark a field as sensitive (matched case-insensitively)
SENSITIVE_KEYS = ("password", "token", "secret", "cookie", "authorization", "api_key")


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask the value of every field whose name mentions a sensitive key.

    The ``event`` entry is the log message itself and is left alone, so
    events such as ``reset_token_consumed`` stay readable.
    """
    for key in event_dict:
        if key != "event" and any(s in key.lower() for s in SENSITIVE_KEYS):
            event_dict[key] = "REDACTED"
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output to stdout as one JSON object per line.

    Unknown level names fall back to INFO.
    """
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Return a logger whose entries carry ``logger_name``."""
    return structlog.get_logger().bind(logger_name=name)
