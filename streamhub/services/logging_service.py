"""structlog setup: JSON lines on stdout with credential redaction."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

# Substrings of event keys whose values must never reach the log
SENSITIVE_KEYS = ("authorization", "secret", "password", "token")

REDACTED = "REDACTED"


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor replacing credential-looking values.

    Matching is on the key name, case-insensitively, so ``new_password``,
    ``refresh_token`` and ``JWT_ACCESS_SECRET`` are all caught. The ``event``
    value itself is left alone.
    """
    for key in event_dict:
        if key == "event":
            continue
        lowered = key.lower()
        if any(marker in lowered for marker in SENSITIVE_KEYS):
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging to stdout as JSON.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

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


def get_logger(name: Optional[str] = None):
    """Return a structlog logger, bound to ``logger_name`` when given."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger
