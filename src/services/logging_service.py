"""Structured logging for the accounts service.

Every log line is a JSON object. Credentials that flow through the session
endpoints (passwords, password hashes, session tokens in either their
``refresh_token`` or cookie ``refreshToken`` spelling, signing secrets and
media host keys) are masked before rendering, including inside nested
mappings such as ``cookies`` or ``headers``.
"""

import logging
import sys
from typing import Any, Mapping

import structlog

REDACTED = "REDACTED"

# Matched against keys lower-cased with "_" and "-" removed, so
# "refresh_token", "refreshToken" and "Refresh-Token" all hit "refreshtoken".
SENSITIVE_KEY_FRAGMENTS = frozenset(
    {
        "password",
        "secret",
        "apikey",
        "authorization",
        "accesstoken",
        "refreshtoken",
        "signature",
        "cookie",
    }
)


def _normalize_key(key: str) -> str:
    return key.lower().replace("_", "").replace("-", "")


def _is_sensitive(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    normalized = _normalize_key(key)
    return any(fragment in normalized for fragment in SENSITIVE_KEY_FRAGMENTS)


def _redact_mapping(values: Mapping[str, Any]) -> dict[str, Any]:
    redacted = {}
    for key, value in values.items():
        if _is_sensitive(key):
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = _redact_mapping(value)
        else:
            redacted[key] = value
    return redacted


def redact_sensitive(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor that masks credential fields.

    ``event`` itself is never treated as sensitive, so an event named
    ``refresh_token_mismatch`` is still readable.
    """
    for key in list(event_dict.keys()):
        if key == "event":
            continue
        value = event_dict[key]
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        elif isinstance(value, Mapping):
            event_dict[key] = _redact_mapping(value)
    return event_dict


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and route the stdlib loggers through stdout.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render JSON; False switches to the console renderer for
            local development
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # CorrelationIdMiddleware already logs one line per request
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, bound to ``logger_name`` when a name is given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
