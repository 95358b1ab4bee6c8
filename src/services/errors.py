"""Service-level error taxonomy.

Every failure a service surfaces is one of the classes below. The FastAPI
app converts them into ``{status_code, error, detail}`` responses in one
place (see ``src.main``), so routers never build error payloads themselves.
"""

from contextlib import contextmanager
from typing import Iterator

import asyncpg
import structlog

logger = structlog.get_logger(__name__)


class ServiceError(Exception):
    """Base class for errors that cross the service boundary.

    Attributes:
        status_code: HTTP status the error maps to
        error: Short error category shown to the caller
        message: Human-readable explanation
    """

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Caller input is missing or malformed."""

    status_code = 400
    error = "Validation error"


class UnauthorizedError(ServiceError):
    """Bad secret, or a bad, expired or mismatched token."""

    status_code = 401
    error = "Unauthorized"


class InvalidTokenError(UnauthorizedError):
    """Token is malformed, has a bad signature, or is the wrong kind."""


class ExpiredTokenError(UnauthorizedError):
    """Token signature is fine but its expiry is in the past."""


class NotFoundError(ServiceError):
    """No matching account or resource."""

    status_code = 404
    error = "Not found"


class ConflictError(ServiceError):
    """Uniqueness violation."""

    status_code = 409
    error = "Conflict"


class InternalError(ServiceError):
    """Downstream infrastructure failure (store, signing, media host)."""

    status_code = 500
    error = "Internal error"


_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Convert record-store driver failures into InternalError.

    Args:
        action: Completes "Something went wrong while trying to ..."
    """
    try:
        yield
    except _STORE_ERRORS as e:
        logger.error(
            "account_store_failed",
            action=action,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError(f"Something went wrong while trying to {action}") from e
