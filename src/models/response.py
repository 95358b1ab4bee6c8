"""Error response model."""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned for every failed request.

    Attributes:
        status_code: HTTP status (400, 401, 404, 409 or 500)
        error: Error category
        detail: Human-readable explanation
        correlation_id: Request tracking ID
    """

    status_code: int = Field(ge=400, le=599)
    error: str
    detail: str
    correlation_id: Optional[str] = None
