"""Account models: the stored record and its public projection."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Account(BaseModel):
    """Public projection of an account.

    Never carries the password hash or the refresh token.
    """

    id: UUID
    user_name: str
    email: str
    full_name: str
    avatar_image: str
    cover_image: str = ""
    watch_history: list[UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class AccountRecord(Account):
    """Full account row as persisted, including credentials.

    Only the session layer handles this model; convert with
    ``to_public()`` before anything leaves the service.
    """

    password_hash: str
    refresh_token: Optional[str] = None

    def to_public(self) -> Account:
        """Drop credential fields."""
        return Account(**self.model_dump(exclude={"password_hash", "refresh_token"}))
