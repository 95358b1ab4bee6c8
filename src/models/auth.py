"""Auth request and response models with validation."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from src.models.account import Account


class LoginRequest(BaseModel):
    """Login credentials.

    Either ``user_name`` or ``email`` identifies the account.

    Attributes:
        user_name: Account handle
        email: Account contact address
        password: Account password
    """

    user_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Ensure password is not empty or whitespace only."""
        if not v.strip():
            raise ValueError("Password cannot be empty or whitespace only")
        return v

    @model_validator(mode="after")
    def identifier_required(self) -> "LoginRequest":
        """Require a user name or an email."""
        if not (self.user_name and self.user_name.strip()) and not (
            self.email and self.email.strip()
        ):
            raise ValueError("Username or email is required")
        return self


class RefreshRequest(BaseModel):
    """Inline refresh token, used when the refresh cookie is absent.

    Attributes:
        refresh_token: The refresh token to exchange
    """

    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    """Request to replace the caller's password."""

    old_password: str = ""
    new_password: str = ""
    confirm_password: str = ""


class UpdateAccountRequest(BaseModel):
    """Request to update the caller's profile fields.

    All fields are optional; only provided fields are updated.
    """

    email: Optional[str] = Field(default=None, max_length=255)
    full_name: Optional[str] = Field(default=None, max_length=255)


class SessionResponse(BaseModel):
    """Successful login or refresh response with the new token pair.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived JWT for obtaining a new pair
        token_type: Always "bearer"
        expires_in: Access token lifetime in seconds
        user: Public projection of the account
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(ge=1, description="Access token lifetime in seconds")
    user: Account


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
