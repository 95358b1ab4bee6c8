"""Account registration and session lifecycle.

Each account holds at most one live refresh token. Login and refresh mint
a new access/refresh pair and overwrite the stored refresh token, which
revokes whatever was stored before; logout clears it. A presented refresh
token is honoured only if it verifies and is literally equal to the
stored value.

There is no compare-and-swap on the stored value. Two concurrent logins
for the same account both succeed, and whichever write lands last is the
only session that can be refreshed.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import asyncpg
import jwt
import structlog

from src.config import get_settings
from src.models.account import Account, AccountRecord
from src.services.account_store import AccountStore
from src.services.errors import (
    ConflictError,
    InternalError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    store_errors,
)
from src.services.media_uploader import MediaUploader
from src.services.password_hasher import MAX_PASSWORD_BYTES, PasswordHasher
from src.services.token_codec import IssuedToken, TokenCodec

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a successful login or refresh."""

    account: Account
    access: IssuedToken
    refresh: IssuedToken


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_password_length(password: str) -> None:
    if PasswordHasher.is_too_long(password):
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


class SessionManager:
    """Orchestrates registration, login, refresh, logout and account edits."""

    def __init__(
        self,
        store: AccountStore | None = None,
        codec: TokenCodec | None = None,
        hasher: PasswordHasher | None = None,
        uploader: MediaUploader | None = None,
    ):
        self.store = store or AccountStore()
        self.codec = codec or TokenCodec.from_settings(get_settings())
        self.hasher = hasher or PasswordHasher()
        self.uploader = uploader or MediaUploader()

    async def close(self):
        """Release the media host client."""
        await self.uploader.close()

    async def register(
        self,
        user_name: str,
        full_name: str,
        email: str,
        password: str,
        avatar_path: Optional[str],
        cover_path: Optional[str] = None,
    ) -> Account:
        """Create an account after uploading its profile images.

        The new account has no live session; registration never mints
        tokens.

        Raises:
            ValidationError: Blank field, password too long, missing avatar,
                or failed upload
            ConflictError: Handle or email already registered
        """
        if any(_blank(v) for v in (user_name, full_name, email, password)):
            raise ValidationError("All fields are required")
        _check_password_length(password)

        user_name = user_name.strip()
        email = email.strip()

        with store_errors("register the user"):
            taken = await self.store.exists(user_name, email)
        if taken:
            raise ConflictError("User with this username or email already exists")

        if _blank(avatar_path):
            raise ValidationError("Avatar image must be provided")

        avatar = await self.uploader.upload(avatar_path)
        cover = await self.uploader.upload(cover_path) if not _blank(cover_path) else None

        if avatar is None:
            raise ValidationError("Avatar image upload failed. Retry")
        if not _blank(cover_path) and cover is None:
            raise ValidationError("Cover image upload failed. Retry")

        password_hash = self.hasher.hash_password(password)

        with store_errors("register the user"):
            try:
                account_id = await self.store.create(
                    user_name=user_name,
                    email=email,
                    full_name=full_name.strip(),
                    password_hash=password_hash,
                    avatar_image=avatar.url,
                    cover_image=cover.url if cover else "",
                )
            except asyncpg.UniqueViolationError:
                raise ConflictError("User with this username or email already exists")

        with store_errors("register the user"):
            record = await self.store.get_by_id(account_id)
        if record is None:
            raise InternalError("Something went wrong while registering the user")

        logger.info("account_registered", account_id=str(account_id), user_name=record.user_name)
        return record.to_public()

    async def login(
        self,
        password: str,
        user_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> SessionResult:
        """Verify credentials and start a new session.

        Any refresh token issued by an earlier login stops working.

        Raises:
            ValidationError: No identifier or no password
            NotFoundError: No account matches the identifier
            UnauthorizedError: Password does not match
            InternalError: Tokens could not be minted or stored
        """
        if _blank(user_name) and _blank(email):
            raise ValidationError("Username or email is required")
        if _blank(password):
            raise ValidationError("Password is required")

        with store_errors("log in"):
            record = await self.store.find_by_login(
                user_name=None if _blank(user_name) else user_name.strip(),
                email=None if _blank(email) else email.strip(),
            )

        if record is None:
            raise NotFoundError("User does not exist")

        if not self.hasher.verify_password(password, record.password_hash):
            logger.info("login_rejected", account_id=str(record.id))
            raise UnauthorizedError("Invalid user credentials")

        result = await self._start_session(record)
        logger.info("session_started", account_id=str(record.id))
        return result

    async def refresh(self, presented: Optional[str]) -> SessionResult:
        """Exchange the live refresh token for a new pair (rotation).

        Raises:
            UnauthorizedError: Token absent, account gone, or the token is
                not the one currently stored
            InvalidTokenError: Token malformed or signature mismatch
            ExpiredTokenError: Token past expiry
            InternalError: Tokens could not be minted or stored
        """
        if _blank(presented):
            raise UnauthorizedError("Unauthorized request")

        subject, raw_value = self.codec.verify_refresh(presented)

        try:
            account_id = UUID(subject)
        except ValueError:
            raise InvalidTokenError("Invalid refresh token")

        with store_errors("refresh the session"):
            record = await self.store.get_by_id(account_id)

        if record is None:
            raise UnauthorizedError("Invalid refresh token")

        if record.refresh_token != raw_value:
            logger.warning("refresh_token_mismatch", account_id=str(account_id))
            raise UnauthorizedError("Refresh token is expired or used")

        result = await self._start_session(record)
        logger.info("session_rotated", account_id=str(account_id))
        return result

    async def logout(self, account_id: UUID) -> None:
        """Clear the stored refresh token. Safe to call repeatedly."""
        with store_errors("log out"):
            updated = await self.store.save_refresh_token(account_id, None)
        logger.info("session_cleared", account_id=str(account_id), found=updated)

    async def change_password(
        self,
        account_id: UUID,
        old_password: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str],
    ) -> None:
        """Replace the account's password.

        The live refresh token is left in place.

        Raises:
            ValidationError: Missing field, confirmation mismatch, new
                password equal to the old one, or new password too long
            NotFoundError: Account does not exist
            UnauthorizedError: Old password does not match
        """
        if any(_blank(v) for v in (old_password, new_password, confirm_password)):
            raise ValidationError("All fields are required")
        if new_password != confirm_password:
            raise ValidationError("New password and confirm password must match")
        if new_password == old_password:
            raise ValidationError("New password must be different from old password")
        _check_password_length(new_password)

        with store_errors("change the password"):
            record = await self.store.get_by_id(account_id)
        if record is None:
            raise NotFoundError("User does not exist")

        if not self.hasher.verify_password(old_password, record.password_hash):
            raise UnauthorizedError("Invalid old password")

        with store_errors("change the password"):
            updated = await self.store.update_password_hash(
                account_id, self.hasher.hash_password(new_password)
            )
        if not updated:
            raise NotFoundError("User does not exist")

        logger.info("password_changed", account_id=str(account_id))

    async def get_current_account(self, account_id: UUID) -> Account:
        """Return the caller's public projection."""
        with store_errors("fetch the user"):
            record = await self.store.get_by_id(account_id)
        if record is None:
            raise NotFoundError("User does not exist")
        return record.to_public()

    async def update_profile_fields(
        self,
        account_id: UUID,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> Account:
        """Update email and/or full name; absent fields are left untouched.

        Raises:
            ValidationError: Neither field supplied
            ConflictError: Email belongs to another account
            NotFoundError: Account does not exist
        """
        email = None if _blank(email) else email.strip()
        full_name = None if _blank(full_name) else full_name.strip()

        if email is None and full_name is None:
            raise ValidationError("At least one of email or full name is required")

        with store_errors("update the account"):
            try:
                record = await self.store.update_fields(
                    account_id, email=email, full_name=full_name
                )
            except asyncpg.UniqueViolationError:
                raise ConflictError("Email is already in use")

        if record is None:
            raise NotFoundError("User does not exist")
        return record.to_public()

    async def _start_session(self, record: AccountRecord) -> SessionResult:
        """Mint a token pair and store the refresh token on the account.

        Nothing is returned to the caller unless the store write succeeded.
        """
        subject = str(record.id)
        try:
            access = self.codec.issue_access(
                subject,
                claims={
                    "user_name": record.user_name,
                    "email": record.email,
                    "full_name": record.full_name,
                },
            )
            refresh = self.codec.issue_refresh(subject)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            logger.error("token_minting_failed", account_id=subject, error=str(e))
            raise InternalError(
                "Something went wrong while generating access and refresh tokens"
            ) from e

        with store_errors("start the session"):
            saved = await self.store.save_refresh_token(record.id, refresh.value)
        if not saved:
            raise InternalError(
                "Something went wrong while generating access and refresh tokens"
            )

        return SessionResult(account=record.to_public(), access=access, refresh=refresh)
