"""JWT codec for access and refresh tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

import jwt
import structlog

from src.config import Settings
from src.services.errors import ExpiredTokenError, InvalidTokenError

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_RESERVED_CLAIMS = {"sub", "iat", "exp", "jti", "type"}


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and the metadata it encodes."""

    value: str
    subject: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Signs and verifies access and refresh tokens.

    The two token kinds use distinct secrets, so one kind can never be
    verified as the other. Each token carries a random ``jti`` so that
    two tokens minted for the same subject in the same second differ.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=10),
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Access and refresh signing secrets are required")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh signing secrets must differ")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        """Build a codec from application settings."""
        return cls(
            access_secret=settings.access_token_secret,
            refresh_secret=settings.refresh_token_secret,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )

    def issue_access(
        self, subject: str, claims: Optional[dict[str, Any]] = None
    ) -> IssuedToken:
        """Create a signed access token.

        Args:
            subject: Account id placed in the 'sub' claim
            claims: Extra non-reserved claims (user_name, email, ...)

        Returns:
            IssuedToken with the encoded JWT
        """
        extra = {k: v for k, v in (claims or {}).items() if k not in _RESERVED_CLAIMS}
        return self._issue(
            subject, ACCESS_TOKEN_TYPE, self._access_secret, self.access_ttl, extra
        )

    def issue_refresh(self, subject: str) -> IssuedToken:
        """Create a signed refresh token for the subject."""
        return self._issue(
            subject, REFRESH_TOKEN_TYPE, self._refresh_secret, self.refresh_ttl, {}
        )

    def verify_access(self, token: str) -> str:
        """Verify an access token and return its subject.

        Raises:
            InvalidTokenError: Malformed, bad signature, or wrong token type
            ExpiredTokenError: Valid signature but past expiry
        """
        payload = self._decode(token, ACCESS_TOKEN_TYPE, self._access_secret)
        return payload["sub"]

    def verify_refresh(self, token: str) -> tuple[str, str]:
        """Verify a refresh token.

        Returns:
            Tuple of (subject, raw token value) for comparison with the
            value stored on the account

        Raises:
            InvalidTokenError: Malformed, bad signature, or wrong token type
            ExpiredTokenError: Valid signature but past expiry
        """
        payload = self._decode(token, REFRESH_TOKEN_TYPE, self._refresh_secret)
        return payload["sub"], token

    def _issue(
        self,
        subject: str,
        token_type: str,
        secret: str,
        ttl: timedelta,
        extra: dict[str, Any],
    ) -> IssuedToken:
        if not subject:
            raise ValueError("Token subject is required")

        now = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = now + ttl
        payload = {
            **extra,
            "sub": subject,
            "iat": now,
            "exp": expires_at,
            "jti": uuid4().hex,
            "type": token_type,
        }
        value = jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "token_issued",
            subject=subject,
            token_type=token_type,
            expires_at=expires_at.isoformat(),
        )
        return IssuedToken(
            value=value, subject=subject, issued_at=now, expires_at=expires_at
        )

    def _decode(self, token: str, token_type: str, secret: str) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            raise InvalidTokenError(f"Invalid {token_type} token")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError(f"{token_type.capitalize()} token has expired")
        except jwt.InvalidTokenError as e:
            logger.debug("token_rejected", token_type=token_type, reason=str(e))
            raise InvalidTokenError(f"Invalid {token_type} token")

        if payload.get("type") != token_type or not payload.get("sub"):
            raise InvalidTokenError(f"Invalid {token_type} token")

        return payload
