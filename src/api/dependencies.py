"""FastAPI dependencies for authentication."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.api.session_cookies import ACCESS_COOKIE
from src.config import get_settings
from src.models.account import Account
from src.services.account_store import AccountStore
from src.services.errors import InvalidTokenError, UnauthorizedError, store_errors
from src.services.token_codec import TokenCodec

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Account:
    """Resolve the caller from the access token.

    The token is read from the access cookie first, then from the
    Authorization Bearer header.

    Returns:
        Public projection of the authenticated account

    Raises:
        UnauthorizedError: No token, or the account no longer exists
        InvalidTokenError / ExpiredTokenError: Token rejected by the codec
    """
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials

    if not token:
        raise UnauthorizedError("Unauthorized request")

    codec = TokenCodec.from_settings(get_settings())
    subject = codec.verify_access(token)

    try:
        account_id = UUID(subject)
    except ValueError:
        raise InvalidTokenError("Invalid access token")

    with store_errors("authenticate the request"):
        record = await AccountStore().get_by_id(account_id)

    if record is None:
        raise UnauthorizedError("Invalid access token")

    return record.to_public()
