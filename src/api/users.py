"""Account and session API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status

from src.api.dependencies import get_current_account
from src.api.session_cookies import (
    REFRESH_COOKIE,
    clear_session_cookies,
    set_session_cookies,
)
from src.api.uploads import discard_uploads, stash_upload
from src.models.account import Account
from src.models.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    SessionResponse,
    UpdateAccountRequest,
)
from src.models.channel import ChannelProfile, WatchHistoryEntry
from src.services.channel_service import ChannelService
from src.services.session_manager import SessionManager, SessionResult

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _session_response(result: SessionResult) -> SessionResponse:
    """Convert a SessionResult to the JSON body sent with the cookies."""
    return SessionResponse(
        access_token=result.access.value,
        refresh_token=result.refresh.value,
        token_type="bearer",
        expires_in=int((result.access.expires_at - result.access.issued_at).total_seconds()),
        user=result.account,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_name: str = Form(default=""),
    full_name: str = Form(default=""),
    email: str = Form(default=""),
    password: str = Form(default=""),
    avatar_image: Optional[UploadFile] = File(default=None),
    cover_image: Optional[UploadFile] = File(default=None),
) -> Account:
    """Register a new account with an avatar and optional cover image.

    Returns:
        Public projection of the created account

    Raises:
        ValidationError 400: Missing field, missing avatar, or failed upload
        ConflictError 409: Username or email already registered
    """
    avatar_path = cover_path = None
    manager = SessionManager()

    try:
        avatar_path = stash_upload(avatar_image)
        cover_path = stash_upload(cover_image)
        account = await manager.register(
            user_name=user_name,
            full_name=full_name,
            email=email,
            password=password,
            avatar_path=avatar_path,
            cover_path=cover_path,
        )
    finally:
        discard_uploads([avatar_path, cover_path])
        await manager.close()

    return account


@router.post("/login")
async def login(request: LoginRequest, response: Response) -> SessionResponse:
    """Login with username or email and password.

    Sets the access and refresh cookies and returns both tokens.

    Raises:
        NotFoundError 404: No such user
        UnauthorizedError 401: Wrong password
    """
    result = await SessionManager().login(
        password=request.password,
        user_name=request.user_name,
        email=request.email,
    )
    set_session_cookies(response, result)
    return _session_response(result)


@router.post("/logout")
async def logout(
    response: Response,
    current_account: Account = Depends(get_current_account),
) -> MessageResponse:
    """End the caller's session and clear the session cookies."""
    await SessionManager().logout(current_account.id)
    clear_session_cookies(response)
    return MessageResponse(message="User logged out")


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshRequest] = None,
) -> SessionResponse:
    """Exchange the refresh token for a new pair.

    The refresh cookie takes precedence; the request body is a fallback for
    clients that cannot send cookies. The presented token is invalid
    afterwards.

    Raises:
        UnauthorizedError 401: Missing, invalid, expired or superseded token
    """
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented and payload is not None:
        presented = payload.refresh_token

    result = await SessionManager().refresh(presented)
    set_session_cookies(response, result)
    return _session_response(result)


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_account: Account = Depends(get_current_account),
) -> MessageResponse:
    """Change the caller's password. The current session stays valid."""
    await SessionManager().change_password(
        current_account.id,
        old_password=request.old_password,
        new_password=request.new_password,
        confirm_password=request.confirm_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/current-user")
async def current_user(
    current_account: Account = Depends(get_current_account),
) -> Account:
    """Get the caller's account."""
    return await SessionManager().get_current_account(current_account.id)


@router.patch("/update-account")
async def update_account(
    request: UpdateAccountRequest,
    current_account: Account = Depends(get_current_account),
) -> Account:
    """Update the caller's email and/or full name."""
    return await SessionManager().update_profile_fields(
        current_account.id,
        email=request.email,
        full_name=request.full_name,
    )


@router.get("/channel/{user_name}")
async def channel_profile(
    user_name: str,
    current_account: Account = Depends(get_current_account),
) -> ChannelProfile:
    """Get a channel's profile and whether the caller subscribes to it."""
    return await ChannelService().channel_profile(user_name, current_account.id)


@router.get("/history")
async def watch_history(
    current_account: Account = Depends(get_current_account),
) -> list[WatchHistoryEntry]:
    """Get the caller's watch history in the order it was recorded."""
    return await ChannelService().watch_history(current_account.id)
