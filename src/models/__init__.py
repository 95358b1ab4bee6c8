"""Models package exports."""

from src.models.account import Account, AccountRecord
from src.models.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    SessionResponse,
    UpdateAccountRequest,
)
from src.models.channel import ChannelProfile, OwnerSummary, WatchHistoryEntry
from src.models.response import ErrorResponse
from src.models.video import UploadResult, Video

__all__ = [
    "Account",
    "AccountRecord",
    "ChangePasswordRequest",
    "ChannelProfile",
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "OwnerSummary",
    "RefreshRequest",
    "SessionResponse",
    "UpdateAccountRequest",
    "UploadResult",
    "Video",
    "WatchHistoryEntry",
]
