"""Services package exports."""

from src.services.logging_service import configure_logging, get_logger
from src.services.session_manager import SessionManager, SessionResult
from src.services.token_codec import IssuedToken, TokenCodec

__all__ = [
    "IssuedToken",
    "SessionManager",
    "SessionResult",
    "TokenCodec",
    "configure_logging",
    "get_logger",
]
