"""Channel profile and watch history models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ChannelProfile(BaseModel):
    """An account viewed as a channel, with subscription counts."""

    id: UUID
    user_name: str
    full_name: str
    email: str
    avatar_image: str
    cover_image: str = ""
    subscribers_count: int = Field(ge=0)
    channels_subscribed_to_count: int = Field(ge=0)
    is_subscribed: bool


class OwnerSummary(BaseModel):
    """Minimal public view of a video's uploader."""

    id: UUID
    user_name: str
    full_name: str
    avatar_image: str


class WatchHistoryEntry(BaseModel):
    """A watched video with its uploader expanded."""

    id: UUID
    video_file: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = 0.0
    views: int = 0
    is_published: bool = True
    created_at: datetime
    owner: OwnerSummary | None = None
