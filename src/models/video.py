"""Video and media upload models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


@dataclass(frozen=True)
class UploadResult:
    """What the media host returns for a stored file."""

    url: str
    public_id: str = ""
    resource_type: str = ""
    duration: Optional[float] = None


class Video(BaseModel):
    """An uploaded video."""

    id: UUID
    video_file: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = 0.0
    views: int = 0
    is_published: bool = True
    owner_id: UUID
    created_at: datetime
    updated_at: datetime
