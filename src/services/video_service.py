"""Video upload service."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.database import get_pool
from src.models.video import Video
from src.services.errors import ValidationError, store_errors
from src.services.media_uploader import MediaUploader

logger = structlog.get_logger(__name__)


class VideoService:
    """Uploads a video file to the media host and records it."""

    def __init__(self, uploader: MediaUploader | None = None):
        self.uploader = uploader or MediaUploader()

    async def close(self):
        """Release the media host client."""
        await self.uploader.close()

    async def upload_video(
        self,
        owner_id: UUID,
        title: Optional[str],
        thumbnail: Optional[str],
        video_path: Optional[str],
        description: str = "",
        is_published: bool = True,
    ) -> Video:
        """Upload and persist a video owned by the caller.

        The duration comes from the media host's response; it is 0 when
        the host does not report one.

        Raises:
            ValidationError: Missing title, thumbnail or file, or the upload
                did not complete
        """
        if not title or not title.strip():
            raise ValidationError("Video title must not be empty")
        if not thumbnail or not thumbnail.strip():
            raise ValidationError("Video thumbnail must not be empty")
        if not video_path:
            raise ValidationError("Video is missing")

        uploaded = await self.uploader.upload(video_path)
        if uploaded is None or not uploaded.url:
            raise ValidationError("Video upload failed. Retry")

        video_id = uuid4()
        now = datetime.now(timezone.utc)
        duration = uploaded.duration or 0.0

        with store_errors("save the video"):
            pool = await get_pool()
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO videos (
                        id, video_file, thumbnail, title, description, duration,
                        views, is_published, owner_id, created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, 0, $7, $8, $9, $10)
                    """,
                    video_id,
                    uploaded.url,
                    thumbnail.strip(),
                    title.strip(),
                    description or "",
                    duration,
                    is_published,
                    owner_id,
                    now,
                    now,
                )

        logger.info(
            "video_uploaded",
            video_id=str(video_id),
            owner_id=str(owner_id),
            duration=duration,
        )

        return Video(
            id=video_id,
            video_file=uploaded.url,
            thumbnail=thumbnail.strip(),
            title=title.strip(),
            description=description or "",
            duration=duration,
            views=0,
            is_published=is_published,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
