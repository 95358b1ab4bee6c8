"""Video upload API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from src.api.dependencies import get_current_account
from src.api.uploads import discard_uploads, stash_upload
from src.models.account import Account
from src.models.video import Video
from src.services.video_service import VideoService

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_video(
    title: str = Form(default=""),
    thumbnail: str = Form(default=""),
    description: str = Form(default=""),
    is_published: bool = Form(default=True),
    video_file: Optional[UploadFile] = File(default=None),
    current_account: Account = Depends(get_current_account),
) -> Video:
    """Upload a video owned by the caller.

    Raises:
        ValidationError 400: Missing title, thumbnail or file, or failed upload
    """
    video_path = None
    service = VideoService()
    try:
        video_path = stash_upload(video_file)
        return await service.upload_video(
            owner_id=current_account.id,
            title=title,
            thumbnail=thumbnail,
            video_path=video_path,
            description=description,
            is_published=is_published,
        )
    finally:
        discard_uploads([video_path])
        await service.close()
