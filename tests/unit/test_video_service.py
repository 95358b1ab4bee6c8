"""Unit tests for VideoService."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from src.models.video import UploadResult, Video
from src.services.errors import ValidationError
from src.services.video_service import VideoService


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.execute = AsyncMock()
    pool = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch("src.services.video_service.get_pool", new_callable=AsyncMock, return_value=pool):
        yield conn


@pytest.fixture
def uploader():
    mock = MagicMock()
    mock.upload = AsyncMock(
        return_value=UploadResult(url="https://cdn.test/v.mp4", resource_type="video", duration=93.4)
    )
    return mock


class TestUploadVideo:
    """Tests for VideoService.upload_video."""

    async def test_uploads_and_records(self, conn, uploader):
        owner_id = uuid4()

        video = await VideoService(uploader=uploader).upload_video(
            owner_id=owner_id,
            title=" Sunrise ",
            thumbnail="https://cdn.test/t.png",
            video_path="/tmp/v.mp4",
            description="timelapse",
        )

        assert isinstance(video, Video)
        assert video.title == "Sunrise"
        assert video.video_file == "https://cdn.test/v.mp4"
        assert video.duration == 93.4
        assert video.owner_id == owner_id
        uploader.upload.assert_awaited_once_with("/tmp/v.mp4")
        sql = conn.execute.call_args[0][0]
        assert "INSERT INTO videos" in sql

    async def test_missing_duration_is_zero(self, conn, uploader):
        uploader.upload.return_value = UploadResult(url="https://cdn.test/v.mp4")
        video = await VideoService(uploader=uploader).upload_video(
            owner_id=uuid4(), title="t", thumbnail="th", video_path="/tmp/v.mp4"
        )
        assert video.duration == 0.0

    @pytest.mark.parametrize(
        "title,thumbnail,path,message",
        [
            ("", "th", "/tmp/v.mp4", "title"),
            ("t", "  ", "/tmp/v.mp4", "thumbnail"),
            ("t", "th", None, "missing"),
        ],
    )
    async def test_validation(self, conn, uploader, title, thumbnail, path, message):
        with pytest.raises(ValidationError, match=message):
            await VideoService(uploader=uploader).upload_video(
                owner_id=uuid4(), title=title, thumbnail=thumbnail, video_path=path
            )
        conn.execute.assert_not_awaited()

    async def test_failed_upload(self, conn, uploader):
        uploader.upload.return_value = None
        with pytest.raises(ValidationError, match="upload failed"):
            await VideoService(uploader=uploader).upload_video(
                owner_id=uuid4(), title="t", thumbnail="th", video_path="/tmp/v.mp4"
            )
        conn.execute.assert_not_awaited()


async def test_close_releases_uploader(uploader):
    uploader.close = AsyncMock()
    await VideoService(uploader=uploader).close()
    uploader.close.assert_awaited_once()
