"""Temporary storage for files received in multipart requests."""

import shutil
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

import structlog
from fastapi import UploadFile

from src.config import get_settings

logger = structlog.get_logger(__name__)


def stash_upload(upload: Optional[UploadFile]) -> Optional[str]:
    """Copy an uploaded file into the temp directory.

    Returns:
        Local path of the copy, or None when no file was sent
    """
    if upload is None or not upload.filename:
        return None

    temp_dir = Path(get_settings().upload_temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)

    # Prefix keeps concurrent uploads with the same filename apart
    target = temp_dir / f"{uuid4().hex}-{Path(upload.filename).name}"
    with target.open("wb") as out:
        shutil.copyfileobj(upload.file, out)

    logger.debug("upload_stashed", path=str(target), content_type=upload.content_type)
    return str(target)


def discard_uploads(paths: Iterable[Optional[str]]) -> None:
    """Remove temp copies the media uploader did not consume."""
    for path in paths:
        if path:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("upload_temp_cleanup_failed", path=path, error=str(e))
