"""Media host client for avatar, cover image and video uploads."""

import asyncio
import hashlib
import time
from pathlib import Path
from typing import Optional

import httpx
import structlog

from src.config import get_settings
from src.models.video import UploadResult

logger = structlog.get_logger(__name__)


def sign_upload_params(params: dict, api_secret: str) -> str:
    """Compute the upload signature expected by the media host.

    Parameters are sorted by name, joined as ``k=v`` with ``&``, then the
    API secret is appended and the whole string SHA-1 hashed.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _remove_local_file(path: Path) -> None:
    """Delete the temp copy of an upload, ignoring files already gone."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("upload_temp_cleanup_failed", path=str(path), error=str(e))


class MediaUploader:
    """Uploads local files to a Cloudinary-compatible media host.

    ``upload`` never raises: every failure is logged and reported as
    None, which callers treat as "upload did not complete".
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.settings = get_settings()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.media_upload_timeout)
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def upload(
        self, local_path: Optional[str], max_retries: int = 3
    ) -> Optional[UploadResult]:
        """Upload a local file and remove the local copy afterwards.

        Args:
            local_path: Path of the file saved from the incoming request
            max_retries: Maximum attempts on timeouts, 429 and 5xx

        Returns:
            UploadResult with the durable URL, or None on any failure
        """
        if not local_path:
            return None

        path = Path(local_path)
        if not path.is_file():
            logger.warning("upload_file_missing", path=local_path)
            return None

        try:
            return await self._upload_file(path, max_retries)
        finally:
            _remove_local_file(path)

    async def _upload_file(self, path: Path, max_retries: int) -> Optional[UploadResult]:
        if not self.settings.media_cloud_name or not self.settings.media_api_key:
            logger.error("media_host_not_configured")
            return None

        url = (
            f"{self.settings.media_upload_base_url}/"
            f"{self.settings.media_cloud_name}/auto/upload"
        )
        client = await self._get_client()
        content = path.read_bytes()

        for attempt in range(max_retries):
            params = {"timestamp": str(int(time.time()))}
            data = {
                **params,
                "api_key": self.settings.media_api_key,
                "signature": sign_upload_params(params, self.settings.media_api_secret),
            }

            try:
                response = await client.post(
                    url,
                    data=data,
                    files={"file": (path.name, content)},
                )
            except httpx.TimeoutException:
                wait_time = 2 ** attempt
                logger.warning(
                    "media_upload_timeout",
                    attempt=attempt,
                    wait_seconds=wait_time,
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(wait_time)
                continue
            except httpx.HTTPError as e:
                logger.error(
                    "media_upload_error",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

            if response.status_code == 429 or response.status_code >= 500:
                wait_time = 2 ** attempt
                logger.warning(
                    "media_upload_retryable_status",
                    status_code=response.status_code,
                    attempt=attempt,
                    wait_seconds=wait_time,
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(wait_time)
                continue

            if response.status_code >= 400:
                logger.error(
                    "media_upload_rejected",
                    status_code=response.status_code,
                    file=path.name,
                )
                return None

            try:
                body = response.json()
            except ValueError:
                logger.error("media_upload_bad_response", file=path.name)
                return None

            file_url = body.get("secure_url") or body.get("url")
            if not file_url:
                logger.error("media_upload_missing_url", file=path.name)
                return None

            duration = body.get("duration")
            logger.info(
                "media_uploaded",
                file=path.name,
                resource_type=body.get("resource_type", ""),
            )
            return UploadResult(
                url=file_url,
                public_id=body.get("public_id", ""),
                resource_type=body.get("resource_type", ""),
                duration=float(duration) if duration is not None else None,
            )

        logger.error("media_upload_failed", file=path.name, attempts=max_retries)
        return None
