"""Channel profile and watch history queries."""

from typing import Optional
from uuid import UUID

import structlog

from src.database import get_pool
from src.models.channel import ChannelProfile, OwnerSummary, WatchHistoryEntry
from src.services.errors import NotFoundError, ValidationError, store_errors

logger = structlog.get_logger(__name__)


class ChannelService:
    """Read-only queries over subscriptions and viewing history.

    Counts and membership are computed by the database; nothing about the
    subscription graph is held in memory.
    """

    async def channel_profile(
        self, user_name: Optional[str], viewer_id: Optional[UUID]
    ) -> ChannelProfile:
        """Get a channel with subscriber counts and the viewer's status.

        Args:
            user_name: Handle of the channel (case-insensitive)
            viewer_id: Account viewing the channel; None counts as not
                subscribed

        Raises:
            ValidationError: Handle is blank
            NotFoundError: No account has this handle
        """
        if user_name is None or not user_name.strip():
            raise ValidationError("Username is missing")

        with store_errors("fetch the channel"):
            pool = await get_pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT
                        a.id, a.user_name, a.full_name, a.email,
                        a.avatar_image, a.cover_image,
                        (SELECT COUNT(*) FROM subscriptions s
                         WHERE s.channel_id = a.id) AS subscribers_count,
                        (SELECT COUNT(*) FROM subscriptions s
                         WHERE s.subscriber_id = a.id) AS channels_subscribed_to_count,
                        EXISTS (
                            SELECT 1 FROM subscriptions s
                            WHERE s.channel_id = a.id AND s.subscriber_id = $2
                        ) AS is_subscribed
                    FROM accounts a
                    WHERE a.user_name = LOWER($1)
                    """,
                    user_name.strip(),
                    viewer_id,
                )

        if row is None:
            raise NotFoundError("Channel does not exist")

        return ChannelProfile(
            id=row["id"],
            user_name=row["user_name"],
            full_name=row["full_name"],
            email=row["email"],
            avatar_image=row["avatar_image"],
            cover_image=row["cover_image"] or "",
            subscribers_count=row["subscribers_count"],
            channels_subscribed_to_count=row["channels_subscribed_to_count"],
            is_subscribed=bool(row["is_subscribed"]),
        )

    async def watch_history(self, viewer_id: UUID) -> list[WatchHistoryEntry]:
        """Get the viewer's watched videos in history order.

        Each entry's uploader is expanded to an OwnerSummary. Videos that
        no longer exist are skipped.

        Raises:
            NotFoundError: Viewer account does not exist
        """
        with store_errors("fetch the watch history"):
            pool = await get_pool()
            async with pool.acquire() as conn:
                exists = await conn.fetchval(
                    "SELECT EXISTS (SELECT 1 FROM accounts WHERE id = $1)",
                    viewer_id,
                )
                if not exists:
                    raise NotFoundError("User does not exist")

                rows = await conn.fetch(
                    """
                    SELECT
                        v.id, v.video_file, v.thumbnail, v.title, v.description,
                        v.duration, v.views, v.is_published, v.created_at,
                        o.id AS owner_id, o.user_name AS owner_user_name,
                        o.full_name AS owner_full_name,
                        o.avatar_image AS owner_avatar_image
                    FROM accounts a
                    CROSS JOIN LATERAL unnest(a.watch_history)
                        WITH ORDINALITY AS h(video_id, position)
                    JOIN videos v ON v.id = h.video_id
                    LEFT JOIN accounts o ON o.id = v.owner_id
                    WHERE a.id = $1
                    ORDER BY h.position
                    """,
                    viewer_id,
                )

        entries = []
        for row in rows:
            owner = None
            if row["owner_id"] is not None:
                owner = OwnerSummary(
                    id=row["owner_id"],
                    user_name=row["owner_user_name"],
                    full_name=row["owner_full_name"],
                    avatar_image=row["owner_avatar_image"],
                )
            entries.append(
                WatchHistoryEntry(
                    id=row["id"],
                    video_file=row["video_file"],
                    thumbnail=row["thumbnail"],
                    title=row["title"],
                    description=row["description"] or "",
                    duration=float(row["duration"] or 0),
                    views=row["views"],
                    is_published=row["is_published"],
                    created_at=row["created_at"],
                    owner=owner,
                )
            )

        logger.debug("watch_history_fetched", viewer_id=str(viewer_id), count=len(entries))
        return entries
