"""Account persistence on PostgreSQL."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from src.database import get_pool
from src.models.account import AccountRecord

logger = structlog.get_logger(__name__)

_ACCOUNT_COLUMNS = """
    id, user_name, email, full_name, password_hash, avatar_image, cover_image,
    refresh_token, watch_history, created_at, updated_at
"""


def _record_from_row(row: Any) -> AccountRecord:
    """Build an AccountRecord from an asyncpg row."""
    return AccountRecord(
        id=row["id"],
        user_name=row["user_name"],
        email=row["email"],
        full_name=row["full_name"],
        password_hash=row["password_hash"],
        avatar_image=row["avatar_image"],
        cover_image=row["cover_image"] or "",
        refresh_token=row["refresh_token"],
        watch_history=list(row["watch_history"] or []),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class AccountStore:
    """CRUD for account records, including the refresh token slot.

    Writes to ``refresh_token`` are plain overwrites with no version
    check: when two sessions are started concurrently the later write
    wins and the earlier token stops verifying.
    """

    async def create(
        self,
        user_name: str,
        email: str,
        full_name: str,
        password_hash: str,
        avatar_image: str,
        cover_image: str = "",
    ) -> UUID:
        """Insert a new account with no live session.

        Handle and email are stored lower-cased.

        Returns:
            The new account id

        Raises:
            asyncpg.UniqueViolationError: If the handle or email is taken
        """
        account_id = uuid4()
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO accounts (
                    id, user_name, email, full_name, password_hash,
                    avatar_image, cover_image, refresh_token, watch_history,
                    created_at, updated_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, NULL, '{}', $8, $9)
                """,
                account_id,
                user_name.lower(),
                email.lower(),
                full_name,
                password_hash,
                avatar_image,
                cover_image,
                now,
                now,
            )

        logger.info("account_created", account_id=str(account_id), user_name=user_name.lower())
        return account_id

    async def exists(self, user_name: str, email: str) -> bool:
        """Return True if either the handle or the email is already taken."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            found = await conn.fetchval(
                """
                SELECT EXISTS (
                    SELECT 1 FROM accounts
                    WHERE user_name = LOWER($1) OR email = LOWER($2)
                )
                """,
                user_name,
                email,
            )

        return bool(found)

    async def find_by_login(
        self, user_name: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[AccountRecord]:
        """Find an account by handle or email (case-insensitive).

        Returns:
            AccountRecord or None if neither identifier matches
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_ACCOUNT_COLUMNS}
                FROM accounts
                WHERE user_name = LOWER($1) OR email = LOWER($2)
                LIMIT 1
                """,
                user_name,
                email,
            )

        if row is None:
            return None
        return _record_from_row(row)

    async def get_by_id(self, account_id: UUID) -> Optional[AccountRecord]:
        """Get an account by id, or None if it does not exist."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = $1",
                account_id,
            )

        if row is None:
            return None
        return _record_from_row(row)

    async def save_refresh_token(
        self, account_id: UUID, refresh_token: Optional[str]
    ) -> bool:
        """Overwrite the account's refresh token slot.

        Passing None clears the slot.

        Returns:
            True if an account row was updated
        """
        now = datetime.now(timezone.utc)
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE accounts
                SET refresh_token = $1, updated_at = $2
                WHERE id = $3
                """,
                refresh_token,
                now,
                account_id,
            )

        return result == "UPDATE 1"

    async def update_password_hash(self, account_id: UUID, password_hash: str) -> bool:
        """Replace the stored password hash.

        Returns:
            True if an account row was updated
        """
        now = datetime.now(timezone.utc)
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE accounts
                SET password_hash = $1, updated_at = $2
                WHERE id = $3
                """,
                password_hash,
                now,
                account_id,
            )

        return result == "UPDATE 1"

    async def update_fields(
        self,
        account_id: UUID,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> Optional[AccountRecord]:
        """Update profile fields that are not None.

        Returns:
            Updated AccountRecord, or None if the account does not exist

        Raises:
            asyncpg.UniqueViolationError: If the new email is taken
        """
        set_clauses = []
        params: list = []
        param_idx = 1

        if email is not None:
            set_clauses.append(f"email = ${param_idx}")
            params.append(email.lower())
            param_idx += 1

        if full_name is not None:
            set_clauses.append(f"full_name = ${param_idx}")
            params.append(full_name)
            param_idx += 1

        if not set_clauses:
            return await self.get_by_id(account_id)

        set_clauses.append(f"updated_at = ${param_idx}")
        params.append(datetime.now(timezone.utc))
        param_idx += 1

        params.append(account_id)

        query = f"""
            UPDATE accounts
            SET {', '.join(set_clauses)}
            WHERE id = ${param_idx}
            RETURNING {_ACCOUNT_COLUMNS}
        """

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(query, *params)

        if row is None:
            return None

        logger.info(
            "account_updated",
            account_id=str(account_id),
            fields_updated=[c.split(" = ")[0] for c in set_clauses if "updated_at" not in c],
        )
        return _record_from_row(row)
