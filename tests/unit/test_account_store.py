"""Unit tests for AccountStore with a mocked asyncpg pool."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from src.models.account import AccountRecord
from src.services.account_store import AccountStore


# ---------------------------------------------------------------------------
# asyncpg mock helpers
# ---------------------------------------------------------------------------

class MockConnection:
    """Mock asyncpg connection with common query methods."""

    def __init__(self):
        self.execute = AsyncMock()
        self.fetchrow = AsyncMock()
        self.fetchval = AsyncMock()
        self.fetch = AsyncMock()


class MockPool:
    """Mock asyncpg pool with acquire() context manager."""

    def __init__(self, conn: MockConnection):
        self._conn = conn

    def acquire(self):
        return _MockPoolAcquire(self._conn)


class _MockPoolAcquire:
    def __init__(self, conn):
        self._conn = conn

    async def __aenter__(self):
        return self._conn

    async def __aexit__(self, *args):
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def conn():
    """Mocked connection, installed as the pool's only connection."""
    conn = MockConnection()
    with patch(
        "src.services.account_store.get_pool",
        new_callable=AsyncMock,
        return_value=MockPool(conn),
    ):
        yield conn


def _make_account_row(**overrides):
    """Create a dict that mimics an asyncpg Record for an accounts row."""
    now = datetime.now(timezone.utc)
    row = {
        "id": uuid4(),
        "user_name": "nova",
        "email": "nova@x.io",
        "full_name": "Nova R",
        "password_hash": "$2b$12$hashedpasswordhere000000000000000000000000000000000000",
        "avatar_image": "https://media.test/a.png",
        "cover_image": None,
        "refresh_token": None,
        "watch_history": None,
        "created_at": now,
        "updated_at": now,
    }
    row.update(overrides)
    return row


class TestCreate:
    """Tests for AccountStore.create."""

    async def test_inserts_lowercased_identifiers(self, conn):
        account_id = await AccountStore().create(
            user_name="Nova",
            email="Nova@X.io",
            full_name="Nova R",
            password_hash="hash",
            avatar_image="https://media.test/a.png",
        )

        conn.execute.assert_awaited_once()
        sql, *params = conn.execute.call_args[0]
        assert "INSERT INTO accounts" in sql
        assert params[0] == account_id
        assert params[1] == "nova"
        assert params[2] == "nova@x.io"

    async def test_new_account_has_no_refresh_token(self, conn):
        await AccountStore().create(
            user_name="nova",
            email="nova@x.io",
            full_name="Nova R",
            password_hash="hash",
            avatar_image="https://media.test/a.png",
        )
        sql = conn.execute.call_args[0][0]
        assert "NULL" in sql


class TestLookups:
    """Tests for exists / find_by_login / get_by_id."""

    async def test_exists_true(self, conn):
        conn.fetchval.return_value = True
        assert await AccountStore().exists("nova", "nova@x.io") is True

    async def test_exists_false(self, conn):
        conn.fetchval.return_value = False
        assert await AccountStore().exists("nova", "nova@x.io") is False

    async def test_find_by_login_returns_record(self, conn):
        row = _make_account_row(refresh_token="stored-refresh")
        conn.fetchrow.return_value = row

        record = await AccountStore().find_by_login(user_name="NOVA")

        assert isinstance(record, AccountRecord)
        assert record.id == row["id"]
        assert record.refresh_token == "stored-refresh"
        assert record.cover_image == ""
        assert record.watch_history == []
        assert conn.fetchrow.call_args[0][1:] == ("NOVA", None)

    async def test_find_by_login_missing(self, conn):
        conn.fetchrow.return_value = None
        assert await AccountStore().find_by_login(email="ghost@x.io") is None

    async def test_get_by_id_missing(self, conn):
        conn.fetchrow.return_value = None
        assert await AccountStore().get_by_id(uuid4()) is None


class TestRefreshTokenSlot:
    """Tests for save_refresh_token."""

    async def test_overwrites_slot(self, conn):
        conn.execute.return_value = "UPDATE 1"
        account_id = uuid4()

        assert await AccountStore().save_refresh_token(account_id, "new-token") is True

        sql, token, _, target = conn.execute.call_args[0]
        assert "SET refresh_token = $1" in sql
        assert "WHERE id = $3" in sql
        assert token == "new-token"
        assert target == account_id

    async def test_clear_slot_with_none(self, conn):
        conn.execute.return_value = "UPDATE 1"
        await AccountStore().save_refresh_token(uuid4(), None)
        assert conn.execute.call_args[0][1] is None

    async def test_missing_account_reports_false(self, conn):
        conn.execute.return_value = "UPDATE 0"
        assert await AccountStore().save_refresh_token(uuid4(), None) is False


class TestUpdates:
    """Tests for update_password_hash / update_fields."""

    async def test_update_password_hash(self, conn):
        conn.execute.return_value = "UPDATE 1"
        assert await AccountStore().update_password_hash(uuid4(), "new-hash") is True
        assert conn.execute.call_args[0][1] == "new-hash"

    async def test_update_fields_only_supplied(self, conn):
        row = _make_account_row(full_name="Nova Prime")
        conn.fetchrow.return_value = row

        record = await AccountStore().update_fields(row["id"], full_name="Nova Prime")

        sql = conn.fetchrow.call_args[0][0]
        assert "full_name = $1" in sql
        assert "email =" not in sql
        assert record.full_name == "Nova Prime"

    async def test_update_fields_lowercases_email(self, conn):
        conn.fetchrow.return_value = _make_account_row(email="new@x.io")
        await AccountStore().update_fields(uuid4(), email="NEW@X.io")
        assert conn.fetchrow.call_args[0][1] == "new@x.io"

    async def test_update_fields_nothing_to_update_reads_current(self, conn):
        row = _make_account_row()
        conn.fetchrow.return_value = row

        record = await AccountStore().update_fields(row["id"])

        assert "UPDATE" not in conn.fetchrow.call_args[0][0]
        assert record.id == row["id"]

    async def test_update_fields_missing_account(self, conn):
        conn.fetchrow.return_value = None
        assert await AccountStore().update_fields(uuid4(), full_name="X") is None
