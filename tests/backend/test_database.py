"""
Tests for database connections and initialization.

These tests cover:
- MongoDB and Redis client initialization
- Index creation
- Numeric id sequences
- The unit of work (transactions and compensating actions)
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from pymongo.errors import AutoReconnect, DuplicateKeyError, OperationFailure

from studyws.core.errors import AuthError, InternalError


class TestMongoDBConnection:
    """Tests for MongoDB connection handling."""

    @pytest.mark.asyncio
    async def test_get_mongo_client_creates_connection_once(self):
        """get_mongo_client should create the client on first call only."""
        with patch("studyws.database.connections.AsyncIOMotorClient") as mock_client, \
             patch("studyws.database.connections._mongo_client", None), \
             patch("studyws.database.connections.get_settings") as mock_settings:

            mock_settings.return_value.mongo_uri = "mongodb://test:27017"
            mock_settings.return_value.mongo_timeout_ms = 5000
            mock_instance = MagicMock()
            mock_client.return_value = mock_instance

            from studyws.database.connections import get_mongo_client

            client = await get_mongo_client()
            again = await get_mongo_client()

            mock_client.assert_called_once_with("mongodb://test:27017", timeoutMS=5000)
            assert client is mock_instance
            assert again is client

    @pytest.mark.asyncio
    async def test_get_database_defaults_to_auth_db(self):
        mock_instance = MagicMock()

        with patch("studyws.database.connections._mongo_client", mock_instance):
            from studyws.database.connections import get_database

            await get_database()

        mock_instance.__getitem__.assert_called_once_with("auth_db")

    @pytest.mark.asyncio
    async def test_close_connections_cleans_up(self):
        """close_connections should close and forget both clients."""
        mock_mongo = MagicMock()
        mock_redis = AsyncMock()

        import studyws.database.connections as conn_module

        with patch.object(conn_module, "_mongo_client", mock_mongo), \
             patch.object(conn_module, "_redis_client", mock_redis):
            await conn_module.close_connections()

            mock_mongo.close.assert_called_once()
            mock_redis.aclose.assert_awaited_once()
            assert conn_module._mongo_client is None
            assert conn_module._redis_client is None


class TestRedisConnection:
    """Tests for Redis connection handling."""

    @pytest.mark.asyncio
    async def test_get_redis_client_creates_connection(self):
        """get_redis_client should create the client with timeouts."""
        with patch("studyws.database.connections.Redis") as mock_redis_cls, \
             patch("studyws.database.connections._redis_client", None), \
             patch("studyws.database.connections.get_settings") as mock_settings:

            mock_settings.return_value.redis_host = "localhost"
            mock_settings.return_value.redis_port = 6379
            mock_settings.return_value.redis_timeout_seconds = 0.5
            mock_instance = AsyncMock()
            mock_redis_cls.return_value = mock_instance

            from studyws.database.connections import get_redis_client

            client = await get_redis_client()

            mock_redis_cls.assert_called_once_with(
                host="localhost",
                port=6379,
                decode_responses=True,
                socket_timeout=0.5,
                socket_connect_timeout=0.5,
            )
            assert client is mock_instance


class TestIndexCreation:
    """Tests for create_indexes."""

    @pytest.mark.asyncio
    async def test_indexes_created(self, mock_auth_db):
        from studyws.database.indexes import create_indexes

        await create_indexes(mock_auth_db)

        user_indexes = await mock_auth_db.users.index_information()
        session_indexes = await mock_auth_db.sessions.index_information()

        assert any(idx["key"] == [("email", 1)] and idx.get("unique") for idx in user_indexes.values())
        assert any(
            idx["key"] == [("user_id", 1), ("refresh_token_hash", 1)] and idx.get("unique")
            for idx in session_indexes.values()
        )
        assert any(idx["key"] == [("expires_at", 1)] for idx in session_indexes.values())

    @pytest.mark.asyncio
    async def test_email_uniqueness_enforced(self, mock_auth_db):
        from studyws.database.indexes import create_indexes

        await create_indexes(mock_auth_db)
        await mock_auth_db.users.insert_one({"_id": 1, "email": "a@example.com"})

        with pytest.raises(DuplicateKeyError):
            await mock_auth_db.users.insert_one({"_id": 2, "email": "a@example.com"})

    @pytest.mark.asyncio
    async def test_create_indexes_is_idempotent(self, mock_auth_db):
        from studyws.database.indexes import create_indexes

        await create_indexes(mock_auth_db)
        await create_indexes(mock_auth_db)


class TestSequences:
    """Tests for next_sequence."""

    @pytest.mark.asyncio
    async def test_sequence_starts_at_one_and_increments(self, mock_auth_db):
        from studyws.database.sequences import next_sequence

        values = [await next_sequence(mock_auth_db, "users") for _ in range(3)]

        assert values == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_sequences_are_independent(self, mock_auth_db):
        from studyws.database.sequences import next_sequence

        await next_sequence(mock_auth_db, "users")
        await next_sequence(mock_auth_db, "users")

        assert await next_sequence(mock_auth_db, "sessions") == 1


class FakeTransaction:
    def __init__(self, log):
        self.log = log

    async def __aenter__(self):
        self.log.append("start")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.log.append("abort" if exc_type else "commit")
        return False


class FakeDriverSession:
    def __init__(self, log):
        self.log = log

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.log.append("end_session")
        return False

    def start_transaction(self):
        return FakeTransaction(self.log)


def transactional_client(log):
    client = MagicMock()
    client.start_session = AsyncMock(return_value=FakeDriverSession(log))
    return client


class TestUnitOfWork:
    """Tests for MongoUnitOfWork."""

    @pytest.mark.asyncio
    async def test_compensations_run_newest_first_on_failure(self, mock_async_mongo_client):
        from studyws.database.transactions import MongoUnitOfWork

        undone = []

        async def undo(name):
            undone.append(name)

        with pytest.raises(AuthError):
            async with MongoUnitOfWork(mock_async_mongo_client) as uow:
                uow.on_rollback(lambda: undo("first"))
                uow.on_rollback(lambda: undo("second"))
                raise AuthError()

        assert undone == ["second", "first"]

    @pytest.mark.asyncio
    async def test_compensations_skipped_on_success(self, mock_async_mongo_client):
        from studyws.database.transactions import MongoUnitOfWork

        undo = AsyncMock()

        async with MongoUnitOfWork(mock_async_mongo_client) as uow:
            uow.on_rollback(undo)

        undo.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_compensation_does_not_mask_error(self, mock_async_mongo_client):
        from studyws.database.transactions import MongoUnitOfWork

        broken = AsyncMock(side_effect=AutoReconnect("gone"))
        working = AsyncMock()

        with pytest.raises(AuthError):
            async with MongoUnitOfWork(mock_async_mongo_client) as uow:
                uow.on_rollback(working)
                uow.on_rollback(broken)
                raise AuthError()

        broken.assert_awaited_once()
        working.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_session_without_transactions(self, mock_async_mongo_client):
        from studyws.database.transactions import MongoUnitOfWork

        async with MongoUnitOfWork(mock_async_mongo_client) as uow:
            assert uow.session is None

    @pytest.mark.asyncio
    async def test_transaction_commits_on_success(self):
        from studyws.database.transactions import MongoUnitOfWork

        log = []
        async with MongoUnitOfWork(transactional_client(log), use_transactions=True) as uow:
            assert isinstance(uow.session, FakeDriverSession)

        assert log == ["start", "commit", "end_session"]

    @pytest.mark.asyncio
    async def test_transaction_aborts_on_error(self):
        from studyws.database.transactions import MongoUnitOfWork

        log = []
        undo = AsyncMock()

        with pytest.raises(AuthError):
            async with MongoUnitOfWork(transactional_client(log), use_transactions=True) as uow:
                uow.on_rollback(undo)
                raise AuthError()

        assert log == ["start", "abort", "end_session"]
        undo.assert_not_awaited()


class TestRunInTransaction:
    """Tests for run_in_transaction."""

    @pytest.mark.asyncio
    async def test_returns_work_result(self, mock_async_mongo_client):
        from studyws.database.transactions import run_in_transaction

        async def work(uow):
            return 42

        assert await run_in_transaction(mock_async_mongo_client, work) == 42

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self, mock_async_mongo_client):
        from studyws.database.transactions import run_in_transaction

        attempts = []

        async def work(uow):
            attempts.append(1)
            if len(attempts) < 3:
                raise OperationFailure(
                    "write conflict",
                    code=112,
                    details={"errorLabels": ["TransientTransactionError"]},
                )
            return "ok"

        result = await run_in_transaction(mock_async_mongo_client, work, max_attempts=3)

        assert result == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, mock_async_mongo_client):
        from studyws.database.transactions import run_in_transaction

        work = AsyncMock(side_effect=OperationFailure(
            "write conflict",
            code=112,
            details={"errorLabels": ["TransientTransactionError"]},
        ))

        with pytest.raises(InternalError):
            await run_in_transaction(mock_async_mongo_client, work, max_attempts=2)

        assert work.await_count == 2

    @pytest.mark.asyncio
    async def test_store_errors_become_internal(self, mock_async_mongo_client):
        from studyws.database.transactions import run_in_transaction

        work = AsyncMock(side_effect=AutoReconnect("connection lost"))

        with pytest.raises(InternalError) as exc_info:
            await run_in_transaction(mock_async_mongo_client, work)

        assert exc_info.value.message == "Internal server error"
        assert work.await_count == 1

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(self, mock_async_mongo_client):
        from studyws.database.transactions import run_in_transaction

        work = AsyncMock(side_effect=AuthError("Invalid refresh token"))

        with pytest.raises(AuthError, match="Invalid refresh token"):
            await run_in_transaction(mock_async_mongo_client, work)


def topology_client(hello=None, error=None):
    """A client whose admin ``hello`` returns the given reply or raises."""
    client = MagicMock()
    client.admin.command = AsyncMock(return_value=hello, side_effect=error)
    return client


class TestTransactionMode:
    """Tests for deciding at startup whether flows run in transactions."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hello,expected", [
        ({"isWritablePrimary": True, "setName": "rs0"}, True),
        ({"isWritablePrimary": True, "msg": "isdbgrid"}, True),
        ({"isWritablePrimary": True}, False),
    ])
    async def test_detects_topology(self, hello, expected):
        from studyws.database.transactions import supports_transactions

        client = topology_client(hello=hello)

        assert await supports_transactions(client) is expected
        client.admin.command.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_unreachable_server_means_no_transactions(self):
        from studyws.database.transactions import supports_transactions

        client = topology_client(error=AutoReconnect("connection closed"))

        assert await supports_transactions(client) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("configured", [True, False])
    async def test_explicit_setting_wins(self, configured):
        from studyws.database.transactions import resolve_transaction_mode

        client = topology_client(hello={"setName": "rs0"})

        assert await resolve_transaction_mode(client, configured) is configured
        client.admin.command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unset_setting_uses_replica_set(self):
        from studyws.database.transactions import resolve_transaction_mode

        client = topology_client(hello={"setName": "rs0"})

        assert await resolve_transaction_mode(client) is True

    @pytest.mark.asyncio
    async def test_standalone_fallback_is_logged(self, caplog):
        from studyws.database.transactions import resolve_transaction_mode

        client = topology_client(hello={"isWritablePrimary": True})

        with caplog.at_level("WARNING", logger="studyws.database.transactions"):
            mode = await resolve_transaction_mode(client)

        assert mode is False
        assert "not crash-atomic" in caplog.text
