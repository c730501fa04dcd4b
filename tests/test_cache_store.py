"""Unit tests for iam/cache.py -- Redis cache adapter and key builders.

The redis client is a MagicMock: these tests pin how RedisCacheStore drives
redis-py and how it classifies failures, not Redis itself.

Covers:
- Key formats entity:{id} and session:{token}
- get/exists/set/delete delegate to the client; set uses SETEX only with a TTL
- ConnectionError / TimeoutError -> CacheConnectionError
- Other RedisError -> CacheStoreError (but not CacheConnectionError)
"""

from unittest.mock import MagicMock

import pytest
import redis

from iam.cache import RedisCacheStore, entity_key, session_key
from iam.errors import CacheConnectionError, CacheStoreError


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=redis.Redis)


@pytest.fixture
def store(client: MagicMock) -> RedisCacheStore:
    return RedisCacheStore(client)


class TestKeys:
    def test_entity_key(self) -> None:
        assert entity_key("alice") == "entity:alice"

    def test_session_key(self) -> None:
        assert session_key("tok123") == "session:tok123"


class TestDelegation:
    def test_get_hit_and_miss(self, store: RedisCacheStore, client: MagicMock) -> None:
        client.get.side_effect = ["alice", None]
        assert store.get("session:a") == "alice"
        assert store.get("session:b") is None

    def test_exists_is_bool(self, store: RedisCacheStore, client: MagicMock) -> None:
        client.exists.return_value = 1
        assert store.exists("entity:alice") is True

    def test_set_without_ttl_uses_set(self, store: RedisCacheStore, client: MagicMock) -> None:
        store.set("session:t", "alice")
        client.set.assert_called_once_with("session:t", "alice")
        client.setex.assert_not_called()

    def test_set_with_ttl_uses_setex(self, store: RedisCacheStore, client: MagicMock) -> None:
        store.set("session:t", "alice", ttl=60)
        client.setex.assert_called_once_with("session:t", 60, "alice")
        client.set.assert_not_called()

    def test_delete(self, store: RedisCacheStore, client: MagicMock) -> None:
        store.delete("session:t")
        client.delete.assert_called_once_with("session:t")


class TestFailureClassification:
    @pytest.mark.parametrize("exc", [redis.ConnectionError("refused"), redis.TimeoutError("slow")])
    def test_connection_failures(self, store: RedisCacheStore, client: MagicMock, exc: Exception) -> None:
        client.get.side_effect = exc
        with pytest.raises(CacheConnectionError):
            store.get("entity:alice")

    def test_other_redis_error(self, store: RedisCacheStore, client: MagicMock) -> None:
        client.set.side_effect = redis.ResponseError("WRONGTYPE")
        with pytest.raises(CacheStoreError) as exc_info:
            store.set("entity:alice", "{}")
        assert not isinstance(exc_info.value, CacheConnectionError)

    def test_ping_false_on_error(self, store: RedisCacheStore, client: MagicMock) -> None:
        client.ping.side_effect = redis.ConnectionError("refused")
        assert store.ping() is False
