"""Unit tests for iam/sessions.py -- session issuing, lookup, and revocation.

Covers:
- create_session() stores session:{token} -> id and returns the cookie descriptor
- Tokens are unique per login
- Wrong password -> AuthenticationFailed with no cache write
- Unknown id -> EntityNotFound (after a timing-equalizing bcrypt check)
- Disabled entity cannot log in; its existing sessions become invalid
- Cache failures -> CacheUnavailable
- resolve_from_token(): unknown token -> InvalidSession without a record store query
- session_ttl_seconds > 0 is passed through as the cache TTL
- end_session() revokes the token
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from iam.errors import (
    AuthenticationFailed,
    CacheUnavailable,
    EntityNotFound,
    InvalidSession,
)
from iam.models import AuthenticatableEntity
from iam.passwords import hash_password
from iam.resolver import IdentityResolver
from iam.sessions import SessionManager
from iam.store import RecordStore, RecordTable
from tests.fakes import FakeCache, cache_down

PASSWORD = "s3cret-pass"


@pytest.fixture
def alice(resolver: IdentityResolver) -> AuthenticatableEntity:
    return resolver.register("alice", PASSWORD)


class TestCreateSession:
    def test_success_maps_token_to_id(self, sessions: SessionManager, cache: FakeCache, alice) -> None:
        session, cookie = sessions.create_session("alice", PASSWORD)
        assert session.entity_id == "alice"
        assert cache.data[f"session:{session.token}"] == "alice"
        assert cache.ttls[f"session:{session.token}"] is None

    def test_cookie_descriptor(self, sessions: SessionManager, alice) -> None:
        session, cookie = sessions.create_session("alice", PASSWORD)
        assert cookie.name == "nys-session"
        assert cookie.value == session.token
        assert cookie.path == "/v1"
        assert cookie.secure is True
        assert cookie.http_only is True
        assert cookie.max_age is None

    def test_tokens_are_unique(self, sessions: SessionManager, alice) -> None:
        tokens = {sessions.create_session("alice", PASSWORD)[0].token for _ in range(5)}
        assert len(tokens) == 5

    def test_wrong_password_writes_nothing(self, sessions: SessionManager, resolver, cache: FakeCache, alice) -> None:
        resolver.resolve("alice")  # warm the entity cache first
        cache.calls.clear()

        with pytest.raises(AuthenticationFailed):
            sessions.create_session("alice", "wrong-password")
        assert cache.ops("set") == []
        assert not any(k.startswith("session:") for k in cache.data)

    def test_unknown_id_runs_dummy_check(self, sessions: SessionManager) -> None:
        with patch("iam.sessions.dummy_verify") as dummy:
            with pytest.raises(EntityNotFound):
                sessions.create_session("nobody", PASSWORD)
        dummy.assert_called_once_with(PASSWORD)

    def test_corrupt_hash_is_authentication_failed(self, sessions: SessionManager, records: RecordStore) -> None:
        records.put(
            RecordTable.IAM,
            AuthenticatableEntity(id="broken", password_hash="garbage", granted_patterns=[]).to_record(),
        )
        with pytest.raises(AuthenticationFailed):
            sessions.create_session("broken", PASSWORD)

    def test_disabled_entity_cannot_log_in(self, sessions: SessionManager, records: RecordStore, cache: FakeCache) -> None:
        records.put(
            RecordTable.IAM,
            AuthenticatableEntity(
                id="carol", password_hash=hash_password(PASSWORD), enabled=False, granted_patterns=[]
            ).to_record(),
        )
        with pytest.raises(AuthenticationFailed):
            sessions.create_session("carol", PASSWORD)
        assert not any(k.startswith("session:") for k in cache.data)

    def test_cache_failure_on_session_write(self, sessions: SessionManager, resolver, cache: FakeCache, alice) -> None:
        resolver.resolve("alice")
        cache.fail_with = cache_down()
        cache.fail_on = {"set"}
        with pytest.raises(CacheUnavailable):
            sessions.create_session("alice", PASSWORD)

    def test_ttl_passed_to_cache(self, resolver: IdentityResolver, cache: FakeCache, alice) -> None:
        manager = SessionManager(resolver, cache, ttl_seconds=3600)
        session, _cookie = manager.create_session("alice", PASSWORD)
        assert cache.ttls[f"session:{session.token}"] == 3600


class TestResolveFromToken:
    def test_known_token(self, sessions: SessionManager, alice) -> None:
        session, _ = sessions.create_session("alice", PASSWORD)
        entity = sessions.resolve_from_token(session.token)
        assert entity.id == "alice"
        assert entity.granted_patterns == ["nys:*:alice:*:*"]

    def test_unknown_token_never_queries_store(self, cache: FakeCache) -> None:
        records = MagicMock()
        manager = SessionManager(IdentityResolver(records, cache), cache)
        with pytest.raises(InvalidSession):
            manager.resolve_from_token("not-a-token")
        records.query.assert_not_called()

    def test_cache_failure(self, sessions: SessionManager, cache: FakeCache) -> None:
        cache.fail_with = cache_down()
        with pytest.raises(CacheUnavailable):
            sessions.resolve_from_token("anything")

    def test_resolver_errors_propagate(self, sessions: SessionManager, cache: FakeCache) -> None:
        cache.data["session:orphan"] = "deleted-entity"
        with pytest.raises(EntityNotFound):
            sessions.resolve_from_token("orphan")

    def test_disabled_entity_session_invalid(self, sessions: SessionManager, cache: FakeCache) -> None:
        disabled = AuthenticatableEntity(id="dave", password_hash="x", enabled=False)
        cache.data["entity:dave"] = disabled.to_json()
        cache.data["session:tok"] = "dave"
        with pytest.raises(InvalidSession):
            sessions.resolve_from_token("tok")


class TestEndSession:
    def test_revoked_token_is_invalid(self, sessions: SessionManager, alice) -> None:
        session, _ = sessions.create_session("alice", PASSWORD)
        sessions.end_session(session.token)
        with pytest.raises(InvalidSession):
            sessions.resolve_from_token(session.token)

    def test_unknown_token_is_noop(self, sessions: SessionManager, cache: FakeCache) -> None:
        sessions.end_session("never-issued")
        assert cache.ops("delete") == ["session:never-issued"]

    def test_cache_failure(self, sessions: SessionManager, cache: FakeCache) -> None:
        cache.fail_with = cache_down()
        with pytest.raises(CacheUnavailable):
            sessions.end_session("tok")
