"""
iam/sessions.py -- Session issuing, lookup, and revocation.

A session is an opaque random token mapped to an entity id in the cache
(session:{token} -> id). The token is the only thing the client holds; it is
delivered as an HttpOnly, Secure cookie scoped to the API path.

Lifetime policy: mappings carry no expiry unless Settings.session_ttl_seconds
is positive. Either way end_session() revokes a token immediately.

Disabled entities: create_session() refuses them with AuthenticationFailed and
resolve_from_token() refuses them with InvalidSession. The matcher never looks
at the flag.

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

import logging
import secrets

from iam.cache import CacheStore, session_key
from iam.errors import (
    AuthenticationFailed,
    CacheStoreError,
    CacheUnavailable,
    CredentialFault,
    EntityNotFound,
    InvalidSession,
)
from iam.models import AuthenticatableEntity, CookieDescriptor, Session
from iam.passwords import dummy_verify, verify_password
from iam.resolver import IdentityResolver

logger = logging.getLogger("nys.iam.sessions")


def generate_session_token() -> str:
    """Return a new unguessable session token (256 bits of entropy)."""
    return secrets.token_urlsafe(32)


class SessionManager:
    def __init__(
        self,
        resolver: IdentityResolver,
        cache: CacheStore,
        cookie_name: str = "nys-session",
        cookie_path: str = "/v1",
        ttl_seconds: int = 0,
    ) -> None:
        self.resolver = resolver
        self.cache = cache
        self.cookie_name = cookie_name
        self.cookie_path = cookie_path
        self.ttl_seconds = ttl_seconds

    def create_session(self, entity_id: str, password: str) -> tuple[Session, CookieDescriptor]:
        """Authenticate id/password and issue a new session.

        Resolver errors propagate. When the entity does not exist a dummy
        bcrypt check runs first so the response time matches a wrong password.
        Nothing is written to the cache unless the password verifies.
        """
        try:
            entity = self.resolver.resolve(entity_id, force_reload=False)
        except EntityNotFound:
            dummy_verify(password)
            raise

        try:
            verified = verify_password(password, entity.password_hash)
        except CredentialFault:
            logger.error("Password hash for entity %s could not be evaluated", entity_id)
            raise AuthenticationFailed() from None

        if not verified:
            logger.info("Authentication failed for entity %s", entity_id)
            raise AuthenticationFailed()
        if not entity.enabled:
            logger.info("Refusing session for disabled entity %s", entity_id)
            raise AuthenticationFailed()

        session = Session(token=generate_session_token(), entity_id=entity.id)
        try:
            self.cache.set(session_key(session.token), session.entity_id, ttl=self.ttl_seconds or None)
        except CacheStoreError as exc:
            raise CacheUnavailable() from exc

        logger.info("Issued session for entity %s", entity.id)
        cookie = CookieDescriptor(name=self.cookie_name, value=session.token, path=self.cookie_path)
        return session, cookie

    def resolve_from_token(self, token: str) -> AuthenticatableEntity:
        """Return the entity a session token stands for.

        An unknown token is InvalidSession and never reaches the record store.
        """
        try:
            entity_id = self.cache.get(session_key(token))
        except CacheStoreError as exc:
            raise CacheUnavailable() from exc
        if entity_id is None:
            raise InvalidSession()

        entity = self.resolver.resolve(entity_id, force_reload=False)
        if not entity.enabled:
            raise InvalidSession("The session belongs to a disabled entity.")
        return entity

    def end_session(self, token: str) -> None:
        """Revoke a session token. Unknown tokens are ignored."""
        try:
            self.cache.delete(session_key(token))
        except CacheStoreError as exc:
            raise CacheUnavailable() from exc
        logger.info("Session revoked")
