"""
iam/resolver.py -- Cache-aside loading and registration of authenticatable entities.

Read path (resolve):
  1. Unless force_reload, look in the cache under entity:{id}. A hit is
     returned as-is and the record store is never touched. A cache failure
     ends the call with CacheUnavailable -- it does NOT fall through to the
     record store. An entry that does not decode is also CacheUnavailable.
  2. Otherwise query the record store by id. Exactly one row is required:
     zero is EntityNotFound, more than one is TooManyEntities (an integrity
     violation that is reported, never auto-resolved).
  3. Write the loaded entity back to the cache. This write is part of the
     contract: if it fails the call fails with CacheUnavailable.

Write path (register): records go straight to the record store. The cache is
never written here; the next resolve() fills it.

Entities are immutable after registration, so two concurrent cold loads of
the same id racing to fill the cache are harmless (last writer wins with
identical data).

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

import logging

from iam.cache import CacheStore, entity_key
from iam.capability import WILDCARD, build
from iam.errors import (
    CacheStoreError,
    CacheUnavailable,
    EntityAlreadyExists,
    EntityNotFound,
    RecordStoreError,
    ServiceUnavailable,
    TooManyEntities,
)
from iam.models import AuthenticatableEntity
from iam.passwords import hash_password
from iam.store import RecordStore, RecordTable

logger = logging.getLogger("nys.iam.resolver")


def self_scoped_pattern(universe: str, entity_id: str) -> str:
    """The pattern every new entity is granted: full access to its own scope."""
    return build(universe, WILDCARD, entity_id, WILDCARD, WILDCARD)


class IdentityResolver:
    """Loads entities through the cache and registers new ones.

    Both stores are injected handles created once at startup; the resolver
    holds no other state.
    """

    def __init__(self, records: RecordStore, cache: CacheStore, universe: str = "nys") -> None:
        self.records = records
        self.cache = cache
        self.universe = universe

    def resolve(self, entity_id: str, force_reload: bool = False) -> AuthenticatableEntity:
        key = entity_key(entity_id)

        if not force_reload:
            cached = self._read_cache(key)
            if cached is not None:
                return self._decode(key, cached)

        entity = self._load(entity_id)

        try:
            self.cache.set(key, entity.to_json())
        except CacheStoreError as exc:
            raise CacheUnavailable() from exc
        logger.debug("Cached entity %s (force_reload=%s)", entity_id, force_reload)
        return entity

    def register(self, entity_id: str, password: str) -> AuthenticatableEntity:
        """Persist a new entity holding only its self-scoped pattern.

        Raises EntityAlreadyExists if the id is taken. The check and the write
        are not atomic; a lost race leaves two rows, which resolve() reports
        as TooManyEntities.
        """
        if self._query(entity_id):
            raise EntityAlreadyExists()

        entity = AuthenticatableEntity(
            id=entity_id,
            password_hash=hash_password(password),
            enabled=True,
            granted_patterns=[self_scoped_pattern(self.universe, entity_id)],
        )
        try:
            self.records.put(RecordTable.IAM, entity.to_record())
        except RecordStoreError as exc:
            raise ServiceUnavailable() from exc
        logger.info("Registered entity %s", entity_id)
        return entity

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_cache(self, key: str) -> str | None:
        try:
            if not self.cache.exists(key):
                return None
            return self.cache.get(key)
        except CacheStoreError as exc:
            raise CacheUnavailable() from exc

    def _decode(self, key: str, cached: str) -> AuthenticatableEntity:
        try:
            return AuthenticatableEntity.from_json(cached)
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Corrupt cache entry under %s: %s", key, exc)
            raise CacheUnavailable("A cached entity could not be decoded.") from exc

    def _query(self, entity_id: str) -> list[dict]:
        try:
            return self.records.query(RecordTable.IAM, "id", entity_id)
        except RecordStoreError as exc:
            raise ServiceUnavailable() from exc

    def _load(self, entity_id: str) -> AuthenticatableEntity:
        rows = self._query(entity_id)
        if len(rows) > 1:
            logger.error("Integrity violation: %d records share entity id %s", len(rows), entity_id)
            raise TooManyEntities()
        if not rows:
            raise EntityNotFound()
        return AuthenticatableEntity.from_record(rows[0])
