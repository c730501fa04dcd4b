"""
iam/errors.py -- Error taxonomy for identity, session, and authorization.

Two tiers:
  Component errors (RecordStoreError, CacheStoreError, CacheConnectionError,
      CredentialFault) are raised by the store adapters and the credential
      verifier. They describe what broke, not what the caller should report.

  AuthzError subclasses are the outward-facing enumeration. The resolver and
      session manager translate component errors into these, and the API layer
      turns them into HTTP responses. Each carries a stable ErrorKind and a
      human-readable message.

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Stable machine-readable error identifiers."""

    ENTITY_NOT_FOUND = "EntityNotFound"
    TOO_MANY_ENTITIES = "TooManyEntities"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    CACHE_UNAVAILABLE = "CacheUnavailable"
    AUTHENTICATION_FAILED = "AuthenticationFailed"
    MISSING_SESSION_KEY = "MissingSessionKey"
    INVALID_SESSION = "InvalidSession"
    NO_MATCHING_PRIVILEGE = "NoMatchingPrivilege"
    MALFORMED_CAPABILITY = "MalformedCapability"
    ENTITY_ALREADY_EXISTS = "EntityAlreadyExists"


# ---------------------------------------------------------------------------
# Component errors
# ---------------------------------------------------------------------------


class RecordStoreError(Exception):
    """The record store could not complete a put or query."""


class CacheStoreError(Exception):
    """The cache store rejected or failed a command."""


class CacheConnectionError(CacheStoreError):
    """A connection to the cache store could not be established or timed out."""


class CredentialFault(Exception):
    """bcrypt could not evaluate the stored hash (malformed, wrong prefix, ...).

    Distinct from a plain password mismatch, which is reported as False.
    """


# ---------------------------------------------------------------------------
# Outward-facing errors
# ---------------------------------------------------------------------------


class AuthzError(Exception):
    """Base class for every error surfaced to the routing layer."""

    kind: ErrorKind
    default_message: str = "The request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class EntityNotFound(AuthzError):
    kind = ErrorKind.ENTITY_NOT_FOUND
    default_message = "The requested entity could not be found."


class TooManyEntities(AuthzError):
    kind = ErrorKind.TOO_MANY_ENTITIES
    default_message = "The request matched more than one known entity."


class ServiceUnavailable(AuthzError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    default_message = "A query to the record store has failed."


class CacheUnavailable(AuthzError):
    kind = ErrorKind.CACHE_UNAVAILABLE
    default_message = "Unable to connect to or query the session cache."


class AuthenticationFailed(AuthzError):
    kind = ErrorKind.AUTHENTICATION_FAILED
    default_message = "Failed to authenticate entity with the provided credentials."


class MissingSessionKey(AuthzError):
    kind = ErrorKind.MISSING_SESSION_KEY
    default_message = "No session key was passed. Authenticate with POST /v1/public/iam/session."


class InvalidSession(AuthzError):
    kind = ErrorKind.INVALID_SESSION
    default_message = "The session key passed appears to be invalid."


class NoMatchingPrivilege(AuthzError):
    kind = ErrorKind.NO_MATCHING_PRIVILEGE
    default_message = "The entity lacks the privilege required to perform this action on this resource."


class MalformedCapability(AuthzError):
    kind = ErrorKind.MALFORMED_CAPABILITY
    default_message = "The capability string is malformed."


class EntityAlreadyExists(AuthzError):
    kind = ErrorKind.ENTITY_ALREADY_EXISTS
    default_message = "An entity with that id already exists."
