"""
iam/models.py -- Domain dataclasses for identity and sessions.

Pattern: Data class (pure data container). The only behaviour here is the
mapping to and from the plain dicts the record store and the cache carry;
the resolver and session manager do the work.

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass
class AuthenticatableEntity:
    """Anything that can log in and hold granted capability patterns.

    granted_patterns is ordered: the matcher tries patterns in stored order
    and the first authorizing one wins.

    enabled is written at registration; the session layer refuses disabled
    entities but the matcher never looks at it.
    """

    id: str
    password_hash: str
    enabled: bool = True
    granted_patterns: list[str] = field(default_factory=list)

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict) -> "AuthenticatableEntity":
        return cls(
            id=record["id"],
            password_hash=record["password_hash"],
            enabled=bool(record.get("enabled", True)),
            granted_patterns=list(record.get("granted_patterns") or []),
        )

    def to_json(self) -> str:
        """Serialize for the cache (entity:{id})."""
        return json.dumps(self.to_record())

    @classmethod
    def from_json(cls, raw: str) -> "AuthenticatableEntity":
        return cls.from_record(json.loads(raw))


@dataclass
class Session:
    """A live token -> entity mapping. Stored only in the cache."""

    token: str
    entity_id: str


@dataclass(frozen=True)
class CookieDescriptor:
    """Attributes of the session cookie the routing layer must set.

    secure and http_only are always True. max_age is None for a browser-session
    cookie; the server-side mapping is what actually governs lifetime.
    """

    name: str
    value: str
    path: str
    secure: bool = True
    http_only: bool = True
    max_age: Optional[int] = None
