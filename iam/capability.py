"""
iam/capability.py -- Capability string parsing.

A capability names one action in one scope:

    universe:service:entity:resource:action
    nys:tasker:alice:TaskList:Write

Granted patterns share the same shape but may carry the wildcard marker
anywhere inside a segment (nys:*:alice:*:*).

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

from dataclasses import dataclass

from iam.errors import MalformedCapability

SEPARATOR = ":"
WILDCARD = "*"
SEGMENT_COUNT = 5


@dataclass(frozen=True)
class CapabilityString:
    universe: str
    service: str
    entity: str
    resource: str
    action: str

    @property
    def segments(self) -> tuple[str, str, str, str, str]:
        return (self.universe, self.service, self.entity, self.resource, self.action)

    def __str__(self) -> str:
        return SEPARATOR.join(self.segments)


def split_segments(text: str) -> list[str] | None:
    """Return the five segments of text, or None if it is not capability-shaped."""
    parts = text.split(SEPARATOR)
    if len(parts) != SEGMENT_COUNT or not all(parts):
        return None
    return parts


def parse(text: str) -> CapabilityString:
    """Parse text into a CapabilityString.

    Raises MalformedCapability unless text splits into exactly five
    non-empty segments.
    """
    parts = split_segments(text)
    if parts is None:
        raise MalformedCapability(f"Expected {SEGMENT_COUNT} ':'-separated segments in {text!r}.")
    return CapabilityString(*parts)


def build(universe: str, service: str, entity: str, resource: str, action: str) -> str:
    """Join segments into capability text. Used by route handlers."""
    return SEPARATOR.join((universe, service, entity, resource, action))
