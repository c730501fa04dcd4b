"""
iam/gate.py -- The single call request handlers make to enforce a capability.

    entity = sessions.resolve_from_token(token)
    assert_capability(entity, f"nys:tasker:{owner}:TaskList:Write")

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

import logging

from iam.capability import parse
from iam.errors import NoMatchingPrivilege
from iam.matcher import authorize
from iam.models import AuthenticatableEntity

logger = logging.getLogger("nys.iam.gate")


def assert_capability(entity: AuthenticatableEntity, capability_text: str) -> None:
    """Raise unless entity's granted patterns authorize capability_text.

    MalformedCapability if the text is not capability-shaped,
    NoMatchingPrivilege if no granted pattern authorizes it.
    """
    requested = parse(capability_text)
    if not authorize(requested, entity.granted_patterns):
        logger.info("Denied %s for entity %s", capability_text, entity.id)
        raise NoMatchingPrivilege()
