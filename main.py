#!/usr/bin/env python3
"""
NYS -- command-line tools for identities and capabilities.

Usage:
  python main.py authorize nys:tasker:alice:TaskList:Write --grant 'nys:*:alice:*:*'
  python main.py authorize nys:tasker:alice:TaskList:Write --grant a:b:c:d:e --grant 'nys:*:alice:*:*'
  python main.py register alice

Environment variables (see core/config.py):
  DATABASE_URL  Record store used by `register`.
  REDIS_URL     Cache store (not contacted by `register`).
  UNIVERSE      First segment of the self-scoped pattern granted at registration.
"""

import argparse
import getpass
import re
import sys

from api.models import ENTITY_ID_PATTERN
from core.config import get_settings
from iam.cache import RedisCacheStore
from iam.errors import AuthzError
from iam.matcher import authorize
from iam.passwords import MAX_PASSWORD_BYTES
from iam.resolver import IdentityResolver
from iam.store import RecordStore


def _cmd_authorize(args: argparse.Namespace) -> int:
    """Evaluate a capability against the given patterns. Exit 0 on ALLOW, 1 on DENY."""
    decision = authorize(args.capability, args.grant)
    if decision.allowed:
        print("ALLOW")
        return 0
    print(f"DENY {decision.reason.value}")
    return 1


def _cmd_register(args: argparse.Namespace) -> int:
    if not re.match(ENTITY_ID_PATTERN, args.id):
        print(f"  [!] '{args.id}' is not a valid entity id.", file=sys.stderr)
        return 2
    password = getpass.getpass(f"Password for {args.id}: ")
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.", file=sys.stderr)
        return 2
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"  [!] Password may not exceed {MAX_PASSWORD_BYTES} bytes.", file=sys.stderr)
        return 2

    settings = get_settings()
    records = RecordStore(settings.database_url)
    cache = RedisCacheStore.from_url(settings.redis_url, settings.redis_socket_timeout)
    try:
        entity = IdentityResolver(records, cache, universe=settings.universe).register(args.id, password)
    except AuthzError as e:
        print(f"  [!] {e.kind.value}: {e.message}", file=sys.stderr)
        return 1
    finally:
        cache.close()
        records.close()

    print(f"Registered {entity.id} with {', '.join(entity.granted_patterns)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nys",
        description="Identity and capability tools for the NYS API.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_auth = sub.add_parser("authorize", help="Check a capability against granted patterns.")
    p_auth.add_argument("capability", help="Requested capability, e.g. nys:tasker:alice:TaskList:Write")
    p_auth.add_argument(
        "--grant",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Granted pattern; repeat to grant several, tried in order.",
    )
    p_auth.set_defaults(func=_cmd_authorize)

    p_reg = sub.add_parser("register", help="Register a new entity (prompts for a password).")
    p_reg.add_argument("id", help="Entity id")
    p_reg.set_defaults(func=_cmd_register)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
