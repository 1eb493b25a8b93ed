#!/usr/bin/env python3
"""
Research portal -- operator command line.

Admin accounts cannot be created over HTTP by anonymous users; this is the
out-of-band path for the first admin, and for loading demo content.

Usage:
  python main.py create-admin
  python main.py create-admin --username root --email root@uni.example
  python main.py seed-content
  python main.py --database-url sqlite:///other.db create-admin

Environment variables:
  DATABASE_URL         Where users and content live (default: portal.db).
  USER_STORE_BACKEND   Must be "sql" for create-admin; the memory backend
                       does not outlive this process.
"""

import argparse
import logging
import sys
from getpass import getpass
from typing import Optional

from auth.models import NewUser, Role
from auth.registration import PASSWORD_MIN_LEN, validate_candidate
from auth.store import SQLUserStore
from content.seed import seed_sample_content
from content.store import ContentStore
from core.config import get_settings
from core.errors import DuplicateKeyError, ValidationError

logger = logging.getLogger("portal.cli")


def _prompt(label: str, value: Optional[str] = None) -> str:
    if value is not None:
        return value.strip()
    return input(f"  {label}: ").strip()


def create_admin(args: argparse.Namespace) -> int:
    """Interactively create an admin account. Returns the process exit code."""
    print("\nResearch Portal -- Admin User Creation")
    print("─" * 40)

    username = _prompt("Username", args.username)
    if not username:
        print("  [!] Username cannot be empty.", file=sys.stderr)
        return 1
    email = _prompt("Email", args.email)
    if not email:
        print("  [!] Email cannot be empty.", file=sys.stderr)
        return 1

    password = getpass(f"  Password (min {PASSWORD_MIN_LEN} characters): ")
    if len(password) < PASSWORD_MIN_LEN:
        print(f"  [!] Password must be at least {PASSWORD_MIN_LEN} characters.", file=sys.stderr)
        return 1
    if getpass("  Confirm password: ") != password:
        print("  [!] Passwords do not match.", file=sys.stderr)
        return 1

    first_name = _prompt("First name (optional)", args.first_name) or None
    last_name = _prompt("Last name (optional)", args.last_name) or None

    candidate = NewUser(
        username=username,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
    )
    store = SQLUserStore(args.database_url or get_settings().database_url)
    try:
        validate_candidate(candidate)
        user = store.create_user(candidate, role=Role.admin)
    except (ValidationError, DuplicateKeyError) as e:
        print(f"  [!] {e.message}", file=sys.stderr)
        return 1
    finally:
        store.close()

    logger.info("Created admin %s (id=%s)", user.username, user.id)
    print("\n  Admin user created.")
    print(f"  ID:       {user.id}")
    print(f"  Username: {user.username}")
    print(f"  Email:    {user.email}")
    print(f"  Role:     {user.role.value}\n")
    return 0


def seed_content(args: argparse.Namespace) -> int:
    """Load the sample slider, news, and gallery content into an empty store."""
    store = ContentStore(args.database_url or get_settings().database_url)
    try:
        written = seed_sample_content(store)
    finally:
        store.close()
    if written:
        print(f"  Seeded {written} sample content rows.")
    else:
        print("  Content already present; nothing seeded.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="research-portal",
        description="Operator commands for the research portal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin
  python main.py create-admin --username root --email root@uni.example
  python main.py seed-content
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    admin = sub.add_parser("create-admin", help="Create an admin account (password is prompted)")
    admin.add_argument("--username", help="Admin username (prompted if omitted)")
    admin.add_argument("--email", help="Admin email (prompted if omitted)")
    admin.add_argument("--first-name", help="Optional first name")
    admin.add_argument("--last-name", help="Optional last name")
    admin.set_defaults(func=create_admin)

    seed = sub.add_parser("seed-content", help="Load sample slider, news, and gallery items")
    seed.set_defaults(func=seed_content)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
