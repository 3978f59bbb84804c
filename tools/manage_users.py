"""Command-line helper for managing users without going through HTTP."""
from __future__ import annotations

import argparse
import sys
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from feature_toggle.constants import ROLE_ADMIN, ROLE_READ_ONLY
from feature_toggle.database import SessionLocal, init_db
from feature_toggle.models import User
from feature_toggle.services import create_access_token


def _collect_user(db: Session, email: str, *, auto_create: bool, name: str | None = None) -> User:
    normalized = email.strip().lower()
    record = db.scalar(select(User).where(User.email == normalized))
    if record:
        return record
    if not auto_create:
        raise SystemExit(f"User '{normalized}' does not exist. Pass --auto-create to provision one.")
    user = User(email=normalized, name=name or normalized, role=ROLE_READ_ONLY)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _print_users(users: Iterable[User]) -> None:
    for user in users:
        seen = f"{user.last_active_at:%Y-%m-%d %H:%M:%S}" if user.last_active_at else "never"
        print(f"{user.id} | {user.email:<40} | role={user.role:<9} | last active={seen}")


def _run_list(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        users = db.scalars(select(User).order_by(User.email)).all()
        if not users:
            print("No users found.")
            return 0
        _print_users(users)
    return 0


def _set_role(args: argparse.Namespace, role: str) -> int:
    with SessionLocal() as db:
        user = _collect_user(db, args.email, auto_create=args.auto_create)
        if user.role == role:
            print(f"{user.email} already has role {role}.")
            return 0
        user.role = role
        db.commit()
        print(f"{user.email} is now {role}.")
    return 0


def _run_promote(args: argparse.Namespace) -> int:
    return _set_role(args, ROLE_ADMIN)


def _run_demote(args: argparse.Namespace) -> int:
    return _set_role(args, ROLE_READ_ONLY)


def _run_token(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        user = _collect_user(db, args.email, auto_create=args.auto_create, name=args.name)
        try:
            token = create_access_token(
                user.external_id or str(user.id),
                email=user.email,
                name=user.name,
                expires_minutes=args.minutes,
            )
        except RuntimeError as exc:
            print(f"Cannot mint token: {exc}", file=sys.stderr)
            return 2
    print(token)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="User administration for the feature toggle API.")
    subcommands = parser.add_subparsers(dest="command", required=True)

    listing = subcommands.add_parser("list", help="List known users and their roles.")
    listing.set_defaults(func=_run_list)

    for command, handler, help_text in (
        ("promote", _run_promote, "Grant the admin role to a user."),
        ("demote", _run_demote, "Return a user to the read-only role."),
    ):
        sub = subcommands.add_parser(command, help=help_text)
        sub.add_argument("email", help="Email address of the user.")
        sub.add_argument("--auto-create", action="store_true", help="Create the user when it does not exist yet.")
        sub.set_defaults(func=handler)

    token = subcommands.add_parser("token", help="Mint a development token (only accepted when AUTH_MODE=local).")
    token.add_argument("email", help="Email address the token identifies.")
    token.add_argument("--name", help="Display name for a newly created user.")
    token.add_argument("--minutes", type=int, default=60, help="Token lifetime (default: %(default)s).")
    token.add_argument("--auto-create", action="store_true", help="Create the user when it does not exist yet.")
    token.set_defaults(func=_run_token)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.error("Please supply a sub-command")
    init_db()
    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
