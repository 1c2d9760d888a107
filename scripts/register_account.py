"""Utility script to create an account and optionally register its device."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from vitrix.application.use_cases.device_tokens import register_device_token
from vitrix.application.use_cases.users import create_user
from vitrix.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for account creation."""

    parser = argparse.ArgumentParser(
        description="Create a Vitrix account that can receive notifications.",
    )
    parser.add_argument("--name", required=True, help="Display name of the account")
    parser.add_argument("--email", required=True, help="Email address of the account")
    parser.add_argument(
        "--role",
        default="trainee",
        help="Account role: trainee (default), coach, trainer or admin",
    )
    parser.add_argument(
        "--group",
        dest="groups",
        action="append",
        default=[],
        help="Group the account belongs to. Repeat for several groups.",
    )
    parser.add_argument("--token", default=None, help="Push device token to register")
    parser.add_argument(
        "--platform",
        default=None,
        choices=["android", "ios", "web"],
        help="Platform of the device token",
    )
    return parser.parse_args()


def main() -> None:
    """Create an account using the provided command line arguments."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        user = create_user(
            session,
            name=args.name,
            email=args.email,
            role=args.role,
            group_names=args.groups,
        )
        device_token = None
        if args.token:
            device_token = register_device_token(
                session, user_id=user.id, token=args.token, platform=args.platform
            )
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Could not create the account: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Error while saving the account: {exc}") from exc
    else:
        print(
            "Account created:\n"
            f"  ID: {user.id}\n"
            f"  Name: {user.name}\n"
            f"  Email: {user.email}\n"
            f"  Role: {user.role}\n"
            f"  Groups: {', '.join(user.group_names) or '-'}\n"
            f"  Device token: {'registered' if device_token else '-'}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
