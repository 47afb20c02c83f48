"""
Management commands.

Registration over HTTP only ever creates customers; seller and admin
accounts are created here against the configured storage.

    python -m bookstore.manage create-user --email s@x.com --password secret1 \\
        --first-name Sam --last-name Seller --role seller
    python -m bookstore.manage serve
"""

import argparse
import sys
from typing import Optional, Sequence
from uuid import uuid4

from loguru import logger
from pydantic import EmailStr, TypeAdapter

from bookstore.config import ConfigurationError, Settings, get_settings
from bookstore.security import PasswordHasher
from bookstore.storage import DuplicateEmailError, Role, Storage, StoredUser, create_storage


_email_adapter = TypeAdapter(EmailStr)


def create_user(
    storage: Storage,
    hasher: PasswordHasher,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role: Role = Role.CUSTOMER,
) -> StoredUser:
    """
    Create a user with an explicit role.

    Raises:
        DuplicateEmailError: If the email is already registered.
        ValueError: If the email is invalid or the password is unusable.
    """
    # Normalize the way the HTTP schemas do so the account can log in
    email = _email_adapter.validate_python(email)
    user = StoredUser(
        id=str(uuid4()),
        email=email,
        password_hash=hasher.hash(password),
        role=Role(role),
        first_name=first_name,
        last_name=last_name,
    )
    return storage.insert_user(user)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bookstore", description="Bookstore management commands")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-user", help="Create a user with a given role")
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--first-name", default="")
    create.add_argument("--last-name", default="")
    create.add_argument("--role", choices=[r.value for r in Role], default=Role.CUSTOMER.value)

    commands.add_parser("serve", help="Run the API server")
    return parser


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()

    if args.command == "serve":
        from bookstore.api.main import main as serve
        serve()
        return 0

    try:
        settings.validate()
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    storage = create_storage(settings)
    try:
        user = create_user(
            storage,
            PasswordHasher(rounds=settings.bcrypt_rounds),
            email=args.email,
            password=args.password,
            first_name=args.first_name,
            last_name=args.last_name,
            role=Role(args.role),
        )
    except (DuplicateEmailError, ValueError) as e:
        logger.error(str(e))
        return 1
    finally:
        storage.close()

    logger.info(f"Created {user.role.value} {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
