"""Create an admin account, or promote an existing customer to admin."""

import argparse
import asyncio
import getpass
import sys

from sqlalchemy import select

from ..app.core.database import database_manager
from ..app.core.password_security import SecurityUtils
from ..app.models.user import User, UserRole, Vendor
from ..app.utils.logging import setup_marketplace_logging

logger = setup_marketplace_logging("marketplace_create_admin")


async def create_admin(email: str, name: str, password: str) -> str:
    """Returns "created" or "promoted"."""
    email = email.strip().lower()
    await database_manager.create_tables()
    try:
        async with database_manager.async_session_maker() as session:
            vendor = await session.scalar(select(Vendor).where(Vendor.email == email))
            if vendor is not None:
                raise ValueError(f"{email} is registered as a vendor")

            user = await session.scalar(select(User).where(User.email == email))
            if user is not None:
                user.role = UserRole.ADMIN
                user.is_active = True
                if password:
                    user.password_hash = SecurityUtils.hash_password(password)
                outcome = "promoted"
            else:
                problems = SecurityUtils.password_problems(password)
                if problems:
                    raise ValueError("; ".join(problems))
                session.add(
                    User(
                        email=email,
                        name=name,
                        password_hash=SecurityUtils.hash_password(password),
                        role=UserRole.ADMIN,
                    )
                )
                outcome = "created"
            await session.commit()
    finally:
        await database_manager.close()

    logger.info("Admin account ready", extra={"email": email, "outcome": outcome})
    return outcome


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("--name", default="Administrator")
    parser.add_argument(
        "--password",
        help="password for a new admin; prompted for when omitted "
        "(leave empty to keep an existing user's password)",
    )
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("Password: ")

    try:
        outcome = asyncio.run(create_admin(args.email, args.name, password))
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Admin {args.email} {outcome}")


if __name__ == "__main__":
    main()
