"""
Create a dashboard account.

    python -m agro_auth.scripts.create_user admin@pyramidagro.com --name "Admin User" --role ADMIN

The password is read from --password or prompted for, and must satisfy the
same policy as a password reset.
"""
import argparse
import asyncio
import getpass
import sys

from sqlalchemy import select

from agro_auth.core.security import get_password_hash, is_strong_password, is_valid_email, normalize_email
from agro_auth.db.session import SessionAsync, create_tables
from agro_auth.models.user import User


async def create_user(email: str, password: str, name: str = None, role: str = "USER") -> User:
    email = normalize_email(email)
    if not is_valid_email(email):
        raise ValueError(f"Invalid email address: {email!r}")
    if not is_strong_password(password):
        raise ValueError("Password needs 8+ characters with upper case, lower case and a digit")

    await create_tables()
    async with SessionAsync() as db:
        result = await db.execute(select(User).filter(User.email == email))
        if result.scalar_one_or_none():
            raise ValueError(f"User already exists: {email}")

        user = User(email=email, name=name, role=role.upper(), password=get_password_hash(password))
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a dashboard account")
    parser.add_argument("email")
    parser.add_argument("--name", default=None)
    parser.add_argument("--role", default="USER", choices=["USER", "ADMIN", "user", "admin"])
    parser.add_argument("--password", default=None, help="prompted for when omitted")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    try:
        user = asyncio.run(create_user(args.email, password, name=args.name, role=args.role))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(f"✅ User created: {user.email} (role {user.role})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
