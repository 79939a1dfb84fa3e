"""
Account lookup and password storage used by the reset flow.
"""
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agro_auth.models.user import User


class UserDirectory(Protocol):
    async def find_by_email(self, email: str) -> Optional[User]: ...

    async def set_password_hash(self, email: str, password_hash: str) -> None: ...


class SqlUserDirectory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.email == email))
        return result.scalar_one_or_none()

    async def set_password_hash(self, email: str, password_hash: str) -> None:
        user = await self.find_by_email(email)
        if user is None:
            raise LookupError(f"No account for {email}")
        user.password = password_hash
        user.updated_at = datetime.now(timezone.utc)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            # the session is shared with the reset store, which still has to release the code
            await self.db.rollback()
            raise
