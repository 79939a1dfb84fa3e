"""
User factory for test data generation.
"""

import factory
from sqlalchemy.ext.asyncio import AsyncSession

from agro_auth.models.user import User
from agro_auth.core.security import get_password_hash


class UserFactory(factory.Factory):
    """
    Factory for User model.

    Default password: "Password123!" (hashed). Pass `raw_password=...` to
    choose another one.
    """

    class Meta:
        model = User

    class Params:
        raw_password = "Password123!"

    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"user{n}@pyramidagro.test")
    password = factory.LazyAttribute(lambda o: get_password_hash(o.raw_password))
    role = "USER"

    @classmethod
    async def create_async(
        cls,
        db_session: AsyncSession,
        **kwargs
    ) -> User:
        """
        Create user in database asynchronously.

        Usage:
            user = await UserFactory.create_async(
                db_session,
                email="custom@test.com",
                raw_password="Custom123!"
            )
        """
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()  # Get ID without committing transaction
        return instance
