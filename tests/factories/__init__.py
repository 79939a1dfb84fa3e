"""
Data factories for test data generation.

Usage:
    from tests.factories import UserFactory

    user = await UserFactory.create_async(db_session, email="custom@test.com")
"""

from tests.factories.user import UserFactory

__all__ = [
    "UserFactory",
]
