import redis.asyncio as aioredis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agro_auth.core.config import settings
from agro_auth.db.session import SessionAsync
from agro_auth.helpers.getters import isDebugMode
from agro_auth.services.clock import SystemClock
from agro_auth.services.mailer import CodeDeliveryChannel, ConsoleCodeDelivery, get_delivery_channel
from agro_auth.services.password_reset import PasswordResetFlow
from agro_auth.services.reset_store import SqlResetStore
from agro_auth.services.user_directory import SqlUserDirectory


async def get_db():
    async with SessionAsync() as session:
        yield session


async def get_redis():
    redis = aioredis.from_url(
        settings.REDIS_URL_EXTERNAL if isDebugMode() else settings.REDIS_URL
    )
    try:
        yield redis
    finally:
        await redis.aclose()


def get_code_delivery() -> CodeDeliveryChannel:
    if isDebugMode():
        return ConsoleCodeDelivery()
    return get_delivery_channel()


def get_clock() -> SystemClock:
    return SystemClock()


def get_reset_flow(
    db: AsyncSession = Depends(get_db),
    delivery: CodeDeliveryChannel = Depends(get_code_delivery),
    clock: SystemClock = Depends(get_clock),
) -> PasswordResetFlow:
    return PasswordResetFlow(
        users=SqlUserDirectory(db),
        delivery=delivery,
        store=SqlResetStore(db),
        clock=clock,
    )
