from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from agro_auth.core.config import settings
from agro_auth.helpers.getters import isDebugMode
import logging
logger = logging.getLogger(__name__)


def _database_url() -> str:
    if isDebugMode():
        logger.info("Using EXTERNAL database URL for debug mode")
        return settings.DATABASE_URL_EXTERNAL
    logger.info("Using INTERNAL database URL")
    return settings.DATABASE_URL


DATABASE_URL = _database_url()

engine = create_async_engine(DATABASE_URL, future=True, echo=False, pool_pre_ping=True)
SessionAsync = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables():
    from agro_auth.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
