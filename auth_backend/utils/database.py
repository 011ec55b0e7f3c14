# auth_backend/utils/database.py
import logging
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger("auth_backend.database")

Base = declarative_base()


class Database:
    """
    Owns the engine and session factory for one application instance.
    The pool is bounded: at most ``pool_size`` connections, no overflow.
    """

    def __init__(self, url: str, pool_size: int = 10):
        self.url = url
        self.engine = create_async_engine(
            url, echo=False, future=True, pool_size=pool_size, max_overflow=0
        )
        self.session_factory = sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def ping(self):
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1 AS test"))
            return result.scalar_one()

    async def create_all(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()
