from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.APP_ENV == "development",
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ─── Sync sessions (Celery workers and the SLA sweep threads) ───

@lru_cache
def get_sync_session_factory() -> sessionmaker[Session]:
    """Return the process-wide sync session factory.

    The pool is sized for the SLA sweep: one connection per shop worker.
    Sessions themselves are not thread-safe; each worker opens its own.
    """
    sync_engine = create_engine(
        settings.DATABASE_URL_SYNC,
        pool_pre_ping=True,
        pool_size=max(settings.SLA_SCHEDULER_MAX_WORKERS, 1),
        max_overflow=2,
    )
    return sessionmaker(bind=sync_engine, expire_on_commit=False)
