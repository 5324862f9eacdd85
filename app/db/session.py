# app/db/session.py

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import Settings


# 1) Engine: one per app, async with a bounded pool
def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.async_db_uri,
        pool_pre_ping=True,   # avoids stale connection errors
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,  # excess requests queue instead of failing
    )


# 2) Session factory: creates short-lived sessions per request
def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        expire_on_commit=False,  # keep objects usable after commit
        class_=AsyncSession,
    )


# 3) Declarative Base: all models inherit from this
class Base(DeclarativeBase):
    pass
