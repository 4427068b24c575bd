# chatpulse/core/db.py

import logging
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from chatpulse.core.config import settings

log = logging.getLogger(__name__)

# The engine is lazy: nothing connects until the first session is opened.
try:
    engine = create_async_engine(settings.DB_URL, echo=False)
    # expire_on_commit=False lets callers read attributes after the transaction closes.
    SessionLocal = async_sessionmaker(
        engine, expire_on_commit=False, class_=AsyncSession
    )
    log.info("Async SQLAlchemy engine initialized successfully.")
except Exception as e:
    log.critical(f"Failed to initialize database engine: {e}")
    raise


class Base(DeclarativeBase):
    pass


async def create_tables() -> None:
    """Creates missing tables; alembic owns schema changes after that."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session():
    """
    Provides a transactional scope around a series of database operations.
    Automatically commits on success and rolls back on failure.

    Usage:
        async with get_session() as db:
            db.add(row)
    """
    session = SessionLocal()
    try:
        yield session
        await session.commit()
    except Exception as e:
        await session.rollback()
        log.error(f"Database transaction failed, rolled back. Error: {e}")
        raise
    finally:
        await session.close()
