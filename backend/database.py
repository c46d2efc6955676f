# database.py - Engine and sessions for the gadget and user store
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from contextlib import asynccontextmanager

from config import DATABASE_URL, SQL_ECHO


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": SQL_ECHO, "future": True, "pool_pre_ping": True}
    # SQLite has no server-side pool to size
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=10, max_overflow=0, pool_recycle=3600)
    return kwargs


engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))

# Services commit explicitly, so rows stay readable after commit
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def get_db_session():
    """One session per request. Routers hand it to AuthService / GadgetService."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Create the users and gadgets tables if they are missing"""
    from models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    await engine.dispose()


@asynccontextmanager
async def get_db_context():
    """Session for scripts such as the seeder: commits on success, rolls back on error"""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
