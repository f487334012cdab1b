"""Async SQLAlchemy engine and session factory.

The engine is built from explicit settings when the application starts:

    engine = create_engine(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        ...
"""
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine. Pool sizing only applies to server databases."""
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if make_url(database_url).get_backend_name() != "sqlite":
        kwargs.update(pool_size=10, max_overflow=20)
    return create_async_engine(database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
