from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from watchdesk.config.settings import settings

engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)

# Watchlist rows are returned to handlers after commit.
AsyncSessionLocal = async_sessionmaker(engine, autoflush=False, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
