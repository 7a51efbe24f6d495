from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from lazygallery.core.config import settings

database_url = make_url(settings.DATABASE_URL)
engine_options = {}
if database_url.get_backend_name() == "sqlite":
    # aiosqlite connections are bound to the event loop that opened them
    engine_options["poolclass"] = NullPool

engine = create_async_engine(database_url, echo=False, **engine_options)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

class Base(DeclarativeBase):
    pass

async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session
