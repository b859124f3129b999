from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from devicectl.core.config import settings

Base = declarative_base()

engine_kwargs = {}
if "sqlite" in settings.DATABASE_URL:
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # In-memory база живёт, пока жив единственный коннект
    if ":memory:" in settings.DATABASE_URL or settings.DATABASE_URL.endswith("://"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)
async_session = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_db():
    async with async_session() as session:
        yield session
