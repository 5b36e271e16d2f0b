from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from .config import settings


def make_engine(url: str) -> AsyncEngine:
    return create_async_engine(url, echo=False, future=True)


def make_session_factory(bind: AsyncEngine):
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine: AsyncEngine = make_engine(settings.database_url)

async_session = make_session_factory(engine)


# helper to create tables (call at startup)
async def init_db(bind: AsyncEngine = engine):
    async with bind.begin() as conn:
        # schema migrations are handled outside this service
        await conn.run_sync(SQLModel.metadata.create_all)
