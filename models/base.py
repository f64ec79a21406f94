# models/base.py
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_session_maker(database_url: str) -> tuple[AsyncEngine, sessionmaker]:
    """Builds the async engine and the session factory for the given URL."""
    engine = create_async_engine(str(database_url), echo=False)
    session_maker = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    logger.info("SQLAlchemy engine and session maker created.")
    return engine, session_maker


async def init_models(engine: AsyncEngine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
