"""Database engine and session factory helpers."""

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from binary_mlm.config.settings import settings
from binary_mlm.models import Base


def create_engine(
    database_url: str | None = None, echo: bool | None = None
) -> AsyncEngine:
    """
    Create async engine.

    Args:
        database_url: SQLAlchemy URL (defaults to DATABASE_URL setting)
        echo: SQL echo (defaults to DATABASE_ECHO setting)

    Returns:
        Async engine
    """
    url = database_url or settings.database_url
    connect_args: dict = {}
    if url.startswith("sqlite"):
        # Writers wait for each other instead of failing with "database is locked"
        connect_args["timeout"] = 30

    return create_async_engine(
        url,
        echo=settings.database_echo if echo is None else echo,
        connect_args=connect_args,
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info(f"Database schema ready ({engine.url.get_backend_name()})")
