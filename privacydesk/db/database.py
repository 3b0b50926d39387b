import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from privacydesk.core import tracing as logger
from privacydesk.core.config import settings
from privacydesk.exceptions.errors import PrivacyDeskError

# Configure logging for SQLAlchemy (ORM logs only)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def build_engine_kwargs(database_url: str) -> dict:
    """Pool settings for asyncpg; SQLite keeps SQLAlchemy's defaults"""
    if database_url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": False,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "connect_args": {
            "server_settings": {"application_name": "privacydesk_api"},
            "command_timeout": 5,
        },
    }


# SQLAlchemy Engine
engine = create_async_engine(settings.DATABASE_URL, **build_engine_kwargs(settings.DATABASE_URL))

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False
)

# Declarative base class
Base = declarative_base()


async def init_db():
    """Create database tables."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e), type=type(e).__name__)
        raise


async def get_db():
    """Async session dependency; rolls back whatever the request left open on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except PrivacyDeskError as e:
            logger.warning("Request aborted by domain error", error=e.detail, kind=e.kind)
            await session.rollback()
            raise
        except Exception as e:
            logger.error("Database session error", error=str(e), type=type(e).__name__)
            await session.rollback()
            raise
