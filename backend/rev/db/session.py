from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from fastapi import HTTPException, status
import logging

from rev.core.config import settings

logger = logging.getLogger(__name__)

engine = None
SessionLocal = None

if not settings.DATABASE_URL:
    logger.error("DATABASE_URL is not set. Please check your environment variables and configuration.")
else:
    display_db_url = settings.DATABASE_URL
    if settings.POSTGRES_PASSWORD:
        display_db_url = display_db_url.replace(settings.POSTGRES_PASSWORD, "********")
    logger.info(f"Attempting to connect to database: {display_db_url}")

    try:
        engine = create_async_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,
        )
        SessionLocal = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("Database engine and SessionLocal configured successfully.")
    except Exception as e:
        logger.error(f"Failed to create database engine or SessionLocal: {e}")


def get_session_factory() -> async_sessionmaker:
    """
    Dependency returning the session factory itself.
    Work deferred past the response (webhook processing) opens its own session with it.
    """
    if not SessionLocal:
        logger.error("SessionLocal is not initialized. Database connection might have failed during app startup.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection is not available."
        )
    return SessionLocal


async def get_db() -> AsyncSession:
    """
    Dependency to get a database session.
    Ensures the session is closed after the request.
    """
    if not SessionLocal:
        logger.error("SessionLocal is not initialized. Database connection might have failed during app startup.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection is not available."
        )

    db: AsyncSession = SessionLocal()
    try:
        yield db
    finally:
        await db.close()
