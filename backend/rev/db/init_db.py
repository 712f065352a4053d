import asyncio
import logging

from rev.db.session import engine
from rev.db.base_class import Base
import rev.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


async def init_db():
    logger.info("Initializing database...")
    if not engine:
        logger.error("Database engine (from rev.db.session) is not initialized. Cannot create tables.")
        return

    async with engine.begin() as conn:
        try:
            logger.info("Creating all tables...")
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created successfully.")
        except Exception as e:
            logger.error(f"Error during table creation: {e}")
            raise

    logger.info("Database initialization complete.")


if __name__ == "__main__":
    from rev.core.config import settings
    from rev.core.logging import configure_logging

    configure_logging()
    main_logger = logging.getLogger("__main__")

    if not settings.DATABASE_URL:
        main_logger.error("DATABASE_URL not set in settings. Exiting.")
    elif not engine:
        main_logger.error("Database engine in rev.db.session is None. Exiting.")
    else:
        db_url_display = str(settings.DATABASE_URL)
        if settings.POSTGRES_PASSWORD:
            db_url_display = db_url_display.replace(str(settings.POSTGRES_PASSWORD), '********')

        main_logger.info(f"Attempting DB initialization for: {db_url_display}")
        try:
            asyncio.run(init_db())
        except Exception:
            main_logger.exception("An error occurred during database initialization")
