import os
import asyncio
import logging
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from .models import engine
from .crud import ensure_media_bucket

logger = logging.getLogger(__name__)

DB_STARTUP_RETRIES = int(os.getenv('DB_STARTUP_RETRIES', '3'))
DB_STARTUP_RETRY_DELAY = float(os.getenv('DB_STARTUP_RETRY_DELAY', '5'))


async def database_startup(max_retries: int = DB_STARTUP_RETRIES, retry_delay: float = DB_STARTUP_RETRY_DELAY) -> bool:
    """Wait for the database to accept connections"""
    for attempt in range(max_retries):
        try:
            logger.info(f"Checking database connection (attempt {attempt + 1}/{max_retries})")
            async with engine.connect() as conn:
                await conn.execute(text('SELECT 1'))
            logger.info("Database connection established")
            return True
        except (DBAPIError, OSError) as e:
            logger.warning(f'Database startup attempt {attempt + 1} failed: {e}')
            if attempt < max_retries - 1:
                logger.info(f"Retrying database connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
    logger.error("Failed to connect to the database after all retries")
    return False


async def storage_startup():
    """Seed the public media bucket row if migrations have not done it"""
    await ensure_media_bucket()
