# database.py
import logging

import databases
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_incrementing

from config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

database = databases.Database(DATABASE_URL)

Base = declarative_base()


def _mask(url: str) -> str:
    # hide the password part of user:password@host
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:****@{host}"


async def connect_with_retry(db: databases.Database, attempts: int = None, backoff: float = None):
    """Connect the pool, retrying with a linearly increasing wait.

    Waits ``backoff``, ``2 * backoff``, ... seconds between attempts. Raises the
    last connection error once every attempt has failed.
    """
    attempts = attempts or settings.db_connect_attempts
    backoff = settings.db_connect_backoff_seconds if backoff is None else backoff

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=backoff, increment=backoff),
        reraise=False,
    )
    try:
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                logger.info(f"🔄 Attempting database connection ({number}/{attempts}) to {_mask(str(db.url))}")
                try:
                    await db.connect()
                except Exception as e:
                    logger.error(f"❌ Connection attempt {number} failed: {e}")
                    raise
    except RetryError as e:
        logger.critical(f"❌ Failed to connect to the database after {attempts} attempts")
        raise e.last_attempt.exception()

    logger.info("✅ Database connected successfully")


def create_tables():
    Base.metadata.create_all(bind=engine)
