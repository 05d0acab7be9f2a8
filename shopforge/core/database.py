"""MongoDB connection and index setup"""

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.config import DatabaseSettings
from ..utils.exceptions import DatabaseError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def connect(settings: DatabaseSettings) -> MongoClient:
    """
    Open a client and ping the server, retrying while it comes up.

    Raises:
        DatabaseError: server still unreachable after the configured attempts
    """
    client = MongoClient(
        settings.uri,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        tz_aware=False,
    )
    try:
        for attempt in Retrying(
            stop=stop_after_attempt(settings.connect_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(PyMongoError),
        ):
            with attempt:
                client.admin.command("ping")
    except RetryError as e:
        client.close()
        logger.error("MongoDB unreachable", uri=settings.uri, error=str(e.last_attempt.exception()))
        raise DatabaseError("Database unavailable")

    logger.info("Connected to MongoDB", database=settings.name)
    return client


def ensure_indexes(db: Database) -> None:
    """Create the unique indexes the stores rely on for race resolution"""
    db.users.create_index([("phone", ASCENDING)], unique=True)
    db.users.create_index([("email", ASCENDING)], unique=True, sparse=True)
    db.users.create_index([("password_reset_token", ASCENDING)], sparse=True)
    db.carts.create_index([("user_id", ASCENDING)], unique=True)
    db.products.create_index([("sku", ASCENDING)], unique=True)
    db.orders.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    logger.debug("Indexes ensured", database=db.name)
