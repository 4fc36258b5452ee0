import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

from app.config import get_settings

settings = get_settings()

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None


def get_client() -> AsyncIOMotorClient:
    """Return the process-wide motor client, creating it on first use.

    Motor connects lazily, so building the client never blocks startup.
    """

    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.mongo_url,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
            connectTimeoutMS=settings.mongo_connect_timeout_ms,
            tz_aware=True,
        )
        logger.info("MongoDB client configured for database %s", settings.mongo_db_name)
    return _client


def get_database() -> AsyncIOMotorDatabase:
    return get_client()[settings.mongo_db_name]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB connection closed")


COLLECTION_INDEXES: dict[str, list[IndexModel]] = {
    "users": [
        IndexModel([("user_id", ASCENDING)], unique=True),
        IndexModel([("email", ASCENDING)], sparse=True),
    ],
    "notifications": [
        IndexModel([("notification_id", ASCENDING)], unique=True),
        IndexModel([("user_id", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)]),
        IndexModel([("type", ASCENDING), ("priority", ASCENDING)]),
        IndexModel([("scheduled_for", ASCENDING)]),
        # TTL: MongoDB drops the document once expires_at has passed.
        IndexModel([("expires_at", ASCENDING)], expireAfterSeconds=0),
    ],
}


async def ensure_indexes(database) -> None:
    """Create collection indexes; failures are logged and never block startup."""

    for collection_name, index_models in COLLECTION_INDEXES.items():
        try:
            await database[collection_name].create_indexes(index_models)
            logger.info("Indexes ensured for collection: %s", collection_name)
        except Exception:
            logger.warning(
                "Could not create indexes for collection %s",
                collection_name,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
