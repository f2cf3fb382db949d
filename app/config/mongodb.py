"""MongoDB connection lifecycle."""

import logging
from typing import Tuple

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
)
from pymongo.errors import PyMongoError

from app.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "chatbot"
CHATS_COLLECTION = "chats"


async def connect_to_mongo(settings: Settings) -> Tuple[AsyncIOMotorClient, AsyncIOMotorCollection]:
    """Open a Motor client and return it together with the chats collection.

    A failed ping is logged and does not abort startup; requests touching the
    store will fail with 500 until the database becomes reachable.
    """
    logger.info("Connecting to MongoDB")
    client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)

    if settings.mongodb_db:
        database = client[settings.mongodb_db]
    else:
        database = client.get_default_database(DEFAULT_DATABASE)

    try:
        await client.admin.command("ping")
        logger.info(f"MongoDB connected (database: {database.name})")
    except PyMongoError as e:
        logger.error(f"MongoDB connection error: {str(e)}")

    return client, database[CHATS_COLLECTION]


async def close_mongo_connection(client: AsyncIOMotorClient) -> None:
    """Close the Motor client."""
    client.close()
    logger.info("MongoDB connection closed")
