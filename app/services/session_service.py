"""Session store: CRUD over the chats collection."""

import logging
from datetime import datetime
from typing import Callable, List

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.models.base import utc_now
from app.models.message import Message
from app.models.session import ChatSession
from app.schemas.chats import ChatSummary

logger = logging.getLogger(__name__)

SUMMARY_PROJECTION = {"_id": 0, "sessionId": 1, "createdAt": 1, "updatedAt": 1}


class SessionNotFoundError(LookupError):
    """Raised when no session exists for the requested id."""

    def __init__(self, session_id: str):
        super().__init__(f"Chat session not found: {session_id}")
        self.session_id = session_id


class SessionStore:
    """Persists chat sessions as single MongoDB documents keyed by ``sessionId``."""

    def __init__(self, collection: AsyncIOMotorCollection, clock: Callable[[], datetime] = utc_now):
        self.collection = collection
        self.clock = clock

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("sessionId", ASCENDING)], unique=True)
        await self.collection.create_index([("updatedAt", DESCENDING)])

    async def list_sessions(self) -> List[ChatSummary]:
        """Return session summaries, most recently updated first."""
        cursor = self.collection.find({}, SUMMARY_PROJECTION).sort("updatedAt", DESCENDING)
        documents = await cursor.to_list(length=None)
        logger.debug(f"Fetched {len(documents)} chat sessions")
        return [ChatSummary(**document) for document in documents]

    async def get_session(self, session_id: str) -> ChatSession:
        document = await self.collection.find_one({"sessionId": session_id})
        if not document:
            raise SessionNotFoundError(session_id)
        return ChatSession.from_mongo(document)

    async def create_session(self) -> ChatSession:
        now = self.clock()
        session = ChatSession(created_at=now, updated_at=now)
        await self.collection.insert_one(session.to_mongo())
        logger.info(f"Created chat session {session.session_id}")
        return session

    async def append_messages(self, session_id: str, *messages: Message) -> ChatSession:
        """Append messages in order and refresh ``updatedAt``.

        The session is created when it does not exist yet.
        """
        now = self.clock()
        document = await self.collection.find_one_and_update(
            {"sessionId": session_id},
            {
                "$push": {"messages": {"$each": [message.to_mongo() for message in messages]}},
                "$set": {"updatedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.debug(f"Appended {len(messages)} message(s) to session {session_id}")
        return ChatSession.from_mongo(document)

    async def delete_session(self, session_id: str) -> None:
        result = await self.collection.delete_one({"sessionId": session_id})
        if result.deleted_count == 0:
            raise SessionNotFoundError(session_id)
        logger.info(f"Deleted chat session {session_id}")
