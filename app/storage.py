from datetime import datetime, timezone
from typing import Any, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING

from .config import Settings
from .models import Message


# oldest first, ties broken by insertion order of the ObjectId
_SORT = [("timestamp", ASCENDING), ("_id", ASCENDING)]


def utc_now_ms() -> datetime:
    """Current UTC time truncated to the millisecond precision BSON dates keep."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


class MessageStore:
    def __init__(self, collection: AsyncIOMotorCollection, client: Any = None) -> None:
        self._collection = collection
        self._client = client

    @classmethod
    def from_settings(cls, cfg: Settings) -> "MessageStore":
        client = AsyncIOMotorClient(
            cfg.MONGODB_URI,
            tz_aware=True,
            serverSelectionTimeoutMS=cfg.MONGODB_TIMEOUT_MS,
        )
        db = client.get_default_database(default=cfg.MONGODB_DB)
        return cls(db[cfg.MONGODB_COLLECTION], client=client)

    async def ping(self) -> None:
        if self._client is not None:
            await self._client.admin.command("ping")
        else:
            await self._collection.database.command("ping")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    async def insert(self, *, from_: str, to: str, msg: str) -> Message:
        doc = {
            "from": from_,
            "to": to,
            "msg": msg,
            "timestamp": utc_now_ms(),
        }
        result = await self._collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return Message.from_document(doc)

    async def list_all(self) -> List[Message]:
        cursor = self._collection.find({}, sort=_SORT)
        return [Message.from_document(doc) for doc in await cursor.to_list(length=None)]

    async def list_for_user(self, user: str) -> List[Message]:
        query = {"$or": [{"from": user}, {"to": user}]}
        cursor = self._collection.find(query, sort=_SORT)
        return [Message.from_document(doc) for doc in await cursor.to_list(length=None)]

    async def get(self, message_id: str) -> Optional[Message]:
        """
        Returns the message or None.
        A malformed id raises bson.errors.InvalidId.
        """
        doc = await self._collection.find_one({"_id": ObjectId(message_id)})
        if doc is None:
            return None
        return Message.from_document(doc)

    async def delete(self, message_id: str) -> Optional[Message]:
        doc = await self._collection.find_one_and_delete({"_id": ObjectId(message_id)})
        if doc is None:
            return None
        return Message.from_document(doc)
