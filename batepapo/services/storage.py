# batepapo/services/storage.py

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from batepapo.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

PARTICIPANTS = "participants"
MESSAGES = "messages"

# collection -> field that must be unique across documents
UNIQUE_FIELDS = {PARTICIPANTS: "name"}


class DuplicateDocument(Exception):
    """An insert collided with an existing document on a unique field."""


# ============================================================================
# DOCUMENT STORE
# ============================================================================

class DocumentStore:
    """
    Minimal document store used by the presence manager and message store.

    Every filter is a plain equality match on top-level fields, e.g.
    {"name": "Ana"} or {"id": "abc", "from": "Ana"}. There are no
    transactions across collections: callers that touch both collections
    do so as separate, independent writes.

    find() returns documents in insertion order. insert_one() raises
    DuplicateDocument when a UNIQUE_FIELDS value is already taken, which
    holds across every process sharing the store.
    """

    name = "base"

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def find(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def update_one(self, collection: str, filter: Dict[str, Any], values: Dict[str, Any]) -> int:
        """Set `values` on the first match. Returns the number of matched documents."""
        raise NotImplementedError

    async def delete_one(self, collection: str, filter: Dict[str, Any]) -> int:
        """Delete the first match. Returns the number of deleted documents."""
        raise NotImplementedError

    async def count(self, collection: str) -> int:
        raise NotImplementedError


def _matches(document: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    if not filter:
        return True
    return all(document.get(key) == value for key, value in filter.items())


class InMemoryDocumentStore(DocumentStore):
    """
    Process-local store for development, tests and single-instance runs.

    Attributes:
        collections: Maps collection name -> list of documents (insertion order)

    Documents are copied in and out so callers never hold references into
    the stored state. Each method completes without awaiting, so it is
    atomic with respect to other coroutines on the same event loop.
    """

    name = "memory"

    def __init__(self) -> None:
        self.collections: Dict[str, List[Dict[str, Any]]] = {}

    async def insert_one(self, collection, document):
        field = UNIQUE_FIELDS.get(collection)
        if field is not None and any(
            doc.get(field) == document.get(field) for doc in self.collections.get(collection, [])
        ):
            raise DuplicateDocument(f"{collection}.{field} = {document.get(field)!r}")
        self.collections.setdefault(collection, []).append(copy.deepcopy(document))

    async def find(self, collection, filter=None):
        return [
            copy.deepcopy(doc)
            for doc in self.collections.get(collection, [])
            if _matches(doc, filter)
        ]

    async def find_one(self, collection, filter):
        for doc in self.collections.get(collection, []):
            if _matches(doc, filter):
                return copy.deepcopy(doc)
        return None

    async def update_one(self, collection, filter, values):
        for doc in self.collections.get(collection, []):
            if _matches(doc, filter):
                doc.update(copy.deepcopy(values))
                return 1
        return 0

    async def delete_one(self, collection, filter):
        docs = self.collections.get(collection, [])
        for index, doc in enumerate(docs):
            if _matches(doc, filter):
                del docs[index]
                return 1
        return 0

    async def count(self, collection):
        return len(self.collections.get(collection, []))


class MongoDocumentStore(DocumentStore):
    """
    MongoDB-backed store using PyMongo's asyncio client.

    Every driver failure is re-raised as StorageUnavailable; nothing is
    retried here. Mongo's own `_id` is kept out of returned documents and
    only used to order results by insertion.
    """

    name = "mongo"

    def __init__(self, uri: str, database: str) -> None:
        self.uri = uri
        self.database_name = database
        self.client: Optional[AsyncMongoClient] = None
        self.db = None

    async def connect(self) -> None:
        """Open the client, check the server answers and build unique indexes."""
        self.client = AsyncMongoClient(self.uri)
        self.db = self.client[self.database_name]
        try:
            await self.client.admin.command("ping")
            for collection, field in UNIQUE_FIELDS.items():
                await self.db[collection].create_index([(field, ASCENDING)], unique=True)
        except PyMongoError as e:
            raise StorageUnavailable(f"MongoDB unreachable: {e}") from e
        logger.info(f"✓ Connected to MongoDB database '{self.database_name}'")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            logger.info("MongoDB connection closed")

    def _collection(self, name: str):
        if self.db is None:
            raise StorageUnavailable("MongoDB store used before connect()")
        return self.db[name]

    async def insert_one(self, collection, document):
        try:
            # insert_one adds _id to the dict it is given
            await self._collection(collection).insert_one(dict(document))
        except DuplicateKeyError as e:
            raise DuplicateDocument(f"{collection}: {e}") from e
        except PyMongoError as e:
            raise StorageUnavailable(f"insert into {collection} failed: {e}") from e

    async def find(self, collection, filter=None):
        try:
            cursor = self._collection(collection).find(filter or {}, {"_id": 0}).sort("_id", ASCENDING)
            return await cursor.to_list()
        except PyMongoError as e:
            raise StorageUnavailable(f"find on {collection} failed: {e}") from e

    async def find_one(self, collection, filter):
        try:
            return await self._collection(collection).find_one(filter, {"_id": 0})
        except PyMongoError as e:
            raise StorageUnavailable(f"find_one on {collection} failed: {e}") from e

    async def update_one(self, collection, filter, values):
        try:
            result = await self._collection(collection).update_one(filter, {"$set": values})
            return result.matched_count
        except PyMongoError as e:
            raise StorageUnavailable(f"update on {collection} failed: {e}") from e

    async def delete_one(self, collection, filter):
        try:
            result = await self._collection(collection).delete_one(filter)
            return result.deleted_count
        except PyMongoError as e:
            raise StorageUnavailable(f"delete on {collection} failed: {e}") from e

    async def count(self, collection):
        try:
            return await self._collection(collection).count_documents({})
        except PyMongoError as e:
            raise StorageUnavailable(f"count on {collection} failed: {e}") from e


def create_store(backend: str, mongo_uri: str = "", mongo_db: str = "") -> DocumentStore:
    """Build the document store selected by STORAGE_BACKEND."""
    if backend == "mongo":
        return MongoDocumentStore(mongo_uri, mongo_db)
    if backend == "memory":
        return InMemoryDocumentStore()
    raise ValueError(f"Unknown storage backend: {backend}")
