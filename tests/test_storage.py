"""
Unit tests for the document stores.

Tests cover:
- In-memory store filters, copies and unique names
- MongoDB store driver calls (against fake collections)
- Driver errors wrapped as StorageUnavailable / DuplicateDocument
- Unique index creation on connect
"""

import pytest
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from batepapo.core.errors import StorageUnavailable
from batepapo.services import storage
from batepapo.services.storage import (
    MESSAGES,
    PARTICIPANTS,
    DuplicateDocument,
    InMemoryDocumentStore,
    MongoDocumentStore,
    create_store,
)


class FakeResult:
    def __init__(self, matched_count=0, deleted_count=0):
        self.matched_count = matched_count
        self.deleted_count = deleted_count


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self.sort_args = None

    def sort(self, *args):
        self.sort_args = args
        return self

    async def to_list(self, length=None):
        return list(self.docs)


class FakeCollection:
    """Records the calls the store makes and returns canned results."""

    def __init__(self, docs=None, error=None):
        self.docs = docs or []
        self.error = error
        self.calls = []
        self.cursor = None

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    def find(self, filter, projection):
        self.calls.append(("find", filter, projection))
        self._maybe_fail()
        self.cursor = FakeCursor(self.docs)
        return self.cursor

    async def find_one(self, filter, projection):
        self.calls.append(("find_one", filter, projection))
        self._maybe_fail()
        return self.docs[0] if self.docs else None

    async def insert_one(self, document):
        self.calls.append(("insert_one", document))
        self._maybe_fail()
        document["_id"] = "generated"

    async def update_one(self, filter, update):
        self.calls.append(("update_one", filter, update))
        self._maybe_fail()
        return FakeResult(matched_count=1)

    async def delete_one(self, filter):
        self.calls.append(("delete_one", filter))
        self._maybe_fail()
        return FakeResult(deleted_count=1)

    async def count_documents(self, filter):
        self._maybe_fail()
        return len(self.docs)

    async def create_index(self, keys, unique=False):
        self.calls.append(("create_index", keys, unique))
        self._maybe_fail()


def mongo_store(**collections):
    store = MongoDocumentStore("mongodb://localhost:27017", "test")
    store.db = collections
    return store


class TestInMemoryDocumentStore:

    @pytest.mark.asyncio
    async def test_find_filters_and_keeps_order(self):
        store = InMemoryDocumentStore()
        for i, sender in enumerate(["Ana", "Bob", "Ana"]):
            await store.insert_one(MESSAGES, {"id": str(i), "from": sender})

        docs = await store.find(MESSAGES, {"from": "Ana"})

        assert [d["id"] for d in docs] == ["0", "2"]

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self):
        store = InMemoryDocumentStore()
        await store.insert_one(MESSAGES, {"id": "1", "text": "oi"})

        (await store.find(MESSAGES))[0]["text"] = "changed"

        assert (await store.find_one(MESSAGES, {"id": "1"}))["text"] == "oi"

    @pytest.mark.asyncio
    async def test_duplicate_participant_name_rejected(self):
        store = InMemoryDocumentStore()
        await store.insert_one(PARTICIPANTS, {"name": "Ana", "lastStatus": 1})

        with pytest.raises(DuplicateDocument):
            await store.insert_one(PARTICIPANTS, {"name": "Ana", "lastStatus": 2})

        assert await store.count(PARTICIPANTS) == 1

    @pytest.mark.asyncio
    async def test_update_and_delete_report_counts(self):
        store = InMemoryDocumentStore()
        await store.insert_one(PARTICIPANTS, {"name": "Ana", "lastStatus": 1})

        assert await store.update_one(PARTICIPANTS, {"name": "Bob"}, {"lastStatus": 2}) == 0
        assert await store.update_one(PARTICIPANTS, {"name": "Ana"}, {"lastStatus": 2}) == 1
        assert await store.delete_one(PARTICIPANTS, {"name": "Ana", "lastStatus": 1}) == 0
        assert await store.delete_one(PARTICIPANTS, {"name": "Ana", "lastStatus": 2}) == 1


class TestMongoDocumentStore:

    @pytest.mark.asyncio
    async def test_find_hides_id_and_sorts_by_insertion(self):
        messages = FakeCollection(docs=[{"id": "1"}, {"id": "2"}])
        store = mongo_store(messages=messages)

        docs = await store.find(MESSAGES, {"from": "Ana"})

        assert docs == [{"id": "1"}, {"id": "2"}]
        assert messages.calls == [("find", {"from": "Ana"}, {"_id": 0})]
        assert messages.cursor.sort_args == ("_id", ASCENDING)

    @pytest.mark.asyncio
    async def test_find_without_filter_matches_everything(self):
        messages = FakeCollection()
        store = mongo_store(messages=messages)

        await store.find(MESSAGES)

        assert messages.calls[0][1] == {}

    @pytest.mark.asyncio
    async def test_find_one_hides_id(self):
        participants = FakeCollection(docs=[{"name": "Ana", "lastStatus": 1}])
        store = mongo_store(participants=participants)

        doc = await store.find_one(PARTICIPANTS, {"name": "Ana"})

        assert doc == {"name": "Ana", "lastStatus": 1}
        assert participants.calls == [("find_one", {"name": "Ana"}, {"_id": 0})]

    @pytest.mark.asyncio
    async def test_insert_does_not_touch_caller_document(self):
        messages = FakeCollection()
        store = mongo_store(messages=messages)
        document = {"id": "1", "text": "oi"}

        await store.insert_one(MESSAGES, document)

        assert "_id" not in document

    @pytest.mark.asyncio
    async def test_update_uses_set_and_returns_matched(self):
        participants = FakeCollection()
        store = mongo_store(participants=participants)

        matched = await store.update_one(PARTICIPANTS, {"name": "Ana"}, {"lastStatus": 5})

        assert matched == 1
        assert participants.calls == [("update_one", {"name": "Ana"}, {"$set": {"lastStatus": 5}})]

    @pytest.mark.asyncio
    async def test_delete_returns_deleted_count(self):
        store = mongo_store(messages=FakeCollection())
        assert await store.delete_one(MESSAGES, {"id": "1"}) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call,args", [
        ("find", (MESSAGES,)),
        ("find_one", (MESSAGES, {"id": "1"})),
        ("insert_one", (MESSAGES, {"id": "1"})),
        ("update_one", (MESSAGES, {"id": "1"}, {"text": "x"})),
        ("delete_one", (MESSAGES, {"id": "1"})),
        ("count", (MESSAGES,)),
    ])
    async def test_driver_errors_become_storage_unavailable(self, call, args):
        store = mongo_store(messages=FakeCollection(error=PyMongoError("connection reset")))

        with pytest.raises(StorageUnavailable):
            await getattr(store, call)(*args)

    @pytest.mark.asyncio
    async def test_duplicate_key_becomes_duplicate_document(self):
        participants = FakeCollection(error=DuplicateKeyError("E11000 duplicate key", 11000))
        store = mongo_store(participants=participants)

        with pytest.raises(DuplicateDocument):
            await store.insert_one(PARTICIPANTS, {"name": "Ana", "lastStatus": 1})

    @pytest.mark.asyncio
    async def test_use_before_connect(self):
        store = MongoDocumentStore("mongodb://localhost:27017", "test")

        with pytest.raises(StorageUnavailable):
            await store.find(MESSAGES)

    @pytest.mark.asyncio
    async def test_connect_creates_unique_name_index(self, monkeypatch):
        participants = FakeCollection()

        class FakeAdmin:
            async def command(self, name):
                return {"ok": 1}

        class FakeClient:
            def __init__(self, uri):
                self.admin = FakeAdmin()

            def __getitem__(self, name):
                return {PARTICIPANTS: participants}

        monkeypatch.setattr(storage, "AsyncMongoClient", FakeClient)
        store = MongoDocumentStore("mongodb://localhost:27017", "test")

        await store.connect()

        assert participants.calls == [("create_index", [("name", ASCENDING)], True)]

    @pytest.mark.asyncio
    async def test_connect_failure(self, monkeypatch):
        class FakeAdmin:
            async def command(self, name):
                raise PyMongoError("no servers")

        class FakeClient:
            def __init__(self, uri):
                self.admin = FakeAdmin()

            def __getitem__(self, name):
                return {}

        monkeypatch.setattr(storage, "AsyncMongoClient", FakeClient)

        with pytest.raises(StorageUnavailable):
            await MongoDocumentStore("mongodb://localhost:27017", "test").connect()


class TestCreateStore:

    def test_backends(self):
        assert isinstance(create_store("memory"), InMemoryDocumentStore)
        assert isinstance(create_store("mongo", "mongodb://localhost", "db"), MongoDocumentStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_store("sqlite")
