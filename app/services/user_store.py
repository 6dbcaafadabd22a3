"""
Persistence adapter for user documents.

UserStore is the interface the services depend on. MongoUserStore maps each
call onto a single Motor collection operation; InMemoryUserStore keeps the
same semantics in process memory for local development and tests.
Documents are plain dicts in their stored (aliased) shape.
"""

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, TypeVar

from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from app.database import MongoConnection
from app.errors import DuplicateIdentityError, StoreConnectivityError, StoreOperationError
from app.models.results import WriteResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

Document = Dict[str, Any]

_MISSING = object()


class UserStore(Protocol):
    """Interface for user document access, keyed by uid."""

    async def find_by_id(self, uid: str) -> Optional[Document]:
        ...

    async def find_by_email_case_insensitive(self, email: str) -> Optional[Document]:
        ...

    async def insert(self, doc: Document) -> WriteResult:
        ...

    async def update_fields(self, uid: str, fields: Document) -> WriteResult:
        ...

    async def add_to_set_field(self, uid: str, field: str, record: Document, key: str) -> WriteResult:
        """Append record unless an element already has the same value for key."""
        ...

    async def remove_from_set_field(self, uid: str, field: str, match: Document) -> WriteResult:
        ...

    async def update_matched_array_element(
        self, uid: str, field: str, match: Document, patch: Document
    ) -> WriteResult:
        ...


def _update_result(result: Any) -> WriteResult:
    return WriteResult(
        acknowledged=result.acknowledged,
        matched_count=result.matched_count,
        modified_count=result.modified_count,
    )


class MongoUserStore:
    """UserStore over a MongoDB collection, one driver call per operation."""

    def __init__(self, connection: MongoConnection, collection_name: str = "users") -> None:
        self._connection = connection
        self._collection_name = collection_name

    async def _run(self, op_name: str, call: Callable[[Any], Awaitable[T]]) -> T:
        """
        Ensure a live connection, run the call, and translate driver errors.
        A connection-level failure triggers one reconnect and one retry.
        """
        await self._connection.ensure_connected()
        try:
            return await call(self._connection.collection(self._collection_name))
        except DuplicateKeyError:
            raise
        except ConnectionFailure as e:
            logger.warning("%s lost the MongoDB connection (%s); reconnecting.", op_name, e)
            self._connection.mark_disconnected()
        except PyMongoError as e:
            logger.error("%s failed: %s", op_name, e)
            raise StoreOperationError(str(e)) from e

        await self._connection.ensure_connected()
        try:
            return await call(self._connection.collection(self._collection_name))
        except DuplicateKeyError:
            raise
        except ConnectionFailure as e:
            self._connection.mark_disconnected()
            logger.error("%s lost the MongoDB connection again: %s", op_name, e)
            raise StoreConnectivityError("Database unavailable") from e
        except PyMongoError as e:
            logger.error("%s failed after reconnect: %s", op_name, e)
            raise StoreOperationError(str(e)) from e

    async def find_by_id(self, uid: str) -> Optional[Document]:
        return await self._run(
            "find_by_id", lambda users: users.find_one({"uid": uid}, {"_id": False})
        )

    async def find_by_email_case_insensitive(self, email: str) -> Optional[Document]:
        # Exact match against the lowercased stored email
        query = {"$expr": {"$eq": [{"$toLower": "$email"}, email.lower()]}}
        return await self._run("find_by_email", lambda users: users.find_one(query, {"_id": False}))

    async def insert(self, doc: Document) -> WriteResult:
        # insert_one adds _id to the dict it is given
        to_insert = dict(doc)
        try:
            result = await self._run("insert", lambda users: users.insert_one(to_insert))
        except DuplicateKeyError as e:
            raise DuplicateIdentityError(f"User {doc.get('uid')} already exists") from e
        return WriteResult(acknowledged=result.acknowledged, inserted_id=str(result.inserted_id))

    async def update_fields(self, uid: str, fields: Document) -> WriteResult:
        result = await self._run(
            "update_fields", lambda users: users.update_one({"uid": uid}, {"$set": fields})
        )
        return _update_result(result)

    async def add_to_set_field(self, uid: str, field: str, record: Document, key: str) -> WriteResult:
        # Push only when no element shares record[key]
        query = {"uid": uid, f"{field}.{key}": {"$ne": record[key]}}
        update = {"$push": {field: record}}
        result = await self._run("add_to_set_field", lambda users: users.update_one(query, update))
        return _update_result(result)

    async def remove_from_set_field(self, uid: str, field: str, match: Document) -> WriteResult:
        result = await self._run(
            "remove_from_set_field",
            lambda users: users.update_one({"uid": uid}, {"$pull": {field: match}}),
        )
        return _update_result(result)

    async def update_matched_array_element(
        self, uid: str, field: str, match: Document, patch: Document
    ) -> WriteResult:
        query = {"uid": uid, field: {"$elemMatch": match}}
        update = {"$set": {f"{field}.$.{name}": value for name, value in patch.items()}}
        result = await self._run(
            "update_matched_array_element", lambda users: users.update_one(query, update)
        )
        return _update_result(result)


def _element_matches(element: Any, match: Document) -> bool:
    return isinstance(element, dict) and all(element.get(k) == v for k, v in match.items())


class InMemoryUserStore:
    """UserStore kept in a dict. Mirrors the MongoDB operator semantics."""

    def __init__(self) -> None:
        self._docs: Dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def find_by_id(self, uid: str) -> Optional[Document]:
        doc = self._docs.get(uid)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_by_email_case_insensitive(self, email: str) -> Optional[Document]:
        wanted = email.lower()
        for doc in self._docs.values():
            stored = doc.get("email")
            if isinstance(stored, str) and stored.lower() == wanted:
                return copy.deepcopy(doc)
        return None

    async def insert(self, doc: Document) -> WriteResult:
        uid = doc["uid"]
        async with self._lock:
            if uid in self._docs:
                raise DuplicateIdentityError(f"User {uid} already exists")
            self._docs[uid] = copy.deepcopy(doc)
        return WriteResult(inserted_id=uid)

    async def update_fields(self, uid: str, fields: Document) -> WriteResult:
        async with self._lock:
            doc = self._docs.get(uid)
            if doc is None:
                return WriteResult()
            changed = any(doc.get(k, _MISSING) != v for k, v in fields.items())
            doc.update(copy.deepcopy(fields))
        return WriteResult(matched_count=1, modified_count=int(changed))

    async def add_to_set_field(self, uid: str, field: str, record: Document, key: str) -> WriteResult:
        async with self._lock:
            doc = self._docs.get(uid)
            if doc is None:
                return WriteResult()
            items = doc.setdefault(field, [])
            if any(_element_matches(item, {key: record[key]}) for item in items):
                # same as the $ne filter in MongoUserStore: nothing matched
                return WriteResult()
            items.append(copy.deepcopy(record))
        return WriteResult(matched_count=1, modified_count=1)

    async def remove_from_set_field(self, uid: str, field: str, match: Document) -> WriteResult:
        async with self._lock:
            doc = self._docs.get(uid)
            if doc is None:
                return WriteResult()
            items = doc.get(field, [])
            kept = [item for item in items if not _element_matches(item, match)]
            doc[field] = kept
        return WriteResult(matched_count=1, modified_count=int(len(kept) != len(items)))

    async def update_matched_array_element(
        self, uid: str, field: str, match: Document, patch: Document
    ) -> WriteResult:
        async with self._lock:
            doc = self._docs.get(uid)
            if doc is None:
                return WriteResult()
            for item in doc.get(field, []):
                if _element_matches(item, match):
                    changed = any(item.get(k, _MISSING) != v for k, v in patch.items())
                    item.update(copy.deepcopy(patch))
                    return WriteResult(matched_count=1, modified_count=int(changed))
        return WriteResult()

