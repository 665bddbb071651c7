"""
Document store access.

Services receive a DocumentStore instead of importing a global client, so the
backend can be swapped (MongoDB in production, an in-memory store in tests).
Filters use MongoDB query syntax; every document handed back carries its id
as a string under "id".
"""

import logging
import os
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Filters = Dict[str, Any]
OrderBy = List[Tuple[str, int]]
Callback = Callable[[List[Document]], None]
Unsubscribe = Callable[[], None]


class DocumentStoreError(Exception):
    """Raised when the backing store cannot complete a request."""


class DocumentNotFound(DocumentStoreError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_dict(data: Union[BaseModel, Document]) -> Document:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


class DocumentStore:
    """CRUD + query + subscribe contract the pickup services depend on."""

    def get_documents(self, collection: str, filters: Optional[Filters] = None,
                      order_by: Optional[OrderBy] = None, limit: Optional[int] = None) -> List[Document]:
        raise NotImplementedError

    def get_document(self, collection: str, document_id: str) -> Optional[Document]:
        raise NotImplementedError

    def create_document(self, collection: str, data: Union[BaseModel, Document]) -> str:
        raise NotImplementedError

    def update_document(self, collection: str, document_id: str, data: Document) -> None:
        raise NotImplementedError

    def subscribe(self, collection: str, filters: Optional[Filters], callback: Callback,
                  order_by: Optional[OrderBy] = None) -> Unsubscribe:
        raise NotImplementedError

    def list_collection_names(self) -> List[str]:
        raise NotImplementedError


def _to_id_str(doc):
    if not doc:
        return doc
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoStore(DocumentStore):
    """DocumentStore backed by a pymongo Database."""

    def __init__(self, db):
        self.db = db

    @staticmethod
    def _oid(document_id: str) -> ObjectId:
        if not document_id or not ObjectId.is_valid(document_id):
            raise DocumentNotFound(f"Invalid document id: {document_id!r}")
        return ObjectId(document_id)

    def _query(self, filters: Optional[Filters]) -> Filters:
        q = dict(filters or {})
        if "id" in q:
            q["_id"] = self._oid(q.pop("id"))
        return q

    def get_documents(self, collection, filters=None, order_by=None, limit=None):
        try:
            cursor = self.db[collection].find(self._query(filters))
            if order_by:
                cursor = cursor.sort(order_by)
            if limit:
                cursor = cursor.limit(limit)
            return [_to_id_str(d) for d in cursor]
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e

    def get_document(self, collection, document_id):
        if not document_id or not ObjectId.is_valid(document_id):
            return None
        try:
            return _to_id_str(self.db[collection].find_one({"_id": ObjectId(document_id)}))
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e

    def create_document(self, collection, data):
        doc = _as_dict(data)
        now = utcnow()
        doc["created_at"] = now
        doc["updated_at"] = now
        try:
            result = self.db[collection].insert_one(doc)
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        return str(result.inserted_id)

    def update_document(self, collection, document_id, data):
        changes = dict(data)
        changes["updated_at"] = utcnow()
        try:
            result = self.db[collection].update_one({"_id": self._oid(document_id)}, {"$set": changes})
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        if result.matched_count == 0:
            raise DocumentNotFound(f"{collection}/{document_id} not found")

    def subscribe(self, collection, filters, callback, order_by=None):
        # Change streams need a replica set; the callback gets [] if watching fails.
        stop = threading.Event()

        def run():
            try:
                with self.db[collection].watch(max_await_time_ms=500) as stream:
                    callback(self.get_documents(collection, filters, order_by))
                    while not stop.is_set() and stream.alive:
                        if stream.try_next() is not None:
                            callback(self.get_documents(collection, filters, order_by))
            except (PyMongoError, DocumentStoreError):
                logger.exception("Subscription to %s failed", collection)
                callback([])

        threading.Thread(target=run, name=f"watch-{collection}", daemon=True).start()
        return stop.set

    def list_collection_names(self):
        try:
            return self.db.list_collection_names()
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e


DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "waste_pickups")


@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    client = MongoClient(DATABASE_URL, tz_aware=True, serverSelectionTimeoutMS=5000)
    return MongoStore(client[DATABASE_NAME])
