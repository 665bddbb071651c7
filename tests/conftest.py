import copy
import operator
from datetime import timedelta

import pytest
from bson import ObjectId

from database import DocumentNotFound, DocumentStore, _as_dict, utcnow

OPERATORS = {
    "$gte": operator.ge,
    "$gt": operator.gt,
    "$lte": operator.le,
    "$lt": operator.lt,
}


def _matches(doc, filters):
    for field, cond in (filters or {}).items():
        value = doc.get(field)
        if isinstance(cond, dict):
            for op, arg in cond.items():
                if op == "$ne":
                    if value == arg:
                        return False
                elif op == "$in":
                    if value not in arg:
                        return False
                elif value is None or not OPERATORS[op](value, arg):
                    return False
        elif value != cond:
            return False
    return True


class MemoryStore(DocumentStore):
    """In-memory DocumentStore understanding the filters the services use."""

    def __init__(self):
        self.collections = {}
        self.listeners = []

    def _docs(self, collection):
        return self.collections.setdefault(collection, {})

    def get_documents(self, collection, filters=None, order_by=None, limit=None):
        docs = [copy.deepcopy(d) for d in self._docs(collection).values() if _matches(d, filters)]
        for field, direction in reversed(order_by or []):
            docs.sort(key=lambda d: d.get(field), reverse=direction < 0)
        return docs[:limit] if limit else docs

    def get_document(self, collection, document_id):
        doc = self._docs(collection).get(document_id)
        return copy.deepcopy(doc) if doc else None

    def create_document(self, collection, data):
        doc = _as_dict(data)
        doc_id = str(ObjectId())
        now = utcnow()
        doc.update({"id": doc_id, "created_at": now, "updated_at": now})
        self._docs(collection)[doc_id] = doc
        self._notify(collection)
        return doc_id

    def update_document(self, collection, document_id, data):
        docs = self._docs(collection)
        if document_id not in docs:
            raise DocumentNotFound(f"{collection}/{document_id} not found")
        docs[document_id].update(data, updated_at=utcnow())
        self._notify(collection)

    def subscribe(self, collection, filters, callback, order_by=None):
        listener = (collection, filters, callback, order_by)
        self.listeners.append(listener)
        callback(self.get_documents(collection, filters, order_by))
        return lambda: self.listeners.remove(listener)

    def _notify(self, collection):
        for name, filters, callback, order_by in list(self.listeners):
            if name == collection:
                callback(self.get_documents(name, filters, order_by))

    def list_collection_names(self):
        return sorted(self.collections)


@pytest.fixture
def store():
    return MemoryStore()


def days(n):
    return utcnow() + timedelta(days=n)


def add_user(store, zone="A", **fields):
    data = {"display_name": "Ada Customer", "address": "12 Green Lane", "zone": zone}
    data.update(fields)
    return store.create_document("user", data)


def add_bin(store, user_id, category, is_active=True, bin_code=None):
    return store.create_document("bin", {
        "user_id": user_id,
        "category": category,
        "is_active": is_active,
        "bin_code": bin_code or f"BIN-{category[:3].upper()}",
    })


def add_schedule(store, in_days, waste_types, zone="A", status="active", **fields):
    data = {
        "zone": zone,
        "date": days(in_days),
        "status": status,
        "waste_types": waste_types,
        "time_ranges": ["08:00-10:00"],
        "total_slots": 20,
        "available_slots": 12,
        "collector_name": "Sam Collector",
    }
    data.update(fields)
    return store.create_document("schedule", data)


def add_stop(store, schedule_id, user_id, bin_id, status="pending", type="customer"):
    return store.create_document("stop", {
        "schedule_id": schedule_id,
        "user_id": user_id,
        "bin_id": bin_id,
        "type": type,
        "status": status,
        "notes": "",
    })


def stops_for(store, schedule_id, user_id, bin_id):
    return store.get_documents("stop", {"schedule_id": schedule_id, "user_id": user_id, "bin_id": bin_id})
