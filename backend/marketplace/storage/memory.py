# Overview: In-process repository; same query shape as the SQL backend.

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager

from ..time_utils import utcnow, to_storage
from .base import COLLECTIONS, DuplicateKeyError, Repository, new_id, unique_keys
from .query import apply_query


class MemoryRepository(Repository):
    """
    Repository holding documents in process memory.

    A single re-entrant lock serializes units of work; the state captured
    when the outermost unit starts is restored if it raises.
    """

    name = "memory"

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {c: {} for c in COLLECTIONS}
        self._lock = threading.RLock()
        self._depth = 0

    def _check_unique(self, collection: str, document: dict, exclude_id: str | None = None) -> None:
        keys = unique_keys(collection, document)
        if not keys:
            return
        for other in self._collections[collection].values():
            if other["id"] == exclude_id:
                continue
            for field, value in keys:
                if other.get(field) is not None and str(other[field]) == value:
                    raise DuplicateKeyError(collection, field, value)

    def insert(self, collection: str, document: dict) -> dict:
        self._check_collection(collection)
        doc = copy.deepcopy(document)
        doc.setdefault("id", None)
        if not doc["id"]:
            doc["id"] = new_id()
        now = to_storage(utcnow())
        doc.setdefault("created_at", now)
        doc.setdefault("updated_at", now)
        with self._lock:
            if doc["id"] in self._collections[collection]:
                raise ValueError(f"Duplicate id {doc['id']} in {collection}")
            self._check_unique(collection, doc)
            self._collections[collection][doc["id"]] = doc
        return copy.deepcopy(doc)

    def get(self, collection: str, doc_id: str) -> dict | None:
        self._check_collection(collection)
        with self._lock:
            doc = self._collections[collection].get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def find(self, collection, query=None, sort=None, limit=None) -> list[dict]:
        self._check_collection(collection)
        with self._lock:
            found = apply_query(self._collections[collection].values(), query, sort, limit)
            return copy.deepcopy(found)

    def update(self, collection: str, doc_id: str, changes: dict) -> dict | None:
        self._check_collection(collection)
        with self._lock:
            doc = self._collections[collection].get(doc_id)
            if doc is None:
                return None
            self._check_unique(collection, changes, exclude_id=doc_id)
            doc.update(copy.deepcopy(changes))
            doc["id"] = doc_id
            doc["updated_at"] = to_storage(utcnow())
            return copy.deepcopy(doc)

    def increment(self, collection: str, doc_id: str, deltas: dict) -> dict | None:
        self._check_collection(collection)
        with self._lock:
            doc = self._collections[collection].get(doc_id)
            if doc is None:
                return None
            for field, delta in deltas.items():
                doc[field] = (doc.get(field) or 0) + delta
            doc["updated_at"] = to_storage(utcnow())
            return copy.deepcopy(doc)

    def delete(self, collection: str, doc_id: str) -> bool:
        self._check_collection(collection)
        with self._lock:
            return self._collections[collection].pop(doc_id, None) is not None

    @contextmanager
    def unit_of_work(self):
        with self._lock:
            outermost = self._depth == 0
            snapshot = copy.deepcopy(self._collections) if outermost else None
            self._depth += 1
            try:
                yield self
            except Exception:
                if outermost:
                    self._collections = snapshot
                raise
            finally:
                self._depth -= 1

    def reset(self) -> None:
        with self._lock:
            self._collections = {c: {} for c in COLLECTIONS}
