# Overview: Repository interface every storage backend implements.

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

USERS = "users"
VENDORS = "vendors"
PRODUCTS = "products"
ORDERS = "orders"

COLLECTIONS = (USERS, VENDORS, PRODUCTS, ORDERS)

# At most one document per collection may hold a given value of these fields.
UNIQUE_FIELDS = {
    USERS: ("email",),
    VENDORS: ("user_id",),
}


def new_id() -> str:
    """24-character hex document id."""
    return secrets.token_hex(12)


class UnknownCollectionError(KeyError):
    """Raised when a repository is asked for a collection it does not hold."""


class DuplicateKeyError(ValueError):
    """Raised when an insert would repeat a unique field value."""

    def __init__(self, collection: str, field: str, value):
        super().__init__(f"{collection}.{field} already holds {value!r}")
        self.collection = collection
        self.field = field
        self.value = value


def unique_keys(collection: str, document: dict) -> list[tuple[str, str]]:
    """(field, value) pairs of the document that must be unique in the collection."""
    keys = []
    for field in UNIQUE_FIELDS.get(collection, ()):
        value = document.get(field)
        if value not in (None, ""):
            keys.append((field, str(value)))
    return keys


class Repository(ABC):
    """
    Document repository.

    Documents are JSON-safe dicts keyed by "id". Reads always return copies;
    mutating a returned document has no effect until it is written back.

    Writes outside unit_of_work() are durable immediately. Writes inside a
    unit of work become durable when the outermost unit exits cleanly and
    are discarded if it raises. Nested units join the outer one.
    """

    name = "base"

    # Exceptions signalling a lost optimistic-concurrency race; the whole
    # unit of work may be retried when one of these escapes it.
    conflict_errors: tuple = ()

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise UnknownCollectionError(collection)

    @abstractmethod
    def insert(self, collection: str, document: dict) -> dict:
        """
        Store a new document, assigning an id if it has none.

        Raises DuplicateKeyError when a UNIQUE_FIELDS value is already taken.
        """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict | None:
        """Fetch one document by id."""

    @abstractmethod
    def find(
        self,
        collection: str,
        query: dict | None = None,
        sort: list[tuple[str, int]] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Documents matching the query, sorted and limited."""

    def find_one(
        self,
        collection: str,
        query: dict | None = None,
        sort: list[tuple[str, int]] | None = None,
    ) -> dict | None:
        found = self.find(collection, query, sort=sort, limit=1)
        return found[0] if found else None

    def count(self, collection: str, query: dict | None = None) -> int:
        return len(self.find(collection, query))

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: dict) -> dict | None:
        """Set top-level fields. Returns the updated document, or None if absent."""

    @abstractmethod
    def increment(self, collection: str, doc_id: str, deltas: dict) -> dict | None:
        """Add deltas to numeric top-level fields. Returns the updated document."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        """Remove a document. Returns False if it did not exist."""

    @abstractmethod
    @contextmanager
    def unit_of_work(self) -> Iterator["Repository"]:
        """Transactional scope for a multi-document mutation."""

    def initialize(self) -> None:
        """Prepare backing storage (tables, collections)."""

    @abstractmethod
    def reset(self) -> None:
        """Remove every document from every collection."""
