from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import ClassVar, TypeVar

from ..storage import Repository
from ..time_utils import parse_iso_datetime, to_storage

R = TypeVar("R", bound="Record")


@dataclass
class Record:
    """
    Plain data record persisted as one document in a repository collection.

    Subclasses declare `collection` and list their datetime fields in
    `datetime_fields`; those are stored as ISO strings and loaded back
    as naive-UTC datetimes.
    """

    collection: ClassVar[str] = ""
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")

    def to_document(self) -> dict:
        doc = asdict(self)
        for name in self.datetime_fields:
            value = doc.get(name)
            doc[name] = to_storage(value) if isinstance(value, datetime) else value
        return doc

    @classmethod
    def _field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_document(cls: type[R], document: dict) -> R:
        known = cls._field_names()
        data = {k: v for k, v in document.items() if k in known}
        for name in cls.datetime_fields:
            value = data.get(name)
            if isinstance(value, str):
                data[name] = parse_iso_datetime(value)
        return cls(**data)

    # -- repository helpers ------------------------------------------------

    @classmethod
    def load(cls: type[R], repository: Repository, doc_id: str | None) -> R | None:
        if not doc_id:
            return None
        doc = repository.get(cls.collection, doc_id)
        return cls.from_document(doc) if doc is not None else None

    @classmethod
    def find(
        cls: type[R],
        repository: Repository,
        query: dict | None = None,
        sort: list[tuple[str, int]] | None = None,
        limit: int | None = None,
    ) -> list[R]:
        return [cls.from_document(d) for d in repository.find(cls.collection, query, sort=sort, limit=limit)]

    @classmethod
    def find_one(cls: type[R], repository: Repository, query: dict) -> R | None:
        doc = repository.find_one(cls.collection, query)
        return cls.from_document(doc) if doc is not None else None

    def insert(self: R, repository: Repository) -> R:
        stored = repository.insert(self.collection, self.to_document())
        return type(self).from_document(stored)

    def save(self: R, repository: Repository, *field_names: str) -> R:
        """
        Write fields back to the repository (all fields when none are named)
        and return the stored version.
        """
        doc = self.to_document()
        doc.pop("id", None)
        doc.pop("created_at", None)
        if field_names:
            doc = {name: doc[name] for name in field_names}
        stored = repository.update(self.collection, self.id, doc)
        if stored is None:
            raise LookupError(f"{self.collection}/{self.id} no longer exists")
        return type(self).from_document(stored)
