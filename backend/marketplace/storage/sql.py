# Overview: SQLAlchemy-backed document repository with optimistic concurrency.

"""
SQL Document Store

Each document is one row of the `documents` table, keyed by
(collection, id), with the full document in a JSON column.

CONCURRENCY: rows carry version_id (SQLAlchemy version_id_col). An UPDATE
issued against a row another transaction has already changed matches zero
rows and raises StaleDataError, which escapes the unit of work as a
conflict; callers re-run the whole unit (see storage.concurrency).

UNIQUENESS: every UNIQUE_FIELDS value is also written to `document_keys`,
whose primary key is (collection, field, value). A second insert of the
same value fails at the database even when two transactions raced past
the service-level check.

NOTE: queries are evaluated by storage.query over the collection's rows so
that SQL and memory backends agree exactly on query semantics. Two shapes
avoid the full collection scan: a single equality on a unique field is
resolved through document_keys, and an unfiltered, unsorted query pushes
its limit into SQL. Everything else reads the whole collection.
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..time_utils import utcnow, to_storage
from .base import UNIQUE_FIELDS, DuplicateKeyError, Repository, new_id, unique_keys
from .query import apply_query


class DocumentRow(db.Model):
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_collection_created", "collection", "created_at"),
    )

    collection = db.Column(db.String(32), primary_key=True)
    id = db.Column(db.String(32), primary_key=True)
    body = db.Column(db.JSON, nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<DocumentRow {self.collection}/{self.id} v{self.version_id}>"


class DocumentKey(db.Model):
    __tablename__ = "document_keys"
    __table_args__ = (
        db.Index("ix_document_keys_document", "collection", "document_id"),
    )

    collection = db.Column(db.String(32), primary_key=True)
    field = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.String(255), primary_key=True)
    document_id = db.Column(db.String(32), nullable=False)

    def __repr__(self) -> str:
        return f"<DocumentKey {self.collection}.{self.field}={self.value!r} -> {self.document_id}>"


class SqlRepository(Repository):
    name = "sql"
    conflict_errors = (StaleDataError, OperationalError)

    def __init__(self):
        self._local = threading.local()

    @property
    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_depth.setter
    def _depth(self, value: int) -> None:
        self._local.depth = value

    def _row(self, collection: str, doc_id: str) -> DocumentRow | None:
        self._check_collection(collection)
        if not doc_id:
            return None
        return db.session.get(DocumentRow, (collection, str(doc_id)))

    def _write(self) -> None:
        # Inside a unit of work, flush so version checks fire early and later
        # reads in the same unit see the change; commit happens on exit.
        if self._depth:
            db.session.flush()
        else:
            db.session.commit()

    @contextmanager
    def _keyed_write(self, collection: str, keys: list[tuple[str, str]]):
        # A unit of work rolls back on exit; a lone write must clean up here.
        try:
            yield
            self._write()
        except DuplicateKeyError:
            if not self._depth:
                db.session.rollback()
            raise
        except IntegrityError:
            if not self._depth:
                db.session.rollback()
            if not keys:
                raise
            field, value = keys[0]
            raise DuplicateKeyError(collection, field, value) from None

    def _claim_keys(self, collection: str, doc_id: str, keys: list[tuple[str, str]]) -> None:
        for field, value in keys:
            existing = db.session.get(DocumentKey, (collection, field, value))
            if existing is not None and existing.document_id != doc_id:
                raise DuplicateKeyError(collection, field, value)
            if existing is None:
                db.session.add(DocumentKey(collection=collection, field=field, value=value, document_id=doc_id))

    def _release_keys(self, collection: str, doc_id: str, fields=None) -> None:
        query = db.session.query(DocumentKey).filter(
            DocumentKey.collection == collection, DocumentKey.document_id == doc_id,
        )
        if fields is not None:
            query = query.filter(DocumentKey.field.in_(list(fields)))
        query.delete(synchronize_session="fetch")

    def insert(self, collection: str, document: dict) -> dict:
        self._check_collection(collection)
        doc = copy.deepcopy(document)
        if not doc.get("id"):
            doc["id"] = new_id()
        now = utcnow()
        doc.setdefault("created_at", to_storage(now))
        doc.setdefault("updated_at", to_storage(now))

        keys = unique_keys(collection, doc)
        with self._keyed_write(collection, keys):
            self._claim_keys(collection, doc["id"], keys)
            db.session.add(DocumentRow(collection=collection, id=doc["id"], body=doc, created_at=now, updated_at=now))
        return copy.deepcopy(doc)

    def get(self, collection: str, doc_id: str) -> dict | None:
        row = self._row(collection, doc_id)
        return copy.deepcopy(row.body) if row is not None else None

    def _keyed_lookup(self, collection: str, query: dict | None):
        """Rows for a single equality on a unique field, or None when the query has another shape."""
        if not query or len(query) != 1:
            return None
        (field, value), = query.items()
        if field not in UNIQUE_FIELDS.get(collection, ()) or not isinstance(value, str):
            return None
        key = db.session.get(DocumentKey, (collection, field, value))
        row = self._row(collection, key.document_id) if key is not None else None
        return [row] if row is not None else []

    def find(self, collection, query=None, sort=None, limit=None) -> list[dict]:
        self._check_collection(collection)
        if query and isinstance(query.get("id"), str):
            row = self._row(collection, query["id"])
            rows = [row] if row is not None else []
        else:
            rows = self._keyed_lookup(collection, query)
            if rows is None:
                scan = (
                    db.session.query(DocumentRow)
                    .filter(DocumentRow.collection == collection)
                    .order_by(DocumentRow.created_at.asc())
                )
                if not query and not sort and limit is not None:
                    scan = scan.limit(limit)
                rows = scan.all()
        documents = [copy.deepcopy(r.body) for r in rows]
        return apply_query(documents, query, sort, limit)

    def update(self, collection: str, doc_id: str, changes: dict) -> dict | None:
        row = self._row(collection, doc_id)
        if row is None:
            return None
        body = copy.deepcopy(row.body)
        body.update(copy.deepcopy(changes))
        body["id"] = row.id
        body["updated_at"] = to_storage(utcnow())

        changed_unique = [f for f in UNIQUE_FIELDS.get(collection, ()) if f in changes]
        keys = [k for k in unique_keys(collection, body) if k[0] in changed_unique]
        with self._keyed_write(collection, keys):
            if changed_unique:
                self._release_keys(collection, row.id, changed_unique)
                self._claim_keys(collection, row.id, keys)
            # Assign a new object so the JSON column is flagged dirty
            row.body = body
        return copy.deepcopy(body)

    def increment(self, collection: str, doc_id: str, deltas: dict) -> dict | None:
        row = self._row(collection, doc_id)
        if row is None:
            return None
        body = copy.deepcopy(row.body)
        for field, delta in deltas.items():
            body[field] = (body.get(field) or 0) + delta
        body["updated_at"] = to_storage(utcnow())
        row.body = body
        self._write()
        return copy.deepcopy(body)

    def delete(self, collection: str, doc_id: str) -> bool:
        row = self._row(collection, doc_id)
        if row is None:
            return False
        self._release_keys(collection, row.id)
        db.session.delete(row)
        self._write()
        return True

    @contextmanager
    def unit_of_work(self):
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield self
            if outermost:
                db.session.commit()
        except Exception:
            if outermost:
                db.session.rollback()
            raise
        finally:
            self._depth -= 1

    def _backfill_keys(self) -> None:
        # Rows written before their collection had unique fields
        for collection in UNIQUE_FIELDS:
            rows = db.session.query(DocumentRow).filter(DocumentRow.collection == collection).all()
            for row in rows:
                for field, value in unique_keys(collection, row.body):
                    if db.session.get(DocumentKey, (collection, field, value)) is None:
                        db.session.add(DocumentKey(
                            collection=collection, field=field, value=value, document_id=row.id,
                        ))
        db.session.commit()

    def initialize(self) -> None:
        db.create_all()
        self._backfill_keys()

    def reset(self) -> None:
        db.session.query(DocumentKey).delete()
        db.session.query(DocumentRow).delete()
        db.session.commit()
