"""
Document store abstraction for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions
from google.cloud.firestore_v1 import Query
from google.cloud.firestore_v1.base_query import FieldFilter


class DocumentNotFoundError(KeyError):
    """Raised when updating a document that does not exist."""


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any


def where(field: str, value: Any) -> Filter:
    return Filter(field, "==", value)


class DocumentStore(Protocol):
    """Interface for document access."""

    def add(self, collection: str, data: dict) -> str:
        ...

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[tuple[str, dict]]:
        ...

    def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        ...


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self._lock = threading.Lock()

    def _docs(self, collection: str) -> dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        with self._lock:
            self._docs(collection)[doc_id] = copy.deepcopy(data)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise DocumentNotFoundError(f"{collection}/{doc_id}")
            docs[doc_id].update(copy.deepcopy(data))

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._docs(collection).pop(doc_id, None)

    @staticmethod
    def _matches(doc: dict, filters: Sequence[Filter]) -> bool:
        for f in filters:
            if f.op != "==":
                raise ValueError(f"Unsupported filter operator: {f.op}")
            if f.field not in doc or doc[f.field] != f.value:
                return False
        return True

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[tuple[str, dict]]:
        with self._lock:
            items = [
                (doc_id, copy.deepcopy(doc))
                for doc_id, doc in self._docs(collection).items()
                if self._matches(doc, filters)
            ]
        if order_by:
            # Firestore drops documents missing the order_by field.
            items = [item for item in items if order_by in item[1]]
            items.sort(key=lambda item: item[1][order_by], reverse=descending)
        items = items[offset:]
        if limit is not None:
            items = items[:limit]
        return items

    def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        with self._lock:
            return sum(
                1 for doc in self._docs(collection).values() if self._matches(doc, filters)
            )


class FirestoreDocumentStore:
    """Firestore-backed implementation using the firebase_admin client."""

    def __init__(self, client=None):
        if client is None:
            client = firestore.client()
        self._db = client

    def _query(self, collection: str, filters: Sequence[Filter]):
        query = self._db.collection(collection)
        for f in filters:
            query = query.where(filter=FieldFilter(f.field, f.op, f.value))
        return query

    def add(self, collection: str, data: dict) -> str:
        _, doc_ref = self._db.collection(collection).add(data)
        return doc_ref.id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        self._db.collection(collection).document(doc_id).set(data)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self._db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def update(self, collection: str, doc_id: str, data: dict) -> None:
        try:
            self._db.collection(collection).document(doc_id).update(data)
        except gcp_exceptions.NotFound as e:
            raise DocumentNotFoundError(f"{collection}/{doc_id}") from e

    def delete(self, collection: str, doc_id: str) -> None:
        self._db.collection(collection).document(doc_id).delete()

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[tuple[str, dict]]:
        query = self._query(collection, filters)
        if order_by:
            direction = Query.DESCENDING if descending else Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [(snapshot.id, snapshot.to_dict()) for snapshot in query.stream()]

    def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        result = self._query(collection, filters).count(alias="total").get()
        return int(result[0][0].value)
