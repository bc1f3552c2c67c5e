"""Document store used for clips, playlists and chat logs.

Paths follow the hosted layout ``users/{uid}/{collection}/{doc_id}``, with
nested collections for chat messages (``users/{uid}/aiChats/{id}/messages``).

Two backends:
- ``InMemoryDocumentStore``: process-local dict, for development and tests
- ``FirestoreDocumentStore``: Cloud Firestore through firebase-admin
"""

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any, Literal

from clipbook.config import get_settings
from clipbook.exceptions import DocumentNotFoundError, DocumentStoreError
from clipbook.services.event_manager import CollectionEventManager

logger = logging.getLogger(__name__)

FilterOp = Literal["==", "array-contains"]
Filter = tuple[str, FilterOp, Any]


@dataclass
class Document:
    id: str
    data: dict[str, Any]


def user_collection(uid: str, name: str) -> str:
    """Collection path owned by a user, e.g. ``users/{uid}/clips``."""
    return f"users/{uid}/{name}"


def messages_collection(uid: str, conversation_id: str) -> str:
    return f"users/{uid}/aiChats/{conversation_id}/messages"


def new_document_id() -> str:
    # Same length as Firestore auto-ids
    return uuid.uuid4().hex[:20]


class BaseDocumentStore(ABC):
    """CRUD, query and real-time listen over collection paths."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None: ...

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None: ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Update fields of an existing document. Raises DocumentNotFoundError."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]: ...

    @abstractmethod
    def listen(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
    ) -> AsyncGenerator[list[Document], None]:
        """Yield the ordered collection snapshot now and after every change."""


# =============================================================================
# In-memory backend
# =============================================================================


def _matches(data: dict[str, Any], filters: list[Filter]) -> bool:
    for field_name, op, value in filters:
        current = data.get(field_name)
        if op == "==":
            if current != value:
                return False
        elif op == "array-contains":
            if not isinstance(current, list) or value not in current:
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


class InMemoryDocumentStore(BaseDocumentStore):
    """Process-local store. Documents are deep-copied on the way in and out."""

    def __init__(self, events: CollectionEventManager | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._events = events or CollectionEventManager()

    def _collection(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection.strip("/"), {})

    def _existing(self, collection: str) -> dict[str, dict[str, Any]]:
        """Read-only view; unknown paths are not registered."""
        return self._collections.get(collection.strip("/"), {})

    async def get(self, collection: str, doc_id: str) -> Document | None:
        data = self._existing(collection).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        self._collection(collection)[doc_id] = copy.deepcopy(data)
        await self._events.publish(collection.strip("/"), "added", doc_id)
        return doc_id

    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        docs = self._collection(collection)
        existed = doc_id in docs
        if merge and existed:
            docs[doc_id].update(copy.deepcopy(data))
        else:
            docs[doc_id] = copy.deepcopy(data)
        await self._events.publish(
            collection.strip("/"), "modified" if existed else "added", doc_id
        )

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        docs = self._existing(collection)
        if doc_id not in docs:
            raise DocumentNotFoundError(f"{collection}/{doc_id}")
        docs[doc_id].update(copy.deepcopy(fields))
        await self._events.publish(collection.strip("/"), "modified", doc_id)

    async def delete(self, collection: str, doc_id: str) -> None:
        docs = self._existing(collection)
        if docs.pop(doc_id, None) is not None:
            await self._events.publish(collection.strip("/"), "removed", doc_id)

    async def query(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        items = [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._existing(collection).items()
            if _matches(data, filters or [])
        ]
        if order_by:
            # Documents without the field go last in either direction
            present = [d for d in items if d.data.get(order_by) is not None]
            missing = [d for d in items if d.data.get(order_by) is None]
            present.sort(key=lambda d: d.data[order_by], reverse=descending)
            items = present + missing
        if limit is not None:
            items = items[:limit]
        return items

    async def listen(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
    ) -> AsyncGenerator[list[Document], None]:
        async with self._events.subscription(collection.strip("/")) as queue:
            yield await self.query(collection, order_by=order_by, descending=descending)
            while True:
                await queue.get()
                yield await self.query(collection, order_by=order_by, descending=descending)


# =============================================================================
# Firestore backend
# =============================================================================


class FirestoreDocumentStore(BaseDocumentStore):
    """Cloud Firestore backend (async client for CRUD, sync client for watches)."""

    def __init__(self) -> None:
        from firebase_admin import firestore, firestore_async
        from google.cloud import firestore as gcf

        from clipbook.services.firebase_app import get_firebase_app

        app = get_firebase_app()
        self._gcf = gcf
        self._db = firestore_async.client(app)
        self._sync_db = firestore.client(app)

    def _build_query(
        self,
        ref: Any,
        filters: list[Filter] | None,
        order_by: str | None,
        descending: bool,
        limit: int | None,
    ) -> Any:
        query = ref
        for field_name, op, value in filters or []:
            query = query.where(filter=self._gcf.FieldFilter(field_name, op, value))
        if order_by:
            direction = self._gcf.Query.DESCENDING if descending else self._gcf.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return query

    async def get(self, collection: str, doc_id: str) -> Document | None:
        try:
            snap = await self._db.collection(collection).document(doc_id).get()
        except Exception as e:
            raise DocumentStoreError(f"Failed to read {collection}/{doc_id}: {e}") from e
        if not snap.exists:
            return None
        return Document(id=snap.id, data=snap.to_dict() or {})

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        try:
            _, ref = await self._db.collection(collection).add(data)
        except Exception as e:
            raise DocumentStoreError(f"Failed to write to {collection}: {e}") from e
        return ref.id

    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        try:
            await self._db.collection(collection).document(doc_id).set(data, merge=merge)
        except Exception as e:
            raise DocumentStoreError(f"Failed to write {collection}/{doc_id}: {e}") from e

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        from google.api_core.exceptions import NotFound

        try:
            await self._db.collection(collection).document(doc_id).update(fields)
        except NotFound as e:
            raise DocumentNotFoundError(f"{collection}/{doc_id}") from e
        except Exception as e:
            raise DocumentStoreError(f"Failed to update {collection}/{doc_id}: {e}") from e

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            await self._db.collection(collection).document(doc_id).delete()
        except Exception as e:
            raise DocumentStoreError(f"Failed to delete {collection}/{doc_id}: {e}") from e

    async def query(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        query = self._build_query(
            self._db.collection(collection), filters, order_by, descending, limit
        )
        try:
            snaps = await query.get()
        except Exception as e:
            raise DocumentStoreError(f"Failed to query {collection}: {e}") from e
        return [Document(id=s.id, data=s.to_dict() or {}) for s in snaps]

    async def listen(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
    ) -> AsyncGenerator[list[Document], None]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[list[Document]] = asyncio.Queue()
        query = self._build_query(
            self._sync_db.collection(collection), None, order_by, descending, None
        )

        def on_snapshot(snaps, changes, read_time) -> None:
            # Called on a Firestore watch thread
            docs = [Document(id=s.id, data=s.to_dict() or {}) for s in snaps]
            loop.call_soon_threadsafe(queue.put_nowait, docs)

        watch = query.on_snapshot(on_snapshot)
        try:
            while True:
                yield await queue.get()
        finally:
            watch.unsubscribe()


_document_store: BaseDocumentStore | None = None


def get_document_store() -> BaseDocumentStore:
    """Singleton store chosen by ``use_local_store``."""
    global _document_store
    if _document_store is None:
        if get_settings().use_local_store:
            _document_store = InMemoryDocumentStore()
        else:
            _document_store = FirestoreDocumentStore()
        logger.info(f"Document store backend: {type(_document_store).__name__}")
    return _document_store
