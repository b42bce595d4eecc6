"""Document store adapters.

Mental model refresher:
- The document store is an external collaborator; the trigger layer and the
  status driver only need get / query / update / add / create-if-absent and
  a check-and-set on guard fields.
- `InMemoryDocumentStore` backs local demos and tests, and emits change
  events to registered listeners the way the hosted store fires triggers.
- `FirestoreStore` goes through the Firebase Admin SDK; guard claims run in
  a Firestore transaction.
"""

from __future__ import annotations

from contextlib import contextmanager
import copy
import logging
import threading
from typing import Any, Iterator, Mapping
import uuid

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions

from ..config import FirestoreConfig
from ..errors import DocumentStoreError
from ..types import ChangeListener, DocumentDict

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Dict-backed store: `{collection: {document_id: fields}}`."""

    def __init__(self, initial: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None):
        self._collections: dict[str, dict[str, DocumentDict]] = {}
        self._listeners: list[ChangeListener] = []
        self._lock = threading.RLock()
        for collection, documents in (initial or {}).items():
            for document_id, data in documents.items():
                self._collections.setdefault(collection, {})[document_id] = copy.deepcopy(
                    dict(data)
                )

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def get(self, collection: str, document_id: str) -> DocumentDict | None:
        with self._lock:
            data = self._collections.get(collection, {}).get(document_id)
            return copy.deepcopy(data) if data is not None else None

    def query(
        self, collection: str, filters: Mapping[str, Any]
    ) -> list[tuple[str, DocumentDict]]:
        """Documents whose fields equal every value in `filters`."""
        with self._lock:
            return [
                (document_id, copy.deepcopy(data))
                for document_id, data in self._collections.get(collection, {}).items()
                if all(data.get(name) == value for name, value in filters.items())
            ]

    def set(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        """Create or overwrite a document."""
        with self._lock:
            documents = self._collections.setdefault(collection, {})
            before = copy.deepcopy(documents.get(document_id))
            documents[document_id] = copy.deepcopy(dict(data))
            after = copy.deepcopy(documents[document_id])
        self._emit(collection, document_id, before, after)

    def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            documents = self._collections.get(collection, {})
            if document_id not in documents:
                raise DocumentStoreError(f"{collection}/{document_id} does not exist")
            before = copy.deepcopy(documents[document_id])
            documents[document_id].update(copy.deepcopy(dict(fields)))
            after = copy.deepcopy(documents[document_id])
        self._emit(collection, document_id, before, after)

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        document_id = uuid.uuid4().hex[:20]
        self.set(collection, document_id, data)
        return document_id

    def create(self, collection: str, document_id: str, data: Mapping[str, Any]) -> bool:
        """Create the document only if it does not exist yet."""
        with self._lock:
            documents = self._collections.setdefault(collection, {})
            if document_id in documents:
                return False
            documents[document_id] = copy.deepcopy(dict(data))
            after = copy.deepcopy(documents[document_id])
        self._emit(collection, document_id, None, after)
        return True

    def claim_guard(self, collection: str, document_id: str, field: str) -> bool:
        """Set `field` to True unless it is already set. Returns whether we set it."""
        with self._lock:
            data = self._collections.get(collection, {}).get(document_id)
            if data is None or data.get(field):
                return False
            before = copy.deepcopy(data)
            data[field] = True
            after = copy.deepcopy(data)
        self._emit(collection, document_id, before, after)
        return True

    def release_guard(self, collection: str, document_id: str, field: str) -> None:
        with self._lock:
            data = self._collections.get(collection, {}).get(document_id)
            if data is None or not data.get(field):
                return
            before = copy.deepcopy(data)
            data[field] = False
            after = copy.deepcopy(data)
        self._emit(collection, document_id, before, after)

    def documents(self, collection: str) -> dict[str, DocumentDict]:
        with self._lock:
            return copy.deepcopy(self._collections.get(collection, {}))

    def _emit(
        self,
        collection: str,
        document_id: str,
        before: DocumentDict | None,
        after: DocumentDict | None,
    ) -> None:
        for listener in list(self._listeners):
            listener(collection, document_id, before, after)


def firestore_client(config: FirestoreConfig) -> Any:
    """Firestore client of the default Firebase app, initialised once per process.

    Credentials are Application Default Credentials, refreshed by the SDK.
    The client library honours `FIRESTORE_EMULATOR_HOST` on its own.
    """
    try:
        app = firebase_admin.get_app()
    except ValueError:
        app = firebase_admin.initialize_app(
            credentials.ApplicationDefault(), {"projectId": config.project_id}
        )
        logger.info("Firebase Admin initialized for project %s", config.project_id)
    return firestore.client(app, database_id=config.database)


class FirestoreStore:
    """Firestore through the Firebase Admin SDK."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: FirestoreConfig) -> FirestoreStore:
        return cls(firestore_client(config))

    def get(self, collection: str, document_id: str) -> DocumentDict | None:
        with _store_errors(f"read of {collection}/{document_id}"):
            snapshot = self._document(collection, document_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def query(
        self, collection: str, filters: Mapping[str, Any]
    ) -> list[tuple[str, DocumentDict]]:
        """Documents whose fields equal every value in `filters`."""
        query = self._client.collection(collection)
        for name, value in filters.items():
            query = query.where(filter=firestore.FieldFilter(name, "==", value))
        with _store_errors(f"query on {collection}"):
            return [(snapshot.id, snapshot.to_dict() or {}) for snapshot in query.stream()]

    def set(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        with _store_errors(f"write of {collection}/{document_id}"):
            self._document(collection, document_id).set(dict(data))

    def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        with _store_errors(f"update of {collection}/{document_id}"):
            self._document(collection, document_id).update(dict(fields))

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        with _store_errors(f"add to {collection}"):
            _update_time, reference = self._client.collection(collection).add(dict(data))
        return reference.id

    def create(self, collection: str, document_id: str, data: Mapping[str, Any]) -> bool:
        """Create the document only if it does not exist yet."""
        with _store_errors(f"create of {collection}/{document_id}"):
            try:
                self._document(collection, document_id).create(dict(data))
            except google_exceptions.AlreadyExists:
                return False
        return True

    def claim_guard(self, collection: str, document_id: str, field: str) -> bool:
        """Set `field` to True in a transaction unless it is already set."""
        reference = self._document(collection, document_id)
        with _store_errors(f"guard claim on {collection}/{document_id}"):
            return _claim_guard_transactionally(self._client.transaction(), reference, field)

    def release_guard(self, collection: str, document_id: str, field: str) -> None:
        self.update(collection, document_id, {field: False})

    def _document(self, collection: str, document_id: str) -> Any:
        return self._client.collection(collection).document(document_id)


def _claim_guard(transaction: Any, reference: Any, field: str) -> bool:
    snapshot = reference.get(transaction=transaction)
    if not snapshot.exists or (snapshot.to_dict() or {}).get(field):
        return False
    transaction.update(reference, {field: True})
    return True


# Retried by the SDK when a concurrent write aborts the transaction.
_claim_guard_transactionally = firestore.transactional(_claim_guard)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except google_exceptions.GoogleAPIError as exc:
        logger.error("Firestore %s failed: %s", action, exc)
        raise DocumentStoreError(f"Firestore {action} failed: {exc}") from exc
