"""
Prosthesis Orders Backend — Document Store Access
===================================================

What:  Record store interface, its Firestore implementation, startup/shutdown
       lifecycle helpers and the FastAPI dependency that hands the store to
       route handlers.
Why:   Centralizes all document database logic in one place. Routes and
       services only ever see `RecordStore`, so tests can swap in an
       in-memory implementation.
How:   The Firebase Admin SDK is initialized once in the application
       lifespan from a service-account file, probed, and the resulting store
       is kept on `app.state`. Each request receives it through Depends().
Who:   Used by RecordService (operations) and main.py (lifecycle).

Atomicity:
    Bulk updates are written into one Firestore WriteBatch and committed
    once. Firestore applies every write of a batch or none of them; this
    module adds no compensation logic of its own.

Ordering:
    Firestore `order_by` leaves out documents that lack the ordering field,
    and `fecha_pedido` is optional. The whole collection is streamed and
    sorted here instead, newest first with undated records last.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence

import firebase_admin
from fastapi import Request
from firebase_admin import credentials, firestore_async
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from prosthesis_orders.config import Settings
from prosthesis_orders.exceptions import StoreError, StoreUnavailableError
from prosthesis_orders.models.record import newest_first, to_record

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "prosthesis-orders"


class RecordStore(ABC):
    """
    Collection-scoped access to order documents.

    Contract:
        - Every failure of the underlying database is raised as StoreError
        - Identifiers are assigned by the store on create
        - bulk_update is all-or-nothing
    """

    @abstractmethod
    async def list_records(self) -> List[Dict[str, Any]]:
        """All records, newest order date first, each including its `id`."""
        ...

    @abstractmethod
    async def create_record(self, data: Mapping[str, Any]) -> str:
        """Persist a new record and return the assigned identifier."""
        ...

    @abstractmethod
    async def update_record(self, record_id: str, data: Mapping[str, Any]) -> None:
        """Merge `data` into an existing record."""
        ...

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        ...

    @abstractmethod
    async def bulk_update(self, record_ids: Sequence[str], data: Mapping[str, Any]) -> int:
        """Apply `data` to every record atomically; returns the number of writes."""
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Cheap round trip proving the store is reachable and authenticated."""
        ...

    async def close(self) -> None:
        """Release client resources. Default: nothing to release."""
        return None


class FirestoreRecordStore(RecordStore):
    """
    RecordStore backed by a Firestore collection (async client).

    Error Handling:
        Every SDK exception is logged with its type and wrapped in StoreError
        so the global handler answers with a generic 500.
    """

    def __init__(
        self,
        client: Any,
        collection: str,
        order_field: str,
        app: Any = None,
    ):
        self._client = client
        self._app = app
        self.collection_name = collection
        self.order_field = order_field

    @property
    def _collection(self) -> Any:
        return self._client.collection(self.collection_name)

    def _fail(self, operation: str, exc: Exception, **context: Any) -> StoreError:
        logger.error(
            "Firestore %s on '%s' failed: %s: %s",
            operation,
            self.collection_name,
            type(exc).__name__,
            str(exc),
        )
        return StoreError(
            context={
                "operation": operation,
                "collection": self.collection_name,
                "error_type": type(exc).__name__,
                **context,
            }
        )

    async def list_records(self) -> List[Dict[str, Any]]:
        try:
            records = []
            async for snapshot in self._collection.stream():
                records.append(to_record(snapshot.id, snapshot.to_dict()))
        except Exception as e:
            raise self._fail("list", e) from e
        records = newest_first(records, self.order_field)
        logger.debug("Listed %d records from '%s'", len(records), self.collection_name)
        return records

    async def create_record(self, data: Mapping[str, Any]) -> str:
        try:
            _, doc_ref = await self._collection.add(dict(data))
        except Exception as e:
            raise self._fail("create", e) from e
        return doc_ref.id

    async def update_record(self, record_id: str, data: Mapping[str, Any]) -> None:
        try:
            await self._collection.document(record_id).update(dict(data))
        except Exception as e:
            raise self._fail("update", e, record_id=record_id) from e

    async def delete_record(self, record_id: str) -> None:
        try:
            await self._collection.document(record_id).delete()
        except Exception as e:
            raise self._fail("delete", e, record_id=record_id) from e

    async def bulk_update(self, record_ids: Sequence[str], data: Mapping[str, Any]) -> int:
        try:
            batch = self._client.batch()
            for record_id in record_ids:
                batch.update(self._collection.document(record_id), dict(data))
            await batch.commit()
        except Exception as e:
            raise self._fail("bulk_update", e, size=len(record_ids)) from e
        return len(record_ids)

    async def ping(self) -> None:
        try:
            async for _ in self._collection.limit(1).stream():
                break
        except Exception as e:
            raise self._fail("ping", e) from e

    async def close(self) -> None:
        client, self._client = self._client, None
        app, self._app = self._app, None
        try:
            if client is not None:
                # Plain or coroutine depending on the google-cloud-firestore release
                result = client.close()
                if inspect.isawaitable(result):
                    await result
        finally:
            if app is not None:
                firebase_admin.delete_app(app)


# ── Lifecycle Helpers ─────────────────────────────────────────────────────

def create_firestore_store(settings: Settings) -> FirestoreRecordStore:
    """
    Initialize the Firebase Admin SDK from the service-account file.

    Raises:
        StoreUnavailableError: credentials file missing or unreadable.
    """
    try:
        credential = credentials.Certificate(settings.firebase_credentials_path)
        app = firebase_admin.initialize_app(credential, name=FIREBASE_APP_NAME)
    except (OSError, ValueError) as e:
        raise StoreUnavailableError(
            message=(
                f"Could not load Firebase credentials from "
                f"'{settings.firebase_credentials_path}'"
            ),
            context={"error_type": type(e).__name__},
        ) from e

    client = firestore_async.client(app)
    logger.info(
        "Firestore client initialized (project=%s, collection=%s)",
        getattr(credential, "project_id", "unknown"),
        settings.store_collection,
    )
    return FirestoreRecordStore(
        client=client,
        collection=settings.store_collection,
        order_field=settings.store_order_field,
        app=app,
    )


async def verify_store(store: RecordStore, settings: Settings) -> None:
    """
    Probe the store until it answers or the attempts run out.

    Why at startup: authentication errors only surface on the first call.
    A process that cannot reach its only data source is stopped here rather
    than left answering 500 to every request.

    Raises:
        StoreUnavailableError: all probe attempts failed.
    """
    try:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(StoreError),
            stop=stop_after_attempt(settings.store_connect_attempts),
            wait=wait_exponential_jitter(initial=1, max=settings.store_connect_max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await store.ping()
    except StoreError as e:
        raise StoreUnavailableError(
            message="The document store did not answer the startup probe",
            context={"attempts": settings.store_connect_attempts, **e.context},
        ) from e


async def open_store(settings: Settings) -> RecordStore:
    """Create and verify the store; closes it again if verification fails."""
    store = create_firestore_store(settings)
    try:
        await verify_store(store, settings)
    except StoreUnavailableError:
        await store.close()
        raise
    return store


async def close_store(store: RecordStore | None) -> None:
    """Release the store during application shutdown."""
    if store is not None:
        await store.close()


# ── Request Dependency ────────────────────────────────────────────────────

def get_record_store(request: Request) -> RecordStore:
    """
    FastAPI dependency returning the store opened in the lifespan.

    Raises:
        StoreUnavailableError: the application was started without a store.
    """
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise StoreUnavailableError(message="The document store is not initialized")
    return store
