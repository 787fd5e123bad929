"""
Prosthesis Orders Backend — Test Configuration (conftest.py)
==============================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests must not need Firestore credentials or a mail account.
How:   An in-memory RecordStore and a recording MailClient replace the real
       collaborators; the app is built through create_app() and the two
       request dependencies are overridden. ASGITransport does not run the
       lifespan, so Firestore is never initialized.

Fixture Hierarchy:
    ├── memory_store: In-memory RecordStore with Firestore-like semantics
    ├── mail_client: MailClient that records what it was asked to send
    ├── dispatcher: NotificationDispatcher around mail_client
    ├── app: FastAPI app with both dependencies overridden
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import itertools
import os
from typing import Any, Dict, List, Mapping, Sequence

# Override settings for testing BEFORE any app imports
os.environ["DELETE_PIN"] = "246810"
os.environ["MAIL_PROVIDER"] = "emailjs"
os.environ["EMAILJS_SERVICE_ID"] = "service_test"
os.environ["EMAILJS_TEMPLATE_ID"] = "template_test"
os.environ["EMAILJS_PUBLIC_KEY"] = "public_test"
os.environ["FIREBASE_CREDENTIALS_PATH"] = "/nonexistent/serviceAccountKey.json"
os.environ["STORE_COLLECTION"] = "protesis"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from prosthesis_orders.exceptions import NotificationError, StoreError
from prosthesis_orders.models.record import newest_first, to_record
from prosthesis_orders.services.mail_base import MailClient
from prosthesis_orders.services.notification_service import (
    NotificationDispatcher,
    get_dispatcher,
)
from prosthesis_orders.store import RecordStore, get_record_store

TEST_PIN = "246810"
COLLECTION_URL = "/api/protesis"


class MemoryRecordStore(RecordStore):
    """
    In-memory stand-in for the Firestore collection.

    Mirrors the Firestore behaviour the app relies on:
        - ids are generated and never reused
        - update of a missing document fails
        - list orders by fecha_pedido descending, undated records last
        - bulk_update is all-or-nothing
    """

    def __init__(self, order_field: str = "fecha_pedido"):
        self.order_field = order_field
        self.documents: Dict[str, Dict[str, Any]] = {}
        self._ids = (f"doc{n:04d}" for n in itertools.count(1))
        self.fail_next: Exception | None = None
        self.ping_calls = 0

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise StoreError(context={"operation": operation, "error_type": type(exc).__name__})

    async def list_records(self) -> List[Dict[str, Any]]:
        self._maybe_fail("list")
        records = [to_record(doc_id, data) for doc_id, data in self.documents.items()]
        return newest_first(records, self.order_field)

    async def create_record(self, data: Mapping[str, Any]) -> str:
        self._maybe_fail("create")
        doc_id = next(self._ids)
        self.documents[doc_id] = dict(data)
        return doc_id

    async def update_record(self, record_id: str, data: Mapping[str, Any]) -> None:
        self._maybe_fail("update")
        if record_id not in self.documents:
            raise StoreError(context={"operation": "update", "error_type": "NotFound"})
        self.documents[record_id].update(data)

    async def delete_record(self, record_id: str) -> None:
        self._maybe_fail("delete")
        self.documents.pop(record_id, None)

    async def bulk_update(self, record_ids: Sequence[str], data: Mapping[str, Any]) -> int:
        self._maybe_fail("bulk_update")
        if any(record_id not in self.documents for record_id in record_ids):
            raise StoreError(context={"operation": "bulk_update", "error_type": "NotFound"})
        for record_id in record_ids:
            self.documents[record_id].update(data)
        return len(record_ids)

    async def ping(self) -> None:
        self.ping_calls += 1
        self._maybe_fail("ping")


class RecordingMailClient(MailClient):
    """MailClient that keeps every payload; optionally fails every send."""

    name = "recording"

    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, str]] = []
        self.fail = fail
        self.closed = False

    async def send(self, params: Mapping[str, str]) -> None:
        if self.fail:
            raise NotificationError(message="provider down", provider=self.name)
        self.sent.append(dict(params))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_store():
    return MemoryRecordStore()


@pytest.fixture
def mail_client():
    return RecordingMailClient()


@pytest.fixture
def dispatcher(mail_client):
    return NotificationDispatcher(mail_client)


@pytest.fixture
def sample_order():
    """A complete order as the frontend form sends it."""
    return {
        "paciente": "J. Diaz",
        "empresa": "ACME",
        "medico": "Dr. Ruiz",
        "dni": "30111222",
        "tubos": "2",
        "recibe": "M. Lopez",
        "fecha_pedido": "2026-03-14",
        "notas": "Urgente",
    }


@pytest.fixture
def app(memory_store, dispatcher):
    from prosthesis_orders.main import create_app

    application = create_app()
    application.dependency_overrides[get_record_store] = lambda: memory_store
    application.dependency_overrides[get_dispatcher] = lambda: dispatcher
    application.state.record_store = memory_store
    application.state.notifier = dispatcher
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/protesis")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
