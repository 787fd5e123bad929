"""
Prosthesis Orders Backend — Notification Dispatcher Tests
===========================================================

What:  Payload mapping, fire-and-forget error swallowing and the
       configuration-driven mail client factory.
"""

import pytest

from conftest import RecordingMailClient
from prosthesis_orders.config import Settings
from prosthesis_orders.services.emailjs_service import EmailJSMailClient
from prosthesis_orders.services.notification_service import (
    NotificationDispatcher,
    build_mail_client,
    build_notification_params,
)
from prosthesis_orders.services.smtp_service import SMTPMailClient


class TestBuildNotificationParams:

    def test_complete_record(self, sample_order):
        params = build_notification_params(sample_order)
        assert params == {
            "paciente": "J. Diaz",
            "dni": "30111222",
            "medico": "Dr. Ruiz",
            "empresa": "ACME",
            "tubos": "2",
            "recibe": "M. Lopez",
            "fecha_recepcion": "2026-03-14",
            "notas": "Urgente",
        }

    def test_fallbacks_for_optional_fields(self):
        params = build_notification_params(
            {"paciente": "J. Diaz", "empresa": "ACME", "medico": "Dr. Ruiz", "dni": ""}
        )
        assert params["dni"] == "No especificado"
        assert params["tubos"] == "No especificado"
        assert params["recibe"] == "No especificado"
        assert params["fecha_recepcion"] == "No especificado"
        assert params["notas"] == "Sin observaciones"

    def test_values_become_strings(self):
        params = build_notification_params(
            {"paciente": "J. Diaz", "empresa": "ACME", "medico": "Dr. Ruiz", "tubos": 3}
        )
        assert params["tubos"] == "3"

    def test_unrelated_fields_not_included(self, sample_order):
        sample_order["color"] = "beige"
        assert "color" not in build_notification_params(sample_order)


class TestNotificationDispatcher:

    @pytest.mark.asyncio
    async def test_dispatch_sends_once(self, sample_order):
        client = RecordingMailClient()
        dispatcher = NotificationDispatcher(client)

        assert await dispatcher.dispatch({"id": "doc1", **sample_order}) is True
        assert len(client.sent) == 1
        assert client.sent[0]["paciente"] == "J. Diaz"

    @pytest.mark.asyncio
    async def test_provider_error_is_swallowed(self, sample_order, caplog):
        dispatcher = NotificationDispatcher(RecordingMailClient(fail=True))

        assert await dispatcher.dispatch({"id": "doc1", **sample_order}) is False
        assert "doc1" in caplog.text

    @pytest.mark.asyncio
    async def test_unexpected_error_is_swallowed(self, sample_order):
        class ExplodingClient(RecordingMailClient):
            async def send(self, params):
                raise RuntimeError("boom")

        dispatcher = NotificationDispatcher(ExplodingClient())
        assert await dispatcher.dispatch(sample_order) is False

    @pytest.mark.asyncio
    async def test_close_closes_client(self):
        client = RecordingMailClient()
        await NotificationDispatcher(client).close()
        assert client.closed is True


class TestBuildMailClient:

    def test_emailjs_selected(self):
        settings = Settings(
            mail_provider="emailjs",
            emailjs_service_id="svc",
            emailjs_template_id="tpl",
            emailjs_public_key="pub",
        )
        client = build_mail_client(settings)
        assert isinstance(client, EmailJSMailClient)
        assert client.service_id == "svc"

    def test_smtp_selected(self):
        settings = Settings(
            mail_provider="SMTP",
            smtp_host="smtp.example.com",
            smtp_user="lab@example.com",
            mail_to="pedidos@example.com",
        )
        client = build_mail_client(settings)
        assert isinstance(client, SMTPMailClient)
        assert client.sender == "lab@example.com"
        assert client.recipient == "pedidos@example.com"

    def test_unknown_provider_rejected_by_settings(self):
        with pytest.raises(ValueError):
            Settings(mail_provider="carrier-pigeon")
