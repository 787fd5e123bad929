"""
Prosthesis Orders Backend — Mail Client Tests
===============================================

What:  EmailJS request shape and error translation (httpx.MockTransport),
       SMTP message building and delivery (smtplib mocked).
"""

import json
import smtplib
from unittest.mock import MagicMock, patch

import httpx
import pytest

from prosthesis_orders.exceptions import NotificationError
from prosthesis_orders.services.emailjs_service import EmailJSMailClient
from prosthesis_orders.services.smtp_service import SMTPMailClient, render_html

PARAMS = {
    "paciente": "J. Diaz",
    "dni": "No especificado",
    "medico": "Dr. Ruiz",
    "empresa": "ACME",
    "tubos": "2",
    "recibe": "No especificado",
    "fecha_recepcion": "2026-03-14",
    "notas": "Sin observaciones",
}


def emailjs_client(handler, private_key="priv"):
    return EmailJSMailClient(
        service_id="svc",
        template_id="tpl",
        public_key="pub",
        private_key=private_key,
        api_url="https://emailjs.test/send",
        transport=httpx.MockTransport(handler),
    )


class TestEmailJSMailClient:

    @pytest.mark.asyncio
    async def test_posts_template_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, text="OK")

        client = emailjs_client(handler)
        await client.send(PARAMS)
        await client.close()

        assert seen["url"] == "https://emailjs.test/send"
        assert seen["body"] == {
            "service_id": "svc",
            "template_id": "tpl",
            "user_id": "pub",
            "accessToken": "priv",
            "template_params": PARAMS,
        }

    def test_private_key_optional(self):
        client = emailjs_client(lambda request: httpx.Response(200), private_key="")
        assert "accessToken" not in client.build_payload(PARAMS)

    @pytest.mark.asyncio
    async def test_rejection_raises_notification_error(self):
        client = emailjs_client(lambda request: httpx.Response(400, text="The template ID is invalid"))

        with pytest.raises(NotificationError) as exc_info:
            await client.send(PARAMS)

        assert exc_info.value.provider == "emailjs"
        assert exc_info.value.context["status"] == 400

    @pytest.mark.asyncio
    async def test_network_error_raises_notification_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NotificationError, match="ConnectError"):
            await emailjs_client(handler).send(PARAMS)


class TestSMTPMailClient:

    def setup_method(self):
        self.client = SMTPMailClient(
            host="smtp.example.com",
            port=587,
            sender="lab@example.com",
            recipient="pedidos@example.com",
            subject="Nuevo pedido",
            user="lab@example.com",
            password="secret",
        )

    def test_message_headers_and_parts(self):
        message = self.client.build_message(PARAMS)

        assert message["From"] == "lab@example.com"
        assert message["To"] == "pedidos@example.com"
        assert message["Subject"] == "Nuevo pedido: J. Diaz"
        html_part = message.get_body(preferencelist=("html",))
        assert "Dr. Ruiz" in html_part.get_content()

    def test_html_escapes_values(self):
        rendered = render_html({**PARAMS, "notas": "<script>alert(1)</script>"})
        assert "<script>" not in rendered
        assert "&lt;script&gt;" in rendered

    @pytest.mark.asyncio
    async def test_send_uses_starttls_and_login(self):
        with patch("prosthesis_orders.services.smtp_service.smtplib.SMTP") as mock_smtp:
            conn = MagicMock()
            mock_smtp.return_value.__enter__.return_value = conn

            await self.client.send(PARAMS)

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        conn.starttls.assert_called_once()
        conn.login.assert_called_once_with("lab@example.com", "secret")
        conn.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_login_without_user(self):
        self.client.user = ""
        self.client.use_tls = False
        with patch("prosthesis_orders.services.smtp_service.smtplib.SMTP") as mock_smtp:
            conn = MagicMock()
            mock_smtp.return_value.__enter__.return_value = conn

            await self.client.send(PARAMS)

        conn.starttls.assert_not_called()
        conn.login.assert_not_called()

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_notification_error(self):
        with patch("prosthesis_orders.services.smtp_service.smtplib.SMTP") as mock_smtp:
            conn = MagicMock()
            conn.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            mock_smtp.return_value.__enter__.return_value = conn

            with pytest.raises(NotificationError) as exc_info:
                await self.client.send(PARAMS)

        assert exc_info.value.provider == "smtp"

    @pytest.mark.asyncio
    async def test_connection_refused_raises_notification_error(self):
        with patch(
            "prosthesis_orders.services.smtp_service.smtplib.SMTP",
            side_effect=ConnectionRefusedError(),
        ):
            with pytest.raises(NotificationError):
                await self.client.send(PARAMS)
