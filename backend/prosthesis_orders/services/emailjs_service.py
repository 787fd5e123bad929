"""
Prosthesis Orders Backend — EmailJS Relay Mail Client
======================================================

What:  MailClient that hands the notification to the EmailJS REST API.
Why:   EmailJS renders and sends the message from a template configured in
       its dashboard; the backend only supplies the template fields.
How:   One JSON POST per notification with httpx:
           {
               "service_id": ..., "template_id": ...,
               "user_id": <public key>, "accessToken": <private key>,
               "template_params": {...}
           }
       EmailJS answers 200 "OK" on success and a 4xx/5xx text body otherwise.

Template variables expected in the EmailJS template:
    {{paciente}} {{dni}} {{medico}} {{empresa}} {{tubos}} {{recibe}}
    {{fecha_recepcion}} {{notas}}
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional

import httpx

from prosthesis_orders.config import Settings
from prosthesis_orders.exceptions import NotificationError
from prosthesis_orders.services.mail_base import MailClient

logger = logging.getLogger(__name__)


class EmailJSMailClient(MailClient):
    """
    EmailJS implementation of MailClient.

    Uses a single long-lived httpx.AsyncClient so that consecutive
    notifications reuse the TLS connection. `transport` is accepted for tests
    (httpx.MockTransport).
    """

    name = "emailjs"

    def __init__(
        self,
        service_id: str,
        template_id: str,
        public_key: str,
        private_key: str = "",
        api_url: str = "https://api.emailjs.com/api/v1.0/email/send",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.private_key = private_key
        self.api_url = api_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailJSMailClient":
        return cls(
            service_id=settings.emailjs_service_id,
            template_id=settings.emailjs_template_id,
            public_key=settings.emailjs_public_key,
            private_key=settings.emailjs_private_key,
            api_url=settings.emailjs_api_url,
            timeout=settings.mail_timeout,
        )

    def build_payload(self, params: Mapping[str, str]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": dict(params),
        }
        # The private key is optional; EmailJS rejects an empty accessToken
        if self.private_key:
            payload["accessToken"] = self.private_key
        return payload

    async def send(self, params: Mapping[str, str]) -> None:
        start_time = time.perf_counter()
        try:
            response = await self._client.post(self.api_url, json=self.build_payload(params))
        except httpx.HTTPError as e:
            raise NotificationError(
                message=f"EmailJS request failed: {type(e).__name__}",
                provider=self.name,
                context={"error": str(e)},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.status_code != 200:
            raise NotificationError(
                message=f"EmailJS rejected the notification ({response.status_code})",
                provider=self.name,
                context={"status": response.status_code, "body": response.text[:200]},
            )

        logger.debug(
            "EmailJS accepted notification in %.0fms: %d %s",
            duration_ms,
            response.status_code,
            response.text,
        )

    async def close(self) -> None:
        await self._client.aclose()
