"""
Prosthesis Orders Backend — Notification Dispatcher
=====================================================

What:  Turns a freshly created order into an outbound email notification.
Why:   The lab wants an email for every new prosthesis order, but a slow or
       broken mail provider must never delay or fail the order itself.
How:   build_notification_params() maps the record to a fixed set of template
       fields; NotificationDispatcher.dispatch() sends them through the
       configured MailClient. The route schedules dispatch() as a background
       task, so the HTTP response is already on its way when it runs.
Who:   Scheduled by POST /api/<collection>; built once in the lifespan.

Failure Policy:
    Best effort. Every exception is logged and swallowed; nothing is retried
    and nothing is reported back to the caller.
"""

import logging
from typing import Any, Dict, Mapping

from fastapi import Request

from prosthesis_orders.config import Settings
from prosthesis_orders.exceptions import ConfigurationError, NotificationError
from prosthesis_orders.models import record as fields
from prosthesis_orders.services.mail_base import MailClient

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "No especificado"
NO_NOTES = "Sin observaciones"


def _text(value: Any, fallback: str) -> str:
    if value is None or value == "":
        return fallback
    return str(value)


def build_notification_params(record: Mapping[str, Any]) -> Dict[str, str]:
    """
    Map an order record to the notification template fields.

    Required fields are passed as-is (they were validated on create); every
    optional field gets a literal fallback so the template never shows blanks.
    """
    return {
        "paciente": _text(record.get(fields.PATIENT), ""),
        "dni": _text(record.get(fields.NATIONAL_ID), NOT_SPECIFIED),
        "medico": _text(record.get(fields.PHYSICIAN), ""),
        "empresa": _text(record.get(fields.COMPANY), ""),
        "tubos": _text(record.get(fields.TUBES), NOT_SPECIFIED),
        "recibe": _text(record.get(fields.RECEIVER), NOT_SPECIFIED),
        "fecha_recepcion": _text(record.get(fields.ORDER_DATE), NOT_SPECIFIED),
        "notas": _text(record.get(fields.NOTES), NO_NOTES),
    }


class NotificationDispatcher:
    """Fire-and-forget sender around a MailClient."""

    def __init__(self, mail_client: MailClient):
        self.mail_client = mail_client

    @property
    def provider(self) -> str:
        return self.mail_client.name

    async def dispatch(self, record: Mapping[str, Any]) -> bool:
        """
        Send the notification for one record.

        Returns:
            True when the provider accepted the message, False otherwise.
            Never raises.
        """
        record_id = record.get(fields.ID_FIELD, "unknown")
        try:
            params = build_notification_params(record)
            await self.mail_client.send(params)
        except NotificationError as e:
            logger.error(
                "Notification for record %s not sent via %s: %s | Context: %s",
                record_id,
                self.provider,
                e.message,
                e.context,
            )
            return False
        except Exception as e:
            logger.error(
                "Unexpected error sending notification for record %s via %s: %s",
                record_id,
                self.provider,
                str(e),
                exc_info=True,
            )
            return False

        logger.info("Notification for record %s sent via %s", record_id, self.provider)
        return True

    async def close(self) -> None:
        await self.mail_client.close()


# ── Provider Factory ──────────────────────────────────────────────────────

def _build_registry() -> Dict[str, Any]:
    from prosthesis_orders.services.emailjs_service import EmailJSMailClient
    from prosthesis_orders.services.smtp_service import SMTPMailClient

    return {
        "emailjs": EmailJSMailClient,
        "smtp": SMTPMailClient,
    }


def build_mail_client(settings: Settings) -> MailClient:
    """
    Return the MailClient selected by settings.mail_provider.

    Raises:
        ConfigurationError: unknown provider.
    """
    registry = _build_registry()
    client_cls = registry.get(settings.mail_provider)
    if client_cls is None:
        raise ConfigurationError(
            f"Unknown MAIL_PROVIDER: {settings.mail_provider!r}. "
            f"Known providers: {sorted(registry)}"
        )
    return client_cls.from_settings(settings)


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    dispatcher = NotificationDispatcher(build_mail_client(settings))
    logger.info("Notification dispatcher using provider=%s", dispatcher.provider)
    return dispatcher


def get_dispatcher(request: Request) -> NotificationDispatcher:
    """FastAPI dependency returning the dispatcher built in the lifespan."""
    dispatcher = getattr(request.app.state, "notifier", None)
    if dispatcher is None:
        raise ConfigurationError("Notification dispatcher is not initialized")
    return dispatcher
