"""
Prosthesis Orders Backend — SMTP Relay Mail Client
====================================================

What:  MailClient that renders the notification as HTML locally and sends it
       through an SMTP relay.
Why:   Deployments without an EmailJS account can use any SMTP server
       (company relay, Gmail app password, etc.).
How:   Builds an EmailMessage with explicit From/To/Subject, a plain-text
       part and an HTML alternative, then runs smtplib in a worker thread so
       the event loop is never blocked by the SMTP conversation.
"""

import asyncio
import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Mapping

from prosthesis_orders.config import Settings
from prosthesis_orders.exceptions import NotificationError
from prosthesis_orders.services.mail_base import MailClient

logger = logging.getLogger(__name__)

# Display labels, in the order the rows appear in the message
FIELD_LABELS = (
    ("paciente", "Paciente"),
    ("dni", "DNI"),
    ("medico", "Médico"),
    ("empresa", "Empresa"),
    ("tubos", "Tubos"),
    ("recibe", "Recibe"),
    ("fecha_recepcion", "Fecha de pedido"),
    ("notas", "Notas"),
)


def render_text(params: Mapping[str, str]) -> str:
    lines = ["Se registró un nuevo pedido de prótesis.", ""]
    lines.extend(f"{label}: {params.get(key, '')}" for key, label in FIELD_LABELS)
    return "\n".join(lines) + "\n"


def render_html(params: Mapping[str, str]) -> str:
    """
    Render the notification body as a small HTML table.

    Every value is HTML-escaped; order fields are free text typed by users.
    """
    rows = "\n".join(
        "      <tr><th align=\"left\">{label}</th><td>{value}</td></tr>".format(
            label=html.escape(label),
            value=html.escape(str(params.get(key, ""))),
        )
        for key, label in FIELD_LABELS
    )
    return (
        "<html>\n"
        "  <body>\n"
        "    <h2>Nuevo pedido de prótesis</h2>\n"
        "    <table cellpadding=\"4\">\n"
        f"{rows}\n"
        "    </table>\n"
        "  </body>\n"
        "</html>\n"
    )


class SMTPMailClient(MailClient):
    """
    SMTP implementation of MailClient.

    A new SMTP connection is opened per notification: creations are rare and
    relays drop idle connections.
    """

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        recipient: str,
        subject: str,
        user: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.recipient = recipient
        self.subject = subject
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPMailClient":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_sender,
            recipient=settings.mail_to,
            subject=settings.mail_subject,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.mail_timeout,
        )

    def build_message(self, params: Mapping[str, str]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = self.recipient
        message["Subject"] = f"{self.subject}: {params.get('paciente', '')}"
        message.set_content(render_text(params))
        message.add_alternative(render_html(params), subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send(self, params: Mapping[str, str]) -> None:
        message = self.build_message(params)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(
                message=f"SMTP delivery failed: {type(e).__name__}",
                provider=self.name,
                context={"host": self.host, "port": self.port, "error": str(e)},
            ) from e
        logger.debug("SMTP relay %s:%d accepted notification", self.host, self.port)
