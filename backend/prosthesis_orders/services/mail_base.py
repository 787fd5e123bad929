"""
Prosthesis Orders Backend — Abstract Mail Client Interface
===========================================================

What:  Abstract base class for the capability "send an order notification".
Why:   The notification can go out through a transactional-email relay
       (EmailJS) or straight through an SMTP relay. Both are interchangeable
       for the rest of the application; only configuration chooses one.
How:   Concrete implementations inherit from MailClient and implement send().
Who:   Called by NotificationDispatcher after a record is created.

Design Decision:
    The router, validator and dispatcher are written once against this
    interface. Adding a provider means one new subclass plus one entry in
    the factory in notification_service.py.
"""

from abc import ABC, abstractmethod
from typing import Mapping


class MailClient(ABC):
    """
    Abstract interface for delivering an order notification.

    Contract:
        - send() receives the already-mapped notification fields
          (see notification_service.build_notification_params)
        - Provider errors are raised as NotificationError
        - No retries: one attempt per notification
    """

    #: Short provider name used in logs and the health endpoint
    name: str = "mail"

    @abstractmethod
    async def send(self, params: Mapping[str, str]) -> None:
        """
        Deliver one notification.

        Args:
            params: Template fields (paciente, dni, medico, empresa, tubos,
                    recibe, fecha_recepcion, notas), all strings.

        Raises:
            NotificationError: The provider rejected or could not accept
                the message.
        """
        ...

    async def close(self) -> None:
        """Release connections held by the client. Default: nothing to release."""
        return None
