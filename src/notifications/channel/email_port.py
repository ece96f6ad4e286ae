"""Email channel port.

Adapters take a rendered ``EmailMessage`` and report a ``DeliveryResult``.
A provider rejecting the message is a failed result; only transport-level
problems raise.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    html_body: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
    status: str  # "sent" or "failed"
    message_id: str | None = None
    error: str | None = None

    @property
    def sent(self) -> bool:
        return self.status == "sent"

    @classmethod
    def delivered(cls, message_id: str | None) -> "DeliveryResult":
        return cls(status="sent", message_id=message_id)

    @classmethod
    def failed(cls, error: str) -> "DeliveryResult":
        return cls(status="failed", error=error)


class EmailPort(ABC):
    name = "email"

    @abstractmethod
    def deliver(self, message: EmailMessage) -> DeliveryResult: ...
