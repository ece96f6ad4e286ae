"""In-memory email channel used by default and in tests."""

import threading
from uuid import uuid4

from notifications.channel.email_port import DeliveryResult, EmailMessage, EmailPort


class FakeEmailAdapter(EmailPort):
    """Keeps delivered messages in ``outbox``; can be told to reject or blow up."""

    name = "fake"

    def __init__(self):
        self.outbox: list[EmailMessage] = []
        self._failure: str | None = None
        self._error: Exception | None = None
        self._lock = threading.Lock()

    def reject_with(self, reason: str) -> None:
        """Report every following delivery as failed with ``reason``."""
        self._failure = reason

    def raise_on_send(self, error: Exception | None = None) -> None:
        """Raise ``error`` (a ConnectionError by default) on every following delivery."""
        self._error = error or ConnectionError("Email transport unreachable")

    def deliver(self, message: EmailMessage) -> DeliveryResult:
        if self._error is not None:
            raise self._error
        if self._failure is not None:
            return DeliveryResult.failed(self._failure)

        with self._lock:
            self.outbox.append(message)
        return DeliveryResult.delivered(f"email-{uuid4().hex[:12]}")

    def sent_to(self, address: str) -> list[EmailMessage]:
        with self._lock:
            return [message for message in self.outbox if message.to == address]

    def reset(self) -> None:
        with self._lock:
            self.outbox.clear()
        self._failure = None
        self._error = None
