"""Notification sink: fire-and-forget email dispatch off the request path.

Sends are handed to a background executor. Delivery failures (adapter
errors or a failed DeliveryResult) are logged and never propagate to the caller.
"""

from concurrent.futures import Future, ThreadPoolExecutor

import structlog

from notifications.channel import get_email_channel
from notifications.channel.email_port import DeliveryResult, EmailMessage, EmailPort
from notifications.templates import get_template

logger = structlog.get_logger(__name__)


class NotificationSink:
    def __init__(self, channel: EmailPort | None = None, max_workers: int = 2):
        self._channel = channel
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    @property
    def channel(self) -> EmailPort:
        return self._channel or get_email_channel()

    def send_order_confirmation(self, email: str, order_summary: dict) -> Future | None:
        return self._submit("order_confirmation", email, order_summary)

    def send_shipping_notification(self, email: str, update: dict) -> Future | None:
        return self._submit("shipping_update", email, update)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _submit(self, notification_type: str, email: str, context: dict) -> Future | None:
        if not email:
            logger.warning(
                "Skipping notification without recipient",
                notification_type=notification_type,
                order_id=context.get("order_id"),
            )
            return None
        try:
            return self._executor.submit(self._deliver, notification_type, email, context)
        except RuntimeError as exc:
            # Executor already shut down
            logger.error(
                "Notification could not be scheduled",
                notification_type=notification_type,
                order_id=context.get("order_id"),
                error=str(exc),
            )
            return None

    def _deliver(self, notification_type: str, email: str, context: dict) -> DeliveryResult | None:
        try:
            rendered = get_template(notification_type).render(context)
            result = self.channel.deliver(EmailMessage(to=email, subject=rendered["subject"], body=rendered["body"]))
        except Exception as exc:
            logger.error(
                "Notification dispatch failed",
                notification_type=notification_type,
                order_id=context.get("order_id"),
                error=str(exc),
            )
            return None

        if result.sent:
            logger.info(
                "Notification sent",
                notification_type=notification_type,
                order_id=context.get("order_id"),
                message_id=result.message_id,
            )
        else:
            logger.error(
                "Notification dispatch failed",
                notification_type=notification_type,
                order_id=context.get("order_id"),
                error=result.error or "Unknown dispatch error",
            )
        return result


_sink: NotificationSink | None = None


def get_notification_sink() -> NotificationSink:
    global _sink
    if _sink is None:
        _sink = NotificationSink()
    return _sink


def set_notification_sink(sink: NotificationSink) -> None:
    global _sink
    _sink = sink


def reset_notification_sink(wait: bool = False) -> None:
    global _sink
    if _sink is not None:
        _sink.shutdown(wait=wait)
    _sink = None
