"""Resend email adapter: production email delivery through the Resend SDK."""

import resend
import structlog
from resend.exceptions import ResendError

from notifications.channel.email_port import DeliveryResult, EmailMessage, EmailPort

logger = structlog.get_logger(__name__)


class ResendEmailAdapter(EmailPort):
    name = "resend"

    def __init__(self, api_key: str, from_email: str):
        self.api_key = api_key
        self.from_email = from_email

    def deliver(self, message: EmailMessage) -> DeliveryResult:
        params = {
            "from": self.from_email,
            "to": [message.to],
            "subject": message.subject,
            "text": message.body,
        }
        if message.html_body:
            params["html"] = message.html_body

        # The SDK reads its key from module state
        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(params)
        except ResendError as exc:
            logger.warning("Resend rejected email", to=message.to, error=str(exc))
            return DeliveryResult.failed(f"Resend rejected the message: {exc}")

        if not isinstance(response, dict) or not response.get("id"):
            return DeliveryResult.failed(f"Unexpected Resend response: {response}")
        return DeliveryResult.delivered(response["id"])
