"""Email channel registry.

Provides singleton access to the email adapter. Uses the fake adapter by
default; the Resend adapter is used when RESEND_API_KEY is set.
"""

import os

from notifications.channel.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _email_channel
    if _email_channel is None:
        api_key = os.environ.get("RESEND_API_KEY")
        if api_key:
            from notifications.channel.resend_email import ResendEmailAdapter

            _email_channel = ResendEmailAdapter(
                api_key=api_key,
                from_email=os.environ.get("EMAIL_FROM", "onboarding@resend.dev"),
            )
        else:
            from notifications.channel.fake_email import FakeEmailAdapter

            _email_channel = FakeEmailAdapter()
    return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    _email_channel = channel


def reset_channels():
    """Reset the channel singleton (useful for testing)."""
    global _email_channel
    _email_channel = None
