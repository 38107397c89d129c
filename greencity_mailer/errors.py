"""Exceptions raised by the mail receiver."""
from typing import List


class MailerError(Exception):
    """Base class for mail receiver errors."""


class NotFoundError(MailerError):
    """A referenced entity does not exist."""


class MessageDecodeError(MailerError):
    """A queue payload cannot be turned into a typed message."""


class UnknownQueueError(MailerError):
    """No handler is bound to the queue name."""


class EmailDeliveryError(MailerError):
    """The email service rejected or never answered a send request."""


class ValidationFailed(MailerError):
    """Input violated one or more field constraints."""

    def __init__(self, violations: List):
        self.violations = list(violations)
        details = "; ".join(f"{v.field}: {v.reason}" for v in self.violations)
        super().__init__(f"Validation failed: {details}")

