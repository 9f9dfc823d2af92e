"""Exception hierarchy shared by the store, the scheduler and the handlers."""
from __future__ import annotations


class SubReminderError(Exception):
    """Base class for every error raised by the bot."""


class SubscriptionValidationError(SubReminderError, ValueError):
    """User input could not be turned into a subscription.

    ``message`` is safe to show to the user as is.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SchedulingError(SubReminderError):
    """A reminder could not be (re)issued. Never fatal: no reminder fires."""


class DateComputationError(SchedulingError):
    """Calendar arithmetic could not produce a date."""


class PermissionDeniedError(SchedulingError):
    """The recipient has not allowed reminders."""


class BackendError(SchedulingError):
    """The notification backend refused the request."""


class StorageError(SubReminderError):
    """The record store failed to read or write."""


class SubscriptionNotFoundError(SubReminderError, LookupError):
    pass


class PlanLimitError(SubReminderError):
    """Free plan already holds the maximum number of subscriptions."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Free plan allows {limit} subscription(s)")
        self.limit = limit
