"""Reminder scheduling: derive a subscription's fire instant and keep the backend in sync.

A reminder is never stored on its own. Every call to ``reconcile`` cancels
whatever is registered under the subscription's notification id and then, if
the subscription still qualifies, registers a fresh one-shot reminder. That
keeps at most one pending reminder per subscription.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Dict, Optional, Union
from uuid import UUID

import pytz

from ..errors import DateComputationError, PermissionDeniedError
from ..models.reminder import (
    NotificationMessage,
    ReminderOutcome,
    ScheduledAt,
    Suppressed,
    SuppressReason,
)
from ..models.subscription import Subscription
from .notifications import NotificationBackend, utc_now

LOGGER = logging.getLogger(__name__)

DEFAULT_PREFIX = "subreminder"
DEFAULT_REMINDER_HOUR = 10
REMINDER_TITLE = "Upcoming charge"


def notification_id(subscription_id: Union[UUID, str], prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}.{subscription_id}"


def compute_fire_instant(
    billing_date: Union[date, datetime],
    remind_days_before: int,
    tz: tzinfo,
    default_hour: int = DEFAULT_REMINDER_HOUR,
) -> datetime:
    """Return the aware instant ``remind_days_before`` days ahead of ``billing_date``.

    A plain date is pinned to ``default_hour``:00 in ``tz``. A datetime keeps
    its own time of day; naive values are read as local time in ``tz``.
    """
    try:
        shifted = billing_date - timedelta(days=remind_days_before)
    except OverflowError as exc:
        raise DateComputationError(
            f"Cannot go {remind_days_before} day(s) back from {billing_date.isoformat()}"
        ) from exc
    if isinstance(shifted, datetime):
        if shifted.tzinfo is None:
            return _localize(tz, shifted)
        # pytz keeps the pre-shift UTC offset; re-resolve the wall time in its zone
        return _localize(shifted.tzinfo, shifted.replace(tzinfo=None))
    return _localize(tz, datetime.combine(shifted, time(hour=default_hour)))


def render_message(subscription: Subscription) -> NotificationMessage:
    return NotificationMessage(
        recipient=subscription.user_id,
        title=REMINDER_TITLE,
        body=f"{subscription.title} — {subscription.amount:.2f} {subscription.currency} soon",
    )


def _localize(tz: tzinfo, value: datetime) -> datetime:
    if hasattr(tz, "localize"):
        return tz.localize(value)
    return value.replace(tzinfo=tz)


class ReminderScheduler:
    """Reconciles one subscription's reminder against a notification backend.

    Calls for the same subscription are serialized so the cancel of a later
    call can never run between the cancel and the schedule of an earlier one.
    """

    def __init__(
        self,
        backend: NotificationBackend,
        timezone: str = "UTC",
        default_hour: int = DEFAULT_REMINDER_HOUR,
        prefix: str = DEFAULT_PREFIX,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._backend = backend
        self._timezone = pytz.timezone(timezone)
        self._default_hour = default_hour
        self._prefix = prefix
        self._clock = clock or utc_now
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def backend(self) -> NotificationBackend:
        return self._backend

    def notification_id(self, subscription_id: Union[UUID, str]) -> str:
        return notification_id(subscription_id, self._prefix)

    def fire_instant(self, subscription: Subscription) -> datetime:
        return compute_fire_instant(
            subscription.billing_date,
            subscription.remind_days_before,
            self._timezone,
            self._default_hour,
        )

    def get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def reconcile(self, subscription: Subscription, now: Optional[datetime] = None) -> ReminderOutcome:
        """Cancel the current reminder and schedule a new one if it is still due.

        Returns ``ScheduledAt`` or ``Suppressed``. Raises ``PermissionDeniedError``
        when the owner has not allowed reminders and ``BackendError`` when the
        backend refuses the registration; in both cases the old registration is
        already gone. A naive ``now`` is read as local time in the scheduler's zone.
        """
        key = self.notification_id(subscription.id)
        current = now or self._clock()
        if current.tzinfo is None:
            current = _localize(self._timezone, current)
        async with self.get_lock(key):
            return await self._reconcile(key, subscription, current)

    async def cancel(self, subscription_id: Union[UUID, str]) -> None:
        key = self.notification_id(subscription_id)
        async with self.get_lock(key):
            await self._backend.cancel(key)
            self._locks.pop(key, None)

    async def _reconcile(self, key: str, subscription: Subscription, now: datetime) -> ReminderOutcome:
        await self._backend.cancel(key)

        if not subscription.is_active:
            return self._suppressed(key, SuppressReason.INACTIVE)
        if subscription.remind_days_before == 0:
            return self._suppressed(key, SuppressReason.NO_REMINDER)

        try:
            fire_at = self.fire_instant(subscription)
        except DateComputationError as exc:
            LOGGER.warning("No reminder for %s: %s", key, exc)
            return Suppressed(SuppressReason.DATE_COMPUTATION, exc)

        if fire_at <= now:
            return self._suppressed(key, SuppressReason.IN_PAST)

        state = await self._backend.authorization_state(subscription.user_id)
        if not state.allows_delivery:
            raise PermissionDeniedError(f"Reminders are {state.value} for chat {subscription.user_id}")

        await self._backend.schedule_at(key, fire_at, render_message(subscription))
        LOGGER.debug("Scheduled %s at %s", key, fire_at.isoformat())
        return ScheduledAt(fire_at)

    @staticmethod
    def _suppressed(key: str, reason: SuppressReason) -> Suppressed:
        LOGGER.debug("Reminder %s suppressed: %s", key, reason.value)
        return Suppressed(reason)
