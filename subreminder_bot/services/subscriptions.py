from __future__ import annotations

"""Subscription write path: persist first, then reconcile the reminder."""
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
from uuid import UUID

from ..errors import (
    PlanLimitError,
    SchedulingError,
    StorageError,
    SubscriptionNotFoundError,
    SubscriptionValidationError,
)
from ..models.reminder import ReminderOutcome, ScheduledAt, Suppressed
from ..models.subscription import MAX_REMIND_DAYS, Subscription, SubscriptionDraft
from ..models.user_settings import UserSettings
from .reminders import ReminderScheduler
from .storage import SubscriptionStore

LOGGER = logging.getLogger(__name__)


@dataclass
class MutationResult:
    subscription: Subscription
    outcome: Optional[ReminderOutcome] = None
    error: Optional[SchedulingError] = None

    @property
    def scheduled(self) -> bool:
        return isinstance(self.outcome, ScheduledAt)


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (sqlite3.Error, OSError) as exc:
        LOGGER.error("Storage failure while trying to %s: %s", action, exc)
        raise StorageError(f"Could not {action}") from exc


class SubscriptionService:
    def __init__(self, store: SubscriptionStore, scheduler: ReminderScheduler, free_limit: int = 1) -> None:
        self._store = store
        self._scheduler = scheduler
        self._free_limit = free_limit

    async def list(self, user_id: int) -> List[Subscription]:
        with _storage_errors("load subscriptions"):
            return await self._store.list_subscriptions(user_id)

    async def get(self, user_id: int, subscription_id: UUID) -> Subscription:
        with _storage_errors("load subscription"):
            subscription = await self._store.get(user_id, subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError(str(subscription_id))
        return subscription

    async def settings(self, user_id: int) -> UserSettings:
        with _storage_errors("load settings"):
            return await self._store.load_settings(user_id)

    async def can_add(self, user_id: int) -> bool:
        settings = await self.settings(user_id)
        if settings.is_pro:
            return True
        with _storage_errors("count subscriptions"):
            return await self._store.count(user_id) < self._free_limit

    async def add(self, user_id: int, draft: SubscriptionDraft) -> MutationResult:
        if not await self.can_add(user_id):
            raise PlanLimitError(self._free_limit)
        subscription = Subscription.from_draft(user_id, draft)
        with _storage_errors("save subscription"):
            await self._store.create(subscription)
        LOGGER.info("Added subscription %s for chat %s", subscription.id, user_id)
        return await self._reconcile(subscription)

    async def update(self, user_id: int, subscription_id: UUID, draft: SubscriptionDraft) -> MutationResult:
        current = await self.get(user_id, subscription_id)
        return await self._save(current.apply(draft))

    async def set_active(self, user_id: int, subscription_id: UUID, active: bool) -> MutationResult:
        current = await self.get(user_id, subscription_id)
        return await self._save(current.model_copy(update={"is_active": active}))

    async def set_remind_days(self, user_id: int, subscription_id: UUID, days: int) -> MutationResult:
        if not 0 <= days <= MAX_REMIND_DAYS:
            raise SubscriptionValidationError(f"Reminder lead time must be between 0 and {MAX_REMIND_DAYS} days.")
        current = await self.get(user_id, subscription_id)
        return await self._save(current.model_copy(update={"remind_days_before": days}))

    async def mark_paid(self, user_id: int, subscription_id: UUID) -> MutationResult:
        """Advance the billing date by one month. ``DateComputationError`` leaves the record untouched."""
        current = await self.get(user_id, subscription_id)
        return await self._save(current.mark_paid())

    async def delete(self, user_id: int, subscription_id: UUID) -> None:
        with _storage_errors("delete subscription"):
            deleted = await self._store.delete(user_id, subscription_id)
        if not deleted:
            raise SubscriptionNotFoundError(str(subscription_id))
        await self._scheduler.cancel(subscription_id)
        LOGGER.info("Deleted subscription %s for chat %s", subscription_id, user_id)

    async def upgrade(self, user_id: int) -> UserSettings:
        settings = await self.settings(user_id)
        settings.is_pro = True
        with _storage_errors("save settings"):
            await self._store.save_settings(settings)
        LOGGER.info("Chat %s switched to Pro", user_id)
        return settings

    async def enable_notifications(self, user_id: int) -> Tuple[bool, List[MutationResult]]:
        granted = await self._scheduler.backend.request_permission(user_id)
        if not granted:
            return False, []
        results = [await self._reconcile(subscription) for subscription in await self.list(user_id)]
        return True, results

    async def _save(self, subscription: Subscription) -> MutationResult:
        with _storage_errors("save subscription"):
            updated = await self._store.update(subscription)
        if not updated:
            raise SubscriptionNotFoundError(str(subscription.id))
        return await self._reconcile(subscription)

    async def _reconcile(self, subscription: Subscription) -> MutationResult:
        try:
            outcome = await self._scheduler.reconcile(subscription)
        except SchedulingError as exc:
            LOGGER.warning("Reminder for %s not scheduled: %s", subscription.id, exc)
            return MutationResult(subscription, error=exc)
        error = outcome.error if isinstance(outcome, Suppressed) else None
        return MutationResult(subscription, outcome, error)
