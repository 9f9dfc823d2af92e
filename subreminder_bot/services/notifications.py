"""Notification backends: where scheduled reminders are registered and delivered."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from telegram.error import Forbidden, TelegramError
from telegram.ext import CallbackContext, JobQueue

from ..errors import BackendError
from ..models.reminder import AuthorizationState, NotificationMessage

if TYPE_CHECKING:
    from .storage import SubscriptionStore

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationBackend(ABC):
    """Capabilities the reminder scheduler needs from a delivery facility.

    Implementations own their registry of pending items. Callers only address
    entries by notification id.
    """

    @abstractmethod
    async def request_permission(self, recipient: int) -> bool:
        """Ask the recipient to allow reminders; returns whether they are allowed now."""

    @abstractmethod
    async def authorization_state(self, recipient: int) -> AuthorizationState:
        ...

    @abstractmethod
    async def cancel(self, notification_id: str) -> None:
        """Remove a pending item. No-op when nothing is registered under the id."""

    @abstractmethod
    async def schedule_at(self, notification_id: str, fire_at: datetime, message: NotificationMessage) -> None:
        """Register a one-shot delivery, replacing any entry with the same id.

        Raises ``BackendError`` when ``fire_at`` is not in the future or the
        request is rejected.
        """


@dataclass(frozen=True)
class PendingNotification:
    notification_id: str
    fire_at: datetime
    message: NotificationMessage


class InMemoryNotificationBackend(NotificationBackend):
    """Process-local registry. Nothing is delivered; entries only sit in the registry."""

    def __init__(
        self,
        default_state: AuthorizationState = AuthorizationState.GRANTED,
        clock: Optional[Clock] = None,
    ) -> None:
        self._default_state = default_state
        self._clock = clock or utc_now
        self._states: Dict[int, AuthorizationState] = {}
        self._registry: Dict[str, PendingNotification] = {}
        self.fail_schedule: Optional[str] = None

    def set_authorization(self, recipient: int, state: AuthorizationState) -> None:
        self._states[recipient] = state

    async def request_permission(self, recipient: int) -> bool:
        state = self._states.get(recipient, self._default_state)
        if state is AuthorizationState.NOT_DETERMINED:
            state = AuthorizationState.GRANTED
            self._states[recipient] = state
        return state.allows_delivery

    async def authorization_state(self, recipient: int) -> AuthorizationState:
        return self._states.get(recipient, self._default_state)

    async def cancel(self, notification_id: str) -> None:
        self._registry.pop(notification_id, None)

    async def schedule_at(self, notification_id: str, fire_at: datetime, message: NotificationMessage) -> None:
        if self.fail_schedule:
            raise BackendError(self.fail_schedule)
        if fire_at <= self._clock():
            raise BackendError(f"Fire time {fire_at.isoformat()} is not in the future")
        self._registry[notification_id] = PendingNotification(notification_id, fire_at, message)

    def pending(self, notification_id: str) -> Optional[PendingNotification]:
        return self._registry.get(notification_id)

    def pending_ids(self) -> List[str]:
        return sorted(self._registry)


class TelegramNotificationBackend(NotificationBackend):
    """Delivers reminders as chat messages through the application's job queue.

    Jobs are named after the notification id, so cancelling by id removes every
    job with that name. The opt-in flag lives in the user's stored settings.
    """

    def __init__(self, job_queue: JobQueue, storage: "SubscriptionStore", clock: Optional[Clock] = None) -> None:
        self._job_queue = job_queue
        self._storage = storage
        self._clock = clock or utc_now

    async def request_permission(self, recipient: int) -> bool:
        await self._set_state(recipient, AuthorizationState.GRANTED)
        return True

    async def revoke_permission(self, recipient: int) -> None:
        await self._set_state(recipient, AuthorizationState.DENIED)

    async def authorization_state(self, recipient: int) -> AuthorizationState:
        settings = await self._storage.load_settings(recipient)
        return settings.notifications

    async def cancel(self, notification_id: str) -> None:
        for job in self._job_queue.get_jobs_by_name(notification_id):
            job.schedule_removal()

    async def schedule_at(self, notification_id: str, fire_at: datetime, message: NotificationMessage) -> None:
        if fire_at <= self._clock():
            raise BackendError(f"Fire time {fire_at.isoformat()} is not in the future")
        await self.cancel(notification_id)
        try:
            self._job_queue.run_once(
                self._deliver,
                when=fire_at,
                name=notification_id,
                chat_id=message.recipient,
                data=message,
            )
        except Exception as exc:
            raise BackendError(f"Job queue rejected {notification_id}: {exc}") from exc

    async def _deliver(self, context: CallbackContext) -> None:
        job = context.job
        message: NotificationMessage = job.data
        try:
            await context.bot.send_message(chat_id=job.chat_id, text=message.render())
        except Forbidden:
            LOGGER.warning("Chat %s blocked the bot; disabling reminders", job.chat_id)
            await self.revoke_permission(message.recipient)
        except TelegramError:
            LOGGER.exception("Failed to deliver reminder %s", job.name)

    async def _set_state(self, recipient: int, state: AuthorizationState) -> None:
        settings = await self._storage.load_settings(recipient)
        settings.notifications = state
        await self._storage.save_settings(settings)
