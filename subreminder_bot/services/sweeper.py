"""Periodic re-issue of every stored reminder."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..errors import SchedulingError
from ..models.reminder import ScheduledAt
from .reminders import ReminderScheduler
from .storage import SubscriptionStore

LOGGER = logging.getLogger(__name__)


class ReconciliationSweeper:
    """Reconciles all subscriptions on start and then every ``interval_minutes``.

    Write-path reconciliation keeps reminders correct as long as the backend
    keeps its registrations; the sweep restores any it dropped (for example
    job-queue jobs lost on restart). It never changes stored records.
    """

    def __init__(self, store: SubscriptionStore, scheduler: ReminderScheduler, interval_minutes: int = 60) -> None:
        self._store = store
        self._scheduler = scheduler
        self._interval = max(1, interval_minutes)
        self._task: Optional[asyncio.Task[None]] = None
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self._task is not None:
            LOGGER.debug("Sweeper already started")
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopped.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            LOGGER.debug("Sweeper task cancelled")
        finally:
            self._task = None

    async def sweep(self) -> int:
        """Reconcile every stored subscription; returns how many got a reminder."""
        scheduled = 0
        for subscription in await self._store.list_all():
            try:
                outcome = await self._scheduler.reconcile(subscription)
            except SchedulingError as exc:
                LOGGER.warning("Sweep skipped %s: %s", subscription.id, exc)
                continue
            except Exception:
                LOGGER.exception("Sweep failed for %s", subscription.id)
                continue
            if isinstance(outcome, ScheduledAt):
                scheduled += 1
        LOGGER.info("Reconciliation sweep finished, %s reminder(s) pending", scheduled)
        return scheduled

    async def _run(self) -> None:
        while not self._stopped.is_set():
            try:
                await self.sweep()
            except Exception:
                LOGGER.exception("Reconciliation sweep failed")
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self._interval * 60)
            except asyncio.TimeoutError:
                continue
