from __future__ import annotations

"""Text rendering for subscription lists and mutation replies."""
from datetime import date
from typing import Iterable, Optional

from ..i18n import Translator
from ..models.reminder import ScheduledAt
from ..models.subscription import Subscription
from .subscriptions import MutationResult


def days_left_text(billing_date: date, today: date) -> str:
    days = (billing_date - today).days
    if days < 0:
        return "Overdue"
    if days == 0:
        return "Today"
    if days == 1:
        return "In 1 day"
    return f"In {days} days"


def reminder_status(subscription: Subscription) -> str:
    if not subscription.is_active:
        return "Paused"
    if subscription.remind_days_before == 0:
        return "No reminder"
    return f"Remind {subscription.remind_days_before} day(s) before"


class SubscriptionPresenter:
    def __init__(self, translator: Translator, locale: Optional[str] = None) -> None:
        self._translator = translator
        self._locale = locale

    def row(self, subscription: Subscription, today: date, idx: Optional[int] = None) -> str:
        prefix = f"{idx}. " if idx is not None else ""
        return (
            f"{prefix}{subscription.title} — {subscription.amount_text()}\n"
            f"   Next charge: {subscription.billing_date:%b %d, %Y} ({days_left_text(subscription.billing_date, today)})\n"
            f"   {reminder_status(subscription)}"
        )

    def render_list(self, subscriptions: Iterable[Subscription], today: date) -> str:
        lines = [self.row(sub, today, idx) for idx, sub in enumerate(subscriptions, start=1)]
        return "\n".join(lines) if lines else self._t("empty_list")

    def render_detail(self, subscription: Subscription, today: date) -> str:
        return self.row(subscription, today)

    def render_result(self, result: MutationResult) -> str:
        lines = [self._t("saved")]
        if isinstance(result.outcome, ScheduledAt):
            when = f"{result.outcome.fire_at:%b %d, %Y %H:%M}"
            lines.append(self._t("reminder_at").format(when=when))
        elif result.error is not None and result.outcome is None:
            lines.append(self._t("reminder_failed"))
        else:
            lines.append(self._t("reminder_none"))
        return "\n".join(lines)

    def _t(self, key: str) -> str:
        return self._translator.translate(key, self._locale)
