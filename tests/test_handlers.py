from datetime import date, datetime, timezone
from pathlib import Path
import sqlite3
import sys
from types import SimpleNamespace
from typing import List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from subreminder_bot.handlers.subscriptions import (
    handle_add,
    handle_add_hint,
    handle_edit,
    handle_subscription_action,
)
from subreminder_bot.i18n import Translator
from subreminder_bot.models.subscription import Subscription, SubscriptionDraft
from subreminder_bot.services.notifications import InMemoryNotificationBackend
from subreminder_bot.services.parser import ParserService
from subreminder_bot.services.reminders import ReminderScheduler
from subreminder_bot.services.storage import SubscriptionStore
from subreminder_bot.services.subscriptions import SubscriptionService

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
CHAT = 11


class FakeMessage:
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.replies: list = []

    async def reply_text(self, text: str, reply_markup=None) -> None:
        self.replies.append((text, reply_markup))


class FakeCallbackQuery:
    def __init__(self, data: str) -> None:
        self.data = data
        self.answered = False
        self.edits: list = []

    async def answer(self) -> None:
        self.answered = True

    async def edit_message_text(self, text: str, reply_markup=None) -> None:
        self.edits.append((text, reply_markup))


class CountFailsStore(SubscriptionStore):
    async def count(self, user_id: int) -> int:
        raise sqlite3.OperationalError("disk I/O error")


def command(text: str):
    message = FakeMessage(text)
    return SimpleNamespace(
        message=message, effective_message=message, callback_query=None, effective_chat=SimpleNamespace(id=CHAT)
    ), message


def press(data: str):
    query = FakeCallbackQuery(data)
    return SimpleNamespace(
        message=None, effective_message=None, callback_query=query, effective_chat=SimpleNamespace(id=CHAT)
    ), query


def extract_callback_data(markup) -> List[str]:
    return [button.callback_data for row in markup.inline_keyboard for button in row]


async def build_context(tmp_path: Path, free_limit: int = 5, store_cls=SubscriptionStore):
    store = store_cls(tmp_path / "subs.sqlite3")
    await store.init_schema()
    backend = InMemoryNotificationBackend(clock=lambda: NOW)
    scheduler = ReminderScheduler(backend, clock=lambda: NOW)
    service = SubscriptionService(store, scheduler, free_limit=free_limit)
    bot_data = {
        "settings": SimpleNamespace(scheduler_timezone="UTC"),
        "translator": Translator(),
        "parser": ParserService(),
        "subscriptions": service,
    }
    return SimpleNamespace(application=SimpleNamespace(bot_data=bot_data)), service, store


async def seed(service: SubscriptionService, billing_date: date = date(2024, 3, 10)) -> Subscription:
    draft = SubscriptionDraft.parse(title="Spotify", amount="9.99", currency="USD", billing_date=billing_date)
    return (await service.add(CHAT, draft)).subscription


async def tap(context, data: str):
    update, query = press(data)
    await handle_subscription_action(update, context)
    assert query.answered
    text, markup = query.edits[-1]
    return text, markup


async def tap_hint(context):
    update, query = press("nav:add")
    await handle_add_hint(update, context)
    return query.edits[-1]


@pytest.mark.asyncio
async def test_add_command_replies_with_reminder_time(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path)
    update, message = command("/add Spotify 9.99 usd 2024-03-10")

    await handle_add(update, context)

    text, _ = message.replies[-1]
    assert text == "Saved.\nReminder set for Mar 07, 2024 10:00."
    assert [sub.title for sub in await service.list(CHAT)] == ["Spotify"]


@pytest.mark.asyncio
async def test_open_shows_subscription_actions(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path)
    sub = await seed(service)

    text, markup = await tap(context, f"sub:open:{sub.id}")

    assert text.startswith("Spotify — 9.99 USD")
    assert "Remind 3 day(s) before" in text
    assert extract_callback_data(markup) == [
        f"sub:paid:{sub.id}",
        f"sub:remind:{sub.id}:0",
        f"sub:remind:{sub.id}:1",
        f"sub:remind:{sub.id}:3",
        f"sub:remind:{sub.id}:7",
        f"sub:toggle:{sub.id}",
        f"sub:confirm_delete:{sub.id}",
        "nav:list",
    ]


@pytest.mark.asyncio
async def test_paid_moves_billing_date_and_reminder(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path)
    sub = await seed(service)

    text, _ = await tap(context, f"sub:paid:{sub.id}")

    assert "Next charge: Apr 10, 2024" in text
    assert "Reminder set for Apr 07, 2024 10:00." in text


@pytest.mark.asyncio
async def test_paid_overflow_reports_date_error(tmp_path: Path) -> None:
    context, service, store = await build_context(tmp_path)
    sub = await seed(service, billing_date=date(9999, 12, 15))

    text, _ = await tap(context, f"sub:paid:{sub.id}")

    assert text == "Could not calculate next date."
    assert (await store.get(CHAT, sub.id)).billing_date == date(9999, 12, 15)


@pytest.mark.asyncio
async def test_toggle_pauses_and_resumes(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path)
    sub = await seed(service)

    text, markup = await tap(context, f"sub:toggle:{sub.id}")
    assert "Paused" in text
    assert text.endswith("No reminder will be sent.")
    assert [button.text for row in markup.inline_keyboard for button in row][5] == "Resume"

    text, _ = await tap(context, f"sub:toggle:{sub.id}")
    assert "Remind 3 day(s) before" in text
    assert "Reminder set for Mar 07, 2024 10:00." in text


@pytest.mark.asyncio
async def test_remind_option_changes_lead_time(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path)
    sub = await seed(service)

    text, markup = await tap(context, f"sub:remind:{sub.id}:7")

    assert "Remind 7 day(s) before" in text
    assert "Reminder set for Mar 03, 2024 10:00." in text
    remind_labels = [button.text for button in markup.inline_keyboard[1]]
    assert remind_labels == ["No reminder", "1d", "3d", "• 7d"]


@pytest.mark.asyncio
async def test_remind_out_of_range_is_rejected(tmp_path: Path) -> None:
    context, service, store = await build_context(tmp_path)
    sub = await seed(service)

    text, _ = await tap(context, f"sub:remind:{sub.id}:{10**20}")

    assert text == "Reminder lead time must be between 0 and 36500 days."
    assert (await store.get(CHAT, sub.id)).remind_days_before == 3


@pytest.mark.asyncio
async def test_delete_flow(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path)
    sub = await seed(service)

    text, markup = await tap(context, f"sub:confirm_delete:{sub.id}")
    assert text == "Delete Spotify?"
    assert extract_callback_data(markup) == [f"sub:delete:{sub.id}", f"sub:open:{sub.id}"]

    text, markup = await tap(context, f"sub:delete:{sub.id}")
    assert text == "Subscription deleted."
    assert extract_callback_data(markup) == ["nav:add", "nav:main"]

    text, _ = await tap(context, f"sub:delete:{sub.id}")
    assert text == "Subscription not found."


@pytest.mark.asyncio
async def test_malformed_id_is_not_found(tmp_path: Path) -> None:
    context, _, _ = await build_context(tmp_path)
    text, _ = await tap(context, "sub:open:not-a-uuid")
    assert text == "Subscription not found."


@pytest.mark.asyncio
async def test_edit_command_bounds(tmp_path: Path) -> None:
    context, service, store = await build_context(tmp_path)
    sub = await seed(service)

    update, message = command("/edit 3 Netflix 15.49 USD 2024-04-01")
    await handle_edit(update, context)
    assert message.replies[-1][0] == "Subscription not found."

    update, message = command("/edit 1 Netflix 15.49 USD 2024-04-01 1")
    await handle_edit(update, context)
    assert message.replies[-1][0] == "Saved.\nReminder set for Mar 31, 2024 10:00."
    stored = await store.get(CHAT, sub.id)
    assert (stored.title, stored.remind_days_before) == ("Netflix", 1)


@pytest.mark.asyncio
async def test_add_hint_at_plan_limit_offers_upgrade(tmp_path: Path) -> None:
    context, service, _ = await build_context(tmp_path, free_limit=1)
    await seed(service)
    update, message = command("/add")

    await handle_add_hint(update, context)

    text, markup = message.replies[-1]
    assert text == "The free plan includes one subscription. Upgrade to add more."
    assert extract_callback_data(markup) == ["nav:upgrade", "nav:main"]


@pytest.mark.asyncio
async def test_add_hint_reports_storage_failure(tmp_path: Path) -> None:
    context, _, _ = await build_context(tmp_path, store_cls=CountFailsStore)

    text, markup = await tap_hint(context)

    assert text == "Save error. Please try again."
    assert markup is None
