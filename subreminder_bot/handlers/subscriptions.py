from __future__ import annotations

import logging
from uuid import UUID

from telegram import Update
from telegram.ext import CallbackContext

from ..errors import (
    DateComputationError,
    PlanLimitError,
    StorageError,
    SubscriptionNotFoundError,
    SubscriptionValidationError,
)
from ..i18n import Translator
from ..keyboards.confirm_menu import confirm_menu
from ..keyboards.subscription_menu import subscription_list_menu, subscription_menu
from ..services.parser import ParserService
from ..services.presenter import SubscriptionPresenter
from ..services.subscriptions import SubscriptionService
from .common import local_today, respond

LOGGER = logging.getLogger(__name__)


def _command_args(update: Update) -> str:
    text = update.message.text or ""
    parts = text.split(maxsplit=1)
    return parts[1] if len(parts) > 1 else ""


async def handle_add_hint(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    try:
        allowed = await service.can_add(update.effective_chat.id)
    except StorageError:
        await respond(update, translator.translate("save_error"))
        return
    if not allowed:
        await respond(update, translator.translate("plan_limit"), confirm_menu("nav:upgrade", "nav:main", "Upgrade"))
        return
    await respond(update, translator.translate("add_hint"))


async def handle_add(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    parser: ParserService = context.application.bot_data["parser"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    presenter = SubscriptionPresenter(translator)
    message = update.message
    if not message:
        return
    try:
        draft = parser.parse_subscription(_command_args(update))
        result = await service.add(update.effective_chat.id, draft)
    except SubscriptionValidationError as exc:
        await message.reply_text(exc.message)
        return
    except PlanLimitError:
        await message.reply_text(
            translator.translate("plan_limit"), reply_markup=confirm_menu("nav:upgrade", "nav:main", "Upgrade")
        )
        return
    except StorageError:
        await message.reply_text(translator.translate("save_error"))
        return
    await message.reply_text(presenter.render_result(result))


async def handle_edit(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    parser: ParserService = context.application.bot_data["parser"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    presenter = SubscriptionPresenter(translator)
    message = update.message
    if not message:
        return
    user_id = update.effective_chat.id
    try:
        index, draft = parser.parse_edit(_command_args(update))
        subscriptions = await service.list(user_id)
        if index > len(subscriptions):
            await message.reply_text(translator.translate("not_found"))
            return
        result = await service.update(user_id, subscriptions[index - 1].id, draft)
    except SubscriptionValidationError as exc:
        await message.reply_text(exc.message)
        return
    except SubscriptionNotFoundError:
        await message.reply_text(translator.translate("not_found"))
        return
    except StorageError:
        await message.reply_text(translator.translate("save_error"))
        return
    await message.reply_text(presenter.render_result(result))


async def handle_list(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    presenter = SubscriptionPresenter(translator)
    try:
        subscriptions = await service.list(update.effective_chat.id)
    except StorageError:
        await respond(update, translator.translate("save_error"))
        return
    await respond(update, presenter.render_list(subscriptions, local_today(context)), subscription_list_menu(subscriptions))


async def handle_subscription_action(update: Update, context: CallbackContext) -> None:
    """Callback data: ``sub:<action>:<id>[:<days>]``."""
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    presenter = SubscriptionPresenter(translator)
    query = update.callback_query
    if not query or not query.data:
        return
    parts = query.data.split(":")
    if len(parts) < 3:
        return
    _, action, raw_id = parts[:3]
    try:
        sub_id = UUID(raw_id)
    except ValueError:
        await respond(update, translator.translate("not_found"))
        return
    user_id = update.effective_chat.id
    today = local_today(context)

    try:
        if action == "open":
            subscription = await service.get(user_id, sub_id)
            await respond(update, presenter.render_detail(subscription, today), subscription_menu(subscription, translator))
            return
        if action == "confirm_delete":
            subscription = await service.get(user_id, sub_id)
            await respond(update, f"Delete {subscription.title}?", confirm_menu(f"sub:delete:{sub_id}", f"sub:open:{sub_id}"))
            return
        if action == "delete":
            await service.delete(user_id, sub_id)
            await respond(update, translator.translate("deleted"), subscription_list_menu(await service.list(user_id)))
            return
        if action == "paid":
            result = await service.mark_paid(user_id, sub_id)
        elif action == "toggle":
            current = await service.get(user_id, sub_id)
            result = await service.set_active(user_id, sub_id, not current.is_active)
        elif action == "remind" and len(parts) >= 4 and parts[3].isdigit():
            result = await service.set_remind_days(user_id, sub_id, int(parts[3]))
        else:
            LOGGER.debug("Ignoring callback %s", query.data)
            return
    except SubscriptionNotFoundError:
        await respond(update, translator.translate("not_found"))
        return
    except DateComputationError:
        await respond(update, translator.translate("date_error"))
        return
    except SubscriptionValidationError as exc:
        await respond(update, exc.message)
        return
    except StorageError:
        await respond(update, translator.translate("save_error"))
        return

    text = f"{presenter.render_detail(result.subscription, today)}\n\n{presenter.render_result(result)}"
    await respond(update, text, subscription_menu(result.subscription, translator))
