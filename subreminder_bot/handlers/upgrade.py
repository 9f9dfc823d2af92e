from __future__ import annotations

"""Placeholder paywall: the upgrade only flips the stored Pro flag."""
from telegram import Update
from telegram.ext import CallbackContext

from ..errors import StorageError
from ..i18n import Translator
from ..keyboards.confirm_menu import confirm_menu
from ..services.subscriptions import SubscriptionService
from .common import respond


async def handle_paywall(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    await respond(update, translator.translate("paywall"), confirm_menu("upgrade:confirm", "nav:main", "Unlock Pro"))


async def handle_upgrade_confirm(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    try:
        await service.upgrade(update.effective_chat.id)
    except StorageError:
        await respond(update, translator.translate("save_error"))
        return
    await respond(update, translator.translate("upgraded"))
