from __future__ import annotations

from telegram import Update
from telegram.ext import CallbackContext

from ..errors import StorageError
from ..i18n import Translator
from ..services.subscriptions import SubscriptionService
from .common import respond


async def handle_notify(update: Update, context: CallbackContext) -> None:
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    try:
        granted, results = await service.enable_notifications(update.effective_chat.id)
    except StorageError:
        await respond(update, translator.translate("save_error"))
        return
    if not granted:
        await respond(update, translator.translate("notifications_denied"))
        return
    scheduled = sum(1 for result in results if result.scheduled)
    await respond(update, f"{translator.translate('notifications_enabled')} {scheduled} reminder(s) pending.")
