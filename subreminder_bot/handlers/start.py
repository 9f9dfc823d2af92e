from __future__ import annotations

"""Start and menu handlers."""
from telegram import Update
from telegram.ext import ContextTypes

from ..i18n import Translator
from ..keyboards.main_menu import main_menu_keyboard
from ..services.subscriptions import SubscriptionService
from .common import respond


async def _menu_text(translator: Translator, service: SubscriptionService, user_id: int, intro: bool) -> tuple:
    settings = await service.settings(user_id)
    notifications_on = settings.notifications.allows_delivery
    lines = [translator.translate("start_message" if intro else "main_menu_title")]
    lines.append(translator.translate("plan_pro" if settings.is_pro else "plan_free"))
    lines.append(translator.translate("notifications_on" if notifications_on else "notifications_off"))
    keyboard = main_menu_keyboard(translator, notifications_on=notifications_on, is_pro=settings.is_pro)
    return "\n\n".join(lines), keyboard


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    text, keyboard = await _menu_text(translator, service, update.effective_chat.id, intro=True)
    await update.message.reply_text(text, reply_markup=keyboard)


async def handle_menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    translator: Translator = context.application.bot_data["translator"]
    service: SubscriptionService = context.application.bot_data["subscriptions"]
    text, keyboard = await _menu_text(translator, service, update.effective_chat.id, intro=False)
    await respond(update, text, keyboard)
