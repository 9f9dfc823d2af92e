from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import pytz
from telegram import InlineKeyboardMarkup, Update
from telegram.ext import CallbackContext


async def respond(update: Update, text: str, reply_markup: Optional[InlineKeyboardMarkup] = None) -> None:
    """Edit the message behind a button press, or reply to a command."""
    query = update.callback_query
    if query:
        await query.answer()
        await query.edit_message_text(text, reply_markup=reply_markup)
    elif update.effective_message:
        await update.effective_message.reply_text(text, reply_markup=reply_markup)


def local_today(context: CallbackContext) -> date:
    settings = context.application.bot_data["settings"]
    return datetime.now(pytz.timezone(settings.scheduler_timezone)).date()
