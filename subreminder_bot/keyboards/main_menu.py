from __future__ import annotations

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def main_menu_keyboard(
    translator, locale: str | None = None, *, notifications_on: bool = False, is_pro: bool = False
) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(translator.translate("btn_list", locale), callback_data="nav:list")],
        [InlineKeyboardButton(translator.translate("btn_add", locale), callback_data="nav:add")],
    ]
    if not notifications_on:
        rows.append([InlineKeyboardButton(translator.translate("btn_notify", locale), callback_data="nav:notify")])
    if not is_pro:
        rows.append([InlineKeyboardButton(translator.translate("btn_upgrade", locale), callback_data="nav:upgrade")])
    return InlineKeyboardMarkup(rows)
