from __future__ import annotations

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def confirm_menu(ok_action: str, cancel_action: str = "nav:list", ok_label: str = "Delete") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(ok_label, callback_data=ok_action)],
            [InlineKeyboardButton("Cancel", callback_data=cancel_action)],
        ]
    )
