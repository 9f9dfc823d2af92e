from __future__ import annotations

from typing import Iterable

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..models.subscription import REMIND_OPTIONS, Subscription


def subscription_list_menu(subscriptions: Iterable[Subscription]) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(f"{idx}. {sub.title}", callback_data=f"sub:open:{sub.id}")]
        for idx, sub in enumerate(subscriptions, start=1)
    ]
    rows.append([InlineKeyboardButton("Add subscription", callback_data="nav:add")])
    rows.append([InlineKeyboardButton("Back", callback_data="nav:main")])
    return InlineKeyboardMarkup(rows)


def subscription_menu(subscription: Subscription, translator, locale: str | None = None) -> InlineKeyboardMarkup:
    sub_id = subscription.id
    toggle_key = "btn_pause" if subscription.is_active else "btn_resume"
    remind_row = [
        InlineKeyboardButton(
            ("• " if days == subscription.remind_days_before else "") + ("No reminder" if days == 0 else f"{days}d"),
            callback_data=f"sub:remind:{sub_id}:{days}",
        )
        for days in REMIND_OPTIONS
    ]
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(translator.translate("btn_mark_paid", locale), callback_data=f"sub:paid:{sub_id}")],
            remind_row,
            [InlineKeyboardButton(translator.translate(toggle_key, locale), callback_data=f"sub:toggle:{sub_id}")],
            [InlineKeyboardButton(translator.translate("btn_delete", locale), callback_data=f"sub:confirm_delete:{sub_id}")],
            [InlineKeyboardButton(translator.translate("btn_back", locale), callback_data="nav:list")],
        ]
    )
