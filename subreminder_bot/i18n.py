from __future__ import annotations

"""Message catalog for bot replies."""
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class Translator:
    default_locale: str = "en"
    _translations: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self._translations:
            return
        self._translations = {
            "en": {
                "start_message": (
                    "Track subscriptions. Get reminded before charges.\n"
                    "Add a subscription, pick when to be reminded, and mark it paid to move to next month."
                ),
                "main_menu_title": "SubReminder",
                "btn_list": "My subscriptions",
                "btn_add": "Add subscription",
                "btn_notify": "Enable reminders",
                "btn_upgrade": "Upgrade",
                "btn_back": "Back",
                "btn_mark_paid": "Mark as paid (+1 month)",
                "btn_pause": "Pause",
                "btn_resume": "Resume",
                "btn_delete": "Delete subscription",
                "plan_free": "Free plan: 1 subscription included",
                "plan_pro": "Pro: Lifetime. Unlimited subscriptions",
                "notifications_on": "Notifications: On. You will get reminders before charges.",
                "notifications_off": "Notifications: Off. Enable notifications to receive reminders.",
                "notifications_enabled": "Reminders enabled.",
                "notifications_denied": "Notifications are disabled. Use /notify to enable them.",
                "empty_list": "No subscriptions yet. Add one to get reminded before it charges.",
                "add_hint": "Send /add <name> <amount> <currency> <YYYY-MM-DD> [remind days], e.g. /add Spotify 9.99 USD 2024-03-10 3",
                "paywall": "Unlock Lifetime Pro\n• Unlimited subscriptions\n• No account. No tracking.",
                "plan_limit": "The free plan includes one subscription. Upgrade to add more.",
                "upgraded": "You're Pro now. Unlimited subscriptions unlocked.",
                "saved": "Saved.",
                "deleted": "Subscription deleted.",
                "not_found": "Subscription not found.",
                "save_error": "Save error. Please try again.",
                "date_error": "Could not calculate next date.",
                "reminder_at": "Reminder set for {when}.",
                "reminder_none": "No reminder will be sent.",
                "reminder_failed": "Saved, but the reminder could not be set.",
            },
        }

    def translate(self, key: str, locale: str | None = None) -> str:
        catalog = self._translations.get(locale or self.default_locale) or self._translations[self.default_locale]
        return catalog.get(key, key)
