from __future__ import annotations

"""Parses command arguments into validated subscription drafts."""
import re
from typing import Tuple

from ..errors import SubscriptionValidationError
from ..models.subscription import SubscriptionDraft

ADD_USAGE = "Usage: /add <name> <amount> <currency> <YYYY-MM-DD> [remind days]"
EDIT_USAGE = "Usage: /edit <number> <name> <amount> <currency> <YYYY-MM-DD> [remind days]"


class ParserService:
    SUBSCRIPTION_PATTERN = re.compile(
        r"^(?P<title>.+?)\s+"
        r"(?P<amount>-?\d+(?:[.,]\d+)?)\s+"
        r"(?P<currency>[A-Za-z]{2,5})\s+"
        r"(?P<date>\S+)"
        r"(?:\s+(?P<days>-?\d+))?\s*$"
    )
    EDIT_PATTERN = re.compile(r"^(?P<index>\d+)\s+(?P<rest>.+)$")

    def parse_subscription(self, text: str, *, usage: str = ADD_USAGE) -> SubscriptionDraft:
        match = self.SUBSCRIPTION_PATTERN.match(text.strip())
        if not match:
            raise SubscriptionValidationError(usage)
        fields = {
            "title": match.group("title"),
            "amount": match.group("amount"),
            "currency": match.group("currency"),
            "billing_date": match.group("date"),
        }
        if match.group("days") is not None:
            fields["remind_days_before"] = int(match.group("days"))
        return SubscriptionDraft.parse(**fields)

    def parse_edit(self, text: str) -> Tuple[int, SubscriptionDraft]:
        """Split ``<number> <subscription fields>``; the number is 1-based."""
        match = self.EDIT_PATTERN.match(text.strip())
        if not match or int(match.group("index")) < 1:
            raise SubscriptionValidationError(EDIT_USAGE)
        return int(match.group("index")), self.parse_subscription(match.group("rest"), usage=EDIT_USAGE)
