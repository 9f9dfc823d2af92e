from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import DateComputationError, SubscriptionValidationError

REMIND_OPTIONS = (0, 1, 3, 7)
MAX_REMIND_DAYS = 36500

_FIELD_MESSAGES = {
    "title": "Please enter a name.",
    "amount": "Please enter a valid amount (e.g., 9.99).",
    "currency": "Please enter a currency (e.g., USD).",
    "billing_date": "Please enter the next charge date as YYYY-MM-DD.",
    "remind_days_before": f"Reminder lead time must be between 0 and {MAX_REMIND_DAYS} days.",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def add_one_month(value: date) -> date:
    """Same day next month, clamped to the month's last day (Jan 31 -> Feb 28/29)."""
    year, month = (value.year + 1, 1) if value.month == 12 else (value.year, value.month + 1)
    if year > date.max.year:
        raise DateComputationError(f"Could not calculate the month after {value.isoformat()}")
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class SubscriptionDraft(BaseModel):
    """Validated user input for a subscription, without identity."""

    title: str
    amount: Decimal = Field(ge=0)
    currency: str
    billing_date: date
    remind_days_before: int = Field(default=3, ge=0, le=MAX_REMIND_DAYS)
    is_active: bool = True

    @field_validator("title", "currency", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("title")
    @classmethod
    def _title_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("empty title")
        return value

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, value: str) -> str:
        if not value:
            raise ValueError("empty currency")
        return value.upper()

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_from_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return Decimal(value.strip().replace(",", "."))
            except InvalidOperation as exc:
                raise ValueError("amount is not a number") from exc
        return value

    @classmethod
    def parse(cls, **fields: Any) -> "SubscriptionDraft":
        """Build a draft or raise ``SubscriptionValidationError`` with a user-facing message."""
        try:
            return cls(**fields)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else ""
            raise SubscriptionValidationError(_FIELD_MESSAGES.get(field, "Invalid subscription.")) from exc


class Subscription(SubscriptionDraft):
    id: UUID = Field(default_factory=uuid4)
    user_id: int
    created_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_draft(cls, user_id: int, draft: SubscriptionDraft) -> "Subscription":
        return cls(user_id=user_id, **draft.model_dump())

    def apply(self, draft: SubscriptionDraft) -> "Subscription":
        """Return a copy carrying the draft's values; id, owner and created_at are kept."""
        return self.model_copy(update=draft.model_dump())

    def mark_paid(self) -> "Subscription":
        return self.model_copy(update={"billing_date": add_one_month(self.billing_date)})

    def has_reminder(self) -> bool:
        return self.is_active and self.remind_days_before > 0

    def amount_text(self) -> str:
        return f"{self.amount:.2f} {self.currency}"
